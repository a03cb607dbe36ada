import asyncio
import json
import httpx

async def main():
    base_url = "http://localhost:4000"
    # no read timeout: the stream stays open between keep-alives
    async with httpx.AsyncClient(base_url=base_url, timeout=httpx.Timeout(10.0, read=None)) as client:
        print("Awaiting messages... (press Ctrl+C to exit)")
        async with client.stream("GET", "/events") as resp:
            async for line in resp.aiter_lines():
                if line.startswith("data: "):
                    msg = json.loads(line[len("data: "):])
                    print("Received:", msg)
                    # acknowledge so it no longer shows up in GET /messages
                    await client.put(f"/messages/{msg['id']}")
                elif line.startswith(":"):
                    print("keep-alive")

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("Disconnected.")
