import asyncio
import json
import uuid
import httpx  # to install: pip install httpx

async def main():
    base_url = "http://localhost:4000"
    async with httpx.AsyncClient(base_url=base_url) as client:
        # publish a test message; every /events subscriber receives it
        msg = {
            "title": "Order created",
            "content": json.dumps({"order_id": "ORD-1", "amount": 9.99, "currency": "USD"}),
            "ref": str(uuid.uuid4()),
        }
        print("Client Message: ", msg)
        resp = await client.post("/messages", json=msg)
        print("Server:", resp.json())

        unread = await client.get("/messages")
        print("Unread:", unread.json())

if __name__ == "__main__":
    asyncio.run(main())
