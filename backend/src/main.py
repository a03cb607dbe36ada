import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List
from datetime import datetime, timezone


import anyio
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from models import MessageStore, ClientRegistry, Broadcaster
from schemas import MessageCreate, StatusResponse
from utilities import make_status, make_error
from utilities import HOST, PORT, LOG_LEVEL, SUBSCRIBER_QUEUE_SIZE, SEED_DEMO_MESSAGE, CORS_ALLOW_ORIGINS

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Shared state; every mutation goes through these objects
STORE = MessageStore()
REGISTRY = ClientRegistry()
BROADCASTER = Broadcaster(REGISTRY)

# Stats
START_TS = datetime.now(timezone.utc)

@asynccontextmanager
async def lifespan(app: FastAPI):
    if SEED_DEMO_MESSAGE:
        await STORE.insert({"title": "Message 1", "content": "Content 1"})
    logger.info("Message relay listening at http://%s:%s", HOST, PORT)
    try:
        yield
    finally:
        # end every open /events stream before the server stops
        await REGISTRY.close_all()
        logger.info("Message relay stopped")

app = FastAPI(title="In-memory Message Relay", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------- Error handling --------------
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    payload = make_error(exc.status_code, "http_error", exc.detail if exc.detail else "HTTP error")
    return JSONResponse(status_code=exc.status_code, content=payload)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    payload = make_error(422, "validation_error", "Validation failed", {"errors": exc.errors()})
    return JSONResponse(status_code=422, content=payload)

# -------------- Server-sent events --------------
async def event_stream(registry: ClientRegistry) -> AsyncGenerator[str, None]:
    """
    One generator per /events connection: register a sink, then relay its frames
    until the registry closes it or the client goes away.
    """
    sink: asyncio.Queue = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
    client_id = await registry.register(sink)
    try:
        while True:
            frame = await sink.get()
            if frame is None:
                break
            yield frame
    finally:
        # transport closed (or cancelled by the server)
        with anyio.CancelScope(shield=True):
            await registry.unregister(client_id)

@app.get("/events")
async def events():
    headers = {
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        "X-Accel-Buffering": "no",
    }
    return StreamingResponse(event_stream(REGISTRY), media_type="text/event-stream", headers=headers)

# -------------- REST endpoints --------------

@app.get("/messages")
async def rest_list_messages() -> List[dict]:
    return [m.to_dict() for m in await STORE.list_unread()]

@app.put("/messages/{message_id}", response_model=StatusResponse)
async def rest_mark_read(message_id: str):
    removed = await STORE.mark_read(message_id)
    if not removed:
        logger.debug("Mark-read for unknown message %s", message_id)
    return make_status("read", message_id)

@app.post("/messages", response_model=StatusResponse)
async def rest_create_message(req: MessageCreate):
    msg = await STORE.insert(req.model_dump(exclude_unset=True))
    await BROADCASTER.notify(msg)
    return make_status("received", msg.id)

@app.get("/health")
async def rest_health():
    now = datetime.now(timezone.utc)
    uptime_sec = int((now - START_TS).total_seconds())
    return {"uptime_sec": uptime_sec, "messages": await STORE.count(), "subscribers": len(REGISTRY)}

@app.get("/stats")
async def rest_stats():
    return {
        "messages_published": BROADCASTER.messages_published,
        "unread": await STORE.count(),
        "subscribers": len(REGISTRY),
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT)
