import asyncio
import copy
import logging
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional
from utilities import make_event, KEEPALIVE_FRAME
from utilities import KEEPALIVE_INTERVAL

logger = logging.getLogger(__name__)

# ------------ Messages ------------
class Message:
    ''' A stored message. Server-owned fields: id, read.'''

    def __init__(self, message_id: str, payload: Dict[str, Any]):
        self.id = message_id
        # creator supplied fields, kept uninterpreted
        self.payload = {k: v for k, v in payload.items() if k not in ("id", "read")}
        self.read = False

    @property
    def title(self) -> Any:
        return self.payload.get("title")

    @property
    def content(self) -> Any:
        return self.payload.get("content")

    def copy(self) -> "Message":
        msg = Message(self.id, copy.deepcopy(self.payload))
        msg.read = self.read
        return msg

    def to_dict(self) -> dict:
        out = copy.deepcopy(self.payload)
        out["id"] = self.id
        out["read"] = self.read
        return out

class MessageStore:
    '''
    Authoritative set of unread messages, in insertion order.
    Marking a message read removes it from the store.
    Callers only ever receive copies.
    '''

    def __init__(self):
        self._messages: List[Message] = []
        self.lock = asyncio.Lock()

    async def list_unread(self) -> List[Message]:
        async with self.lock:
            return [m.copy() for m in self._messages if not m.read]

    async def insert(self, payload: Dict[str, Any]) -> Message:
        msg = Message(str(uuid.uuid4()), payload)
        async with self.lock:
            self._messages.append(msg)
        return msg.copy()

    async def mark_read(self, message_id: str) -> bool:
        # unknown ids are a silent no-op
        async with self.lock:
            before = len(self._messages)
            self._messages = [m for m in self._messages if m.id != message_id]
            return len(self._messages) != before

    async def count(self) -> int:
        async with self.lock:
            return len(self._messages)

# ------------ Subscribers ------------
class SubscriberState(str, Enum):
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"
    GONE = "gone"

class Subscriber:
    ''' Represents a live /events client.'''

    def __init__(self, client_id: str, sink: asyncio.Queue):

        # initialize fields
        self.client_id = client_id

        # frame buffer drained by the transport; the registry only writes to it
        # writes never wait: a full sink means a stalled consumer
        self.sink = sink

        # background task emitting keep-alive comments, owned by this entry
        self.keepalive_task: Optional[asyncio.Task] = None
        self.state = SubscriberState.CONNECTED

    @property
    def connected(self) -> bool:
        return self.state is SubscriberState.CONNECTED

    def send(self, frame: str) -> bool:
        if not self.connected:
            return False
        try:
            self.sink.put_nowait(frame)
        except asyncio.QueueFull:
            return False
        return True

    def close_sink(self):
        # None marks end of stream for the transport; drop oldest if there is no room
        if self.sink.full():
            try:
                _ = self.sink.get_nowait()
            except asyncio.QueueEmpty:
                pass
        self.sink.put_nowait(None)

    # graceful cleanup
    async def stop(self):
        if self.state is SubscriberState.GONE:
            return
        self.state = SubscriberState.DISCONNECTING
        task = self.keepalive_task
        # the keepalive task may be the one stopping us; it exits on its own
        if task and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.close_sink()
        self.state = SubscriberState.GONE

async def keepalive_loop(sub: Subscriber, registry: "ClientRegistry", interval: float):
    """
    Background task per subscriber: write a keep-alive comment every `interval` seconds.
    A failed write is handled like a transport close.
    """
    try:
        while sub.connected:
            await asyncio.sleep(interval)
            if sub.send(KEEPALIVE_FRAME):
                continue
            if sub.connected:
                logger.warning("Keep-alive to client %s failed; disconnecting", sub.client_id)
                await registry.unregister(sub.client_id)
            break
    except asyncio.CancelledError:
        # Graceful cancellation
        pass

class ClientRegistry:
    def __init__(self, keepalive_interval: float = KEEPALIVE_INTERVAL):
        self._subscribers: Dict[str, Subscriber] = {}
        self.lock = asyncio.Lock()
        self.keepalive_interval = keepalive_interval

    def __len__(self) -> int:
        return len(self._subscribers)

    def get(self, client_id: str) -> Optional[Subscriber]:
        return self._subscribers.get(client_id)

    async def register(self, sink: asyncio.Queue) -> str:
        client_id = str(uuid.uuid4())
        sub = Subscriber(client_id, sink)
        async with self.lock:
            self._subscribers[client_id] = sub
            sub.keepalive_task = asyncio.create_task(
                keepalive_loop(sub, self, self.keepalive_interval)
            )
        logger.info("Client %s connected", client_id)
        return client_id

    async def unregister(self, client_id: str):
        async with self.lock:
            sub = self._subscribers.pop(client_id, None)
            if sub is None:
                return
            sub.state = SubscriberState.DISCONNECTING
        await sub.stop()
        logger.info("Client %s connection closed", client_id)

    async def snapshot(self) -> List[Subscriber]:
        async with self.lock:
            return list(self._subscribers.values())

    async def close_all(self):
        async with self.lock:
            subscribers = list(self._subscribers.values())
            self._subscribers.clear()
        for sub in subscribers:
            await sub.stop()
        if subscribers:
            logger.info("Closed %d client connection(s)", len(subscribers))

# ------------ Fan-out ------------
class Broadcaster:
    def __init__(self, registry: ClientRegistry):
        self.registry = registry
        # stats
        self.messages_published = 0

    async def notify(self, message: Message) -> int:
        frame = make_event(message.to_dict())
        subscribers = await self.registry.snapshot()
        self.messages_published += 1

        # fan-out outside the registry lock; one stalled sink never blocks the rest
        delivered = 0
        for sub in subscribers:
            if sub.send(frame):
                delivered += 1
            else:
                logger.warning(
                    "Dropped message %s for client %s (%s)",
                    message.id,
                    sub.client_id,
                    "sink full" if sub.connected else sub.state.value,
                )
        return delivered
