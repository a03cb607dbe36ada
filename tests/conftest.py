"""Pytest configuration and shared fixtures."""
import asyncio

import pytest
import pytest_asyncio

import main
from models import MessageStore, ClientRegistry, Broadcaster


@pytest.fixture
def store() -> MessageStore:
    return MessageStore()


@pytest_asyncio.fixture
async def registry():
    reg = ClientRegistry(keepalive_interval=0.05)
    try:
        yield reg
    finally:
        await reg.close_all()


@pytest_asyncio.fixture
async def relay(monkeypatch: pytest.MonkeyPatch):
    """Fresh store/registry/broadcaster wired into the app for each test."""
    store = MessageStore()
    reg = ClientRegistry(keepalive_interval=60)
    monkeypatch.setattr(main, "STORE", store)
    monkeypatch.setattr(main, "REGISTRY", reg)
    monkeypatch.setattr(main, "BROADCASTER", Broadcaster(reg))
    try:
        yield main
    finally:
        await reg.close_all()


def drain(sink: asyncio.Queue) -> list:
    items = []
    while not sink.empty():
        items.append(sink.get_nowait())
    return items
