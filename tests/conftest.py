"""Shared fakes for pipeline, transport and server tests."""

from __future__ import annotations

import asyncio
import json

import pytest

from glossa.client.document import DocumentAdapter, Location
from glossa.translation.provider import TranslationProvider


class FakeNode:
    def __init__(self, name: str, text: str) -> None:
        self.name = name
        self.text = text
        self.attached = True


class FakeDocument(DocumentAdapter):
    """Flat document of named text nodes; every node is one TEXT location."""

    def __init__(self, texts: dict[str, str]) -> None:
        self.nodes = {name: FakeNode(name, text) for name, text in texts.items()}
        self.writes: list[tuple[str, str]] = []
        self.listener = None

    def location(self, name: str) -> Location:
        return Location.text(self.nodes[name])

    def text_of(self, name: str) -> str:
        return self.nodes[name].text

    def expand(self, node):
        return [Location.text(node)] if node.attached else []

    def walk(self):
        return [Location.text(n) for n in self.nodes.values() if n.attached]

    def read(self, location):
        node = location.handle
        return node.text if node.attached else None

    def write(self, location, value):
        node = location.handle
        if not node.attached:
            return
        node.text = value
        self.writes.append((node.name, value))

    def observe(self, listener):
        self.listener = listener


class FakeConnection:
    """Stands in for a websockets client connection."""

    def __init__(self, fail_sends: bool = False) -> None:
        self.sent: list[dict] = []
        self.send_attempts = 0
        self.fail_sends = fail_sends
        self.closed = False
        self._inbox: asyncio.Queue = asyncio.Queue()

    async def send(self, data: str) -> None:
        self.send_attempts += 1
        if self.fail_sends or self.closed:
            raise ConnectionResetError("connection lost")
        self.sent.append(json.loads(data))

    def push(self, message) -> None:
        self._inbox.put_nowait(message if isinstance(message, str) else json.dumps(message))

    def drop(self) -> None:
        self._inbox.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._inbox.get()
        if item is None:
            self.closed = True
            raise StopAsyncIteration
        return item

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc) -> bool:
        self.closed = True
        return False

    @property
    def requested_hashes(self) -> list[str]:
        return [record["hash"] for message in self.sent for record in message["payload"]]


class FakeConnector:
    """websockets.connect replacement handing out prepared connections or errors."""

    def __init__(self, connections: list) -> None:
        self.connections = list(connections)
        self.calls = 0

    def __call__(self, url: str):
        self.calls += 1
        if not self.connections:
            raise ConnectionRefusedError("no server")
        item = self.connections.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


class RecordingProvider(TranslationProvider):
    """Translates by table lookup; texts listed in `failures` raise."""

    def __init__(self, table: dict[str, str] | None = None, failures: set[str] | None = None) -> None:
        self.table = table or {}
        self.failures = failures or set()
        self.calls: list[tuple[str, str]] = []

    async def translate(self, text: str, target_lang: str) -> str:
        self.calls.append((text, target_lang))
        await asyncio.sleep(0)
        if text in self.failures:
            raise RuntimeError(f"provider refused {text!r}")
        return self.table.get(text, f"{text} ({target_lang})")

    @property
    def provider_name(self) -> str:
        return "recording"


async def settle(predicate=None, rounds: int = 200) -> None:
    """Yield to the event loop until predicate() holds (or just spin a while)."""
    for _ in range(rounds):
        if predicate is not None and predicate():
            return
        await asyncio.sleep(0)
    if predicate is not None:
        assert predicate(), "condition not reached while spinning the event loop"


@pytest.fixture
def fake_document():
    return FakeDocument({"a": "Save", "b": "Save", "c": "Cancel"})
