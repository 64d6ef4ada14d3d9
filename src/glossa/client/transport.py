# client/transport.py
"""
Persistent WebSocket transport to the translation server.

Owns:
- connection lifecycle (DISCONNECTED -> CONNECTING -> CONNECTED) with
  exponential backoff reconnects
- the outbound queue (ordered, deduplicated by hash)
- the sent set (hashes already dispatched, never sent twice)
- inbound routing of translation results
"""

import asyncio
import json
from enum import Enum
from typing import Callable

import websockets

from glossa.protocol import (
    ACK,
    TRANSLATION_RESULT,
    ProtocolError,
    build_request,
    decode,
    parse_result,
    request_record,
)

TRANSPORT_ERRORS = (OSError, asyncio.TimeoutError, websockets.WebSocketException)


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class TransportClient:
    """
    Client side of the translation_request / translation_result protocol.
    """

    def __init__(
        self,
        url: str,
        on_result: Callable[[str, str], None],
        on_connect: Callable[[], None] | None = None,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        connect=websockets.connect,
        sleep=asyncio.sleep,
    ):
        """
        Initialize transport.

        Args:
            url: Server WebSocket URL
            on_result: Called with (hash, translated) for each result message
            on_connect: Called after every successful connect, before the flush
            base_delay: Backoff base in seconds
            max_delay: Backoff cap in seconds
            connect: Connection factory (websockets.connect compatible)
            sleep: Coroutine used to wait between reconnects
        """
        self.url = url
        self.on_result = on_result
        self.on_connect = on_connect
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._connect = connect
        self._sleep = sleep

        self.state = ConnectionState.DISCONNECTED
        self.attempts = 0
        self.connections = 0
        self.batches_sent = 0
        self.results_received = 0

        self._ws = None
        self._queue: dict[str, dict[str, str]] = {}
        self._sent: set[str] = set()
        self._flush_scheduled = False
        self._flush_tasks: set[asyncio.Task] = set()
        self._closing = False
        self._task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def backoff_delay(self, attempt: int) -> float:
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    def enqueue(self, text: str, hash_: str, target_lang: str) -> bool:
        """
        Queue a request unless this hash was already dispatched.

        Returns:
            True if the request was queued
        """
        if hash_ in self._sent:
            return False
        self._queue[hash_] = request_record(text, hash_, target_lang)
        self._sent.add(hash_)
        self._schedule_flush()
        return True

    def requeue(self, records: list[dict[str, str]]):
        """Queue records again regardless of the sent set (reconnect policy)."""
        for record in records:
            self._queue.setdefault(record["hash"], record)
            self._sent.add(record["hash"])
        self._schedule_flush()

    def _schedule_flush(self):
        if self._flush_scheduled or self.state is not ConnectionState.CONNECTED:
            return
        self._flush_scheduled = True
        task = asyncio.get_running_loop().create_task(self.flush())
        self._flush_tasks.add(task)
        task.add_done_callback(self._flush_done)

    def _flush_done(self, task: asyncio.Task):
        self._flush_tasks.discard(task)
        e = None if task.cancelled() else task.exception()
        if e is not None:
            print(f"❌ Flush failed: {type(e).__name__}: {e}")

    async def flush(self):
        """Send the whole outbound queue as one translation_request."""
        self._flush_scheduled = False
        if not self._queue or self._ws is None or self.state is not ConnectionState.CONNECTED:
            return

        batch = list(self._queue.values())
        self._queue.clear()
        try:
            await self._ws.send(json.dumps(build_request(batch)))
        except TRANSPORT_ERRORS as e:
            print(f"❌ Send failed, re-queueing {len(batch)} items: {type(e).__name__}: {e}")
            restored = {record["hash"]: record for record in batch}
            restored.update(self._queue)
            self._queue = restored
            return

        self.batches_sent += 1
        print(f"📤 Sent {len(batch)} items to backend")

    def clear_sent(self):
        """Forget dispatched hashes (language switch)."""
        self._sent.clear()

    def was_sent(self, hash_: str) -> bool:
        return hash_ in self._sent

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def _handle_frame(self, raw):
        try:
            message = decode(raw)
            kind = message["type"]
            if kind == TRANSLATION_RESULT:
                hash_, translated = parse_result(message)
                self.results_received += 1
                self.on_result(hash_, translated)
            elif kind == ACK:
                print(f"📩 Server acknowledged {message.get('count')} items: {message.get('message')}")
            else:
                print(f"📩 Received from backend: {message}")
        except ProtocolError as e:
            print(f"❌ Error parsing message: {e}")
        except Exception as e:
            print(f"❌ Error handling message: {type(e).__name__}: {e}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self):
        """Connect, pump inbound frames, reconnect with backoff until closed."""
        self._closing = False
        while not self._closing:
            self.state = ConnectionState.CONNECTING
            print(f"🔌 Connecting to translation backend at {self.url}...")
            try:
                async with self._connect(self.url) as ws:
                    self._ws = ws
                    self.state = ConnectionState.CONNECTED
                    self.attempts = 0
                    self.connections += 1
                    print("✅ Connected to backend")

                    if self.on_connect:
                        self.on_connect()
                    await self.flush()

                    async for raw in ws:
                        self._handle_frame(raw)
                print("❌ Disconnected from backend")
            except asyncio.CancelledError:
                raise
            except TRANSPORT_ERRORS as e:
                print(f"⚠️ WebSocket error: {type(e).__name__}: {e}")
            finally:
                self._ws = None
                self._flush_scheduled = False
                self.state = ConnectionState.DISCONNECTED

            if self._closing:
                break

            delay = self.backoff_delay(self.attempts)
            print(f"🔄 Retrying connection in {delay:.1f}s...")
            await self._sleep(delay)
            self.attempts += 1

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def close(self):
        self._closing = True
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        flushes = list(self._flush_tasks)
        for task in flushes:
            task.cancel()
        await asyncio.gather(*flushes, return_exceptions=True)
        self._flush_tasks.clear()
        self.state = ConnectionState.DISCONNECTED

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def pending_flushes(self) -> int:
        return len(self._flush_tasks)

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    @property
    def sent_count(self) -> int:
        return len(self._sent)
