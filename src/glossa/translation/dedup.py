# translation/dedup.py
"""
Per-connection request deduplication against the process-wide cache.

For each item of a translation_request batch:
- cache hit  -> send translation_result immediately (no provider call)
- cache miss -> submit a provider job to the shared BoundedWorkQueue

A job that fails is logged and dropped: nothing is cached, nothing is sent.
A job whose connection is gone still writes the cache for future requesters.
"""

from functools import partial
from typing import Any, Awaitable, Callable

from glossa.protocol import build_result
from glossa.utils.cache import TranslationCache

from .provider import TranslationProvider
from .work_queue import BoundedWorkQueue


class RequestDeduplicator:
    """
    Serves one client connection.
    """

    def __init__(
        self,
        cache: TranslationCache,
        queue: BoundedWorkQueue,
        provider: TranslationProvider,
        send: Callable[[dict[str, Any]], Awaitable[None]],
    ):
        """
        Initialize deduplicator.

        Args:
            cache: Process-wide server cache
            queue: Process-wide work queue
            provider: Translation backend
            send: Coroutine that sends a JSON message on this connection
        """
        self.cache = cache
        self.queue = queue
        self.provider = provider
        self.send = send
        self.connected = True
        self.hits = 0
        self.misses = 0

    async def handle_batch(self, records: list[dict[str, str]]):
        """
        Answer cache hits and queue the misses.

        Args:
            records: Validated {text, hash, targetLang} records
        """
        for record in records:
            hash_ = record["hash"]
            cached = self.cache.get(hash_)
            if cached is not None:
                self.hits += 1
                await self._deliver(build_result(hash_, record["text"], cached))
            else:
                self.misses += 1
                self.queue.submit(partial(self._translate, record))

    async def _translate(self, record: dict[str, str]):
        hash_ = record["hash"]
        try:
            translated = await self.provider.translate(record["text"], record["targetLang"])
        except Exception as e:
            print(f"❌ Translation failed [{hash_[:8]}...]: {type(e).__name__}: {e}")
            return

        self.cache.set(hash_, translated)
        print(f"✅ Translated [{hash_[:8]}...] \"{record['text'][:30]}\" → \"{translated[:30]}\"")
        await self._deliver(build_result(hash_, record["text"], translated))

    async def _deliver(self, message: dict[str, Any]):
        if not self.connected:
            print(f"📭 Client gone, result [{message['hash'][:8]}...] cached only")
            return
        try:
            await self.send(message)
        except Exception as e:
            self.connected = False
            print(f"📭 Could not deliver result [{message['hash'][:8]}...]: {type(e).__name__}: {e}")

    def disconnect(self):
        """Mark the connection closed; running jobs will only write the cache."""
        self.connected = False
