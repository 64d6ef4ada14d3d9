# client/pipeline.py
"""
Client-side translation pipeline.

    document change -> ChangeCoalescer -> LocationExtractor -> dispatch
        dispatch: cache hit  -> write translation now
                  cache miss -> write placeholder, register pending,
                                enqueue on transport (once per hash)
    translation_result -> client cache -> PendingMultiplexer fan-out

Every piece of mutable state (caches, processed registry, pending sets,
sent set) belongs to one pipeline instance, so several can coexist.
"""

import asyncio
from typing import Any, Callable

from glossa.config import Settings
from glossa.protocol import request_record
from glossa.utils.cache import TranslationCache
from glossa.utils.hashing import content_hash

from .classifier import TRANSLATION_MARKER, is_translatable
from .coalescer import ChangeCoalescer, Timer
from .document import DocumentAdapter, TranslatableItem
from .extractor import LocationExtractor
from .pending import PendingMultiplexer
from .transport import TransportClient


def mark(text: str) -> str:
    """Prefix text with the invisible marker unless it already has it."""
    return text if text.startswith(TRANSLATION_MARKER) else TRANSLATION_MARKER + text


class TranslationPipeline:
    """
    One live document, one target language, one server connection.
    """

    def __init__(
        self,
        document: DocumentAdapter,
        target_lang: str = "es",
        url: str = "ws://localhost:8080/ws/translate",
        cache_size: int = 1000,
        debounce: float = 0.1,
        timer: Timer | None = None,
        classify: Callable[[str], bool] = is_translatable,
        resend_on_reconnect: bool = False,
        **transport_options,
    ):
        """
        Initialize pipeline.

        Args:
            document: Adapter over the live document
            target_lang: Initial target language tag
            url: Translation server WebSocket URL
            cache_size: Capacity of the client translation cache
            debounce: Quiescence window for change coalescing (seconds)
            timer: Timer for the coalescer (defaults to the asyncio loop)
            classify: Translatability policy
            resend_on_reconnect: Re-queue unresolved hashes after a reconnect
            **transport_options: Passed to TransportClient (connect, sleep, delays)
        """
        self.document = document
        self.target_lang = target_lang
        self.resend_on_reconnect = resend_on_reconnect

        self.cache = TranslationCache(max_size=cache_size, target_lang=target_lang)
        self.extractor = LocationExtractor(document, self.cache, classify)
        self.pending = PendingMultiplexer(apply=document.write)
        self.transport = TransportClient(
            url,
            on_result=self.handle_result,
            on_connect=self._on_connect,
            **transport_options,
        )
        self.coalescer = ChangeCoalescer(self._on_flush, delay=debounce, timer=timer)

        # hash -> request record, for hashes dispatched but not yet resolved
        self._requests: dict[str, dict[str, str]] = {}
        self._tasks: set[asyncio.Task] = set()
        self.observing = False
        self.cache_hits = 0

    @classmethod
    def from_settings(cls, document: DocumentAdapter, settings: Settings, **kwargs) -> "TranslationPipeline":
        options = {
            "target_lang": settings.target_language,
            "url": settings.server_url,
            "cache_size": settings.cache_size,
            "debounce": settings.debounce_seconds,
            "resend_on_reconnect": settings.resend_on_reconnect,
            "base_delay": settings.reconnect_base_delay,
            "max_delay": settings.reconnect_max_delay,
        }
        options.update(kwargs)
        return cls(document, **options)

    # ------------------------------------------------------------------
    # Change intake
    # ------------------------------------------------------------------

    def notify(self, node: Any):
        """Change-notification entry point: something changed at node."""
        self.coalescer.notify(node)

    def _on_flush(self, batch: list[Any]):
        task = asyncio.get_running_loop().create_task(self.process_nodes(batch))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def process_nodes(self, nodes: list[Any]) -> list[TranslatableItem]:
        print(f"🔄 Processing {len(nodes)} changed nodes...")
        items = self.extractor.extract(nodes)
        self.process_items(items)
        if items:
            print(f"✅ Processed {len(items)} new items from mutations")
        return items

    def process_items(self, items: list[TranslatableItem]):
        for item in items:
            self.dispatch(item)

    # ------------------------------------------------------------------
    # Dispatch + results
    # ------------------------------------------------------------------

    def dispatch(self, item: TranslatableItem):
        """
        Apply a cached translation, or mark the location pending and request it.

        No await happens between the cache check and the enqueue.
        """
        cached = self.cache.get(item.hash)
        if cached is not None:
            self.cache_hits += 1
            self.document.write(item.location, cached)
            return

        self.document.write(item.location, mark(item.text))
        self.pending.register(item.hash, item.location)
        if self.transport.enqueue(item.text, item.hash, self.target_lang):
            self._requests[item.hash] = request_record(item.text, item.hash, self.target_lang)

    def handle_result(self, hash_: str, translated: str):
        """Route one translation_result into the cache and every waiting location."""
        final = mark(translated)
        self.cache.set(hash_, final)
        self._requests.pop(hash_, None)
        self.pending.resolve(hash_, final)

    def _on_connect(self):
        if not self.resend_on_reconnect or self.transport.connections <= 1:
            return
        records = [r for h, r in self._requests.items() if self.pending.is_pending(h)]
        if records:
            print(f"🔁 Re-queueing {len(records)} unresolved items after reconnect")
            self.transport.requeue(records)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def scan(self) -> list[TranslatableItem]:
        """Walk the whole document and dispatch every new item."""
        print("📋 Performing page scan...")
        items = self.extractor.extract_locations(self.document.walk())
        print(f"📊 Found {len(items)} translatable items")
        self.process_items(items)
        return items

    async def rescan(self) -> list[TranslatableItem]:
        print("🔄 Manual rescan triggered...")
        return await self.scan()

    async def start(self) -> list[TranslatableItem]:
        """Connect, scan the document once and start observing changes."""
        print("🚀 Starting translation system...")
        self.transport.start()
        items = await self.scan()
        self.document.observe(self.notify)
        self.observing = True
        print(f"✅ Translation system ready ({len(items)} initial items)")
        return items

    async def drain(self):
        """Wait for every in-flight batch-processing task."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def stop(self):
        self.document.observe(None)
        self.observing = False
        self.coalescer.cancel()
        await self.drain()
        await self.transport.close()
        print("🛑 Translation system stopped")

    def set_language(self, target_lang: str):
        """
        Switch target language.

        Both caches and the sent set are dropped; new content hashes into the
        new language's key space.
        """
        print(f"🌐 Switching language to: {target_lang}")
        self.target_lang = target_lang
        self.cache.set_language(target_lang)
        self.transport.clear_sent()

    def clear_cache(self):
        self.cache.clear()
        print("🗑️ Cache cleared")

    def apply_custom_translations(self, translations: list[tuple[str, str]]) -> int:
        """
        Install externally supplied translations and rewrite matching locations.

        Args:
            translations: (hash, translated_text) pairs

        Returns:
            Number of locations rewritten
        """
        targets = {}
        for hash_, text in translations:
            self.cache.set(hash_, text)
            targets[hash_] = text

        written = 0
        for location in self.document.walk():
            raw = self.document.read(location)
            if raw is None:
                continue
            text = raw.strip()
            if not text:
                continue
            hash_ = content_hash(text, self.target_lang)
            if hash_ in targets:
                self.document.write(location, targets[hash_])
                written += 1

        for hash_, text in targets.items():
            self._requests.pop(hash_, None)
            self.pending.resolve(hash_, text)

        print(f"✅ Applied {len(targets)} custom translations to {written} locations")
        return written

    def translations(self) -> list[dict[str, str]]:
        """Table of every discovered text with its hash and translation (or "(Pending)")."""
        return [
            {"original": text, "hash": hash_, "translation": self.cache.get(hash_) or "(Pending)"}
            for text, hash_ in self.cache.memo_items()
        ]

    def stats(self) -> dict[str, Any]:
        return {
            "cache_size": self.cache.size,
            "hash_cache_size": self.cache.memo_size,
            "observer_active": self.observing,
            "pending_hashes": len(self.pending),
            "processed_locations": self.extractor.processed_count,
            "cache_hits": self.cache_hits,
        }

    def socket_status(self) -> dict[str, Any]:
        return {
            "connected": self.transport.is_connected,
            "queue_size": self.transport.queue_size,
            "sent_count": self.transport.sent_count,
            "url": self.transport.url,
        }

    @property
    def is_idle(self) -> bool:
        """True when nothing is accumulating, processing, queued or pending."""
        return (
            not self._tasks
            and self.coalescer.pending_count == 0
            and self.transport.queue_size == 0
            and len(self.pending) == 0
        )
