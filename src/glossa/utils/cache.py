"""
Bounded two-sided translation cache.

Two independent maps share the same FIFO eviction policy:
- memo:  text -> hash          (avoids re-hashing repeated text)
- store: hash -> translation   (the actual cache)

Eviction removes the oldest *inserted* key, not the least recently used one.
"""

from .hashing import content_hash


class TranslationCache:
    """
    FIFO-bounded memo + store keyed by content hash.

    The client keeps one per pipeline; the server keeps one per process.
    """

    def __init__(self, max_size: int = 1000, target_lang: str | None = None):
        """
        Initialize cache.

        Args:
            max_size: Capacity applied independently to memo and store
            target_lang: Language used by get_hash() (client side only)
        """
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        self.target_lang = target_lang
        self._hashes: dict[str, str] = {}
        self._translations: dict[str, str] = {}

    @staticmethod
    def _insert(mapping: dict, key: str, value: str, max_size: int):
        if key in mapping:
            # Overwrite keeps insertion position
            mapping[key] = value
            return
        if len(mapping) >= max_size:
            oldest = next(iter(mapping))
            del mapping[oldest]
        mapping[key] = value

    def get_hash(self, text: str) -> str:
        """
        Return the hash of text for the current target language, memoized.

        Args:
            text: Trimmed source text

        Returns:
            Content hash
        """
        cached = self._hashes.get(text)
        if cached is not None:
            return cached
        if self.target_lang is None:
            raise ValueError("TranslationCache has no target language set")

        hash_ = content_hash(text, self.target_lang)
        self._insert(self._hashes, text, hash_, self.max_size)
        return hash_

    def get(self, hash_: str) -> str | None:
        return self._translations.get(hash_)

    def set(self, hash_: str, value: str):
        self._insert(self._translations, hash_, value, self.max_size)

    def has(self, hash_: str) -> bool:
        return hash_ in self._translations

    def set_language(self, target_lang: str):
        """Switch target language. Both maps are dropped."""
        self.target_lang = target_lang
        self.clear()

    def clear(self):
        """Drop every memoized hash and cached translation."""
        self._hashes.clear()
        self._translations.clear()

    def memo_items(self) -> list[tuple[str, str]]:
        """Return (text, hash) pairs in insertion order."""
        return list(self._hashes.items())

    @property
    def size(self) -> int:
        return len(self._translations)

    @property
    def memo_size(self) -> int:
        return len(self._hashes)
