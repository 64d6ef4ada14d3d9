# client/extractor.py
"""
Turn a coalesced batch of changed nodes into TranslatableItems.

A per-pipeline processed registry guarantees each location is claimed at
most once across coalescing cycles, even when an earlier batch is still
waiting on the network.

The registry holds handles weakly: once a removed node is garbage collected
its claims disappear with it.
"""

import weakref
from functools import partial
from typing import Any, Callable, Iterable

from glossa.utils.cache import TranslationCache

from .classifier import is_translatable
from .document import DocumentAdapter, Location, TextKind, TranslatableItem

# (kind, attribute) pairs claimed on one handle
Claims = set[tuple[TextKind, str | None]]


class LocationExtractor:
    """
    Expand nodes, filter through the classification policy, hash and claim.
    """

    def __init__(
        self,
        document: DocumentAdapter,
        cache: TranslationCache,
        classify: Callable[[str], bool] = is_translatable,
    ):
        self.document = document
        self.cache = cache
        self.classify = classify
        # id(handle) -> (weak ref to handle, claims). Keyed by identity because
        # handles such as bs4 Tags compare equal by value.
        self._processed: dict[int, tuple[weakref.ref, Claims]] = {}

    def _release(self, key: int, ref: weakref.ref):
        entry = self._processed.get(key)
        if entry is not None and entry[0] is ref:
            del self._processed[key]

    def _claims(self, handle: Any, create: bool = False) -> Claims | None:
        key = id(handle)
        entry = self._processed.get(key)
        if entry is not None and entry[0]() is handle:
            return entry[1]
        if not create:
            return None
        claims: Claims = set()
        self._processed[key] = (weakref.ref(handle, partial(self._release, key)), claims)
        return claims

    def is_processed(self, location: Location) -> bool:
        claims = self._claims(location.handle)
        return claims is not None and (location.kind, location.attribute) in claims

    def claim(self, location: Location) -> bool:
        """
        Insert-if-absent on the processed registry.

        Returns:
            True if this call claimed the location, False if it was already taken
        """
        claims = self._claims(location.handle, create=True)
        part = (location.kind, location.attribute)
        if part in claims:
            return False
        claims.add(part)
        return True

    def extract_locations(self, locations: Iterable[Location]) -> list[TranslatableItem]:
        """
        Build items for candidate locations that pass the policy.

        Rejected locations stay unclaimed so a later change can qualify them.
        """
        items = []
        for location in locations:
            if self.is_processed(location):
                continue

            raw = self.document.read(location)
            if raw is None:
                continue
            text = raw.strip()
            if not text or not self.classify(text):
                continue

            hash_ = self.cache.get_hash(text)
            if not self.claim(location):
                continue
            items.append(TranslatableItem(text=text, hash=hash_, location=location))
        return items

    def extract(self, nodes: Iterable[Any]) -> list[TranslatableItem]:
        """
        Extract items from a batch of changed nodes.

        Args:
            nodes: Opaque node handles (one coalesced batch)

        Returns:
            Newly claimed items, in document order per node
        """
        items = []
        for node in nodes:
            items.extend(self.extract_locations(self.document.expand(node)))
        return items

    @property
    def processed_count(self) -> int:
        return sum(len(claims) for _, claims in list(self._processed.values()))
