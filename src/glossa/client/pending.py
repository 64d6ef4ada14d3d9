# client/pending.py
"""
Pending-request multiplexer.

Maps an in-flight hash to every location waiting on it, so one translation
result fans out to all places that showed the same text.

Invariant: a location waits on at most one hash at a time.
"""

from typing import Callable

from .document import Location


class PendingMultiplexer:
    """
    hash -> ordered set of waiting locations.
    """

    def __init__(self, apply: Callable[[Location, str], None]):
        """
        Initialize multiplexer.

        Args:
            apply: Element-update primitive; must tolerate removed locations
        """
        self.apply = apply
        self._waiting: dict[str, dict[Location, None]] = {}
        self._owner: dict[Location, str] = {}

    def register(self, hash_: str, location: Location):
        """Add location to the pending set for hash (replacing any older hash)."""
        previous = self._owner.get(location)
        if previous is not None and previous != hash_:
            members = self._waiting.get(previous)
            if members is not None:
                members.pop(location, None)
                if not members:
                    del self._waiting[previous]

        self._waiting.setdefault(hash_, {})[location] = None
        self._owner[location] = hash_

    def resolve(self, hash_: str, translation: str):
        """
        Apply translation to every location waiting on hash and drop the entry.

        A second call with no new registrations is a no-op.
        """
        members = self._waiting.pop(hash_, None)
        if not members:
            return
        for location in members:
            self._owner.pop(location, None)
        for location in members:
            self.apply(location, translation)

    def waiting(self, hash_: str) -> list[Location]:
        return list(self._waiting.get(hash_, ()))

    def hashes(self) -> list[str]:
        return list(self._waiting)

    def is_pending(self, hash_: str) -> bool:
        return hash_ in self._waiting

    def clear(self):
        self._waiting.clear()
        self._owner.clear()

    def __len__(self) -> int:
        return len(self._waiting)
