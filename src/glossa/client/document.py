# client/document.py
"""
Document model seen by the pipeline.

The pipeline never touches a concrete tree. It sees:
- opaque node handles delivered by change notifications
- Location records (a closed variant: text / attribute / element content)
- a DocumentAdapter that expands nodes into locations and reads/writes them
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable


class TextKind(Enum):
    TEXT = "text"
    ATTRIBUTE = "attribute"
    ELEMENT_CONTENT = "element_content"


class Location:
    """
    Where a translation gets written.

    Equality is by handle identity plus kind and attribute name, so two
    structurally identical elements remain two locations.
    """

    __slots__ = ("handle", "kind", "attribute")

    def __init__(self, handle: Any, kind: TextKind, attribute: str | None = None):
        if (kind is TextKind.ATTRIBUTE) != (attribute is not None):
            raise ValueError("attribute name is required for ATTRIBUTE locations only")
        self.handle = handle
        self.kind = kind
        self.attribute = attribute

    @classmethod
    def text(cls, handle: Any) -> "Location":
        return cls(handle, TextKind.TEXT)

    @classmethod
    def attr(cls, handle: Any, name: str) -> "Location":
        return cls(handle, TextKind.ATTRIBUTE, name)

    @classmethod
    def content(cls, handle: Any) -> "Location":
        return cls(handle, TextKind.ELEMENT_CONTENT)

    def __eq__(self, other):
        if not isinstance(other, Location):
            return NotImplemented
        return (
            self.handle is other.handle
            and self.kind is other.kind
            and self.attribute == other.attribute
        )

    def __hash__(self):
        return hash((id(self.handle), self.kind, self.attribute))

    def __repr__(self):
        suffix = f"[{self.attribute}]" if self.attribute else ""
        return f"Location({self.kind.value}{suffix} @ {id(self.handle):#x})"


@dataclass(frozen=True)
class TranslatableItem:
    """One piece of text found at one location, with its content hash."""

    text: str
    hash: str
    location: Location

    @property
    def kind(self) -> TextKind:
        return self.location.kind


class DocumentAdapter(ABC):
    """
    Abstract bridge between the pipeline and a concrete document tree.

    Implementations own the notion of "node" and decide which locations
    under a node are candidates for translation. Location handles must
    support weak references.
    """

    @abstractmethod
    def expand(self, node: Any) -> Iterable[Location]:
        """
        Yield candidate locations at or below a changed node.

        Args:
            node: Opaque handle from a change notification

        Returns:
            Candidate locations (may be empty)
        """
        pass

    @abstractmethod
    def walk(self) -> Iterable[Location]:
        """Yield every candidate location in the whole document."""
        pass

    @abstractmethod
    def read(self, location: Location) -> str | None:
        """Return current text at location, or None if it no longer exists."""
        pass

    @abstractmethod
    def write(self, location: Location, value: str) -> None:
        """Write text to location. Must be a no-op for removed locations."""
        pass

    @abstractmethod
    def observe(self, listener: Callable[[Any], None] | None) -> None:
        """Register (or with None, clear) the change-notification listener."""
        pass
