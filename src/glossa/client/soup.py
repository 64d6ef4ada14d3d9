# client/soup.py
"""
HTML document adapter backed by BeautifulSoup.

Candidate locations:
- visible text nodes (not under script/style/noscript/iframe/svg/template,
  not directly inside an icon-class element)
- value of <input type=button|submit|reset>
- placeholder / alt / title attributes on any element
- whole text content of <button>, <option>, <label> holding only text

NavigableStrings are immutable, so writing text replaces the string object.
Text locations therefore point at a TextSlot that follows the replacement.
"""

from typing import Any, Callable

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from .document import DocumentAdapter, Location, TextKind

SKIP_PARENTS = {"script", "style", "noscript", "iframe", "svg", "template"}
IGNORED_CLASSES = {"card-icon", "material-icons", "icon", "fa", "fas", "far", "banner-icon"}
TRANSLATABLE_ATTRIBUTES = ("placeholder", "alt", "title")
BUTTON_INPUT_TYPES = {"button", "submit", "reset"}
CONTENT_TAGS = {"button", "option", "label"}


class TextSlot:
    """Stable handle for a text node across replacements."""

    __slots__ = ("node", "__weakref__")

    def __init__(self, node: NavigableString):
        self.node = node


class SoupDocument(DocumentAdapter):
    """
    Live HTML tree. Mutations made through insert/replace_text/set_attribute
    are reported to the observer, like a browser MutationObserver would.
    """

    def __init__(self, markup: "str | BeautifulSoup", parser: str = "html.parser"):
        self.parser = parser
        self.soup = markup if isinstance(markup, BeautifulSoup) else BeautifulSoup(markup, parser)
        self._slots: dict[int, TextSlot] = {}
        self._listener: Callable[[Any], None] | None = None

    # ------------------------------------------------------------------
    # Tree helpers
    # ------------------------------------------------------------------

    def _slot(self, node: NavigableString) -> TextSlot:
        slot = self._slots.get(id(node))
        if slot is None or slot.node is not node:
            slot = TextSlot(node)
            self._slots[id(node)] = slot
        return slot

    def _forget(self, node):
        if isinstance(node, NavigableString):
            self._slots.pop(id(node), None)
        elif isinstance(node, Tag):
            for child in node.descendants:
                if isinstance(child, NavigableString):
                    self._slots.pop(id(child), None)

    def _attached(self, node) -> bool:
        if node is self.soup:
            return True
        return any(parent is self.soup for parent in node.parents)

    @staticmethod
    def _in_skipped(tag: Tag) -> bool:
        if tag.name in SKIP_PARENTS:
            return True
        return any(p.name in SKIP_PARENTS for p in tag.parents)

    @staticmethod
    def _owns_content(tag: Tag) -> bool:
        if tag.name not in CONTENT_TAGS or not tag.contents:
            return False
        return all(isinstance(c, NavigableString) and not isinstance(c, PreformattedString) for c in tag.contents)

    def _text_candidate(self, node: NavigableString) -> bool:
        if isinstance(node, PreformattedString):
            return False
        parent = node.parent
        if not isinstance(parent, Tag) or parent is self.soup:
            return False
        if self._in_skipped(parent):
            return False
        if IGNORED_CLASSES.intersection(parent.get("class") or ()):
            return False
        # Covered by the parent's ELEMENT_CONTENT location
        if self._owns_content(parent):
            return False
        return bool(node.strip())

    def _element_locations(self, tag: Tag) -> list[Location]:
        if tag is self.soup or self._in_skipped(tag):
            return []
        locations = []
        if (
            tag.name == "input"
            and str(tag.get("type") or "").lower() in BUTTON_INPUT_TYPES
            and tag.get("value")
        ):
            locations.append(Location.attr(tag, "value"))
        for name in TRANSLATABLE_ATTRIBUTES:
            if tag.get(name):
                locations.append(Location.attr(tag, name))
        if self._owns_content(tag):
            locations.append(Location.content(tag))
        return locations

    # ------------------------------------------------------------------
    # DocumentAdapter
    # ------------------------------------------------------------------

    def expand(self, node: Any) -> list[Location]:
        if isinstance(node, NavigableString):
            if self._attached(node) and self._text_candidate(node):
                return [Location.text(self._slot(node))]
            return []
        if not isinstance(node, Tag) or not self._attached(node):
            return []

        locations = self._element_locations(node)
        for element in node.descendants:
            if isinstance(element, Tag):
                locations.extend(self._element_locations(element))
            elif isinstance(element, NavigableString) and self._text_candidate(element):
                locations.append(Location.text(self._slot(element)))
        return locations

    def walk(self) -> list[Location]:
        return self.expand(self.soup)

    def read(self, location: Location) -> str | None:
        if location.kind is TextKind.TEXT:
            node = location.handle.node
            return str(node) if self._attached(node) else None

        tag = location.handle
        if not self._attached(tag):
            return None
        if location.kind is TextKind.ATTRIBUTE:
            value = tag.get(location.attribute)
            if isinstance(value, list):
                return " ".join(value)
            return value
        return tag.get_text()

    def write(self, location: Location, value: str) -> None:
        if location.kind is TextKind.TEXT:
            slot = location.handle
            old = slot.node
            if not self._attached(old):
                return
            new = NavigableString(value)
            old.replace_with(new)
            self._slots.pop(id(old), None)
            slot.node = new
            self._slots[id(new)] = slot
            return

        tag = location.handle
        if not self._attached(tag):
            return
        if location.kind is TextKind.ATTRIBUTE:
            tag[location.attribute] = value
        else:
            tag.string = value

    def observe(self, listener: Callable[[Any], None] | None) -> None:
        self._listener = listener

    # ------------------------------------------------------------------
    # Live mutations (reported to the observer)
    # ------------------------------------------------------------------

    def _changed(self, node):
        if self._listener is not None:
            self._listener(node)

    def insert(self, parent: Tag, markup: str) -> list:
        """
        Append parsed markup under parent.

        Returns:
            The inserted top-level nodes
        """
        fragment = BeautifulSoup(markup, self.parser)
        nodes = list(fragment.contents)
        for node in nodes:
            parent.append(node.extract())
        for node in nodes:
            self._changed(node)
        return nodes

    def replace_text(self, node: NavigableString, value: str) -> NavigableString:
        new = NavigableString(value)
        node.replace_with(new)
        self._forget(node)
        self._changed(new)
        return new

    def set_attribute(self, tag: Tag, name: str, value: str):
        tag[name] = value
        self._changed(tag)

    def remove(self, node):
        node.extract()
        self._forget(node)

    def html(self) -> str:
        return str(self.soup)
