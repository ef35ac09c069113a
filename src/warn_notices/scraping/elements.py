"""Element access over parsed markup.

BeautifulSoup exposes siblings and children as a mix of tags, text nodes and
comments. Everything here works on elements only: text nodes and comments are
skipped, and callers get ``Element`` wrappers rather than library node types.
"""

from __future__ import annotations

from typing import Iterator, List, Optional

from bs4 import BeautifulSoup, Tag


class Element:
    """A single markup element."""

    __slots__ = ("_tag",)

    def __init__(self, tag: Tag) -> None:
        self._tag = tag

    @property
    def name(self) -> str:
        return self._tag.name

    def text(self) -> str:
        """Text of this element and all descendants, concatenated as-is."""
        return self._tag.get_text()

    def attr(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if value is None:
            return None
        # Multi-valued attributes (class, rel) come back as lists
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def select(self, selector: str) -> List["Element"]:
        return [Element(t) for t in self._tag.select(selector)]

    def has_children(self) -> bool:
        return any(True for _ in self._tag.children)

    def first_element_child(self) -> Optional["Element"]:
        for node in self._tag.children:
            if isinstance(node, Tag):
                return Element(node)
        return None

    def next_sibling_element(self) -> Optional["Element"]:
        node = self._tag.next_sibling
        while node is not None:
            if isinstance(node, Tag):
                return Element(node)
            node = node.next_sibling
        return None

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Element) and other._tag is self._tag

    def __hash__(self) -> int:
        return id(self._tag)

    def __repr__(self) -> str:
        return f"Element(<{self.name}>)"


def parse_document(markup: str) -> Element:
    """Parse an HTML document and return its root element."""
    return Element(BeautifulSoup(markup, "html.parser"))


def element_text(element: Element) -> str:
    """Utility function to get the text from an element."""
    return element.text()


class SiblingCursor:
    """Iterator over an element and the element siblings that follow it.

    The cursor is forward-only: once exhausted it stays exhausted. Create a
    new cursor from the same start element to walk the siblings again.
    """

    def __init__(self, start: Optional[Element]) -> None:
        self._current = start

    def __iter__(self) -> Iterator[Element]:
        return self

    def __next__(self) -> Element:
        current = self._current
        if current is None:
            raise StopIteration
        self._current = current.next_sibling_element()
        return current


__all__ = ["Element", "SiblingCursor", "element_text", "parse_document"]
