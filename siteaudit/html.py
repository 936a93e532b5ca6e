"""Helpers for reading link references and text out of built HTML."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag
from bs4.element import Comment, Doctype

from .document import LinkReference

# (tag, attribute) pairs that carry checkable links.
LINK_ATTRIBUTES: Tuple[Tuple[str, str], ...] = (("a", "href"), ("img", "src"))

_WHITESPACE = re.compile(r"\s+")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def extract_link_references(soup: BeautifulSoup) -> List[LinkReference]:
    """Every anchor ``href`` followed by every image ``src``, in document order."""
    references: List[LinkReference] = []
    for tag_name, attribute in LINK_ATTRIBUTES:
        for element in soup.find_all(tag_name):
            value = element.get(attribute)
            if value is None:
                continue
            if isinstance(value, list):
                value = " ".join(value)
            references.append(LinkReference(tag=tag_name, attribute=attribute, value=value))
    return references


def element_text(element: Optional[Tag]) -> str:
    if element is None:
        return ""
    return element.get_text().strip()


def attribute(element: Tag, name: str, default: str = "") -> str:
    """Attribute value as a string (multi-valued attributes are joined)."""
    value = element.get(name)
    if value is None:
        return default
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def _text_nodes(element: Tag) -> Iterable[str]:
    for node in element.find_all(string=True):
        if isinstance(node, (Comment, Doctype)):
            continue
        if node.find_parent(["script", "style"]) is not None:
            continue
        yield str(node)


def extract_text(element: Tag) -> str:
    """Readable text of ``element`` without script or style content."""
    if element.name in ("script", "style"):
        return ""
    return " ".join(_text_nodes(element))


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()
