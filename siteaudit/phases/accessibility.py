"""Accessibility & UX flags."""

from __future__ import annotations

import re

from bs4 import Tag

from ..html import attribute, element_text
from ..issues import A11Y_ALT_EMPTY, A11Y_ALT_MISSING, A11Y_INTERACTIVE, A11Y_LINK_TEXT
from .base import PageContext

GENERIC_LINK_TEXTS = (
    "click here",
    "read more",
    "learn more",
    "more info",
    "details",
    "here",
    "this link",
    "this page",
    "continue",
    "continue reading",
    "view",
    "view more",
    "go",
)

# Whole-word match so that "go" does not flag "google".
_GENERIC_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(text) for text in GENERIC_LINK_TEXTS) + r")\b"
)


def is_generic_link_text(text: str) -> bool:
    return bool(_GENERIC_PATTERN.search(text.strip().lower()))


def _has_accessible_name(element: Tag) -> bool:
    return bool(
        element_text(element)
        or attribute(element, "aria-label").strip()
        or attribute(element, "aria-labelledby").strip()
    )


def check_images(page: PageContext) -> None:
    for img in page.soup.find_all("img"):
        src = attribute(img, "src")
        if not img.has_attr("alt"):
            issue = f'Missing alt attribute on <img src="{src}">' if src else "Missing alt attribute on <img>"
            page.add_issue(A11Y_ALT_MISSING, issue)
        elif not attribute(img, "alt").strip() and not page.config.ignore_empty_alt:
            page.add_issue(A11Y_ALT_EMPTY, f'Empty alt attribute on <img src="{src}">')


def check_interactive(page: PageContext) -> None:
    for button in page.soup.find_all("button"):
        if not _has_accessible_name(button):
            page.add_issue(A11Y_INTERACTIVE, "Empty button without accessible text")

    for link in page.soup.find_all("a"):
        href = attribute(link, "href")
        # In-page anchors are usually controls.
        if href.startswith("#") and len(href) > 1:
            continue
        if not _has_accessible_name(link):
            page.add_issue(A11Y_INTERACTIVE, f'Empty link <a href="{href}"> without accessible text')


def check_link_text(page: PageContext) -> None:
    for link in page.soup.find_all("a"):
        text = element_text(link).lower()
        href = attribute(link, "href")
        if not text or not href:
            continue
        if is_generic_link_text(text):
            page.add_issue(A11Y_LINK_TEXT, f'Generic link text "{text}" for <a href="{href}">')


async def check(page: PageContext) -> None:
    check_images(page)
    check_interactive(page)
    check_link_text(page)
