"""Metadata & Semantic Structure checks."""

from __future__ import annotations

from ..html import attribute, element_text
from ..issues import (
    META_CANONICAL,
    META_DUPLICATES,
    META_EMPTY,
    META_MISSING,
    SEMANTIC_HEADINGS,
    SEMANTIC_LANGUAGE,
)
from .base import PageContext


def _strip_query(url: str) -> str:
    return url.split("?")[0].split("#")[0]


def check_title(page: PageContext) -> None:
    title = page.soup.find("title")
    if title is None:
        page.add_issue(META_MISSING, "Missing <title> tag")
        return
    text = element_text(title)
    if not text:
        page.add_issue(META_EMPTY, "Empty <title> tag")
        return
    others = page.metadata.record_title(text, page.site_path)
    if others:
        page.add_issue(META_DUPLICATES, f'Duplicate title "{text}" (also used on: {others[0]})')


def check_description(page: PageContext) -> None:
    meta = page.soup.find("meta", attrs={"name": "description"})
    if meta is None:
        page.add_issue(META_MISSING, 'Missing <meta name="description"> tag')
        return
    text = attribute(meta, "content").strip()
    if not text:
        page.add_issue(META_EMPTY, "Empty meta description")
        return
    others = page.metadata.record_description(text, page.site_path)
    if others:
        page.add_issue(META_DUPLICATES, f"Duplicate meta description (also used on: {others[0]})")


def check_headings(page: PageContext) -> None:
    headings = page.soup.find_all("h1")
    if not headings:
        page.add_issue(SEMANTIC_HEADINGS, "Missing <h1> tag")
        return
    if len(headings) > 1:
        page.add_issue(SEMANTIC_HEADINGS, f"Multiple <h1> tags ({len(headings)} found)")
    if any(not element_text(heading) for heading in headings):
        page.add_issue(SEMANTIC_HEADINGS, "Empty <h1> tag")


def check_language(page: PageContext) -> None:
    html = page.soup.find("html")
    if html is None:
        return
    if not html.has_attr("lang"):
        page.add_issue(SEMANTIC_LANGUAGE, "Missing lang attribute on <html> tag")
        return
    if not attribute(html, "lang").strip():
        page.add_issue(SEMANTIC_LANGUAGE, "Empty lang attribute on <html> tag")


def check_canonical(page: PageContext) -> None:
    """Flag canonical links that point away from the current page.

    A missing canonical link is fine. Absolute canonical URLs are not
    compared since the deployed origin is unknown.
    """
    link = page.soup.find("link", rel="canonical")
    if link is None:
        return
    href = attribute(link, "href")
    if not href:
        page.add_issue(META_CANONICAL, "Empty href in canonical link")
        return
    if not href.startswith("/"):
        return
    current = _strip_query(page.site_path)
    if _strip_query(href) != current and current != "/":
        page.add_issue(
            META_CANONICAL,
            f"Canonical link ({href}) doesn't point to current page ({page.site_path})",
        )


async def check(page: PageContext) -> None:
    check_title(page)
    check_description(page)
    check_headings(page)
    check_language(page)
    if page.config.check_canonical:
        check_canonical(page)
