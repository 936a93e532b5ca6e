"""Crawlability & Linking checks."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import List, Optional, Tuple

from ..html import attribute
from ..issues import (
    CRAWL_NOARCHIVE,
    CRAWL_NOFOLLOW,
    CRAWL_NOINDEX,
    CRAWL_ROBOTS_TXT,
    CRAWL_SITEMAP,
    LINK_NOFOLLOW,
    LINK_TOO_FEW,
    LINK_TOO_MANY,
)
from ..urls import is_homepage
from .base import PageContext

LOGGER = logging.getLogger(__name__)

SITEMAP_LOCATIONS = (
    ("sitemap.xml",),
    ("sitemap_index.xml",),
    ("sitemap", "sitemap.xml"),
)

_ROBOTS_DIRECTIVES = (
    ("noindex", CRAWL_NOINDEX, "prevents indexing"),
    ("nofollow", CRAWL_NOFOLLOW, "prevents following links"),
    ("noarchive", CRAWL_NOARCHIVE, "prevents caching"),
)


def _is_external(href: str) -> bool:
    return href.startswith("http") or href.startswith("//")


def check_robots_meta(page: PageContext) -> None:
    for meta in page.soup.find_all("meta", attrs={"name": ["robots", "googlebot"]}):
        name = attribute(meta, "name")
        content = attribute(meta, "content")
        for directive, category, effect in _ROBOTS_DIRECTIVES:
            if directive in content:
                page.add_issue(
                    category,
                    f'Page has <meta name="{name}" content="{content}"> that {effect}',
                )


def check_nofollow_links(page: PageContext) -> None:
    for link in page.soup.find_all("a", rel=True):
        href = attribute(link, "href")
        if _is_external(href) or href.startswith("#"):
            continue
        if "nofollow" in attribute(link, "rel"):
            page.add_issue(
                LINK_NOFOLLOW,
                f'Internal link <a href="{href}"> has rel="nofollow" which can harm crawlability',
            )


def count_internal_links(page: PageContext) -> int:
    count = 0
    for link in page.soup.find_all("a", href=True):
        href = attribute(link, "href")
        if len(href) <= 1 or _is_external(href) or href.startswith(("mailto:", "tel:", "#")):
            continue
        count += 1
    return count


def check_internal_linking(page: PageContext) -> None:
    minimum = page.config.min_internal_links
    maximum = page.config.max_internal_links
    count = count_internal_links(page)
    if count < minimum:
        page.add_issue(
            LINK_TOO_FEW,
            f"Page has only {count} internal links "
            f"(recommend at least {minimum} for good crawlability)",
        )
    if count > maximum:
        page.add_issue(
            LINK_TOO_MANY,
            f"Page has {count} internal links "
            f"(recommend fewer than {maximum} to avoid link dilution)",
        )


def _read_text(path: str) -> Optional[str]:
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            return handle.read()
    except OSError as exc:
        LOGGER.debug("Could not read %s: %s", path, exc)
        return None


def robots_txt_problems(dist_path: str) -> List[str]:
    path = os.path.join(dist_path, "robots.txt")
    if not os.path.exists(path):
        return ["robots.txt file is missing (recommended for all production sites)"]
    content = _read_text(path)
    if content is None:
        return []
    problems = []
    if any(line.strip().lower() == "disallow: /" for line in content.splitlines()):
        problems.append(
            'robots.txt contains "Disallow: /" which blocks all search engines from crawling the site'
        )
    if "sitemap:" not in content.lower():
        problems.append(
            "robots.txt does not contain a Sitemap reference (recommended for better crawling)"
        )
    return problems


def sitemap_problems(dist_path: str) -> List[str]:
    """Only the first sitemap location that exists is validated."""
    for parts in SITEMAP_LOCATIONS:
        path = os.path.join(dist_path, *parts)
        if not os.path.exists(path):
            continue
        content = _read_text(path)
        if content is not None and "<urlset" not in content and "<sitemapindex" not in content:
            return [f"Sitemap at {'/'.join(parts)} doesn't appear to be valid XML"]
        return []
    return ["No sitemap.xml file found (recommended for better search engine crawling)"]


def _site_file_problems(dist_path: str) -> Tuple[List[str], List[str]]:
    return robots_txt_problems(dist_path), sitemap_problems(dist_path)


async def check(page: PageContext) -> None:
    check_robots_meta(page)
    check_nofollow_links(page)
    check_internal_linking(page)
    if is_homepage(page.site_path):
        robots, sitemap = await asyncio.to_thread(_site_file_problems, page.dist_path)
        for problem in robots:
            page.add_issue(CRAWL_ROBOTS_TXT, problem)
        for problem in sitemap:
            page.add_issue(CRAWL_SITEMAP, problem)
