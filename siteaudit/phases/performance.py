"""Performance & Technical SEO checks."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import List, Tuple
from urllib.parse import unquote

from ..html import attribute
from ..issues import (
    PERF_INLINE_CODE,
    PERF_LARGE_RESOURCES,
    PERF_LAYOUT_SHIFT,
    PERF_RENDER_BLOCKING,
    TECH_MOBILE,
)
from .base import PageContext

LOGGER = logging.getLogger(__name__)

MIN_INLINE_CODE_CHARS = 50
NON_BLOCKING_MEDIA = ("print", "(max-width", "(min-width")


def _size_kb(size: int) -> int:
    return int(size / 1024 + 0.5)


def check_image_dimensions(page: PageContext) -> None:
    for img in page.soup.find_all("img"):
        src = attribute(img, "src")
        missing = [name for name in ("width", "height") if not img.has_attr(name)]
        if not missing:
            continue
        suffix = "attributes" if len(missing) == 2 else "attribute"
        page.add_issue(PERF_LAYOUT_SHIFT, f'<img src="{src}"> missing {" and ".join(missing)} {suffix}')


def check_render_blocking(page: PageContext) -> None:
    for script in page.soup.find_all("script", src=True):
        # Module scripts are deferred by default.
        if attribute(script, "type") == "module":
            continue
        if script.has_attr("async") or script.has_attr("defer"):
            continue
        src = attribute(script, "src")
        page.add_issue(
            PERF_RENDER_BLOCKING,
            f'Render-blocking script: <script src="{src}"> without async or defer',
        )

    for link in page.soup.find_all("link", rel="stylesheet"):
        media = attribute(link, "media")
        if media and any(marker in media for marker in NON_BLOCKING_MEDIA):
            continue
        href = attribute(link, "href")
        page.add_issue(PERF_RENDER_BLOCKING, f'Render-blocking stylesheet: <link href="{href}">')


def check_inline_code(page: PageContext) -> None:
    config = page.config
    for script in page.soup.find_all("script"):
        if script.has_attr("src") or "json" in attribute(script, "type"):
            continue
        content = script.string or script.get_text()
        if len(content.strip()) < MIN_INLINE_CODE_CHARS:
            continue
        size = _size_kb(len(content))
        if size > config.inline_script_threshold:
            page.add_issue(
                PERF_INLINE_CODE,
                f"Large inline script ({size}KB) found. Consider moving to external file.",
            )

    for style in page.soup.find_all("style"):
        content = style.string or style.get_text()
        if len(content.strip()) < MIN_INLINE_CODE_CHARS:
            continue
        size = _size_kb(len(content))
        if size > config.inline_style_threshold:
            page.add_issue(
                PERF_INLINE_CODE,
                f"Large inline style ({size}KB) found. Consider moving to external file.",
            )


def check_viewport(page: PageContext) -> None:
    meta = page.soup.find("meta", attrs={"name": "viewport"})
    if meta is None:
        page.add_issue(
            TECH_MOBILE,
            'Missing viewport meta tag. Add <meta name="viewport" '
            'content="width=device-width, initial-scale=1">',
        )
        return
    content = attribute(meta, "content")
    if "width=device-width" not in content:
        page.add_issue(TECH_MOBILE, "Viewport meta tag missing width=device-width")
    if "initial-scale=1" not in content:
        page.add_issue(TECH_MOBILE, "Viewport meta tag missing initial-scale=1")
    if "user-scalable=no" in content or "maximum-scale=1" in content:
        page.add_issue(
            TECH_MOBILE,
            "Viewport prevents zooming (user-scalable=no or maximum-scale=1), "
            "which harms accessibility",
        )


def _local_image_sizes(page: PageContext) -> List[Tuple[str, int]]:
    """(src, bytes) for every local image file referenced by the page."""
    sizes: List[Tuple[str, int]] = []
    document_dir = os.path.dirname(page.file_path)
    for img in page.soup.find_all("img", src=True):
        src = attribute(img, "src")
        if src.startswith(("http", "data:", "//")):
            continue
        relative = unquote(src.split("?")[0].split("#")[0])
        if relative.startswith("/"):
            path = os.path.join(page.dist_path, relative.lstrip("/"))
        else:
            path = os.path.join(document_dir, relative)
        try:
            if os.path.isfile(path):
                sizes.append((src, os.path.getsize(path)))
        except OSError as exc:
            LOGGER.debug("Could not stat %s: %s", path, exc)
    return sizes


async def check_resource_sizes(page: PageContext) -> None:
    threshold = page.config.image_size_threshold
    for src, size in await asyncio.to_thread(_local_image_sizes, page):
        size_kb = _size_kb(size)
        if size_kb > threshold:
            page.add_issue(
                PERF_LARGE_RESOURCES,
                f'Large image ({size_kb}KB): <img src="{src}">. '
                "Consider compression or next-gen formats.",
            )


async def check(page: PageContext) -> None:
    check_image_dimensions(page)
    check_render_blocking(page)
    check_inline_code(page)
    check_viewport(page)
    if page.config.check_resource_sizes:
        await check_resource_sizes(page)
