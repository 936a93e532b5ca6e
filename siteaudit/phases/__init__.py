"""Registry of SEO check phases and the per-page phase runner."""

from __future__ import annotations

import logging
from typing import Dict, List

from . import accessibility, ai_detection, crawlability, foundation, metadata, performance
from .base import MetadataRegistry, PageContext, Phase

LOGGER = logging.getLogger(__name__)

PHASES: Dict[str, Phase] = {
    phase.id: phase
    for phase in (
        Phase(
            "foundation",
            "Foundation & Privacy",
            "Checks for broken links and exposed emails",
            foundation.check,
        ),
        Phase(
            "metadata",
            "Metadata & Semantic Structure",
            "Checks for missing or duplicate metadata and heading structure",
            metadata.check,
        ),
        Phase(
            "accessibility",
            "Accessibility & UX Flags",
            "Checks for accessibility issues like missing alt tags and generic link text",
            accessibility.check,
        ),
        Phase(
            "performance",
            "Performance & Technical SEO",
            "Checks for large images, render-blocking resources and mobile viewport",
            performance.check,
        ),
        Phase(
            "crawlability",
            "Crawlability & Linking",
            "Detects robots.txt issues, noindex/nofollow tags and internal linking problems",
            crawlability.check,
        ),
        Phase(
            "ai_detection",
            "AI Content Detection",
            "Detects potentially AI-generated content based on writing patterns",
            ai_detection.check,
        ),
    )
}


def enabled_phases(page: PageContext) -> List[Phase]:
    return [phase for phase_id, phase in PHASES.items() if page.config.phase_enabled(phase_id)]


async def run_phases(page: PageContext) -> List[str]:
    """Run every enabled phase on one page.

    A failing phase is logged and skipped so the remaining phases still
    run. Returns the ids of the phases that failed.
    """
    failed: List[str] = []
    for phase in enabled_phases(page):
        try:
            await phase.handler(page)
        except Exception as exc:
            failed.append(phase.id)
            LOGGER.error("Error in phase '%s' on page %s: %s", phase.name, page.site_path, exc)
            if page.config.verbose:
                LOGGER.exception("Phase '%s' traceback", phase.name)
    return failed


__all__ = [
    "MetadataRegistry",
    "PHASES",
    "PageContext",
    "Phase",
    "enabled_phases",
    "run_phases",
]
