"""Heuristic detection of machine-written prose.

The score counts stock phrases typical of generated text, weights each
family, normalizes by word count and maps the result onto 0-100 with
diminishing returns. Pages scoring at or above the configured threshold
are flagged.
"""

from __future__ import annotations

import math
import re
from typing import Dict, Tuple

from ..html import extract_text
from ..issues import AI_CONTENT
from .base import PageContext

MIN_TEXT_CHARS = 100
MIN_WORDS = 20
CONTENT_SELECTOR = "p, article, section, .content, .post"

# family -> (phrases, per-match weight, words per unit, family multiplier)
PATTERNS: Dict[str, Tuple[Tuple[str, ...], float, int, float]] = {
    "transitions": (
        (
            "moreover", "furthermore", "in conclusion", "therefore", "thus",
            "consequently", "in addition", "on the other hand", "as a result",
            "to summarize", "in contrast", "that being said", "however", "nevertheless",
        ),
        1, 100, 10,
    ),
    "hedging": (
        (
            "it seems that", "one could argue", "this may suggest",
            "there is a possibility that", "it is important to note",
            "it should be noted that", "some might say", "studies have shown that",
            "according to research", "in many cases", "in other words",
        ),
        2, 200, 12,
    ),
    "formality": (
        (
            "in today's world", "in this article, we will explore",
            "the purpose of this essay is to", "it is widely believed",
            "throughout history", "let us delve into", "this paper aims to",
            "it is essential to understand", "in recent years", "in modern times",
        ),
        2, 300, 15,
    ),
    "balanced": (
        (
            "both sides have valid points", "there are pros and cons",
            "while some may disagree, others support", "this is a topic of much debate",
            "the answer is not black and white",
        ),
        3, 400, 20,
    ),
    "unnatural": (
        (
            "utilize", "commence", "endeavor", "leverage", "albeit",
            "notwithstanding", "whilst", "heretofore",
        ),
        2, 100, 15,
    ),
    "templates": (
        (
            "is an important aspect of", "can be defined as",
            "when it comes to", "plays a crucial role in",
            "this brings us to the question of",
        ),
        3, 300, 20,
    ),
    "starters": (
        (
            "as mentioned earlier", "to begin with", "with that being said",
            "in order to better understand", "it goes without saying",
            "it's worth mentioning that",
        ),
        1.5, 200, 12,
    ),
    "universal": (
        (
            "everyone knows that", "it is universally accepted that",
            "all people strive for", "the world is constantly changing",
        ),
        2.5, 400, 18,
    ),
    "call_to_action": (
        (
            "let's explore this further", "read on to learn more",
            "in the following sections", "let's dive in",
            "discover the benefits of", "this guide will help you understand",
        ),
        2, 300, 15,
    ),
}

_LIST_PATTERN = re.compile(r"\w+,\s+\w+,\s+and\s+\w+")


def count_occurrences(text: str, phrase: str) -> int:
    """Whole-word matches for single words, overlapping matches for phrases."""
    if " " not in phrase:
        return len(re.findall(rf"\b{re.escape(phrase)}\b", text, flags=re.IGNORECASE))
    count = 0
    position = text.find(phrase)
    while position != -1:
        count += 1
        position = text.find(phrase, position + 1)
    return count


def _uniformity(text: str) -> float:
    """0-10, higher when paragraphs have near-identical lengths."""
    paragraphs = re.split(r"\n\n+", text)
    if len(paragraphs) < 3:
        return 0.0
    lengths = [len(paragraph.strip()) for paragraph in paragraphs]
    mean = sum(lengths) / len(lengths)
    variance = sum((length - mean) ** 2 for length in lengths) / len(lengths)
    return 10 * (1 - min(math.sqrt(variance) / 100, 1))


def calculate_ai_score(text: str) -> int:
    normalized = text.lower()
    words = len(text.split())
    if words < MIN_WORDS:
        return 0

    raw = 0.0
    for phrases, weight, per_words, multiplier in PATTERNS.values():
        family = sum(count_occurrences(normalized, phrase) for phrase in phrases) * weight
        raw += family / (words / per_words) * multiplier

    list_count = len(_LIST_PATTERN.findall(normalized))
    raw += list_count / (words / 500) * 15
    raw += _uniformity(normalized)

    return min(100, math.floor(100 * (1 - math.exp(-raw / 40))))


def _content_text(page: PageContext) -> str:
    parts = []
    for element in page.soup.select(CONTENT_SELECTOR):
        text = extract_text(element)
        if text.strip():
            parts.append(text)
    return " ".join(parts).strip()


async def check(page: PageContext) -> None:
    config = page.config
    if any(pattern in page.site_path for pattern in config.ai_detection_exclude_paths):
        return
    text = _content_text(page)
    if len(text) < MIN_TEXT_CHARS:
        return
    score = calculate_ai_score(text)
    threshold = config.ai_detection_threshold
    if score >= threshold:
        page.add_issue(AI_CONTENT, f"AI content score: {score}% (threshold: {threshold:g}%)")
