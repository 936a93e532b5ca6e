"""Issue categories and the per-build issue collector."""

from __future__ import annotations

from typing import Dict, Iterator, Set, Tuple

# Category identifiers used as report keys.
BROKEN_LINKS = "broken_links"
PRIVACY_EMAIL = "privacy: exposed email"
META_MISSING = "metadata: missing elements"
META_EMPTY = "metadata: empty elements"
META_DUPLICATES = "metadata: duplicates"
META_CANONICAL = "metadata: canonical"
SEMANTIC_HEADINGS = "semantic: heading structure"
SEMANTIC_LANGUAGE = "semantic: language"
A11Y_ALT_MISSING = "accessibility: missing alt"
A11Y_ALT_EMPTY = "accessibility: empty alt"
A11Y_INTERACTIVE = "accessibility: unlabeled interactive"
A11Y_LINK_TEXT = "accessibility: generic link text"
PERF_LAYOUT_SHIFT = "performance: layout shift"
PERF_RENDER_BLOCKING = "performance: render blocking"
PERF_INLINE_CODE = "performance: inline code"
PERF_LARGE_RESOURCES = "performance: large resources"
TECH_MOBILE = "technical: mobile friendly"
CRAWL_ROBOTS_TXT = "crawlability: missing robots.txt"
CRAWL_SITEMAP = "crawlability: missing sitemap"
CRAWL_NOINDEX = "crawlability: noindex"
CRAWL_NOFOLLOW = "crawlability: nofollow"
CRAWL_NOARCHIVE = "crawlability: noarchive"
LINK_TOO_FEW = "linking: too few links"
LINK_TOO_MANY = "linking: too many links"
LINK_NOFOLLOW = "linking: nofollow internal"
AI_CONTENT = "content: potential ai text"

CATEGORY_FORMATTING: Dict[str, str] = {
    BROKEN_LINKS: "🔗 Broken Links",
    PRIVACY_EMAIL: "🔒 Privacy: Exposed Email Addresses",
    META_MISSING: "📄 Metadata: Missing Elements",
    META_EMPTY: "📄 Metadata: Empty Elements",
    META_DUPLICATES: "🔄 Metadata: Duplicates Across Pages",
    META_CANONICAL: "🔗 Metadata: Canonical Link Issues",
    SEMANTIC_HEADINGS: "🏗️ Semantic: Heading Structure Issues",
    SEMANTIC_LANGUAGE: "🌐 Semantic: Language Attribute Issues",
    A11Y_ALT_MISSING: "🖼️ Accessibility: Missing Image Alternatives",
    A11Y_ALT_EMPTY: "🖼️ Accessibility: Empty Alt Attributes",
    A11Y_INTERACTIVE: "🔘 Accessibility: Unlabeled Interactive Elements",
    A11Y_LINK_TEXT: "🔗 Accessibility: Generic Link Text",
    PERF_LAYOUT_SHIFT: "📐 Performance: Layout Shift Prevention",
    PERF_RENDER_BLOCKING: "⚡ Performance: Render-Blocking Resources",
    PERF_INLINE_CODE: "📦 Performance: Excessive Inline Code",
    PERF_LARGE_RESOURCES: "🐘 Performance: Large Resources",
    TECH_MOBILE: "📱 Technical: Mobile-friendly Configuration",
    CRAWL_ROBOTS_TXT: "🤖 Crawlability: Missing Robots.txt",
    CRAWL_SITEMAP: "🗺️ Crawlability: Missing Sitemap",
    CRAWL_NOINDEX: "🚫 Crawlability: Indexing Blocked",
    CRAWL_NOFOLLOW: "🔍 Crawlability: Link Following Blocked",
    CRAWL_NOARCHIVE: "💾 Crawlability: Archiving Blocked",
    LINK_TOO_FEW: "🔗 Linking: Too Few Internal Links",
    LINK_TOO_MANY: "🔗 Linking: Too Many Internal Links",
    LINK_NOFOLLOW: "🔗 Linking: Nofollow on Internal Links",
    AI_CONTENT: "🤖 Content: Potentially AI-Generated Text",
}

IssuesMap = Dict[str, Dict[str, Set[str]]]


def format_category_name(category: str) -> str:
    """Display name for a category, title-casing unknown ones."""
    known = CATEGORY_FORMATTING.get(category)
    if known:
        return known
    parts = [part.strip() for part in category.split(":")]
    return ": ".join(part[:1].upper() + part[1:] for part in parts)


class IssueCollector:
    """Accumulates ``category -> issue -> pages`` for one build."""

    def __init__(self) -> None:
        self._issues: IssuesMap = {}

    def add(self, category: str, issue: str, site_path: str) -> None:
        self._issues.setdefault(category, {}).setdefault(issue, set()).add(site_path)

    def count(self) -> int:
        """Number of distinct issues across all categories."""
        return sum(len(issues) for issues in self._issues.values())

    def categories(self) -> Dict[str, int]:
        return {category: len(issues) for category, issues in self._issues.items()}

    def items(self) -> Iterator[Tuple[str, Dict[str, Set[str]]]]:
        return iter(self._issues.items())

    def as_dict(self) -> IssuesMap:
        return {
            category: {issue: set(pages) for issue, pages in issues.items()}
            for category, issues in self._issues.items()
        }

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, category: object) -> bool:
        return category in self._issues
