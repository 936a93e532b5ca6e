"""Shared types for SEO check phases."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, List, Optional

from bs4 import BeautifulSoup

from ..config import AuditConfig
from ..issues import IssueCollector

if TYPE_CHECKING:
    from ..links import LinkChecker


class MetadataRegistry:
    """Titles and descriptions seen so far in one scan.

    Each value maps to the site paths that use it, in first-seen order.
    """

    def __init__(self) -> None:
        self.titles: Dict[str, List[str]] = {}
        self.descriptions: Dict[str, List[str]] = {}

    @staticmethod
    def _record(table: Dict[str, List[str]], value: str, site_path: str) -> List[str]:
        pages = table.setdefault(value, [])
        if site_path not in pages:
            pages.append(site_path)
        return [page for page in pages if page != site_path]

    def record_title(self, title: str, site_path: str) -> List[str]:
        """Register a title; returns the other pages already using it."""
        return self._record(self.titles, title, site_path)

    def record_description(self, description: str, site_path: str) -> List[str]:
        return self._record(self.descriptions, description, site_path)


@dataclass
class PageContext:
    """Everything a phase needs to inspect one built page."""

    site_path: str
    file_path: str
    dist_path: str
    soup: BeautifulSoup
    config: AuditConfig
    issues: IssueCollector
    metadata: MetadataRegistry = field(default_factory=MetadataRegistry)
    links: Optional["LinkChecker"] = None

    def add_issue(self, category: str, issue: str) -> None:
        self.issues.add(category, issue, self.site_path)


PhaseHandler = Callable[[PageContext], Awaitable[None]]


@dataclass(frozen=True)
class Phase:
    """A named group of checks that can be toggled in the config."""

    id: str
    name: str
    description: str
    handler: PhaseHandler
