"""Data structures representing built documents and resolved link targets."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional
from urllib.parse import unquote


class TargetKind(str, Enum):
    """How a reference is validated."""

    SKIP = "skip"
    SITE_LOCAL = "site-local"
    EXTERNAL = "external"


@dataclass(frozen=True, slots=True)
class LinkReference:
    """A link-bearing attribute found in markup."""

    tag: str
    attribute: str
    value: str


@dataclass(slots=True)
class SiteDocument:
    """One built HTML page from the output directory."""

    file_path: str
    site_path: str
    html: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ResolvedTarget:
    """A reference after classification, path resolution and redirects."""

    reference: str
    kind: TargetKind
    fetch_key: str = ""
    absolute_form: str = ""

    @property
    def is_local(self) -> bool:
        # Redirects may point a site path at an external URL.
        return self.fetch_key.startswith("/")

    def lookup_keys(self) -> Iterator[str]:
        """Keys consulted (and marked pending) before a check runs."""
        yield self.fetch_key
        if "%" in self.fetch_key:
            decoded = unquote(self.fetch_key)
            if decoded != self.fetch_key:
                yield decoded

    def cache_keys(self) -> Iterator[str]:
        """Every syntactic variant under which a verdict is stored."""
        seen = set()
        for key in (self.fetch_key, self.absolute_form):
            for variant in (key, unquote(key) if "%" in key else key):
                if variant and variant not in seen:
                    seen.add(variant)
                    yield variant
