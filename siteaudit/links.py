"""Concurrent link validation for built documents."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Set, Union

from .cache import ValidityCache
from .checkers import LocalExistenceChecker, RemoteReachabilityChecker
from .document import LinkReference, ResolvedTarget, TargetKind
from .errors import MalformedReferenceError
from .urls import RedirectTable, resolve_reference

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_CHECKS = 50

BrokenLinksMap = Dict[str, Set[str]]


class BrokenLinks:
    """Broken references keyed by their literal value.

    Each entry holds the normalized site paths of the documents that
    contain the reference. Recording is idempotent.
    """

    def __init__(self) -> None:
        self._links: BrokenLinksMap = {}

    def record(self, reference: str, document_site_path: str) -> None:
        self._links.setdefault(reference, set()).add(document_site_path)

    def as_dict(self) -> BrokenLinksMap:
        return {reference: set(pages) for reference, pages in self._links.items()}

    def __len__(self) -> int:
        return len(self._links)

    def __contains__(self, reference: object) -> bool:
        return reference in self._links

    def pages_for(self, reference: str) -> Set[str]:
        return set(self._links.get(reference, ()))


class LinkChecker:
    """Validates link references for every document of one build.

    A single instance is shared by all document tasks so that the
    verdict cache, the concurrency limit and the broken-link map span the
    whole build. ``remote`` is ``None`` when external links are not
    checked; such references are then neither fetched nor reported.
    """

    def __init__(
        self,
        root: str,
        *,
        redirects: Optional[RedirectTable] = None,
        remote: Optional[RemoteReachabilityChecker] = None,
        max_concurrent_checks: int = DEFAULT_MAX_CONCURRENT_CHECKS,
        cache: Optional[ValidityCache] = None,
        local: Optional[LocalExistenceChecker] = None,
    ):
        self.redirects = redirects or RedirectTable()
        self.local = local or LocalExistenceChecker(root)
        self.remote = remote
        self.cache = cache or ValidityCache()
        self.broken = BrokenLinks()
        self._limit = asyncio.Semaphore(max_concurrent_checks)

    @property
    def check_external(self) -> bool:
        return self.remote is not None

    async def check_document(
        self,
        document_site_path: str,
        references: Iterable[Union[LinkReference, str]],
    ) -> None:
        """Check every reference of one document concurrently."""
        values: List[str] = [
            ref.value if isinstance(ref, LinkReference) else ref for ref in references
        ]
        if not values:
            return
        await asyncio.gather(
            *(self.check_reference(value, document_site_path) for value in values)
        )

    async def check_reference(self, reference: str, document_site_path: str) -> Optional[bool]:
        """Validate one reference and record it when broken.

        Returns the verdict, or ``None`` when the reference was skipped.
        """
        try:
            target = resolve_reference(reference, document_site_path, self.redirects)
        except MalformedReferenceError as exc:
            LOGGER.error("Skipping malformed link %r on %s: %s", reference, document_site_path, exc)
            return None

        if target.kind is TargetKind.SKIP:
            return None
        if not target.is_local and not self.check_external:
            LOGGER.debug("External check disabled; skipping %s", reference)
            return None

        try:
            valid = await self.cache.resolve(target, lambda: self._check(target))
        except Exception as exc:
            LOGGER.error("Error checking %s on %s: %s", reference, document_site_path, exc)
            return None
        if not valid:
            self.broken.record(reference, document_site_path)
        return valid

    async def _check(self, target: ResolvedTarget) -> bool:
        async with self._limit:
            if target.is_local:
                return await self.local.exists(target.fetch_key)
            return await self.remote.is_reachable(target.fetch_key)
