"""Build-scoped verdict cache with in-flight deduplication."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Union

from .document import ResolvedTarget

LOGGER = logging.getLogger(__name__)

Entry = Union["asyncio.Future[bool]", bool]


@dataclass
class CacheStats:
    """Counters describing how lookups were served."""

    hits: int = 0
    joins: int = 0
    checks: int = 0


class ValidityCache:
    """Memoized link verdicts shared by every document task of one build.

    Each entry is either a pending future for a check that is still
    running or the final boolean verdict. Lookup and installation of the
    pending marker happen without an intervening ``await``, so concurrent
    requests for the same target share a single underlying check.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Entry] = {}
        self.stats = CacheStats()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def peek(self, key: str) -> Optional[bool]:
        """Return a settled verdict for ``key`` without waiting."""
        entry = self._entries.get(key)
        if isinstance(entry, bool):
            return entry
        return None

    def _lookup(self, target: ResolvedTarget) -> Optional[Entry]:
        for key in target.lookup_keys():
            entry = self._entries.get(key)
            if entry is not None:
                return entry
        return None

    async def resolve(
        self,
        target: ResolvedTarget,
        check: Callable[[], Awaitable[bool]],
    ) -> bool:
        """Return the verdict for ``target``, running ``check`` at most once."""
        entry = self._lookup(target)
        if isinstance(entry, bool):
            self.stats.hits += 1
            return entry
        if entry is not None:
            self.stats.joins += 1
            return await asyncio.shield(entry)

        future: "asyncio.Future[bool]" = asyncio.get_running_loop().create_future()
        pending_keys: List[str] = list(target.lookup_keys())
        for key in pending_keys:
            self._entries[key] = future
        self.stats.checks += 1

        try:
            verdict = bool(await check())
        except BaseException as exc:
            for key in pending_keys:
                if self._entries.get(key) is future:
                    del self._entries[key]
            if isinstance(exc, asyncio.CancelledError):
                future.cancel()
            else:
                future.set_exception(exc)
                # Waiters see the error through shield(); mark it retrieved.
                future.exception()
            raise

        self._store(target, verdict)
        future.set_result(verdict)
        return verdict

    def _store(self, target: ResolvedTarget, verdict: bool) -> None:
        for key in target.cache_keys():
            entry = self._entries.get(key)
            if isinstance(entry, bool):
                continue
            self._entries[key] = verdict
        LOGGER.debug("Cached %s -> %s", target.fetch_key, "valid" if verdict else "broken")
