"""Existence checks for site-local targets and reachability checks for URLs."""

from __future__ import annotations

import asyncio
import errno
import logging
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, List, Optional
from urllib.parse import unquote

import httpx

LOGGER = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; siteaudit/0.1; link checker)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


# ---------------------------------------------------------------------------
# Local existence
# ---------------------------------------------------------------------------


class LocalExistenceChecker:
    """Decides whether a site path maps to a file in the build output."""

    def __init__(self, root: str):
        self.root = str(root)

    def candidates(self, fetch_key: str) -> List[str]:
        """Filesystem paths that would satisfy ``fetch_key``."""
        bases = []
        try:
            decoded = unquote(fetch_key, errors="strict")
        except UnicodeDecodeError:
            decoded = fetch_key
        bases.append(decoded)
        if decoded != fetch_key:
            bases.append(fetch_key)

        paths: List[str] = []
        for base in bases:
            relative = base.lstrip("/")
            joined = os.path.join(self.root, relative)
            paths.extend(
                [
                    joined,
                    os.path.join(joined, "index.html"),
                    os.path.join(self.root, relative + ".html"),
                ]
            )
        return paths

    def exists_sync(self, fetch_key: str) -> bool:
        for candidate in self.candidates(fetch_key):
            try:
                if os.path.exists(candidate):
                    return True
            except (OSError, ValueError) as exc:
                LOGGER.debug("Error checking path %s: %s", candidate, exc)
        return False

    async def exists(self, fetch_key: str) -> bool:
        return await asyncio.to_thread(self.exists_sync, fetch_key)


# ---------------------------------------------------------------------------
# Remote reachability
# ---------------------------------------------------------------------------


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def is_connection_reset(exc: BaseException) -> bool:
    """True when ``exc`` (or anything it wraps) is a connection reset."""
    for item in _exception_chain(exc):
        if isinstance(item, ConnectionResetError):
            return True
        if getattr(item, "errno", None) == errno.ECONNRESET:
            return True
        text = str(item).lower()
        if "connection reset" in text or "econnreset" in text:
            return True
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry schedule for remote checks.

    Only connection resets are retryable. ``max_retries`` counts attempts
    after the first one; delays grow as ``base_delay * factor ** n``.
    """

    max_retries: int = 3
    base_delay: float = 0.5
    factor: float = 2.0

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def is_retryable(self, exc: BaseException) -> bool:
        return is_connection_reset(exc)

    def should_retry(self, attempt: int, exc: BaseException) -> bool:
        """Whether a failed ``attempt`` (1-based) gets another try."""
        return attempt < self.max_attempts and self.is_retryable(exc)

    def delay(self, attempt: int) -> float:
        """Backoff before the attempt following ``attempt``."""
        return self.base_delay * (self.factor ** (attempt - 1))


def describe_failure(exc: BaseException) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return "timeout"
    if is_connection_reset(exc):
        return "ECONNRESET"
    if isinstance(exc, httpx.ConnectError):
        return "connection failed"
    return type(exc).__name__


class RemoteReachabilityChecker:
    """GETs external URLs and reports whether they answered successfully.

    The client is created lazily unless one is injected; an injected
    client is left open for its owner to close.
    """

    def __init__(
        self,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=DEFAULT_HEADERS,
                follow_redirects=True,
                timeout=self.timeout,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RemoteReachabilityChecker":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def is_reachable(self, url: str) -> bool:
        """Return True when ``url`` responds with a success status."""
        client = self._get_client()
        policy = self.retry_policy
        attempt = 0
        while True:
            attempt += 1
            try:
                async with client.stream("GET", url, timeout=self.timeout) as response:
                    status = response.status_code
                    success = response.is_success
            except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
                if policy.should_retry(attempt, exc):
                    delay = policy.delay(attempt)
                    LOGGER.debug(
                        "Connection reset fetching %s (attempt %d/%d); retrying in %.2fs",
                        url,
                        attempt,
                        policy.max_attempts,
                        delay,
                    )
                    await self._sleep(delay)
                    continue
                LOGGER.error("%s error fetching %s: %s", describe_failure(exc), url, exc)
                return False

            if not success:
                LOGGER.error("%d Error fetching %s", status, url)
                return False
            return True
