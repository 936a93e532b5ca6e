"""Site-wide audit orchestration over a build output directory."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Union

import httpx

from .checkers import RemoteReachabilityChecker, RetryPolicy
from .config import AuditConfig
from .document import SiteDocument
from .errors import AuditError, FilesystemError, ParsingError
from .html import parse_html
from .issues import IssueCollector, IssuesMap
from .links import LinkChecker
from .phases import PHASES, MetadataRegistry, PageContext, run_phases
from .urls import RedirectTable, normalize_html_file_path

LOGGER = logging.getLogger(__name__)

# Sites larger than this get periodic progress messages.
PROGRESS_MIN_PAGES = 50
PROGRESS_EVERY = 10

DocumentCallback = Callable[[str, int, int], None]
RedirectsInput = Union[RedirectTable, Mapping[str, Any], None]


@dataclass
class AuditResult:
    """Result of auditing one build output directory."""

    broken_links: Dict[str, Set[str]] = field(default_factory=dict)
    issues: IssuesMap = field(default_factory=dict)
    documents: List[SiteDocument] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def elapsed(self) -> float:
        return float(self.stats.get("elapsed_seconds", 0.0))

    @property
    def issue_count(self) -> int:
        return sum(len(entries) for entries in self.issues.values())

    @property
    def has_problems(self) -> bool:
        return bool(self.broken_links) or self.issue_count > 0


def discover_documents(dist_path: Union[str, Path]) -> List[SiteDocument]:
    """Every ``*.html`` file below ``dist_path``, in path order."""
    root = Path(dist_path)
    documents = []
    for file_path in sorted(root.rglob("*.html")):
        if not file_path.is_file():
            continue
        documents.append(
            SiteDocument(
                file_path=str(file_path),
                site_path=normalize_html_file_path(file_path, root),
            )
        )
    return documents


def _redirect_table(redirects: RedirectsInput) -> RedirectTable:
    if isinstance(redirects, RedirectTable):
        return redirects
    return RedirectTable(redirects)


def _read_document(document: SiteDocument) -> str:
    try:
        return Path(document.file_path).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ParsingError(
            f"Could not decode HTML file as UTF-8: {document.file_path}",
            suggestion="Make sure the build writes UTF-8 encoded HTML.",
        ) from exc
    except OSError as exc:
        raise FilesystemError(
            f"Could not read HTML file: {document.file_path}",
            suggestion="Check file permissions and ensure the file is not locked by another process.",
        ) from exc


async def audit_site_async(
    dist_path: Union[str, Path],
    config: Optional[AuditConfig] = None,
    redirects: RedirectsInput = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
    on_document_done: Optional[DocumentCallback] = None,
) -> AuditResult:
    """
    Audit every HTML page of a finished build.

    Args:
        dist_path: The build output directory.
        config: Audit options; defaults to ``AuditConfig()``.
        redirects: Redirect table or mapping of source path to destination.
        client: Optional ``httpx.AsyncClient`` used for external links.
        on_document_done: Called as ``(site_path, completed, total)`` after
            each page finishes, including pages that failed.

    Returns:
        AuditResult with broken links, issues, processed documents,
        per-document errors and stats.

    Raises:
        FilesystemError: If ``dist_path`` does not exist (fatal).
        ConfigError: If the configuration is invalid.
    """
    config = (config or AuditConfig()).validate()
    root = str(dist_path)
    if not os.path.isdir(root):
        raise FilesystemError(
            f"Build directory not found: {root}",
            fatal=True,
            suggestion="Make sure the site build has completed before running the audit.",
        )

    started = time.perf_counter()
    documents = discover_documents(root)
    if not documents:
        LOGGER.warning("No HTML files found in %s", root)
        return AuditResult(stats={"total_pages": 0, "elapsed_seconds": 0.0})

    phase_ids = config.enabled_phases()
    if not phase_ids:
        LOGGER.warning("No audit phases are enabled; nothing to check")
        return AuditResult(stats={"total_pages": len(documents), "elapsed_seconds": 0.0})

    LOGGER.info(
        "Auditing %d HTML pages with phases: %s",
        len(documents),
        ", ".join(PHASES[phase_id].name for phase_id in phase_ids),
    )

    remote: Optional[RemoteReachabilityChecker] = None
    links: Optional[LinkChecker] = None
    if config.phase_enabled("foundation"):
        if config.check_external_links:
            remote = RemoteReachabilityChecker(
                client=client,
                timeout=config.request_timeout,
                retry_policy=RetryPolicy(
                    max_retries=config.max_retries,
                    base_delay=config.retry_backoff,
                ),
            )
        links = LinkChecker(
            root,
            redirects=_redirect_table(redirects),
            remote=remote,
            max_concurrent_checks=config.max_concurrent_checks,
        )

    issues = IssueCollector()
    metadata = MetadataRegistry()
    errors: List[Dict[str, str]] = []
    total = len(documents)
    completed = 0
    finished = 0

    async def process(document: SiteDocument) -> None:
        nonlocal completed
        stage = "read"
        try:
            html = await asyncio.to_thread(_read_document, document)
            stage = "parse"
            soup = parse_html(html)
            stage = "check"
            page = PageContext(
                site_path=document.site_path,
                file_path=document.file_path,
                dist_path=root,
                soup=soup,
                config=config,
                issues=issues,
                metadata=metadata,
                links=links,
            )
            for phase_id in await run_phases(page):
                errors.append(
                    {
                        "path": document.site_path,
                        "error": f"Phase '{phase_id}' failed",
                        "stage": f"phase:{phase_id}",
                    }
                )
        except AuditError as exc:
            LOGGER.error("%s", exc.format())
            errors.append({"path": document.site_path, "error": str(exc), "stage": stage})
            return
        except Exception as exc:
            LOGGER.error("Error processing file %s: %s", document.file_path, exc)
            errors.append({"path": document.site_path, "error": str(exc), "stage": stage})
            return

        completed += 1

    async def process_and_report(document: SiteDocument) -> None:
        nonlocal finished
        try:
            await process(document)
        finally:
            finished += 1
            if on_document_done is not None:
                on_document_done(document.site_path, finished, total)
            if total > PROGRESS_MIN_PAGES and finished % PROGRESS_EVERY == 0:
                LOGGER.info(
                    "Progress: %d%% (%d/%d pages scanned)",
                    round(finished / total * 100),
                    finished,
                    total,
                )

    try:
        await asyncio.gather(*(process_and_report(document) for document in documents))
    finally:
        if remote is not None:
            await remote.aclose()

    if errors:
        LOGGER.warning("Completed with %d error(s); results are incomplete for those pages", len(errors))

    broken_links = links.broken.as_dict() if links is not None else {}
    issue_map = issues.as_dict()
    stats: Dict[str, Any] = {
        "total_pages": total,
        "scanned_pages": completed,
        "broken_link_count": len(broken_links),
        "issue_count": issues.count(),
        "error_count": len(errors),
        "phases": phase_ids,
        "elapsed_seconds": time.perf_counter() - started,
    }
    if links is not None:
        stats["link_checks"] = links.cache.stats.checks
        stats["cache_hits"] = links.cache.stats.hits
        stats["cache_joins"] = links.cache.stats.joins

    return AuditResult(
        broken_links=broken_links,
        issues=issue_map,
        documents=documents,
        errors=errors,
        stats=stats,
    )


def audit_site(
    dist_path: Union[str, Path],
    config: Optional[AuditConfig] = None,
    redirects: RedirectsInput = None,
    *,
    on_document_done: Optional[DocumentCallback] = None,
) -> AuditResult:
    """Synchronous wrapper for audit_site_async."""
    return asyncio.run(
        audit_site_async(
            dist_path,
            config,
            redirects,
            on_document_done=on_document_done,
        )
    )
