"""Link and SEO auditor for statically generated websites.

Audits a finished build output directory: every built HTML page is
scanned concurrently, its links are validated against the files on disk
(and optionally against the network), and a set of SEO checks is run.
The result can be rendered as a Markdown, JSON or CSV report.

Example usage:

    from siteaudit import AuditConfig, audit_site, audit_site_async

    result = await audit_site_async("dist")
    for link, pages in result.broken_links.items():
        print(link, sorted(pages))

    # External links, custom redirects and a preset
    config = AuditConfig.from_preset("standard", check_external_links=True)
    result = audit_site("dist", config, redirects={"/old": "/new"})

    from siteaudit.report import write_report
    write_report(result, "site-report.json")
"""

from __future__ import annotations

from .cache import ValidityCache
from .checkers import LocalExistenceChecker, RemoteReachabilityChecker, RetryPolicy
from .config import AuditConfig, ConfigOverrides, apply_overrides, extend_preset, get_preset
from .document import LinkReference, ResolvedTarget, SiteDocument, TargetKind
from .errors import (
    AuditError,
    ConfigError,
    FilesystemError,
    MalformedReferenceError,
    NetworkError,
    ParsingError,
)
from .links import BrokenLinks, LinkChecker
from .scan import AuditResult, audit_site, audit_site_async
from .urls import RedirectTable, classify_reference, resolve_reference, resolve_site_path

__all__ = [
    # Audit
    "AuditResult",
    "audit_site",
    "audit_site_async",
    # Configuration
    "AuditConfig",
    "ConfigOverrides",
    "apply_overrides",
    "extend_preset",
    "get_preset",
    # Link engine
    "BrokenLinks",
    "LinkChecker",
    "LocalExistenceChecker",
    "RemoteReachabilityChecker",
    "RetryPolicy",
    "ValidityCache",
    "RedirectTable",
    "classify_reference",
    "resolve_reference",
    "resolve_site_path",
    # Types
    "LinkReference",
    "ResolvedTarget",
    "SiteDocument",
    "TargetKind",
    # Errors
    "AuditError",
    "ConfigError",
    "FilesystemError",
    "MalformedReferenceError",
    "NetworkError",
    "ParsingError",
]
