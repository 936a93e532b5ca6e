"""Report formatters and report file output."""

from __future__ import annotations

import csv
import io
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Set, Union

from .errors import ConfigError, FilesystemError
from .issues import format_category_name

if TYPE_CHECKING:
    from .scan import AuditResult

LOGGER = logging.getLogger(__name__)

BrokenLinksMap = Mapping[str, Set[str]]
IssuesMap = Mapping[str, Mapping[str, Set[str]]]
Formatter = Callable[[BrokenLinksMap, IssuesMap, float, Optional[str]], str]

# Display order and icons for the console summary.
GROUP_ORDER = (
    "performance",
    "accessibility",
    "metadata",
    "crawlability",
    "linking",
    "technical",
    "content",
    "privacy",
    "semantic",
)
GROUP_ICONS = {
    "performance": "⚡",
    "accessibility": "♿",
    "metadata": "📄",
    "crawlability": "🔍",
    "linking": "🔗",
    "technical": "🔧",
    "content": "📝",
    "privacy": "🔒",
    "semantic": "🏗️",
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _issue_count(issues: IssuesMap) -> int:
    return sum(len(entries) for entries in issues.values())


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def format_markdown(
    broken_links: BrokenLinksMap,
    issues: IssuesMap,
    elapsed: float,
    timestamp: Optional[str] = None,
) -> str:
    """Human readable report; most frequent problems first."""
    lines = [f"# Site Report - {timestamp or _timestamp()}", ""]
    lines += [f"Scan completed in {elapsed:.2f} seconds", ""]

    lines += ["## Summary", ""]
    lines.append(f"- Broken Links: {len(broken_links)}")
    lines.append(f"- SEO Issues: {_issue_count(issues)}")
    counts = sorted(
        ((category, len(entries)) for category, entries in issues.items()),
        key=lambda item: -item[1],
    )
    for category, count in counts:
        lines.append(f"  - {count} {category}")
    lines.append("")

    if broken_links:
        lines += ["## 🔗 Broken Links", ""]
        for link, pages in sorted(broken_links.items(), key=lambda item: -len(item[1])):
            lines += [f"### {link}", "", "Found in:"]
            lines += [f"- {page}" for page in sorted(pages)]
            lines.append("")

    if _issue_count(issues):
        lines += ["## 🔍 SEO Issues", ""]
        for category, entries in sorted(issues.items(), key=lambda item: format_category_name(item[0])):
            lines += [f"### {format_category_name(category)}", ""]
            for issue, pages in sorted(entries.items(), key=lambda item: -len(item[1])):
                lines += [f"#### {issue}", "", "Found in:"]
                lines += [f"- {page}" for page in sorted(pages)]
                lines.append("")

    return "\n".join(lines) + "\n"


def format_json(
    broken_links: BrokenLinksMap,
    issues: IssuesMap,
    elapsed: float,
    timestamp: Optional[str] = None,
) -> str:
    report: Dict[str, Any] = {
        "timestamp": timestamp or _timestamp(),
        "scanDuration": round(elapsed, 3),
        "summary": {
            "brokenLinkCount": len(broken_links),
            "seoIssueCount": _issue_count(issues),
            "categories": {category: len(entries) for category, entries in issues.items()},
        },
        "brokenLinks": [
            {"url": link, "pages": sorted(pages)} for link, pages in broken_links.items()
        ],
        "seoIssues": {
            category: [
                {"description": issue, "pages": sorted(pages)} for issue, pages in entries.items()
            ]
            for category, entries in issues.items()
        },
    }
    return json.dumps(report, indent=2, ensure_ascii=False)


def format_csv(
    broken_links: BrokenLinksMap,
    issues: IssuesMap,
    elapsed: float,
    timestamp: Optional[str] = None,
) -> str:
    """One row per (problem, page) pair."""
    stamp = timestamp or _timestamp()
    buffer = io.StringIO()
    buffer.write("issue_type,category,issue,page,timestamp\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for link, pages in broken_links.items():
        for page in sorted(pages):
            writer.writerow(["broken_link", "broken_link", link, page, stamp])
    for category, entries in issues.items():
        for issue, pages in entries.items():
            for page in sorted(pages):
                writer.writerow(["seo_issue", category, issue, page, stamp])
    return buffer.getvalue()


FORMATTERS: Dict[str, Formatter] = {
    "markdown": format_markdown,
    "json": format_json,
    "csv": format_csv,
}

_EXTENSIONS = {".json": "json", ".csv": "csv"}


def resolve_format(file_path: Union[str, Path, None], fmt: Optional[str] = None) -> str:
    """Explicit format wins; otherwise decided by file extension."""
    if fmt:
        name = fmt.strip().lower()
        if name not in FORMATTERS:
            raise ConfigError(
                f"Invalid report format: '{fmt}'",
                suggestion="Valid formats are 'markdown', 'json', or 'csv'. "
                "You can also omit the format to auto-detect from file extension.",
            )
        return name
    extension = os.path.splitext(str(file_path or ""))[1].lower()
    return _EXTENSIONS.get(extension, "markdown")


def get_formatter(file_path: Union[str, Path, None], fmt: Optional[str] = None) -> Formatter:
    return FORMATTERS[resolve_format(file_path, fmt)]


def report_location(dist_path: Union[str, Path], file_path: Union[str, Path]) -> Path:
    """Configured report paths are relative to the build output."""
    path = Path(file_path)
    return path if path.is_absolute() else Path(dist_path) / path


def format_report(
    result: "AuditResult",
    file_path: Union[str, Path, None] = None,
    fmt: Optional[str] = None,
) -> str:
    formatter = get_formatter(file_path, fmt)
    return formatter(result.broken_links, result.issues, result.elapsed, None)


def write_report(
    result: "AuditResult",
    file_path: Union[str, Path],
    fmt: Optional[str] = None,
) -> Path:
    """Format ``result`` and write it to ``file_path``.

    Raises:
        ConfigError: If ``fmt`` is not a known format.
        FilesystemError: If the directory or file cannot be written.
    """
    content = format_report(result, file_path, fmt)
    path = Path(file_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(
            f"Could not create report directory: {path.parent}",
            suggestion="Check directory permissions or specify a different report location.",
        ) from exc
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(
            f"Could not write report to: {path}",
            suggestion="Check write permissions or specify a different report location.",
        ) from exc
    LOGGER.info("Wrote %s", path)
    return path


def _group_breakdown(issues: IssuesMap) -> List[str]:
    groups: Dict[str, List[tuple]] = {group: [] for group in GROUP_ORDER}
    for category, entries in issues.items():
        for group in GROUP_ORDER:
            if category.startswith(group):
                groups[group].append((len(entries), category))
                break

    lines: List[str] = []
    for group in GROUP_ORDER:
        entries = groups[group]
        if not entries:
            continue
        total = sum(count for count, _ in entries)
        lines.append(f"    {GROUP_ICONS[group]} {group.capitalize()}: {_plural(total, 'issue')}")
        for count, category in sorted(entries, key=lambda item: -item[0]):
            kind = category.split(": ", 1)[1] if ": " in category else category
            lines.append(f"      • {kind}: {count}")
    return lines


def summarize(
    result: "AuditResult",
    report_path: Union[str, Path, None] = None,
    fmt: Optional[str] = None,
) -> str:
    """Console summary of an audit, grouped by issue family."""
    broken = len(result.broken_links)
    issue_total = _issue_count(result.issues)
    lines = [
        "✨ Site Audit Report ✨",
        "━" * 48,
        f"✓ Scan completed in {result.elapsed:.2f} seconds",
        "",
        "📊 Summary:",
        f"  ⚠️  {_plural(broken, 'broken link')}" if broken else "  ✅ No broken links detected",
        f"  ⚠️  {_plural(issue_total, 'SEO issue')}" if issue_total else "  ✅ No SEO issues detected",
    ]
    breakdown = _group_breakdown(result.issues)
    if breakdown:
        lines += ["", "  Issue breakdown:"] + breakdown
    if result.errors:
        lines += ["", f"⚠️  Completed with {_plural(len(result.errors), 'error')}"]
    if report_path:
        name = resolve_format(report_path, fmt).upper()
        lines += ["", f"📄 Full {name} report written to:", f"  {report_path}"]
        if broken or issue_total:
            lines += [
                "",
                "📋 Next steps:",
                f"  • Review the full report at {report_path}",
                "  • Fix the most critical issues first (broken links, missing metadata)",
                "  • Re-run the check after making changes",
            ]
    return "\n".join(lines)
