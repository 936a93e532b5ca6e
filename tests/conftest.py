"""Shared fixtures: throwaway build output directories."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from siteaudit.config import AuditConfig
from siteaudit.html import parse_html
from siteaudit.issues import IssueCollector
from siteaudit.phases import MetadataRegistry, PageContext


@pytest.fixture
def dist(tmp_path: Path) -> Path:
    root = tmp_path / "dist"
    root.mkdir()
    return root


@pytest.fixture
def write_file(dist: Path) -> Callable[..., Path]:
    def _write(relative: str, content: str = "") -> Path:
        path = dist / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_page(dist: Path) -> Callable[..., PageContext]:
    """Build a PageContext for HTML that is not written to disk."""

    def _make(
        html: str,
        site_path: str = "/page",
        config: AuditConfig = None,
        issues: IssueCollector = None,
        metadata: MetadataRegistry = None,
    ) -> PageContext:
        return PageContext(
            site_path=site_path,
            file_path=str(dist / (site_path.strip("/") or "index") / "index.html"),
            dist_path=str(dist),
            soup=parse_html(html),
            config=config or AuditConfig(),
            issues=issues if issues is not None else IssueCollector(),
            metadata=metadata if metadata is not None else MetadataRegistry(),
        )

    return _make
