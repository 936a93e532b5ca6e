from __future__ import annotations

import pytest

import siteaudit
from siteaudit.errors import (
    AuditError,
    ConfigError,
    FilesystemError,
    MalformedReferenceError,
    NetworkError,
    ParsingError,
)

from pages import only_phases, page_html


def test_public_names_are_exported() -> None:
    for name in siteaudit.__all__:
        assert hasattr(siteaudit, name), name


@pytest.mark.asyncio
async def test_package_level_audit(write_file, dist) -> None:
    write_file("index.html", page_html('<a href="./gone">x</a>'))

    result = await siteaudit.audit_site_async(dist, only_phases("foundation"))

    assert isinstance(result, siteaudit.AuditResult)
    assert result.broken_links == {"./gone": {"/index"}}


class TestErrors:
    def test_hierarchy(self) -> None:
        for error in (ConfigError, FilesystemError, ParsingError, NetworkError, MalformedReferenceError):
            assert issubclass(error, AuditError)

    def test_format_with_suggestion(self) -> None:
        error = FilesystemError("Build directory not found: dist", suggestion="Build first.")
        assert error.format() == (
            "Site audit Filesystem error: Build directory not found: dist\n\nSuggestion: Build first."
        )

    def test_format_without_suggestion(self) -> None:
        assert ConfigError("bad").format() == "Site audit Configuration error: bad"

    def test_fatal_flag(self) -> None:
        assert FilesystemError("x", fatal=True).fatal
        assert not ParsingError("x").fatal

    def test_malformed_reference_keeps_value(self) -> None:
        error = MalformedReferenceError("bad escape", "/100%")
        assert error.reference == "/100%"
        assert str(error) == "bad escape"
