from __future__ import annotations

import json

import pytest

from siteaudit import mcp_server

from pages import page_html


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PRESET", "CHECK_EXTERNAL", "DISABLED_PHASES"):
        monkeypatch.delenv(f"SITEAUDIT_{name}", raising=False)


@pytest.mark.asyncio
async def test_mcp_audit_returns_json_report(write_file, dist) -> None:
    write_file("index.html", page_html('<h1>Home</h1><a href="/missing">x</a>'))

    payload = json.loads(
        await mcp_server.audit_site(dist_path=str(dist), output_format="json", preset="minimal")
    )

    assert payload["brokenLinks"] == [{"url": "/missing", "pages": ["/index"]}]


@pytest.mark.asyncio
async def test_mcp_audit_markdown_by_default(write_file, dist) -> None:
    write_file("index.html", page_html("<h1>Home</h1>"))

    text = await mcp_server.audit_site(dist_path=str(dist), preset="minimal")

    assert text.startswith("# Site Report - ")


@pytest.mark.asyncio
async def test_mcp_audit_applies_redirects(write_file, dist) -> None:
    write_file("index.html", page_html('<h1>Home</h1><a href="/old">x</a>'))
    write_file("new.html", page_html())

    payload = json.loads(
        await mcp_server.audit_site(
            dist_path=str(dist),
            output_format="json",
            preset="minimal",
            redirects={"/old": {"destination": "/new"}},
        )
    )

    assert payload["brokenLinks"] == []


@pytest.mark.asyncio
async def test_mcp_audit_invalid_format(dist) -> None:
    payload = json.loads(await mcp_server.audit_site(dist_path=str(dist), output_format="xml"))
    assert payload["error"] == "Invalid output format: 'xml'"


@pytest.mark.asyncio
async def test_mcp_audit_missing_directory_reports_suggestion(tmp_path) -> None:
    payload = json.loads(await mcp_server.audit_site(dist_path=str(tmp_path / "missing")))

    assert "Build directory not found" in payload["error"]
    assert "suggestion" in payload


@pytest.mark.asyncio
async def test_mcp_audit_unknown_preset(dist) -> None:
    payload = json.loads(await mcp_server.audit_site(dist_path=str(dist), preset="turbo"))
    assert payload["error"] == "Unknown preset: 'turbo'"


@pytest.mark.asyncio
async def test_mcp_audit_unexpected_error(monkeypatch: pytest.MonkeyPatch, dist) -> None:
    async def broken_audit(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(mcp_server, "audit_site_async", broken_audit)

    payload = json.loads(await mcp_server.audit_site(dist_path=str(dist)))

    assert payload == {"error": "Unexpected error: boom", "dist_path": str(dist)}
