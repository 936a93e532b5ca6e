"""Tests for siteaudit.links module."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from siteaudit.checkers import RemoteReachabilityChecker
from siteaudit.document import LinkReference
from siteaudit.links import BrokenLinks, LinkChecker
from siteaudit.urls import RedirectTable


def remote_with(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteReachabilityChecker(client=client, sleep=AsyncMock()), client


class TestBrokenLinks:
    def test_record_is_idempotent(self):
        broken = BrokenLinks()
        broken.record("/x", "/a")
        broken.record("/x", "/a")
        broken.record("/x", "/b")
        assert broken.as_dict() == {"/x": {"/a", "/b"}}
        assert len(broken) == 1

    def test_as_dict_is_a_copy(self):
        broken = BrokenLinks()
        broken.record("/x", "/a")
        broken.as_dict()["/x"].add("/z")
        assert broken.pages_for("/x") == {"/a"}

    def test_pages_for_unknown(self):
        assert BrokenLinks().pages_for("/x") == set()


class TestLinkCheckerScenarios:
    @pytest.mark.asyncio
    async def test_existing_page_is_not_reported(self, write_file, dist):
        write_file("about.html")
        checker = LinkChecker(str(dist))
        await checker.check_document("/index", ["/about"])
        assert checker.broken.as_dict() == {}

    @pytest.mark.asyncio
    async def test_missing_page_is_reported(self, dist):
        checker = LinkChecker(str(dist))
        await checker.check_document("/index", ["/non-existent-page"])
        assert checker.broken.as_dict() == {"/non-existent-page": {"/index"}}

    @pytest.mark.asyncio
    async def test_relative_links_are_reported_by_literal_value(self, dist):
        checker = LinkChecker(str(dist))
        await checker.check_document(
            "/page",
            ["./relative-broken-link", "../path/changing/relative-broken-link"],
        )
        assert checker.broken.as_dict() == {
            "./relative-broken-link": {"/page"},
            "../path/changing/relative-broken-link": {"/page"},
        }

    @pytest.mark.asyncio
    async def test_encoded_reference_matches_decoded_file(self, write_file, dist):
        write_file("file with spaces.html")
        checker = LinkChecker(str(dist))
        await checker.check_document("/index", ["/file%20with%20spaces.html"])
        assert len(checker.broken) == 0

    @pytest.mark.asyncio
    async def test_unencoded_reference_matches_file(self, write_file, dist):
        write_file("file with spaces.html")
        checker = LinkChecker(str(dist))
        await checker.check_document("/index", ["/file with spaces.html"])
        assert len(checker.broken) == 0

    @pytest.mark.asyncio
    async def test_external_reset_three_times_then_success(self, dist):
        calls = {"count": 0}

        def handler(request):
            calls["count"] += 1
            if calls["count"] <= 3:
                raise httpx.ConnectError("read ECONNRESET", request=request)
            return httpx.Response(200)

        remote, client = remote_with(handler)
        async with client:
            checker = LinkChecker(str(dist), remote=remote)
            await checker.check_document("/index", ["https://example.com/"])
        assert len(checker.broken) == 0
        assert calls["count"] == 4

    @pytest.mark.asyncio
    async def test_external_reset_four_times_is_broken(self, dist):
        def handler(request):
            raise httpx.ConnectError("read ECONNRESET", request=request)

        remote, client = remote_with(handler)
        async with client:
            checker = LinkChecker(str(dist), remote=remote)
            await checker.check_document("/index", ["https://example.com/"])
        assert checker.broken.as_dict() == {"https://example.com/": {"/index"}}


class TestLinkCheckerProperties:
    @pytest.mark.asyncio
    async def test_redirected_page(self, write_file, dist):
        write_file("about.html")
        checker = LinkChecker(str(dist), redirects=RedirectTable({"/redirected": "/about"}))
        assert await checker.check_reference("/redirected", "/index") is True

    @pytest.mark.asyncio
    async def test_missing_image_on_two_pages(self, dist):
        checker = LinkChecker(str(dist))
        await checker.check_document("/a", [LinkReference("img", "src", "/missing.jpg")])
        await checker.check_document("/b", [LinkReference("img", "src", "/missing.jpg")])
        assert checker.broken.as_dict() == {"/missing.jpg": {"/a", "/b"}}
        assert checker.cache.stats.hits == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reference",
        ["/docs/a b.html", "/docs/a%20b.html", "/docs/a b", "/docs/a%20b"],
    )
    async def test_encoding_variants_agree(self, write_file, dist, reference):
        write_file("docs/a b.html")
        checker = LinkChecker(str(dist))
        assert await checker.check_reference(reference, "/") is True


class TestLinkChecker:
    @pytest.mark.asyncio
    async def test_skipped_references(self, dist):
        checker = LinkChecker(str(dist))
        refs = ["#top", "mailto:me@example.com", "tel:+1", "javascript:void(0)", ""]
        results = [await checker.check_reference(ref, "/") for ref in refs]
        assert results == [None] * len(refs)
        assert len(checker.cache) == 0

    @pytest.mark.asyncio
    async def test_external_skipped_when_disabled(self, dist):
        checker = LinkChecker(str(dist))
        assert checker.check_external is False
        assert await checker.check_reference("https://example.com", "/") is None
        assert len(checker.broken) == 0

    @pytest.mark.asyncio
    async def test_malformed_reference_is_skipped(self, dist, caplog):
        checker = LinkChecker(str(dist))
        assert await checker.check_reference("/100%", "/index") is None
        assert len(checker.broken) == 0
        assert "Skipping malformed link" in caplog.text

    @pytest.mark.asyncio
    async def test_same_reference_on_many_pages_checked_once(self, dist):
        local = MagicMock()
        local.exists = AsyncMock(return_value=False)
        checker = LinkChecker(str(dist), local=local)

        await asyncio.gather(
            *(checker.check_document(page, ["/gone"]) for page in ("/a", "/b", "/c"))
        )

        local.exists.assert_awaited_once_with("/gone")
        assert checker.broken.as_dict() == {"/gone": {"/a", "/b", "/c"}}

    @pytest.mark.asyncio
    async def test_different_literals_same_target_reported_separately(self, dist):
        checker = LinkChecker(str(dist))
        await checker.check_document("/blog/", ["missing", "/blog/missing"])
        assert checker.broken.as_dict() == {
            "missing": {"/blog/"},
            "/blog/missing": {"/blog/"},
        }
        assert checker.cache.stats.checks == 1

    @pytest.mark.asyncio
    async def test_accepts_link_reference_objects(self, dist):
        checker = LinkChecker(str(dist))
        await checker.check_document("/", [LinkReference("img", "src", "/logo.png")])
        assert "/logo.png" in checker.broken

    @pytest.mark.asyncio
    async def test_redirect_to_existing_page(self, write_file, dist):
        write_file("new.html")
        checker = LinkChecker(str(dist), redirects=RedirectTable({"/old": "/new"}))
        await checker.check_document("/", ["/old"])
        assert len(checker.broken) == 0

    @pytest.mark.asyncio
    async def test_redirect_to_missing_page(self, dist):
        checker = LinkChecker(str(dist), redirects=RedirectTable({"/old": "/gone"}))
        await checker.check_document("/", ["/old"])
        assert checker.broken.as_dict() == {"/old": {"/"}}

    @pytest.mark.asyncio
    async def test_redirect_to_external_without_remote_is_skipped(self, dist):
        checker = LinkChecker(
            str(dist), redirects=RedirectTable({"/go": "https://example.com"})
        )
        assert await checker.check_reference("/go", "/") is None

    @pytest.mark.asyncio
    async def test_redirect_to_external_uses_remote(self, dist):
        remote = MagicMock()
        remote.is_reachable = AsyncMock(return_value=True)
        checker = LinkChecker(
            str(dist),
            redirects=RedirectTable({"/go": "https://example.com"}),
            remote=remote,
        )
        assert await checker.check_reference("/go", "/") is True
        remote.is_reachable.assert_awaited_once_with("https://example.com")

    @pytest.mark.asyncio
    async def test_concurrency_limit(self, dist):
        active = 0
        peak = 0

        async def exists(fetch_key):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return True

        local = MagicMock()
        local.exists = exists
        checker = LinkChecker(str(dist), local=local, max_concurrent_checks=2)
        await checker.check_document("/", [f"/page-{n}" for n in range(6)])

        assert peak == 2

    @pytest.mark.asyncio
    async def test_failing_check_does_not_stop_other_references(self, dist, caplog):
        async def exists(fetch_key):
            if fetch_key == "/boom":
                raise RuntimeError("boom")
            return False

        local = MagicMock()
        local.exists = exists
        checker = LinkChecker(str(dist), local=local)

        await checker.check_document("/p", ["/boom", "/gone"])

        assert checker.broken.as_dict() == {"/gone": {"/p"}}
        assert "Error checking /boom on /p: boom" in caplog.text
        assert "/boom" not in checker.cache

    @pytest.mark.asyncio
    async def test_empty_document(self, dist):
        checker = LinkChecker(str(dist))
        await checker.check_document("/", [])
        assert len(checker.broken) == 0
