"""Tests for the conditional fetcher."""
import httpx
import pytest

from fetch.fetcher import fetch_conditional, is_transient, truncate_body


class TestClassification:
    def test_transient_statuses(self):
        for status in (429, 502, 503, 504, None):
            assert is_transient(status)

    def test_permanent_statuses(self):
        for status in (400, 403, 404, 410, 500):
            assert not is_transient(status)


class TestTruncateBody:
    def test_short_body_untouched(self):
        assert truncate_body("hello", 100) == "hello"

    def test_long_body_gets_marker(self):
        body = truncate_body("x" * 120, 100)
        assert body.startswith("x" * 100)
        assert body.endswith("[truncated 20 bytes]")


class TestFetchConditional:
    @pytest.mark.asyncio
    async def test_sends_validators_and_returns_304(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(304)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            outcome = await fetch_conditional(
                client, "https://venue.example/agenda",
                etag='"abc"', last_modified="Mon, 02 Mar 2026 10:00:00 GMT",
            )
        assert seen["if-none-match"] == '"abc"'
        assert seen["if-modified-since"] == "Mon, 02 Mar 2026 10:00:00 GMT"
        assert outcome.success
        assert outcome.not_modified
        assert outcome.body is None

    @pytest.mark.asyncio
    async def test_success_captures_validators_and_caps_body(self):
        def handler(request):
            return httpx.Response(
                200, text="y" * 200, headers={"ETag": '"v2"', "Last-Modified": "Tue, 03 Mar 2026 10:00:00 GMT"}
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            outcome = await fetch_conditional(client, "https://venue.example/", max_body_bytes=50)
        assert outcome.success
        assert outcome.etag == '"v2"'
        assert outcome.last_modified == "Tue, 03 Mar 2026 10:00:00 GMT"
        assert "[truncated 150 bytes]" in outcome.body
        assert outcome.content == "y" * 200

    @pytest.mark.asyncio
    async def test_429_reports_retry_after(self):
        def handler(request):
            return httpx.Response(429, headers={"Retry-After": "12"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            outcome = await fetch_conditional(client, "https://venue.example/")
        assert not outcome.success
        assert outcome.http_status == 429
        assert outcome.retry_after == 12.0
        assert outcome.error.startswith("HTTP 429")

    @pytest.mark.asyncio
    async def test_network_error_never_raises(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            outcome = await fetch_conditional(client, "https://venue.example/", attempt=3)
        assert not outcome.success
        assert outcome.http_status is None
        assert outcome.attempt == 3
        assert "ConnectTimeout" in outcome.error
