"""Tests for the robots.txt politeness gate."""
import httpx
import pytest

from fetch.robots import PolitenessGate, extract_crawl_delay

UA = "LocalEventHarvester/1.0 (+https://example.org/bot)"

ROBOTS = """
User-agent: *
Crawl-delay: 10
Disallow: /private/

User-agent: LocalEventHarvester
Crawl-delay: 5
Disallow: /admin/
"""


class TestExtractCrawlDelay:
    def test_specific_group_beats_wildcard(self):
        assert extract_crawl_delay(ROBOTS, UA) == 5.0

    def test_wildcard_used_for_other_agents(self):
        assert extract_crawl_delay(ROBOTS, "OtherBot/2.0") == 10.0

    def test_absent_delay_is_none(self):
        assert extract_crawl_delay("User-agent: *\nDisallow:\n", UA) is None


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestPolitenessGate:
    @pytest.mark.asyncio
    async def test_disallow_and_delay_from_specific_group(self):
        def handler(request):
            return httpx.Response(200, text=ROBOTS)

        async with _client(handler) as client:
            gate = PolitenessGate(client, UA)
            assert await gate.is_allowed("https://venue.example/agenda")
            assert not await gate.is_allowed("https://venue.example/admin/page")
            assert await gate.min_delay("https://venue.example/agenda", 1.0) == 5.0

    @pytest.mark.asyncio
    async def test_404_is_fully_permissive(self):
        def handler(request):
            return httpx.Response(404)

        async with _client(handler) as client:
            gate = PolitenessGate(client, UA)
            assert await gate.is_allowed("https://venue.example/anything")
            assert await gate.min_delay("https://venue.example/", 1.5) == 1.5

    @pytest.mark.asyncio
    async def test_network_error_is_fully_permissive(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as client:
            gate = PolitenessGate(client, UA)
            assert await gate.is_allowed("https://venue.example/agenda")

    @pytest.mark.asyncio
    async def test_rules_cached_until_ttl(self):
        calls = []
        now = [0.0]

        def handler(request):
            calls.append(request.url.path)
            return httpx.Response(200, text=ROBOTS)

        async with _client(handler) as client:
            gate = PolitenessGate(client, UA, ttl=100.0, clock=lambda: now[0])
            await gate.is_allowed("https://venue.example/a")
            await gate.is_allowed("https://venue.example/b")
            assert len(calls) == 1
            now[0] = 150.0
            await gate.is_allowed("https://venue.example/c")
            assert len(calls) == 2
