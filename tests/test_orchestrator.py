"""Tests for the fetch orchestrator: retries, robots, scrape state and alerting."""
from datetime import timedelta

import httpx
import pytest

from fetch.orchestrator import FetchOrchestrator
from models import ScrapeState, Source, utcnow
from storage import fetch_log, scrape_state

PAGE = "<html><body><h1>Agenda</h1></body></html>"


class FakeSite:
    """MockTransport handler: scripted responses for the page, plus robots and webhook."""

    def __init__(self, responses, robots=None, webhook_status=200):
        self.responses = list(responses)
        self.robots = robots
        self.webhook_status = webhook_status
        self.page_requests = []
        self.webhook_posts = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "hooks.example.org":
            self.webhook_posts.append(request.content)
            return httpx.Response(self.webhook_status)
        if request.url.path == "/robots.txt":
            if self.robots is None:
                return httpx.Response(404)
            return httpx.Response(200, text=self.robots)
        self.page_requests.append(request)
        if not self.responses:
            return httpx.Response(200, text=PAGE)
        return self.responses.pop(0)


def _source(**kw) -> Source:
    return Source(source_id=kw.pop("source_id", "venue"), url="https://venue.example/agenda", **kw)


async def _run(config, site, sources, fake_sleep, dry_run=False):
    async with httpx.AsyncClient(transport=httpx.MockTransport(site)) as client:
        async with FetchOrchestrator(
            config, run_id="run-1", dry_run=dry_run, client=client, sleep=fake_sleep
        ) as orch:
            return await orch.run(sources)


class TestRetries:
    @pytest.mark.asyncio
    async def test_transient_failures_then_success(self, db, config, fake_sleep):
        site = FakeSite([httpx.Response(503), httpx.Response(502), httpx.Response(200, text=PAGE)])
        [result] = await _run(config, site, [_source()], fake_sleep)

        assert result.outcome.success
        assert len(result.attempts) == 3
        assert result.state.consecutive_failures == 0
        logged = await fetch_log.for_run("run-1", "venue")
        assert [o.http_status for o in logged] == [503, 502, 200]

    @pytest.mark.asyncio
    async def test_permanent_failure_is_not_retried(self, db, config, fake_sleep):
        site = FakeSite([httpx.Response(404)])
        [result] = await _run(config, site, [_source()], fake_sleep)

        assert not result.outcome.success
        assert len(result.attempts) == 1
        state = await scrape_state.get("venue")
        assert state.consecutive_failures == 1
        assert state.last_http_status == 404

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, db, config, fake_sleep):
        site = FakeSite([httpx.Response(503) for _ in range(10)])
        [result] = await _run(config, site, [_source()], fake_sleep)

        assert len(result.attempts) == config.max_attempts
        assert len(site.page_requests) == config.max_attempts

    @pytest.mark.asyncio
    async def test_retry_after_is_waited(self, db, config, fake_sleep):
        site = FakeSite([httpx.Response(429, headers={"Retry-After": "7"}), httpx.Response(200, text=PAGE)])
        [result] = await _run(config, site, [_source()], fake_sleep)

        assert result.outcome.success
        assert 7.0 in fake_sleep.calls


class TestPoliteness:
    @pytest.mark.asyncio
    async def test_disallowed_source_is_permanent_failure(self, db, config, fake_sleep):
        site = FakeSite([], robots="User-agent: *\nDisallow: /agenda\n")
        [result] = await _run(config, site, [_source()], fake_sleep)

        assert result.disallowed
        assert not result.outcome.success
        assert site.page_requests == []
        assert (await scrape_state.get("venue")).consecutive_failures == 1

    @pytest.mark.asyncio
    async def test_crawl_delay_applied_before_attempt(self, db, config, fake_sleep):
        site = FakeSite([], robots="User-agent: *\nCrawl-delay: 5\n")
        await _run(config, site, [_source()], fake_sleep)

        assert 5.0 in fake_sleep.calls

    @pytest.mark.asyncio
    async def test_one_limiter_per_domain(self, config, fake_sleep):
        async with httpx.AsyncClient() as client:
            async with FetchOrchestrator(config, client=client, sleep=fake_sleep) as orch:
                a = orch.limiter_for(_source(source_id="a", requests_per_minute=6))
                b = orch.limiter_for(_source(source_id="b", requests_per_minute=30))
        assert a is b
        assert a.requests_per_minute == 6


class TestConditionalFetch:
    @pytest.mark.asyncio
    async def test_validators_from_previous_run(self, db, config, fake_sleep):
        await scrape_state.upsert(ScrapeState(source_id="venue", last_etag='"e1"'))
        site = FakeSite([httpx.Response(304)])
        [result] = await _run(config, site, [_source()], fake_sleep)

        assert site.page_requests[0].headers["if-none-match"] == '"e1"'
        assert result.outcome.not_modified
        assert result.state.last_etag == '"e1"'


class TestAlerting:
    @pytest.mark.asyncio
    async def test_alert_when_threshold_reached(self, db, config, fake_sleep):
        await scrape_state.upsert(ScrapeState(source_id="venue", consecutive_failures=2))
        site = FakeSite([httpx.Response(403)])
        [result] = await _run(config, site, [_source()], fake_sleep)

        assert result.alert_sent
        assert len(site.webhook_posts) == 1
        assert b"venue" in site.webhook_posts[0]
        state = await scrape_state.get("venue")
        assert state.consecutive_failures == 3
        assert state.last_alert_at is not None

    @pytest.mark.asyncio
    async def test_alert_suppressed_within_window(self, db, config, fake_sleep):
        await scrape_state.upsert(ScrapeState(
            source_id="venue", consecutive_failures=5, last_alert_at=utcnow() - timedelta(minutes=10)
        ))
        site = FakeSite([httpx.Response(403)])
        [result] = await _run(config, site, [_source()], fake_sleep)

        assert not result.alert_sent
        assert site.webhook_posts == []

    @pytest.mark.asyncio
    async def test_failed_delivery_keeps_last_alert_at(self, db, config, fake_sleep):
        await scrape_state.upsert(ScrapeState(source_id="venue", consecutive_failures=4))
        site = FakeSite([httpx.Response(403)], webhook_status=500)
        [result] = await _run(config, site, [_source()], fake_sleep)

        assert not result.alert_sent
        assert len(site.webhook_posts) == 1
        assert (await scrape_state.get("venue")).last_alert_at is None


class TestDryRun:
    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self, db, config, fake_sleep):
        site = FakeSite([httpx.Response(403)])
        config.failure_threshold = 1
        [result] = await _run(config, site, [_source()], fake_sleep, dry_run=True)

        assert result.state.consecutive_failures == 1
        assert not result.alert_sent
        assert site.webhook_posts == []
        assert await scrape_state.get("venue") is None
        assert await fetch_log.for_run("run-1", "venue") == []
