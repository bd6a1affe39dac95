"""
Fetch orchestrator: per-domain rate limiting, robots.txt, retries, scrape state and alerts.

Sources are grouped by domain. Each domain gets one DomainRateLimiter; a global
semaphore caps how many domains are crawled at the same time. Attempts for one
source are sequential. Nothing raised while fetching one source escapes run().
"""
import asyncio
import logging
import random
import uuid
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

import httpx

from config import Config
from fetch.alerts import AlertContext, send_alert
from fetch.backoff import retry_delay
from fetch.fetcher import fetch_conditional, is_transient, make_client
from fetch.ratelimit import DomainRateLimiter
from fetch.robots import PolitenessGate
from models import FetchOutcome, ScrapeState, Source, SourceRunResult, utcnow
from storage import fetch_log, scrape_state

logger = logging.getLogger(__name__)


class FetchOrchestrator:
    def __init__(
        self,
        config: Config,
        *,
        run_id: Optional[str] = None,
        dry_run: bool = False,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self.run_id = run_id or uuid.uuid4().hex
        self.dry_run = dry_run
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._limiters: Dict[str, DomainRateLimiter] = {}
        self._gate: Optional[PolitenessGate] = None
        self._domain_slots = asyncio.Semaphore(config.global_parallel_domains)

    async def __aenter__(self) -> "FetchOrchestrator":
        if self._client is None:
            self._client = make_client(self.config)
        self._gate = PolitenessGate(
            self._client, self.config.user_agent, ttl=self.config.robots_ttl
        )
        return self

    async def __aexit__(self, *exc) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def gate(self) -> PolitenessGate:
        if self._gate is None:
            raise RuntimeError("FetchOrchestrator must be used as an async context manager")
        return self._gate

    def limiter_for(self, source: Source) -> DomainRateLimiter:
        """One limiter per domain, created from the first source seen for it."""
        limiter = self._limiters.get(source.domain)
        if limiter is None:
            limiter = DomainRateLimiter(
                source.requests_per_minute or self.config.requests_per_minute,
                source.concurrency or self.config.domain_concurrency,
                sleep=self._sleep,
            )
            self._limiters[source.domain] = limiter
        return limiter

    async def run(self, sources: List[Source]) -> List[SourceRunResult]:
        """Fetch every source; results come back in input order."""
        by_domain: "OrderedDict[str, List[int]]" = OrderedDict()
        for i, source in enumerate(sources):
            by_domain.setdefault(source.domain, []).append(i)
        results: List[Optional[SourceRunResult]] = [None] * len(sources)

        async def run_domain(indexes: List[int]) -> None:
            async with self._domain_slots:
                done = await asyncio.gather(*[self._run_source_safe(sources[i]) for i in indexes])
            for i, result in zip(indexes, done):
                results[i] = result

        logger.info(
            "Run %s: %d sources across %d domains", self.run_id, len(sources), len(by_domain)
        )
        await asyncio.gather(*[run_domain(idx) for idx in by_domain.values()])
        return [r for r in results if r is not None]

    async def _run_source_safe(self, source: Source) -> SourceRunResult:
        try:
            return await self.run_source(source)
        except Exception as e:
            logger.exception("Source %s aborted: %s", source.source_id, e)
            outcome = FetchOutcome(success=False, error=f"{type(e).__name__}: {e}")
            return SourceRunResult(source=source, outcome=outcome, attempts=[outcome])

    async def run_source(self, source: Source) -> SourceRunResult:
        previous = await scrape_state.get(source.source_id)
        limiter = self.limiter_for(source)

        if not await self.gate.is_allowed(source.url):
            logger.warning("Source %s: %s disallowed by robots.txt", source.source_id, source.url)
            outcome = FetchOutcome(success=False, error="Disallowed by robots.txt")
            await self._log_attempt(source, outcome)
            state, alert_sent = await self._update_state(source, previous, outcome, [outcome])
            return SourceRunResult(
                source=source,
                outcome=outcome,
                attempts=[outcome],
                state=state,
                alert_sent=alert_sent,
                disallowed=True,
            )

        politeness = await self.gate.min_delay(source.url, self.config.base_delay)
        attempts: List[FetchOutcome] = []
        outcome: Optional[FetchOutcome] = None
        for attempt in range(1, self.config.max_attempts + 1):
            delay = max(politeness, self.config.base_delay) + self._rng.uniform(0, self.config.jitter)
            if outcome is not None:
                delay += retry_delay(
                    attempt - 2,
                    outcome.retry_after,
                    base=self.config.backoff_base,
                    cap=self.config.backoff_cap,
                    rng=self._rng,
                )
            async with limiter.slot():
                if delay > 0:
                    await self._sleep(delay)
                outcome = await fetch_conditional(
                    self._client,
                    source.url,
                    etag=previous.last_etag if previous else None,
                    last_modified=previous.last_last_modified if previous else None,
                    max_body_bytes=self.config.max_body_bytes,
                    attempt=attempt,
                )
            attempts.append(outcome)
            await self._log_attempt(source, outcome)
            if outcome.success:
                break
            if not is_transient(outcome.http_status):
                logger.warning(
                    "Source %s: permanent failure %s; not retrying", source.source_id, outcome.error
                )
                break
            logger.info(
                "Source %s: attempt %d/%d failed (%s)",
                source.source_id, attempt, self.config.max_attempts, outcome.error,
            )

        state, alert_sent = await self._update_state(source, previous, outcome, attempts)
        return SourceRunResult(
            source=source,
            outcome=outcome,
            attempts=attempts,
            state=state,
            alert_sent=alert_sent,
        )

    async def fetch_follow_up(self, source: Source, url: str) -> Optional[str]:
        """Single politeness-gated GET on the source's domain; returns the body or None."""
        if not await self.gate.is_allowed(url):
            return None
        politeness = await self.gate.min_delay(url, self.config.base_delay)
        async with self.limiter_for(source).slot():
            await self._sleep(max(politeness, self.config.base_delay))
            outcome = await fetch_conditional(
                self._client, url, max_body_bytes=self.config.max_body_bytes
            )
        if not outcome.success or outcome.content is None:
            logger.debug("Follow-up fetch %s failed: %s", url, outcome.error)
            return None
        return outcome.content

    async def _log_attempt(self, source: Source, outcome: FetchOutcome) -> None:
        if self.dry_run:
            return
        await fetch_log.append(self.run_id, source.source_id, source.url, outcome)

    async def _update_state(
        self,
        source: Source,
        previous: Optional[ScrapeState],
        outcome: FetchOutcome,
        attempts: List[FetchOutcome],
    ) -> Tuple[ScrapeState, bool]:
        now = utcnow()
        alert_sent = False
        state = ScrapeState(source_id=source.source_id)
        if previous is not None:
            state.last_success_at = previous.last_success_at
            state.consecutive_failures = previous.consecutive_failures
            state.last_alert_at = previous.last_alert_at
            state.last_etag = previous.last_etag
            state.last_last_modified = previous.last_last_modified
        state.last_run_at = now
        state.last_http_status = outcome.http_status

        if outcome.success:
            state.consecutive_failures = 0
            state.last_success_at = now
            if outcome.etag:
                state.last_etag = outcome.etag
            if outcome.last_modified:
                state.last_last_modified = outcome.last_modified
        else:
            state.consecutive_failures += 1
            alert_sent = await self._maybe_alert(source, state, attempts, now)
            if alert_sent:
                state.last_alert_at = now

        if not self.dry_run:
            await scrape_state.upsert(state)
        return state, alert_sent

    async def _maybe_alert(
        self,
        source: Source,
        state: ScrapeState,
        attempts: List[FetchOutcome],
        now: datetime,
    ) -> bool:
        if state.consecutive_failures < self.config.failure_threshold:
            return False
        suppression = timedelta(seconds=self.config.alert_suppression)
        if state.last_alert_at is not None and now - state.last_alert_at < suppression:
            logger.info("Alert suppressed for %s (within suppression window)", source.source_id)
            return False
        context = AlertContext.from_attempts(
            source.source_id, source.url, self.run_id, state.consecutive_failures, attempts
        )
        return await send_alert(
            context,
            self.config.slack_webhook_url,
            client=self._client,
            dry_run=self.dry_run,
        )
