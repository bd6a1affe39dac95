"""Tests for the per-domain rate limiter."""
import asyncio

import pytest

from fetch.ratelimit import DomainRateLimiter


class ManualClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestDomainRateLimiter:
    @pytest.mark.asyncio
    async def test_spaces_requests_by_min_interval(self):
        clock = ManualClock()
        waits = []

        async def sleep(seconds):
            waits.append(seconds)
            clock.now += seconds

        limiter = DomainRateLimiter(12, 1, clock=clock, sleep=sleep)
        for _ in range(3):
            async with limiter.slot():
                pass
        assert waits == [5.0, 5.0]

    @pytest.mark.asyncio
    async def test_concurrency_bound(self):
        limiter = DomainRateLimiter(600, 2, sleep=lambda s: asyncio.sleep(0))
        active = 0
        peak = 0

        async def worker():
            nonlocal active, peak
            async with limiter.slot():
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1

        await asyncio.gather(*[worker() for _ in range(6)])
        assert peak <= 2

    def test_rejects_invalid_limits(self):
        with pytest.raises(ValueError):
            DomainRateLimiter(0, 1)
