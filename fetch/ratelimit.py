"""
Per-domain rate limiter: bounded concurrency plus request spacing within a one-minute window.
"""
import asyncio
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Deque

WINDOW = 60.0


class DomainRateLimiter:
    def __init__(
        self,
        requests_per_minute: int = 12,
        concurrency: int = 1,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if requests_per_minute < 1 or concurrency < 1:
            raise ValueError("requests_per_minute and concurrency must be >= 1")
        self.requests_per_minute = requests_per_minute
        self.concurrency = concurrency
        self._semaphore = asyncio.Semaphore(concurrency)
        self._lock = asyncio.Lock()
        self._min_interval = WINDOW / requests_per_minute
        self._next_start = 0.0
        self._starts: Deque[float] = deque()
        self._clock = clock
        self._sleep = sleep

    async def _wait_for_turn(self) -> None:
        async with self._lock:
            now = self._clock()
            while self._starts and now - self._starts[0] >= WINDOW:
                self._starts.popleft()
            wait = max(0.0, self._next_start - now)
            if len(self._starts) >= self.requests_per_minute:
                wait = max(wait, self._starts[0] + WINDOW - now)
            if wait > 0:
                await self._sleep(wait)
                now = self._clock()
            self._starts.append(now)
            self._next_start = now + self._min_interval

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one concurrency slot; entry waits until the domain's rate allows a request."""
        async with self._semaphore:
            await self._wait_for_turn()
            yield
