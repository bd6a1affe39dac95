"""
robots.txt gate: cached per domain, fail-open, with Crawl-delay per user-agent group.
"""
import asyncio
import logging
import time
import urllib.robotparser
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)


@dataclass
class RobotsRules:
    parser: Optional[urllib.robotparser.RobotFileParser]  # None = everything allowed
    crawl_delay: Optional[float]  # seconds
    fetched_at: float


def _product_token(user_agent: str) -> str:
    return user_agent.split("/")[0].strip().lower()


def parse_groups(robots_txt: str) -> List[Tuple[List[str], Dict[str, str]]]:
    """
    Split robots.txt into (agents, directives) groups. Consecutive User-agent lines
    share one group; directive names are lowercased.
    """
    groups: List[Tuple[List[str], Dict[str, str]]] = []
    agents: List[str] = []
    directives: Dict[str, str] = {}
    for line in robots_txt.splitlines():
        line = line.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip().lower()
        value = value.strip()
        if key == "user-agent":
            if directives:
                groups.append((agents, directives))
                agents, directives = [], {}
            agents.append(value.lower())
        elif agents:
            directives.setdefault(key, value)
    if agents:
        groups.append((agents, directives))
    return groups


def extract_crawl_delay(robots_txt: str, user_agent: str) -> Optional[float]:
    """Crawl-delay from the most specific group: exact product token beats '*'."""
    token = _product_token(user_agent)
    specific: Optional[float] = None
    wildcard: Optional[float] = None
    for agents, directives in parse_groups(robots_txt):
        raw = directives.get("crawl-delay")
        if raw is None:
            continue
        try:
            delay = float(raw)
        except ValueError:
            continue
        if delay < 0:
            continue
        if token in agents and specific is None:
            specific = delay
        elif "*" in agents and wildcard is None:
            wildcard = delay
    return specific if specific is not None else wildcard


class PolitenessGate:
    """One instance per orchestrator; caches rules per domain for ttl seconds."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        user_agent: str,
        *,
        ttl: float = 24 * 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._user_agent = user_agent
        self._ttl = ttl
        self._clock = clock
        self._cache: Dict[str, RobotsRules] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    async def _fetch_rules(self, origin: str) -> RobotsRules:
        robots_url = f"{origin}/robots.txt"
        now = self._clock()
        try:
            resp = await self._client.get(robots_url)
        except httpx.HTTPError as e:
            logger.warning("robots.txt fetch failed for %s: %s; allowing all", origin, e)
            return RobotsRules(parser=None, crawl_delay=None, fetched_at=now)
        if resp.status_code != 200:
            logger.info("robots.txt for %s returned %s; allowing all", origin, resp.status_code)
            return RobotsRules(parser=None, crawl_delay=None, fetched_at=now)
        text = resp.text
        parser = urllib.robotparser.RobotFileParser(robots_url)
        parser.parse(text.splitlines())
        delay = extract_crawl_delay(text, self._user_agent)
        logger.debug("robots.txt for %s loaded (crawl-delay=%s)", origin, delay)
        return RobotsRules(parser=parser, crawl_delay=delay, fetched_at=now)

    async def rules_for(self, url: str) -> RobotsRules:
        p = urlparse(url)
        origin = f"{p.scheme}://{p.netloc}"
        lock = self._locks.setdefault(origin, asyncio.Lock())
        async with lock:
            cached = self._cache.get(origin)
            if cached is not None and self._clock() - cached.fetched_at < self._ttl:
                return cached
            rules = await self._fetch_rules(origin)
            self._cache[origin] = rules
            return rules

    async def is_allowed(self, url: str) -> bool:
        rules = await self.rules_for(url)
        if rules.parser is None:
            return True
        return rules.parser.can_fetch(self._user_agent, url)

    async def min_delay(self, url: str, default: float) -> float:
        """Crawl-delay in seconds for url's domain, or default when none is declared."""
        rules = await self.rules_for(url)
        return rules.crawl_delay if rules.crawl_delay is not None else default
