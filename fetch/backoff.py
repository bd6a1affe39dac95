"""
Retry delays: full-jitter exponential backoff, overridden by Retry-After.
"""
import random
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional


def compute_backoff(
    attempt: int,
    *,
    base: float,
    cap: float,
    rng: Optional[random.Random] = None,
) -> float:
    """Uniform random delay in [0, min(cap, base * 2**attempt)] seconds."""
    rng = rng or random
    ceiling = min(cap, base * (2 ** max(attempt, 0)))
    return rng.uniform(0, ceiling)


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    """
    Retry-After as seconds: either an integer count or an HTTP date.
    Dates in the past give 0; anything unparseable gives None.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if value.isdigit():
        return float(int(value))
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0.0, (when - now).total_seconds())


def retry_delay(
    attempt: int,
    retry_after: Optional[float],
    *,
    base: float,
    cap: float,
    rng: Optional[random.Random] = None,
) -> float:
    """Wait before retry number attempt (0-based); a server Retry-After wins, clamped to cap."""
    if retry_after is not None:
        return min(max(retry_after, 0.0), cap)
    return compute_backoff(attempt, base=base, cap=cap, rng=rng)
