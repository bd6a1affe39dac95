"""Tests for retry delay computation."""
import random
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

from fetch.backoff import compute_backoff, parse_retry_after, retry_delay


class TestComputeBackoff:
    def test_stays_within_exponential_ceiling(self):
        rng = random.Random(7)
        for attempt in range(6):
            for _ in range(50):
                delay = compute_backoff(attempt, base=1.0, cap=60.0, rng=rng)
                assert 0.0 <= delay <= min(60.0, 2 ** attempt)

    def test_ceiling_is_capped(self):
        rng = random.Random(1)
        delays = [compute_backoff(20, base=1.0, cap=5.0, rng=rng) for _ in range(100)]
        assert max(delays) <= 5.0


class TestParseRetryAfter:
    def test_integer_seconds(self):
        assert parse_retry_after("120") == 120.0

    def test_http_date_in_future(self):
        now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        header = format_datetime(now + timedelta(seconds=30), usegmt=True)
        assert parse_retry_after(header, now=now) == 30.0

    def test_http_date_in_past_is_zero(self):
        now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        header = format_datetime(now - timedelta(minutes=5), usegmt=True)
        assert parse_retry_after(header, now=now) == 0.0

    def test_garbage_is_none(self):
        assert parse_retry_after("soon") is None
        assert parse_retry_after("") is None
        assert parse_retry_after(None) is None


class TestRetryDelay:
    def test_retry_after_wins_over_backoff(self):
        assert retry_delay(3, 7.0, base=1.0, cap=60.0) == 7.0

    def test_retry_after_clamped_to_cap(self):
        assert retry_delay(0, 3600.0, base=1.0, cap=60.0) == 60.0

    def test_falls_back_to_backoff(self):
        rng = random.Random(3)
        delay = retry_delay(2, None, base=1.0, cap=60.0, rng=rng)
        assert 0.0 <= delay <= 4.0
