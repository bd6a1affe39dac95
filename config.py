"""
Runtime configuration: every tunable with its default, overridable from the environment.
"""
import os
from dataclasses import dataclass
from typing import Optional

USER_AGENT = "LocalEventHarvester/1.0 (NL event discovery; +https://example.org/bot)"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_str(name: str) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


@dataclass
class Config:
    database_path: str = "data/events.db"
    user_agent: str = USER_AGENT

    # HTTP
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    max_body_bytes: int = 50_000

    # Politeness and rate limiting
    requests_per_minute: int = 12
    domain_concurrency: int = 1
    global_parallel_domains: int = 3
    base_delay: float = 1.0  # seconds before every attempt
    jitter: float = 0.5  # extra random seconds added to base delay
    robots_ttl: float = 24 * 3600.0

    # Retries
    max_attempts: int = 5
    backoff_base: float = 1.0
    backoff_cap: float = 60.0

    # Alerting
    failure_threshold: int = 3
    alert_suppression: float = 30 * 60.0
    slack_webhook_url: Optional[str] = None

    # Deduplication and venue matching
    promotion_threshold: int = 50
    containment_floor: float = 0.75
    similarity_floor: float = 0.82

    # Enrichment
    google_places_api_key: Optional[str] = None
    max_enrichment_calls_per_day: int = 1000

    # AI fallback
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"
    ai_max_content_chars: int = 25_000

    # Scheduling
    scrape_time_local: str = "06:00"

    @classmethod
    def from_env(cls) -> "Config":
        """Build a Config from environment variables, falling back to defaults."""
        defaults = cls()
        return cls(
            database_path=os.environ.get("DATABASE_PATH", defaults.database_path),
            user_agent=os.environ.get("SCRAPER_USER_AGENT", defaults.user_agent),
            requests_per_minute=_env_int("RATE_PER_DOMAIN_RPM", defaults.requests_per_minute),
            global_parallel_domains=_env_int("GLOBAL_PARALLEL_DOMAINS", defaults.global_parallel_domains),
            max_attempts=_env_int("MAX_RETRY_ATTEMPTS", defaults.max_attempts),
            failure_threshold=_env_int("MAX_CONSECUTIVE_FAILURES", defaults.failure_threshold),
            alert_suppression=_env_int("ALERT_SUPPRESSION_MINUTES", 30) * 60.0,
            slack_webhook_url=_env_str("SLACK_WEBHOOK_URL"),
            google_places_api_key=_env_str("GOOGLE_PLACES_API_KEY"),
            max_enrichment_calls_per_day=_env_int(
                "MAX_ENRICHMENT_CALLS_PER_DAY", defaults.max_enrichment_calls_per_day
            ),
            gemini_api_key=_env_str("GEMINI_API_KEY") or _env_str("GOOGLE_API_KEY"),
            scrape_time_local=os.environ.get("SCRAPE_TIME_LOCAL", defaults.scrape_time_local),
        )
