"""
SQLite database initialization and schema.
"""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

_db_path: str = "data/events.db"

SCHEMA = """
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS sources (
    source_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    url TEXT NOT NULL,
    domain TEXT NOT NULL,
    requests_per_minute INTEGER,
    concurrency INTEGER,
    preferred_method TEXT,
    default_lat REAL,
    default_lng REAL,
    default_venue TEXT,
    default_category TEXT,
    feed_discovery INTEGER NOT NULL DEFAULT 0,
    enabled INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS scrape_state (
    source_id TEXT PRIMARY KEY,
    last_run_at DATETIME,
    last_success_at DATETIME,
    last_http_status INTEGER,
    consecutive_failures INTEGER NOT NULL DEFAULT 0,
    last_alert_at DATETIME,
    last_etag TEXT,
    last_last_modified TEXT
);

CREATE TABLE IF NOT EXISTS scrape_events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    run_id TEXT NOT NULL,
    source_id TEXT NOT NULL,
    url TEXT NOT NULL,
    attempt INTEGER NOT NULL,
    success INTEGER NOT NULL,
    http_status INTEGER,
    etag TEXT,
    last_modified TEXT,
    retry_after REAL,
    body TEXT,
    error TEXT,
    created_at DATETIME NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_scrape_events_source
ON scrape_events(source_id, created_at);

CREATE TABLE IF NOT EXISTS events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    source_id TEXT NOT NULL,
    event_fingerprint TEXT NOT NULL,
    cross_fingerprint TEXT NOT NULL,
    content_hash TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    event_date TEXT NOT NULL,
    event_time TEXT NOT NULL,
    starts_at DATETIME,
    end_date TEXT,
    end_time TEXT,
    venue_name TEXT,
    venue_address TEXT,
    category TEXT NOT NULL,
    image_url TEXT,
    detail_url TEXT,
    all_source_urls TEXT NOT NULL DEFAULT '[]',
    price TEXT,
    price_currency TEXT,
    price_min INTEGER,
    price_max INTEGER,
    tickets_url TEXT,
    organizer TEXT,
    organizer_url TEXT,
    performer TEXT,
    event_status TEXT,
    data_completeness REAL,
    parsing_method TEXT,
    contact_phone TEXT,
    website_url TEXT,
    opening_hours TEXT,
    price_range TEXT,
    google_place_id TEXT,
    enrichment_attempted_at DATETIME,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_events_fingerprint
ON events(source_id, event_fingerprint);
CREATE INDEX IF NOT EXISTS idx_events_cross_fingerprint
ON events(cross_fingerprint);

CREATE TABLE IF NOT EXISTS enrichment_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_id INTEGER NOT NULL,
    status TEXT NOT NULL,
    source TEXT NOT NULL,
    api_calls_used INTEGER NOT NULL DEFAULT 0,
    fields_enriched TEXT NOT NULL DEFAULT '[]',
    error_message TEXT,
    created_at DATETIME NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_enrichment_logs_created
ON enrichment_logs(created_at);
"""


def init_db(db_path: str) -> None:
    """Set database path and create schema (sync, for startup)."""
    global _db_path
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    _db_path = str(path)
    import sqlite3
    with sqlite3.connect(_db_path) as conn:
        conn.executescript(SCHEMA)
    logger.info("Database initialized at %s", _db_path)


def get_db_path() -> str:
    return _db_path


def to_db_time(value: Optional[datetime]) -> Optional[str]:
    """Serialize an aware datetime as ISO 8601 in UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def from_db_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
