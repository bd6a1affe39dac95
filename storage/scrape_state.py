"""
Per-source scrape state: failure counter, conditional-GET validators, last alert time.
"""
from typing import Optional

import aiosqlite

from models import ScrapeState
from storage.db import from_db_time, get_db_path, to_db_time


async def get(source_id: str) -> Optional[ScrapeState]:
    """Return the stored state for source_id, or None if the source never ran."""
    async with aiosqlite.connect(get_db_path()) as conn:
        conn.row_factory = aiosqlite.Row
        cursor = await conn.execute(
            "SELECT * FROM scrape_state WHERE source_id = ?", (source_id,)
        )
        row = await cursor.fetchone()
    if row is None:
        return None
    return ScrapeState(
        source_id=row["source_id"],
        last_run_at=from_db_time(row["last_run_at"]),
        last_success_at=from_db_time(row["last_success_at"]),
        last_http_status=row["last_http_status"],
        consecutive_failures=row["consecutive_failures"] or 0,
        last_alert_at=from_db_time(row["last_alert_at"]),
        last_etag=row["last_etag"],
        last_last_modified=row["last_last_modified"],
    )


async def upsert(state: ScrapeState) -> None:
    async with aiosqlite.connect(get_db_path()) as conn:
        await conn.execute(
            """INSERT OR REPLACE INTO scrape_state
               (source_id, last_run_at, last_success_at, last_http_status,
                consecutive_failures, last_alert_at, last_etag, last_last_modified)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                state.source_id,
                to_db_time(state.last_run_at),
                to_db_time(state.last_success_at),
                state.last_http_status,
                state.consecutive_failures,
                to_db_time(state.last_alert_at),
                state.last_etag,
                state.last_last_modified,
            ),
        )
        await conn.commit()
