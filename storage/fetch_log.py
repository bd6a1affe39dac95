"""
Append-only log of fetch attempts, keyed by run id and source id.
"""
from typing import List

import aiosqlite

from models import FetchOutcome
from storage.db import from_db_time, get_db_path, to_db_time


async def append(run_id: str, source_id: str, url: str, outcome: FetchOutcome) -> None:
    async with aiosqlite.connect(get_db_path()) as conn:
        await conn.execute(
            """INSERT INTO scrape_events
               (run_id, source_id, url, attempt, success, http_status, etag,
                last_modified, retry_after, body, error, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                run_id,
                source_id,
                url,
                outcome.attempt,
                int(outcome.success),
                outcome.http_status,
                outcome.etag,
                outcome.last_modified,
                outcome.retry_after,
                outcome.body,
                outcome.error,
                to_db_time(outcome.fetched_at),
            ),
        )
        await conn.commit()


async def for_run(run_id: str, source_id: str) -> List[FetchOutcome]:
    """Return the attempts logged for one source in one run, oldest first."""
    async with aiosqlite.connect(get_db_path()) as conn:
        conn.row_factory = aiosqlite.Row
        cursor = await conn.execute(
            """SELECT * FROM scrape_events
               WHERE run_id = ? AND source_id = ?
               ORDER BY id""",
            (run_id, source_id),
        )
        rows = await cursor.fetchall()
    return [
        FetchOutcome(
            success=bool(r["success"]),
            http_status=r["http_status"],
            body=r["body"],
            etag=r["etag"],
            last_modified=r["last_modified"],
            retry_after=r["retry_after"],
            error=r["error"],
            attempt=r["attempt"],
            fetched_at=from_db_time(r["created_at"]),
        )
        for r in rows
    ]
