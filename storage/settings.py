"""
Key-value settings in SQLite: run bookkeeping and operator overrides.
"""
import json
import logging
from typing import Any, Dict, Optional

import aiosqlite

from storage.db import get_db_path

logger = logging.getLogger(__name__)

SCRAPE_TIME_KEY = "scrape_time_local"
LAST_RUN_AT_KEY = "last_run_at"


async def get_setting(key: str) -> Optional[str]:
    """Return value for key, or None if not set."""
    async with aiosqlite.connect(get_db_path()) as conn:
        conn.row_factory = aiosqlite.Row
        cursor = await conn.execute(
            "SELECT value FROM settings WHERE key = ?", (key,)
        )
        row = await cursor.fetchone()
        return row["value"] if row else None


async def set_setting(key: str, value: str) -> None:
    async with aiosqlite.connect(get_db_path()) as conn:
        await conn.execute(
            """INSERT INTO settings (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET value = excluded.value""",
            (key, value),
        )
        await conn.commit()


async def scrape_time(fallback: str) -> str:
    """Daily run time: the operator override when one is stored, else fallback."""
    stored = await get_setting(SCRAPE_TIME_KEY)
    if stored and stored.strip():
        return stored
    return fallback


async def record_run(finished_at: str, status: str, summary: Dict[str, Any]) -> None:
    """Store the outcome of the latest pipeline run."""
    await set_setting(LAST_RUN_AT_KEY, finished_at)
    await set_setting("last_run_status", status)
    await set_setting("last_run_summary_json", json.dumps(summary, default=str))
    logger.debug("Recorded run finished at %s with status %s", finished_at, status)
