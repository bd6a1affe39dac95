"""
Enrichment attempts: one row per attempt, also the source of today's API budget usage.
"""
import json
from datetime import datetime
from typing import List

import aiosqlite

from models import EnrichmentLog, EnrichmentStatus
from storage.db import from_db_time, get_db_path, to_db_time


async def insert(entry: EnrichmentLog) -> None:
    async with aiosqlite.connect(get_db_path()) as conn:
        await conn.execute(
            """INSERT INTO enrichment_logs
               (event_id, status, source, api_calls_used, fields_enriched,
                error_message, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                entry.event_id,
                entry.status.value,
                entry.source,
                entry.api_calls_used,
                json.dumps(entry.fields),
                entry.error,
                to_db_time(entry.created_at),
            ),
        )
        await conn.commit()


async def api_calls_since(since: datetime) -> int:
    """Sum of external API calls logged at or after since."""
    async with aiosqlite.connect(get_db_path()) as conn:
        cursor = await conn.execute(
            "SELECT COALESCE(SUM(api_calls_used), 0) FROM enrichment_logs WHERE created_at >= ?",
            (to_db_time(since),),
        )
        row = await cursor.fetchone()
    return int(row[0])


async def for_event(event_id: int) -> List[EnrichmentLog]:
    async with aiosqlite.connect(get_db_path()) as conn:
        conn.row_factory = aiosqlite.Row
        cursor = await conn.execute(
            "SELECT * FROM enrichment_logs WHERE event_id = ? ORDER BY id",
            (event_id,),
        )
        rows = await cursor.fetchall()
    return [
        EnrichmentLog(
            event_id=r["event_id"],
            status=EnrichmentStatus(r["status"]),
            source=r["source"],
            fields=json.loads(r["fields_enriched"]),
            api_calls_used=r["api_calls_used"],
            error=r["error_message"],
            created_at=from_db_time(r["created_at"]),
        )
        for r in rows
    ]
