"""
Stored events: lookups by fingerprint, inserts and partial updates.
"""
import json
import logging
from dataclasses import fields
from typing import Any, Dict, List, Optional

import aiosqlite

from models import CategoryKey, StoredEvent, utcnow
from storage.db import from_db_time, get_db_path, to_db_time

logger = logging.getLogger(__name__)

_JSON_COLUMNS = {"all_source_urls", "opening_hours"}
_TIME_COLUMNS = {"starts_at", "enrichment_attempted_at", "created_at", "updated_at"}
_COLUMNS = [f.name for f in fields(StoredEvent) if f.name != "id"]


def _to_column(name: str, value: Any) -> Any:
    if name in _JSON_COLUMNS:
        return json.dumps(value) if value is not None else None
    if name in _TIME_COLUMNS:
        return to_db_time(value)
    if name == "category":
        return value.value if isinstance(value, CategoryKey) else value
    return value


def _row_to_event(row: aiosqlite.Row) -> StoredEvent:
    values: Dict[str, Any] = {"id": row["id"]}
    for name in _COLUMNS:
        raw = row[name]
        if name in _JSON_COLUMNS:
            values[name] = json.loads(raw) if raw else None
        elif name in _TIME_COLUMNS:
            values[name] = from_db_time(raw)
        elif name == "category":
            values[name] = CategoryKey(raw)
        else:
            values[name] = raw
    if values["all_source_urls"] is None:
        values["all_source_urls"] = []
    return StoredEvent(**values)


async def get(event_id: int) -> Optional[StoredEvent]:
    async with aiosqlite.connect(get_db_path()) as conn:
        conn.row_factory = aiosqlite.Row
        cursor = await conn.execute("SELECT * FROM events WHERE id = ?", (event_id,))
        row = await cursor.fetchone()
    return _row_to_event(row) if row else None


async def find_by_fingerprint(source_id: str, fingerprint: str) -> Optional[StoredEvent]:
    """Event previously stored by the same source under this fingerprint."""
    async with aiosqlite.connect(get_db_path()) as conn:
        conn.row_factory = aiosqlite.Row
        cursor = await conn.execute(
            """SELECT * FROM events
               WHERE source_id = ? AND event_fingerprint = ?
               ORDER BY id LIMIT 1""",
            (source_id, fingerprint),
        )
        row = await cursor.fetchone()
    return _row_to_event(row) if row else None


async def find_by_cross_fingerprint(fingerprint: str) -> Optional[StoredEvent]:
    """Event stored by any source with the same title, date and venue."""
    async with aiosqlite.connect(get_db_path()) as conn:
        conn.row_factory = aiosqlite.Row
        cursor = await conn.execute(
            "SELECT * FROM events WHERE cross_fingerprint = ? ORDER BY id LIMIT 1",
            (fingerprint,),
        )
        row = await cursor.fetchone()
    return _row_to_event(row) if row else None


async def insert(event: StoredEvent) -> int:
    now = utcnow()
    event.created_at = event.created_at or now
    event.updated_at = now
    placeholders = ", ".join("?" for _ in _COLUMNS)
    async with aiosqlite.connect(get_db_path()) as conn:
        cursor = await conn.execute(
            f"INSERT INTO events ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
            [_to_column(name, getattr(event, name)) for name in _COLUMNS],
        )
        await conn.commit()
        event.id = cursor.lastrowid
    return event.id


async def update_fields(event_id: int, updates: Dict[str, Any]) -> None:
    """Write only the given columns; updated_at is always refreshed."""
    unknown = set(updates) - set(_COLUMNS)
    if unknown:
        raise ValueError(f"Unknown event columns: {sorted(unknown)}")
    updates = dict(updates)
    updates["updated_at"] = utcnow()
    assignments = ", ".join(f"{name} = ?" for name in updates)
    params = [_to_column(name, value) for name, value in updates.items()]
    params.append(event_id)
    async with aiosqlite.connect(get_db_path()) as conn:
        await conn.execute(f"UPDATE events SET {assignments} WHERE id = ?", params)
        await conn.commit()


async def list_needing_enrichment(limit: int = 100) -> List[StoredEvent]:
    """Events never enriched that still miss venue contact or hours data."""
    async with aiosqlite.connect(get_db_path()) as conn:
        conn.row_factory = aiosqlite.Row
        cursor = await conn.execute(
            """SELECT * FROM events
               WHERE enrichment_attempted_at IS NULL
                 AND (contact_phone IS NULL OR opening_hours IS NULL)
               ORDER BY id LIMIT ?""",
            (limit,),
        )
        rows = await cursor.fetchall()
    return [_row_to_event(r) for r in rows]


async def count() -> int:
    async with aiosqlite.connect(get_db_path()) as conn:
        cursor = await conn.execute("SELECT COUNT(*) FROM events")
        row = await cursor.fetchone()
    return row[0]
