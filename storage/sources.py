"""
Crawl targets: read the source list and record which extraction strategy won.
"""
import logging
from typing import List, Optional

import aiosqlite

from models import CategoryKey, Source
from storage.db import get_db_path

logger = logging.getLogger(__name__)


def _row_to_source(row: aiosqlite.Row) -> Source:
    category = row["default_category"]
    return Source(
        source_id=row["source_id"],
        url=row["url"],
        name=row["name"],
        domain=row["domain"],
        requests_per_minute=row["requests_per_minute"],
        concurrency=row["concurrency"],
        preferred_method=row["preferred_method"],
        default_lat=row["default_lat"],
        default_lng=row["default_lng"],
        default_venue=row["default_venue"],
        default_category=CategoryKey(category) if category else None,
        feed_discovery=bool(row["feed_discovery"]),
        enabled=bool(row["enabled"]),
    )


async def upsert(source: Source) -> None:
    """Insert or update a source. preferred_method is kept when already learned."""
    async with aiosqlite.connect(get_db_path()) as conn:
        await conn.execute(
            """INSERT INTO sources
               (source_id, name, url, domain, requests_per_minute, concurrency,
                preferred_method, default_lat, default_lng, default_venue,
                default_category, feed_discovery, enabled)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(source_id) DO UPDATE SET
                 name = excluded.name,
                 url = excluded.url,
                 domain = excluded.domain,
                 requests_per_minute = excluded.requests_per_minute,
                 concurrency = excluded.concurrency,
                 preferred_method = COALESCE(sources.preferred_method, excluded.preferred_method),
                 default_lat = excluded.default_lat,
                 default_lng = excluded.default_lng,
                 default_venue = excluded.default_venue,
                 default_category = excluded.default_category,
                 feed_discovery = excluded.feed_discovery,
                 enabled = excluded.enabled""",
            (
                source.source_id,
                source.name,
                source.url,
                source.domain,
                source.requests_per_minute,
                source.concurrency,
                source.preferred_method,
                source.default_lat,
                source.default_lng,
                source.default_venue,
                source.default_category.value if source.default_category else None,
                int(source.feed_discovery),
                int(source.enabled),
            ),
        )
        await conn.commit()


async def list_enabled() -> List[Source]:
    async with aiosqlite.connect(get_db_path()) as conn:
        conn.row_factory = aiosqlite.Row
        cursor = await conn.execute(
            "SELECT * FROM sources WHERE enabled = 1 ORDER BY source_id"
        )
        rows = await cursor.fetchall()
    return [_row_to_source(r) for r in rows]


async def get(source_id: str) -> Optional[Source]:
    async with aiosqlite.connect(get_db_path()) as conn:
        conn.row_factory = aiosqlite.Row
        cursor = await conn.execute(
            "SELECT * FROM sources WHERE source_id = ?", (source_id,)
        )
        row = await cursor.fetchone()
    return _row_to_source(row) if row else None


async def set_preferred_method(source_id: str, method: str) -> None:
    async with aiosqlite.connect(get_db_path()) as conn:
        await conn.execute(
            "UPDATE sources SET preferred_method = ? WHERE source_id = ?",
            (method, source_id),
        )
        await conn.commit()
    logger.info("Source %s: preferred extraction method is now %s", source_id, method)
