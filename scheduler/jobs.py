"""
Daily scheduled run at configured time (Europe/Amsterdam).
Optional catch-up: run immediately on startup if last run was missed by > 6 hours.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from config import Config
from pipeline import run as pipeline_run
from storage import settings

logger = logging.getLogger(__name__)

CATCH_UP_HOURS = 6
AMSTERDAM = ZoneInfo("Europe/Amsterdam")


def parse_time_of_day(value: Optional[str], default: Tuple[int, int] = (6, 0)) -> Tuple[int, int]:
    """'HH:MM' or 'HH' -> (hour, minute); anything unparseable gives default."""
    parts = (value or "").strip().split(":")
    try:
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        return default
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return default
    return hour, minute


def needs_catch_up(last_run_at: Optional[str], now: Optional[datetime] = None) -> bool:
    """True when a previous run is recorded and is older than CATCH_UP_HOURS."""
    if not last_run_at:
        return False
    try:
        last_dt = datetime.fromisoformat(last_run_at.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Catch-up check skipped: bad last_run_at %r", last_run_at)
        return False
    if last_dt.tzinfo is None:
        last_dt = last_dt.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return (now - last_dt).total_seconds() > CATCH_UP_HOURS * 3600


async def _do_run(config: Config) -> None:
    """Execute the pipeline; a failed run is logged and the scheduler keeps going."""
    try:
        result = await pipeline_run(config)
        logger.info("Scheduled run finished: status=%s", result.get("status", "?"))
    except Exception as e:
        logger.exception("Scheduled run failed: %s", e)


async def schedule_daily_run(config: Config) -> AsyncIOScheduler:
    """
    Schedule the daily run. The time comes from the scrape_time_local setting
    when an operator stored one, otherwise from the config.
    """
    hour, minute = parse_time_of_day(await settings.scrape_time(config.scrape_time_local))

    scheduler = AsyncIOScheduler(timezone=AMSTERDAM)

    async def job():
        await _do_run(config)

    scheduler.add_job(job, CronTrigger(hour=hour, minute=minute, timezone=AMSTERDAM))
    scheduler.start()
    logger.info("Scheduler started: daily at %02d:%02d Europe/Amsterdam", hour, minute)

    if needs_catch_up(await settings.get_setting(settings.LAST_RUN_AT_KEY)):
        logger.info("Catch-up: running now (last run was > %sh ago)", CATCH_UP_HOURS)
        asyncio.create_task(_do_run(config))
    return scheduler
