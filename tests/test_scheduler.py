"""Tests for scheduling helpers, the daily job and source seeding."""
import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from main import parse_args
from models import Source
from scheduler import jobs
from sources.catalog import DEFAULT_SOURCES, seed
from storage import settings
from storage import sources as sources_store


class TestParseTimeOfDay:
    def test_valid(self):
        assert jobs.parse_time_of_day("07:30") == (7, 30)
        assert jobs.parse_time_of_day("18") == (18, 0)

    def test_invalid_falls_back(self):
        assert jobs.parse_time_of_day("25:00") == (6, 0)
        assert jobs.parse_time_of_day("noon") == (6, 0)
        assert jobs.parse_time_of_day(None, default=(5, 15)) == (5, 15)


class TestNeedsCatchUp:
    now = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)

    def test_no_previous_run(self):
        assert not jobs.needs_catch_up(None, self.now)
        assert not jobs.needs_catch_up("garbage", self.now)

    def test_recent_and_stale(self):
        recent = (self.now - timedelta(hours=2)).isoformat()
        stale = (self.now - timedelta(hours=7)).isoformat()
        assert not jobs.needs_catch_up(recent, self.now)
        assert jobs.needs_catch_up(stale, self.now)

    def test_naive_timestamp_is_utc(self):
        assert jobs.needs_catch_up("2026-03-15T05:00:00", self.now)


class TestScheduleDailyRun:
    @pytest.mark.asyncio
    async def test_setting_overrides_config_time(self, db, config):
        await settings.set_setting("scrape_time_local", "07:45")
        scheduler = await jobs.schedule_daily_run(config)
        try:
            [job] = scheduler.get_jobs()
            fields = {f.name: str(f) for f in job.trigger.fields}
            assert fields["hour"] == "7"
            assert fields["minute"] == "45"
        finally:
            scheduler.shutdown(wait=False)

    @pytest.mark.asyncio
    async def test_catch_up_runs_immediately(self, db, config, monkeypatch):
        do_run = AsyncMock()
        monkeypatch.setattr(jobs, "_do_run", do_run)
        stale = (datetime.now(timezone.utc) - timedelta(hours=8)).isoformat()
        await settings.set_setting("last_run_at", stale)

        scheduler = await jobs.schedule_daily_run(config)
        try:
            await asyncio.sleep(0.01)
            do_run.assert_awaited_once_with(config)
        finally:
            scheduler.shutdown(wait=False)

    @pytest.mark.asyncio
    async def test_failed_run_is_contained(self, config, monkeypatch):
        monkeypatch.setattr(jobs, "pipeline_run", AsyncMock(side_effect=RuntimeError("db locked")))
        await jobs._do_run(config)


class TestSeed:
    @pytest.mark.asyncio
    async def test_seed_keeps_learned_method(self, db):
        await seed()
        await sources_store.set_preferred_method("paradiso", "dom")
        await seed()
        enabled = await sources_store.list_enabled()
        assert len(enabled) == len(DEFAULT_SOURCES)
        paradiso = await sources_store.get("paradiso")
        assert paradiso.preferred_method == "dom"
        assert paradiso.domain == "www.paradiso.nl"

    @pytest.mark.asyncio
    async def test_disabled_sources_are_not_listed(self, db):
        await sources_store.upsert(Source(source_id="old", url="https://old.example/", enabled=False))
        assert await sources_store.list_enabled() == []


class TestArgs:
    def test_flags(self):
        args = parse_args(["--once", "--dry-run"])
        assert args.once and args.dry_run
        assert not parse_args([]).once
