"""
Local event harvester entrypoint: one run with --once, otherwise the daily scheduler.
"""
import argparse
import asyncio
import json
import logging
import os

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scrape, deduplicate and enrich local events.")
    parser.add_argument("--once", action="store_true", help="run the pipeline once and exit")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="fetch and extract but write nothing and send no alerts",
    )
    return parser.parse_args(argv)


async def _serve(config) -> None:
    from scheduler.jobs import schedule_daily_run

    await schedule_daily_run(config)
    logger.info("Waiting for scheduled runs")
    await asyncio.Event().wait()


async def _start(args, config) -> None:
    from pipeline import run as pipeline_run
    from sources.catalog import DEFAULT_SOURCES, seed
    from storage import sources as sources_store

    if args.dry_run:
        sources = await sources_store.list_enabled() or DEFAULT_SOURCES
        summary = await pipeline_run(config, dry_run=True, sources=sources)
        print(json.dumps(summary, indent=2, default=str))
        return
    await seed()
    if args.once:
        summary = await pipeline_run(config)
        print(json.dumps(summary, indent=2, default=str))
        return
    await _serve(config)


def main(argv=None) -> None:
    args = parse_args(argv)

    from config import Config
    config = Config.from_env()

    # Database path: ensure data dir exists (storage will init schema)
    os.makedirs(os.path.dirname(config.database_path) or ".", exist_ok=True)

    from storage.db import init_db
    init_db(config.database_path)

    try:
        asyncio.run(_start(args, config))
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()
