"""
Single run: fetch all sources → extract cards → normalize → dedupe → enrich.
"""
import logging
import uuid
from collections import Counter
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Iterable, List, Optional

import httpx

from config import Config
from enrichment.applier import enrich_event
from enrichment.places import CallBudget, PlacesClient
from enrichment.registry import VENUE_REGISTRY
from extract.ai_fallback import CompletionClient, GeminiCompletionClient
from extract.base import ExtractionContext
from extract.cms import detect_cms
from extract.waterfall import default_strategies, run_waterfall
from fetch.fetcher import make_client
from fetch.orchestrator import FetchOrchestrator
from matcher.dedupe import resolve
from models import RegisteredVenue, Source, SourceRunResult, utcnow
from normalize.dates import AMSTERDAM
from normalize.normalizer import normalize_card
from storage import enrichment_log, settings
from storage import events as events_store
from storage import sources as sources_store

logger = logging.getLogger(__name__)

ENRICHMENT_BATCH = 100


def start_of_local_day(now: Optional[datetime] = None) -> datetime:
    """Midnight Europe/Amsterdam of the current day, as UTC."""
    local = (now or utcnow()).astimezone(AMSTERDAM)
    midnight = datetime.combine(local.date(), time(0, 0), tzinfo=AMSTERDAM)
    return midnight.astimezone(timezone.utc)


async def _extract_and_store(
    orchestrator: FetchOrchestrator,
    result: SourceRunResult,
    strategies: List[Any],
    config: Config,
    registry: Iterable[RegisteredVenue],
    counts: Counter,
    winners: Dict[str, Optional[str]],
    *,
    dry_run: bool,
    today: Optional[date],
) -> None:
    source = result.source
    html = result.outcome.content or ""
    context = ExtractionContext(
        html=html,
        url=source.url,
        source=source,
        fetch_page=lambda url: orchestrator.fetch_follow_up(source, url),
        cms=detect_cms(html).cms,
    )
    extracted = await run_waterfall(context, strategies)
    winners[source.source_id] = extracted.strategy
    counts["cards_extracted"] += len(extracted.cards)
    if extracted.strategy and extracted.strategy != source.preferred_method and not dry_run:
        await sources_store.set_preferred_method(source.source_id, extracted.strategy)

    for card in extracted.cards:
        event = normalize_card(
            card, source, registry=registry, method=extracted.strategy, today=today
        )
        if event is None:
            counts["events_rejected"] += 1
            continue
        decision = await resolve(
            event, promotion_threshold=config.promotion_threshold, dry_run=dry_run
        )
        counts[f"events_{decision.action.value}"] += 1


async def _enrich(
    config: Config,
    registry: Iterable[RegisteredVenue],
    places_client: Optional[PlacesClient],
    *,
    dry_run: bool,
) -> Dict[str, int]:
    used = await enrichment_log.api_calls_since(start_of_local_day())
    budget = CallBudget(config.max_enrichment_calls_per_day, used)
    statuses: Counter = Counter()
    for event in await events_store.list_needing_enrichment(ENRICHMENT_BATCH):
        entry = await enrich_event(
            event,
            registry=registry,
            places_client=places_client,
            budget=budget,
            dry_run=dry_run,
            containment_floor=config.containment_floor,
            similarity_floor=config.similarity_floor,
        )
        statuses[entry.status.value] += 1
    logger.info("Enrichment: %s (API calls today %d/%d)", dict(statuses), budget.used, budget.limit)
    return dict(statuses)


async def run(
    config: Config,
    *,
    dry_run: bool = False,
    sources: Optional[List[Source]] = None,
    client: Optional[httpx.AsyncClient] = None,
    completion_client: Optional[CompletionClient] = None,
    places_client: Optional[PlacesClient] = None,
    registry: Iterable[RegisteredVenue] = VENUE_REGISTRY,
    today: Optional[date] = None,
) -> dict:
    """
    Execute one full run and return a summary dict: status, run_id, source and
    event counters, the winning strategy per source and enrichment statuses.
    Run bookkeeping is written to settings unless dry_run.
    """
    run_id = uuid.uuid4().hex
    registry = list(registry)
    if sources is None:
        sources = await sources_store.list_enabled()
    owns_client = client is None
    http = client or make_client(config)
    if completion_client is None and config.gemini_api_key:
        completion_client = GeminiCompletionClient(config.gemini_api_key, config.gemini_model)
    if places_client is None and config.google_places_api_key:
        places_client = PlacesClient(config.google_places_api_key, http)
    strategies = default_strategies(completion_client, config.ai_max_content_chars)

    counts: Counter = Counter()
    winners: Dict[str, Optional[str]] = {}
    errors: List[str] = []
    try:
        async with FetchOrchestrator(config, run_id=run_id, dry_run=dry_run, client=http) as orchestrator:
            results = await orchestrator.run(sources)
            for result in results:
                outcome = result.outcome
                if outcome is None or not outcome.success:
                    counts["sources_failed"] += 1
                    errors.append(f"{result.source.source_id}: {outcome.error if outcome else 'no outcome'}")
                    continue
                if outcome.not_modified:
                    counts["sources_not_modified"] += 1
                    continue
                try:
                    await _extract_and_store(
                        orchestrator, result, strategies, config, registry, counts, winners,
                        dry_run=dry_run, today=today,
                    )
                except Exception as e:
                    logger.exception("Processing %s failed: %s", result.source.source_id, e)
                    errors.append(f"{result.source.source_id}: {e}")
        enrichment = await _enrich(config, registry, places_client, dry_run=dry_run)
    finally:
        if owns_client:
            await http.aclose()

    status = "partial_failure" if errors else "success"
    summary = {
        "status": status,
        "run_id": run_id,
        "sources_total": len(sources),
        "sources_failed": counts["sources_failed"],
        "sources_not_modified": counts["sources_not_modified"],
        "cards_extracted": counts["cards_extracted"],
        "events_inserted": counts["events_insert"],
        "events_merged": counts["events_merge"],
        "events_skipped": counts["events_skip"],
        "events_rejected": counts["events_rejected"],
        "strategies": winners,
        "enrichment": enrichment,
        "errors": errors,
    }
    logger.info(
        "Run %s finished: %s, %d inserted, %d merged, %d unchanged",
        run_id, status, summary["events_inserted"], summary["events_merged"], summary["events_skipped"],
    )
    if not dry_run:
        await settings.record_run(utcnow().isoformat(), status, summary)
    return summary
