"""
Enrich stored events with venue facts: registry first (free), Google Places
second (charged against the daily budget). Only missing fields are written and
every attempt is logged.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from enrichment.hours import transform_places_hours, validate_opening_hours
from enrichment.places import (
    CallBudget,
    PlaceDetails,
    PlacesApiError,
    PlacesClient,
    clean_phone,
    is_valid_url,
    price_tier,
)
from matcher.venues import CONTAINMENT_FLOOR, SIMILARITY_FLOOR, match_venue
from models import EnrichmentLog, EnrichmentStatus, RegisteredVenue, StoredEvent, utcnow
from storage import enrichment_log
from storage import events as events_store

logger = logging.getLogger(__name__)

ENRICHABLE_FIELDS = ("google_place_id", "contact_phone", "website_url", "opening_hours", "price_range")


def missing_fields(event: StoredEvent) -> List[str]:
    return [name for name in ENRICHABLE_FIELDS if getattr(event, name) in (None, "", {})]


def status_for(field_count: int) -> EnrichmentStatus:
    if field_count >= 3:
        return EnrichmentStatus.SUCCESS
    if field_count > 0:
        return EnrichmentStatus.PARTIAL
    return EnrichmentStatus.FAILED


def registry_updates(event: StoredEvent, venue: RegisteredVenue) -> Dict[str, Any]:
    candidates = {
        "google_place_id": venue.google_place_id,
        "contact_phone": venue.contact_phone,
        "website_url": venue.website_url,
        "opening_hours": venue.opening_hours,
        "price_range": venue.price_range,
    }
    missing = missing_fields(event)
    return {k: v for k, v in candidates.items() if k in missing and v}


def places_updates(event: StoredEvent, place: PlaceDetails) -> Dict[str, Any]:
    missing = missing_fields(event)
    updates: Dict[str, Any] = {}
    if "google_place_id" in missing and place.place_id:
        updates["google_place_id"] = place.place_id
    if "contact_phone" in missing:
        phone = clean_phone(place.phone)
        if phone:
            updates["contact_phone"] = phone
    if "website_url" in missing and is_valid_url(place.website):
        updates["website_url"] = place.website
    if "opening_hours" in missing and place.opening_hours:
        hours = transform_places_hours(place.opening_hours)
        if hours and validate_opening_hours(hours):
            updates["opening_hours"] = hours
        else:
            logger.warning("Discarding invalid opening hours for place %s", place.place_id)
    if "price_range" in missing:
        tier = price_tier(place.price_level)
        if tier:
            updates["price_range"] = tier
    return updates


async def _finish(
    event: StoredEvent,
    entry: EnrichmentLog,
    updates: Dict[str, Any],
    *,
    dry_run: bool,
    mark_attempted: bool = True,
) -> EnrichmentLog:
    if dry_run:
        logger.info(
            "[dry-run] event %s: %s via %s, fields=%s",
            event.id, entry.status.value, entry.source, entry.fields,
        )
        return entry
    if mark_attempted:
        updates = {**updates, "enrichment_attempted_at": utcnow()}
    if updates:
        await events_store.update_fields(event.id, updates)
    await enrichment_log.insert(entry)
    return entry


async def enrich_event(
    event: StoredEvent,
    *,
    registry: Iterable[RegisteredVenue],
    places_client: Optional[PlacesClient],
    budget: CallBudget,
    dry_run: bool = False,
    containment_floor: float = CONTAINMENT_FLOOR,
    similarity_floor: float = SIMILARITY_FLOOR,
) -> EnrichmentLog:
    if not missing_fields(event):
        entry = EnrichmentLog(event.id, EnrichmentStatus.SKIPPED, "registry", error="Nothing to enrich")
        return await _finish(event, entry, {}, dry_run=dry_run)

    match = match_venue(
        event.venue_name or event.title,
        registry,
        containment_floor=containment_floor,
        similarity_floor=similarity_floor,
    )
    if match is not None:
        updates = registry_updates(event, match.venue)
        if not updates:
            entry = EnrichmentLog(
                event.id, EnrichmentStatus.SKIPPED, "registry",
                error="No fields to enrich from registry",
            )
        else:
            entry = EnrichmentLog(
                event.id, EnrichmentStatus.REGISTRY_MATCH, "registry", fields=list(updates)
            )
        logger.info("Event %s matched registry venue %s (%s)", event.id, match.venue.name, match.method)
        return await _finish(event, entry, updates, dry_run=dry_run)

    if places_client is None:
        entry = EnrichmentLog(
            event.id, EnrichmentStatus.FAILED, "google_places",
            error="No Google API key configured",
        )
        return await _finish(event, entry, {}, dry_run=dry_run)

    calls_needed = 1 if event.google_place_id else 2
    if not budget.can_afford(calls_needed):
        entry = EnrichmentLog(
            event.id, EnrichmentStatus.BUDGET_EXCEEDED, "google_places",
            error=f"Daily API budget exhausted ({budget.used}/{budget.limit})",
        )
        return await _finish(event, entry, {}, dry_run=dry_run, mark_attempted=False)

    calls = 0
    try:
        place_id = event.google_place_id
        if not place_id:
            budget.try_consume(1)
            calls += 1
            place_id = await places_client.text_search(f"{event.title or event.venue_name} Netherlands")
            if not place_id:
                entry = EnrichmentLog(
                    event.id, EnrichmentStatus.FAILED, "google_places",
                    api_calls_used=calls, error="No results from text search",
                )
                return await _finish(event, entry, {}, dry_run=dry_run)
        budget.try_consume(1)
        calls += 1
        place = await places_client.details(place_id)
    except (PlacesApiError, httpx.HTTPError, ValueError) as e:
        logger.warning("Places lookup failed for event %s: %s", event.id, e)
        entry = EnrichmentLog(
            event.id, EnrichmentStatus.FAILED, "google_places",
            api_calls_used=calls, error=str(e) or type(e).__name__,
        )
        return await _finish(event, entry, {}, dry_run=dry_run)

    updates = places_updates(event, place)
    entry = EnrichmentLog(
        event.id, status_for(len(updates)), "google_places",
        fields=list(updates), api_calls_used=calls,
    )
    return await _finish(event, entry, updates, dry_run=dry_run)
