"""
Resolve a normalized event against stored events: skip it when nothing changed,
merge it into an existing record, or insert it as new.
"""
import logging
from dataclasses import asdict
from typing import Any, Dict, Optional

from matcher.fingerprint import content_hash, cross_source_fingerprint, event_fingerprint
from models import DedupeAction, DedupeDecision, NormalizedEvent, StoredEvent
from storage import events as events_store

logger = logging.getLogger(__name__)

PROMOTION_THRESHOLD = 50


def to_stored(event: NormalizedEvent) -> StoredEvent:
    stored = StoredEvent(**asdict(event))
    stored.event_fingerprint = event_fingerprint(event)
    stored.cross_fingerprint = cross_source_fingerprint(event)
    stored.content_hash = content_hash(event)
    stored.all_source_urls = [event.detail_url] if event.detail_url else []
    return stored


def promote(
    stored: StoredEvent,
    incoming: NormalizedEvent,
    threshold: int = PROMOTION_THRESHOLD,
) -> Dict[str, Any]:
    """
    Fields to update on the stored event. Existing values are kept unless the
    incoming description is longer by more than threshold characters, or the
    stored event has no image. The detail url is always added to all_source_urls.
    """
    updates: Dict[str, Any] = {}
    new_description = incoming.description or ""
    if len(new_description) - len(stored.description or "") > threshold:
        updates["description"] = new_description
    if not stored.image_url and incoming.image_url:
        updates["image_url"] = incoming.image_url
    if incoming.detail_url and incoming.detail_url not in stored.all_source_urls:
        updates["all_source_urls"] = [*stored.all_source_urls, incoming.detail_url]
    return updates


async def resolve(
    event: NormalizedEvent,
    *,
    promotion_threshold: int = PROMOTION_THRESHOLD,
    dry_run: bool = False,
) -> DedupeDecision:
    """Look up by same-source fingerprint, then cross-source fingerprint; write unless dry_run."""
    candidate = to_stored(event)
    existing: Optional[StoredEvent] = await events_store.find_by_fingerprint(
        event.source_id, candidate.event_fingerprint
    )
    if existing is not None and existing.content_hash == candidate.content_hash:
        return DedupeDecision(DedupeAction.SKIP, event_id=existing.id)
    if existing is None:
        existing = await events_store.find_by_cross_fingerprint(candidate.cross_fingerprint)

    if existing is None:
        if dry_run:
            logger.info("[dry-run] would insert %r (%s)", event.title, event.event_date)
            return DedupeDecision(DedupeAction.INSERT)
        event_id = await events_store.insert(candidate)
        return DedupeDecision(DedupeAction.INSERT, event_id=event_id)

    updates = promote(existing, event, promotion_threshold)
    if existing.source_id == event.source_id:
        updates["content_hash"] = candidate.content_hash
    if not dry_run and updates:
        await events_store.update_fields(existing.id, updates)
    logger.debug("Merged %r into event %s: %s", event.title, existing.id, sorted(updates))
    return DedupeDecision(
        DedupeAction.MERGE,
        event_id=existing.id,
        promoted_fields=[k for k in updates if k != "content_hash"],
    )
