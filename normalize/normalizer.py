"""
Turn raw event cards into normalized events: parsed date and time, canonical
venue name, category and a completeness score.
"""
import logging
from datetime import date
from typing import Iterable, Optional

from matcher.venues import match_venue
from models import CategoryKey, NormalizedEvent, RawEventCard, RegisteredVenue, Source
from normalize.categories import assign_category
from normalize.dates import parse_event_date

logger = logging.getLogger(__name__)

_EXTRA_FIELDS = (
    "venue_address", "end_date", "end_time", "price", "price_currency",
    "price_min", "price_max", "tickets_url", "organizer", "organizer_url",
    "performer", "event_status",
)


def completeness_score(event: NormalizedEvent) -> float:
    """Weighted share of the optional fields that are filled, between 0 and 1."""
    score = 0.0
    if event.title:
        score += 0.15
    if event.description and len(event.description) > 50:
        score += 0.10
    if event.event_date:
        score += 0.10
    if event.event_time and event.event_time != "TBD":
        score += 0.05
    if event.venue_name:
        score += 0.10
    if event.venue_address:
        score += 0.05
    if event.image_url:
        score += 0.10
    if event.end_time:
        score += 0.05
    if event.price:
        score += 0.10
    if event.tickets_url:
        score += 0.05
    if event.organizer:
        score += 0.05
    if event.performer:
        score += 0.05
    if event.category:
        score += 0.05
    return round(min(score, 1.0), 2)


def _category_hint(card: RawEventCard, source: Source) -> Optional[CategoryKey]:
    hint = card.extras.get("category_hint")
    if hint:
        try:
            return CategoryKey(hint)
        except ValueError:
            logger.debug("Ignoring unknown category hint %r", hint)
    return source.default_category


def normalize_card(
    card: RawEventCard,
    source: Source,
    *,
    registry: Optional[Iterable[RegisteredVenue]] = None,
    method: Optional[str] = None,
    today: Optional[date] = None,
) -> Optional[NormalizedEvent]:
    """Normalized event for the card, or None when the title or date is unusable."""
    title = " ".join((card.title or "").split())
    if not title:
        return None
    parsed = parse_event_date(card.date, today=today)
    if parsed is None:
        logger.debug("Dropping %r from %s: unparseable date %r", title, source.source_id, card.date)
        return None

    venue = " ".join((card.location or "").split())
    address = card.extras.get("venue_address")
    if registry is not None and venue:
        match = match_venue(venue, registry)
        if match is not None:
            venue = match.venue.name
            address = address or match.venue.address
    if not venue and source.default_venue:
        venue = source.default_venue

    description = " ".join((card.description or "").split())
    event = NormalizedEvent(
        title=title,
        event_date=parsed.event_date,
        event_time=parsed.event_time,
        source_id=source.source_id,
        starts_at=parsed.starts_at,
        description=description,
        venue_name=venue,
        category=assign_category(
            f"{title} {description}", url=card.detail_url, default=_category_hint(card, source)
        ),
        image_url=card.image_url,
        detail_url=card.detail_url,
        parsing_method=method,
    )
    for name in _EXTRA_FIELDS:
        value = card.extras.get(name)
        if value is not None:
            setattr(event, name, value)
    if address:
        event.venue_address = address
    event.data_completeness = completeness_score(event)
    return event
