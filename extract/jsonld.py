"""
JSON-LD strategy: Schema.org Event objects from <script type="application/ld+json"> blocks.
"""
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from extract.base import BaseStrategy, ExtractionContext, ExtractionResult, clean_text
from models import CategoryKey, ExtractionMethod, NormalizedEvent, RawEventCard
from normalize.categories import assign_category
from normalize.dates import parse_event_date
from normalize.normalizer import completeness_score

logger = logging.getLogger(__name__)

VALID_EVENT_TYPES = frozenset({
    "Event", "SportsEvent", "MusicEvent", "Festival", "TheaterEvent",
    "DanceEvent", "ComedyEvent", "ExhibitionEvent", "SocialEvent",
    "BusinessEvent", "EducationEvent", "FoodEvent", "ScreeningEvent",
    "ChildrensEvent", "LiteraryEvent", "VisualArtsEvent",
})

TYPE_CATEGORIES = {
    "MusicEvent": CategoryKey.MUSIC,
    "SportsEvent": CategoryKey.ACTIVE,
    "TheaterEvent": CategoryKey.CULTURE,
    "DanceEvent": CategoryKey.CULTURE,
    "ComedyEvent": CategoryKey.CULTURE,
    "ExhibitionEvent": CategoryKey.CULTURE,
    "ScreeningEvent": CategoryKey.CULTURE,
    "VisualArtsEvent": CategoryKey.CULTURE,
    "LiteraryEvent": CategoryKey.CULTURE,
    "EducationEvent": CategoryKey.CULTURE,
    "FoodEvent": CategoryKey.FOOD,
    "SocialEvent": CategoryKey.SOCIAL,
    "BusinessEvent": CategoryKey.SOCIAL,
    "ChildrensEvent": CategoryKey.FAMILY,
}

ISO_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ](\d{2}):(\d{2}))?")
TRAILING_COMMA = re.compile(r",\s*([}\]])")


@dataclass
class JsonLdEvent:
    title: str
    event_date: str  # YYYY-MM-DD as written on the page
    event_time: str  # HH:MM or TBD
    start_date: str  # raw startDate
    description: str = ""
    venue_name: str = ""
    venue_address: Optional[str] = None
    image_url: Optional[str] = None
    url: Optional[str] = None
    event_type: str = "Event"
    end_date: Optional[str] = None
    end_time: Optional[str] = None
    price: Optional[str] = None
    price_currency: Optional[str] = None
    price_min: Optional[int] = None  # cents
    price_max: Optional[int] = None  # cents
    tickets_url: Optional[str] = None
    organizer: Optional[str] = None
    organizer_url: Optional[str] = None
    performer: Optional[str] = None
    event_status: Optional[str] = None

    @property
    def category(self) -> Optional[CategoryKey]:
        return TYPE_CATEGORIES.get(self.event_type)


def _string(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        return clean_text(value.get("@value") or value.get("name") or value.get("text"))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _split_iso(value: str):
    m = ISO_PREFIX.match(value or "")
    if not m:
        return None, None
    date = f"{m.group(1)}-{m.group(2)}-{m.group(3)}"
    time = f"{m.group(4)}:{m.group(5)}" if m.group(4) else None
    return date, time


def _to_cents(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(round(value * 100))
    cleaned = re.sub(r"[^0-9.,]", "", str(value)).replace(",", ".")
    try:
        return int(round(float(cleaned) * 100))
    except ValueError:
        return None


def _parse_location(value: Any):
    if isinstance(value, str):
        return value.strip(), None
    if isinstance(value, list):
        value = value[0] if value else None
    if not isinstance(value, dict):
        return "", None
    name = _string(value.get("name"))
    address = None
    addr = value.get("address")
    if isinstance(addr, str):
        address = addr.strip() or None
    elif isinstance(addr, dict):
        parts = [
            _string(addr.get("streetAddress")),
            _string(addr.get("postalCode")),
            _string(addr.get("addressLocality")),
            _string(addr.get("addressCountry")),
        ]
        address = ", ".join(p for p in parts if p) or None
    return name or (address or ""), address


def _parse_image(value: Any) -> Optional[str]:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("url") or value.get("contentUrl")
    return _string(value) or None


def _parse_offers(item: Dict[str, Any], event: JsonLdEvent) -> None:
    offers = item.get("offers")
    if offers:
        for offer in offers if isinstance(offers, list) else [offers]:
            if not isinstance(offer, dict):
                continue
            for key in ("price", "lowPrice", "highPrice"):
                if offer.get(key) is None:
                    continue
                cents = _to_cents(offer[key])
                if cents is None:
                    continue
                if key in ("price", "lowPrice"):
                    event.price_min = cents if event.price_min is None else min(event.price_min, cents)
                if key in ("price", "highPrice"):
                    event.price_max = cents if event.price_max is None else max(event.price_max, cents)
            if offer.get("priceCurrency"):
                event.price_currency = _string(offer["priceCurrency"])
            if offer.get("url"):
                event.tickets_url = _string(offer["url"])

    if item.get("isAccessibleForFree") is True:
        event.price_min = event.price_max = 0

    if event.price_min is None and event.price_max is None:
        return
    symbol = "€" if (event.price_currency or "EUR") == "EUR" else event.price_currency
    low, high = event.price_min, event.price_max
    if low == 0 and high in (0, None):
        event.price = "Gratis"
    elif low is not None and high is not None and low != high:
        event.price = f"{symbol}{low / 100:.2f} - {symbol}{high / 100:.2f}"
    else:
        event.price = f"{symbol}{(low if low is not None else high) / 100:.2f}"


def _parse_status(value: Any) -> Optional[str]:
    status = _string(value).lower()
    if not status:
        return None
    for known in ("cancelled", "postponed", "rescheduled"):
        if known in status:
            return known
    return "scheduled"


def parse_schema_event(item: Any) -> Optional[JsonLdEvent]:
    """One Schema.org Event object, or None when it is not an event or lacks a title or start date."""
    if not isinstance(item, dict):
        return None
    types = item.get("@type")
    types = types if isinstance(types, list) else [types]
    types = [str(t) for t in types if t]
    event_type = next((t for t in types if t in VALID_EVENT_TYPES), None)
    if event_type is None:
        return None

    title = _string(item.get("name")) or _string(item.get("headline"))
    start_raw = _string(item.get("startDate"))
    event_date, event_time = _split_iso(start_raw)
    if not title or not event_date:
        return None

    venue_name, venue_address = _parse_location(item.get("location"))
    event = JsonLdEvent(
        title=title,
        event_date=event_date,
        event_time=event_time or "TBD",
        start_date=start_raw,
        description=_string(item.get("description")),
        venue_name=venue_name,
        venue_address=venue_address,
        image_url=_parse_image(item.get("image")),
        url=_string(item.get("url")) or None,
        event_type=event_type,
        event_status=_parse_status(item.get("eventStatus")),
    )
    end_date, end_time = _split_iso(_string(item.get("endDate")))
    event.end_date, event.end_time = end_date, end_time
    _parse_offers(item, event)

    organizer = item.get("organizer")
    if isinstance(organizer, list):
        organizer = organizer[0] if organizer else None
    if isinstance(organizer, str):
        event.organizer = organizer.strip() or None
    elif isinstance(organizer, dict):
        event.organizer = _string(organizer.get("name")) or None
        event.organizer_url = _string(organizer.get("url")) or None

    performer = item.get("performer")
    if isinstance(performer, list):
        performer = performer[0] if performer else None
    event.performer = (
        performer.strip() if isinstance(performer, str) else _string(performer)
    ) or None
    return event


def _load_block(text: str) -> Optional[Any]:
    try:
        return json.loads(text)
    except ValueError:
        pass
    repaired = TRAILING_COMMA.sub(r"\1", text)
    try:
        return json.loads(repaired)
    except ValueError:
        logger.debug("Skipping malformed JSON-LD block")
        return None


def extract_jsonld_events(html: str) -> List[JsonLdEvent]:
    """All valid Schema.org events in the page's JSON-LD blocks, including @graph members."""
    if not html:
        return []
    events: List[JsonLdEvent] = []
    soup = BeautifulSoup(html, "html.parser")
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        text = script.string or script.get_text()
        if not text or not text.strip():
            continue
        data = _load_block(text)
        if data is None:
            continue
        queue = list(data) if isinstance(data, list) else [data]
        while queue:
            item = queue.pop(0)
            if isinstance(item, dict) and isinstance(item.get("@graph"), list):
                queue.extend(item["@graph"])
                continue
            event = parse_schema_event(item)
            if event is not None:
                events.append(event)
    return events


def jsonld_to_normalized(event: JsonLdEvent, source_id: str = "") -> NormalizedEvent:
    parsed = parse_event_date(event.start_date)
    category = assign_category(
        f"{event.title} {event.description}", url=event.url, default=event.category
    )
    normalized = NormalizedEvent(
        title=event.title,
        event_date=event.event_date,
        event_time=event.event_time,
        source_id=source_id,
        starts_at=parsed.starts_at if parsed else None,
        description=event.description,
        venue_name=event.venue_name,
        venue_address=event.venue_address,
        category=category,
        image_url=event.image_url,
        detail_url=event.url,
        end_date=event.end_date,
        end_time=event.end_time,
        price=event.price,
        price_currency=event.price_currency,
        price_min=event.price_min,
        price_max=event.price_max,
        tickets_url=event.tickets_url,
        organizer=event.organizer,
        organizer_url=event.organizer_url,
        performer=event.performer,
        event_status=event.event_status,
        parsing_method=ExtractionMethod.JSON_LD.value,
    )
    normalized.data_completeness = completeness_score(normalized)
    return normalized


def event_to_card(event: JsonLdEvent, base_url: str = "") -> RawEventCard:
    extras = {
        "venue_address": event.venue_address,
        "category_hint": event.category,
        "end_date": event.end_date,
        "end_time": event.end_time,
        "price": event.price,
        "price_currency": event.price_currency,
        "price_min": event.price_min,
        "price_max": event.price_max,
        "tickets_url": event.tickets_url,
        "organizer": event.organizer,
        "organizer_url": event.organizer_url,
        "performer": event.performer,
        "event_status": event.event_status,
    }
    return RawEventCard(
        title=event.title,
        date=event.start_date,
        location=event.venue_name,
        description=event.description,
        detail_url=urljoin(base_url, event.url) if event.url else None,
        image_url=urljoin(base_url, event.image_url) if event.image_url else None,
        extras={k: v for k, v in extras.items() if v is not None},
    )


class JsonLdStrategy(BaseStrategy):
    confidence = 0.95

    @property
    def name(self) -> str:
        return ExtractionMethod.JSON_LD.value

    async def extract(self, context: ExtractionContext) -> ExtractionResult:
        try:
            events = extract_jsonld_events(context.html)
        except Exception as e:
            logger.warning("JSON-LD extraction failed for %s: %s", context.url, e)
            return ExtractionResult()
        return self.result([event_to_card(e, context.url) for e in events])
