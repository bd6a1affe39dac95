"""
Hydration strategy: event objects embedded in framework state blobs
(__NEXT_DATA__, __NUXT_DATA__, window.__INITIAL_STATE__ and friends).
"""
import json
import logging
import re
from typing import Any, Iterator, List, Mapping, Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from extract.base import BaseStrategy, ExtractionContext, ExtractionResult, clean_text, is_extractable
from models import ExtractionMethod, RawEventCard

logger = logging.getLogger(__name__)

MAX_DEPTH = 5
SCRIPT_IDS = ("__NEXT_DATA__", "__NUXT_DATA__")
WINDOW_STATE = re.compile(
    r"window\.(__NUXT__|__INITIAL_STATE__|__PRELOADED_STATE__|__APP_DATA__)\s*=\s*"
)
SKIP_KEYS = frozenset({"html", "content", "children"})

TITLE_KEYS = frozenset({"title", "name", "headline"})
DATE_KEYS = frozenset({"start", "starttime", "begin", "datetime"})
NEGATIVE_KEYS = frozenset({"username", "email", "menuitem", "navigation"})

TITLE_FIELDS = ["title", "name", "headline", "summary"]
DATE_FIELDS = ["startDate", "start_date", "date", "startTime", "datetime", "begin", "start"]
LOCATION_FIELDS = ["location", "venue.name", "venue", "place.name", "locationName"]
DESCRIPTION_FIELDS = ["description", "summary", "intro", "shortDescription"]
IMAGE_FIELDS = ["image", "imageUrl", "thumbnail", "picture", "photo"]
URL_FIELDS = ["url", "permalink", "link", "href"]


def is_event_like(obj: Mapping[str, Any]) -> bool:
    """Title-like key and date-like key present, and nothing that marks a user or menu entry."""
    keys = {str(k).lower() for k in obj.keys()}
    has_title = bool(keys & TITLE_KEYS)
    has_date = any("date" in k or k in DATE_KEYS for k in keys)
    return has_title and has_date and not (keys & NEGATIVE_KEYS)


def find_event_objects(node: Any, depth: int = 0) -> Iterator[Mapping[str, Any]]:
    """Walk decoded JSON up to MAX_DEPTH levels, yielding every event-like mapping."""
    if depth > MAX_DEPTH or node is None:
        return
    if isinstance(node, list):
        for item in node:
            yield from find_event_objects(item, depth + 1)
    elif isinstance(node, dict):
        if is_event_like(node):
            yield node
        for key, value in node.items():
            if key in SKIP_KEYS:
                continue
            yield from find_event_objects(value, depth + 1)


def _lookup(obj: Mapping[str, Any], path: str) -> Any:
    parent, _, child = path.partition(".")
    lowered = {str(k).lower(): v for k, v in obj.items()}
    value = obj.get(parent, lowered.get(parent.lower()))
    if child:
        if not isinstance(value, dict):
            return None
        return value.get(child)
    return value


def _first_value(obj: Mapping[str, Any], paths: Sequence[str]) -> str:
    for path in paths:
        value = _lookup(obj, path)
        if isinstance(value, dict):
            value = value.get("name") or value.get("url") or value.get("@value")
        elif isinstance(value, list):
            value = value[0] if value and isinstance(value[0], str) else None
        text = clean_text(value)
        if text:
            return text
    return ""


def object_to_card(obj: Mapping[str, Any], base_url: str = "") -> RawEventCard:
    detail = _first_value(obj, URL_FIELDS)
    image = _first_value(obj, IMAGE_FIELDS)
    return RawEventCard(
        title=_first_value(obj, TITLE_FIELDS),
        date=_first_value(obj, DATE_FIELDS),
        location=_first_value(obj, LOCATION_FIELDS),
        description=_first_value(obj, DESCRIPTION_FIELDS),
        detail_url=urljoin(base_url, detail) if detail else None,
        image_url=urljoin(base_url, image) if image else None,
        raw=json.dumps(obj, default=str)[:2000],
    )


def _decode_assignment(html: str, start: int) -> Optional[Any]:
    try:
        value, _ = json.JSONDecoder().raw_decode(html, start)
    except ValueError:
        return None
    return value


def extract_state_blobs(html: str) -> List[Any]:
    """Decoded hydration payloads found in the page, in document order of discovery."""
    blobs: List[Any] = []
    soup = BeautifulSoup(html, "html.parser")
    for script_id in SCRIPT_IDS:
        tag = soup.find("script", id=script_id)
        if tag is None or not tag.string:
            continue
        try:
            blobs.append(json.loads(tag.string))
        except ValueError as e:
            logger.debug("Could not decode %s: %s", script_id, e)
    for match in WINDOW_STATE.finditer(html):
        value = _decode_assignment(html, match.end())
        if value is not None:
            blobs.append(value)
        else:
            logger.debug("window.%s is not plain JSON; skipped", match.group(1))
    return blobs


class HydrationStrategy(BaseStrategy):
    confidence = 1.0

    @property
    def name(self) -> str:
        return ExtractionMethod.HYDRATION.value

    async def extract(self, context: ExtractionContext) -> ExtractionResult:
        cards: List[RawEventCard] = []
        seen = set()
        try:
            for blob in extract_state_blobs(context.html):
                for obj in find_event_objects(blob):
                    card = object_to_card(obj, context.url)
                    key = (card.title.lower(), card.date)
                    if is_extractable(card) and key not in seen:
                        seen.add(key)
                        cards.append(card)
        except Exception as e:
            logger.warning("Hydration extraction failed for %s: %s", context.url, e)
            return ExtractionResult()
        return self.result(cards)
