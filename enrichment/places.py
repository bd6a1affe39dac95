"""
Google Places lookups (text search, place details) behind a daily call budget,
plus the field cleaners applied to their results.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
DETAILS_FIELDS = (
    "place_id,name,formatted_address,formatted_phone_number,international_phone_number,"
    "website,opening_hours,price_level,rating,user_ratings_total,geometry"
)
PRICE_TIERS = {0: "free", 1: "€", 2: "€€", 3: "€€€", 4: "€€€€"}
E164 = re.compile(r"^\+[1-9]\d{6,14}$")


class PlacesApiError(Exception):
    """Places answered with a status other than OK / ZERO_RESULTS."""


@dataclass
class PlaceDetails:
    place_id: str
    name: str = ""
    formatted_address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    opening_hours: Optional[Dict[str, Any]] = None
    price_level: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_result(cls, result: Dict[str, Any]) -> "PlaceDetails":
        return cls(
            place_id=result.get("place_id", ""),
            name=result.get("name", ""),
            formatted_address=result.get("formatted_address"),
            phone=result.get("international_phone_number") or result.get("formatted_phone_number"),
            website=result.get("website"),
            opening_hours=result.get("opening_hours"),
            price_level=result.get("price_level"),
            raw=result,
        )


@dataclass
class CallBudget:
    """External calls allowed today; `used` is seeded from the enrichment log."""

    limit: int
    used: int = 0

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    def can_afford(self, calls: int) -> bool:
        return self.remaining >= calls

    def try_consume(self, calls: int = 1) -> bool:
        if not self.can_afford(calls):
            return False
        self.used += calls
        return True


def clean_phone(value: Optional[str]) -> Optional[str]:
    """E.164 form of a phone number, or None when it cannot be one."""
    if not value:
        return None
    text = value.strip()
    if text.startswith("+"):
        cleaned = "+" + re.sub(r"\D", "", text[1:])
    else:
        cleaned = re.sub(r"\D", "", text)
    return cleaned if E164.match(cleaned) else None


def is_valid_url(value: Optional[str]) -> bool:
    if not value:
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def price_tier(level: Any) -> Optional[str]:
    if isinstance(level, bool) or not isinstance(level, int):
        return None
    return PRICE_TIERS.get(level)


class PlacesClient:
    def __init__(self, api_key: str, client: httpx.AsyncClient):
        self.api_key = api_key
        self.client = client

    async def _get(self, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        resp = await self.client.get(url, params={**params, "key": self.api_key})
        resp.raise_for_status()
        return resp.json()

    async def text_search(self, query: str) -> Optional[str]:
        """place_id of the best match, or None when nothing is found."""
        data = await self._get(TEXT_SEARCH_URL, {"query": query})
        status = data.get("status")
        if status == "ZERO_RESULTS" or (status == "OK" and not data.get("results")):
            return None
        if status != "OK":
            raise PlacesApiError(f"Google API error: {status}")
        return data["results"][0].get("place_id")

    async def details(self, place_id: str) -> PlaceDetails:
        data = await self._get(DETAILS_URL, {"place_id": place_id, "fields": DETAILS_FIELDS})
        status = data.get("status")
        if status != "OK":
            raise PlacesApiError(f"Google API error: {status}")
        return PlaceDetails.from_result(data.get("result") or {})
