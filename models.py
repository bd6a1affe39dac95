"""
Shared data models: sources, fetch outcomes, event cards and stored events.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CategoryKey(str, Enum):
    MUSIC = "MUSIC"
    SOCIAL = "SOCIAL"
    ACTIVE = "ACTIVE"
    CULTURE = "CULTURE"
    FOOD = "FOOD"
    NIGHTLIFE = "NIGHTLIFE"
    FAMILY = "FAMILY"
    CIVIC = "CIVIC"
    COMMUNITY = "COMMUNITY"


class ExtractionMethod(str, Enum):
    HYDRATION = "hydration"
    JSON_LD = "json_ld"
    FEED = "feed"
    DOM = "dom"
    AI = "ai"


class EnrichmentStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    REGISTRY_MATCH = "registry_match"
    BUDGET_EXCEEDED = "budget_exceeded"
    SKIPPED = "skipped"


class DedupeAction(str, Enum):
    INSERT = "insert"
    MERGE = "merge"
    SKIP = "skip"


@dataclass
class Source:
    source_id: str
    url: str
    name: str = ""
    domain: str = ""
    requests_per_minute: Optional[int] = None
    concurrency: Optional[int] = None
    preferred_method: Optional[str] = None
    default_lat: Optional[float] = None
    default_lng: Optional[float] = None
    default_venue: Optional[str] = None
    default_category: Optional[CategoryKey] = None
    feed_discovery: bool = False
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.domain:
            self.domain = (urlparse(self.url).hostname or "").lower()
        if not self.name:
            self.name = self.source_id


@dataclass
class FetchOutcome:
    """Result of one HTTP attempt. body is capped for the log; content is the full text."""

    success: bool
    http_status: Optional[int] = None
    status_text: str = ""
    body: Optional[str] = None
    etag: Optional[str] = None
    last_modified: Optional[str] = None
    retry_after: Optional[float] = None  # seconds
    error: Optional[str] = None
    attempt: int = 1
    fetched_at: datetime = field(default_factory=utcnow)
    content: Optional[str] = field(default=None, repr=False)

    @property
    def not_modified(self) -> bool:
        return self.http_status == 304


@dataclass
class ScrapeState:
    source_id: str
    last_run_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    last_http_status: Optional[int] = None
    consecutive_failures: int = 0
    last_alert_at: Optional[datetime] = None
    last_etag: Optional[str] = None
    last_last_modified: Optional[str] = None


@dataclass
class SourceRunResult:
    """Per-source summary produced by the fetch orchestrator."""

    source: Source
    outcome: Optional[FetchOutcome]
    attempts: List[FetchOutcome] = field(default_factory=list)
    state: Optional[ScrapeState] = None
    alert_sent: bool = False
    disallowed: bool = False


@dataclass
class RawEventCard:
    title: str
    date: str
    location: str = ""
    description: str = ""
    detail_url: Optional[str] = None
    image_url: Optional[str] = None
    raw: str = ""
    confidence: float = 0.0
    extras: Dict[str, Any] = field(default_factory=dict)


@dataclass
class NormalizedEvent:
    title: str
    event_date: str  # YYYY-MM-DD, site-local
    event_time: str  # HH:MM or TBD
    source_id: str = ""
    starts_at: Optional[datetime] = None  # UTC
    description: str = ""
    venue_name: str = ""
    venue_address: Optional[str] = None
    category: CategoryKey = CategoryKey.COMMUNITY
    image_url: Optional[str] = None
    detail_url: Optional[str] = None
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
    data_completeness: float = 0.0
    parsing_method: Optional[str] = None


@dataclass
class StoredEvent(NormalizedEvent):
    id: Optional[int] = None
    event_fingerprint: str = ""
    cross_fingerprint: str = ""
    content_hash: str = ""
    all_source_urls: List[str] = field(default_factory=list)
    contact_phone: Optional[str] = None
    website_url: Optional[str] = None
    opening_hours: Optional[Dict[str, Any]] = None
    price_range: Optional[str] = None
    google_place_id: Optional[str] = None
    enrichment_attempted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class DedupeDecision:
    action: DedupeAction
    event_id: Optional[int] = None
    promoted_fields: List[str] = field(default_factory=list)


@dataclass
class RegisteredVenue:
    name: str
    aliases: List[str]
    lat: float
    lng: float
    category: str
    address: str
    google_place_id: Optional[str] = None  # only verified Places ids
    contact_phone: Optional[str] = None
    website_url: Optional[str] = None
    opening_hours: Optional[Dict[str, Any]] = None
    price_range: Optional[str] = None
    capacity: Optional[int] = None


@dataclass
class EnrichmentLog:
    event_id: int
    status: EnrichmentStatus
    source: str  # registry | google_places
    fields: List[str] = field(default_factory=list)
    api_calls_used: int = 0
    error: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
