"""
Extraction strategy interface shared by the waterfall.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from models import ExtractionMethod, RawEventCard, Source

# Fetches a same-site URL politely; returns the body text or None.
PageFetcher = Callable[[str], Awaitable[Optional[str]]]


@dataclass
class ExtractionContext:
    html: str
    url: str
    source: Optional[Source] = None
    fetch_page: Optional[PageFetcher] = None
    cms: Optional[str] = None

    @property
    def feed_enabled(self) -> bool:
        if self.source is None:
            return False
        return self.source.feed_discovery or self.source.preferred_method == ExtractionMethod.FEED.value


@dataclass
class ExtractionResult:
    cards: List[RawEventCard] = field(default_factory=list)
    confidence: float = 0.0


def is_extractable(card: RawEventCard) -> bool:
    """A card leaves the waterfall only with a non-empty title and date."""
    return bool((card.title or "").strip()) and bool((card.date or "").strip())


def clean_text(value: object) -> str:
    """Collapse whitespace; None and non-strings become ''."""
    if value is None or isinstance(value, (dict, list, bool)):
        return ""
    return " ".join(str(value).split())


class BaseStrategy(ABC):
    """One way of turning a page into event cards. Subclasses must not raise."""

    confidence: float = 0.0

    @property
    @abstractmethod
    def name(self) -> str:
        """Stored as Source.preferred_method when this strategy wins."""
        ...

    @abstractmethod
    async def extract(self, context: ExtractionContext) -> ExtractionResult:
        """Return zero or more cards. Return an empty result on parse failure; do not raise."""
        ...

    def result(self, cards: List[RawEventCard]) -> ExtractionResult:
        for card in cards:
            card.confidence = self.confidence
        return ExtractionResult(cards=cards, confidence=self.confidence if cards else 0.0)
