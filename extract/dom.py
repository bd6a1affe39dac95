"""
DOM strategy: CSS selector heuristics, CMS-specific first, then generic.
"""
import logging
import re
from typing import List, Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from extract.base import BaseStrategy, ExtractionContext, ExtractionResult, clean_text, is_extractable
from extract.cms import detect_cms, selectors_for
from models import ExtractionMethod, RawEventCard

logger = logging.getLogger(__name__)

TITLE_SELECTORS = ["h1", "h2", "h3", "h4", ".title", "[class*='title']"]
DATE_SELECTORS = ["time[datetime]", "time", ".date", "[class*='date']", "[datetime]"]
LOCATION_SELECTORS = [".location", ".venue", "[class*='location']", "[class*='venue']"]
DESCRIPTION_SELECTORS = [".description", ".excerpt", "[class*='summary']", "p"]
MIN_TITLE_LENGTH = 3

MONTH_DATE = re.compile(
    r"\b\d{1,2}\s+(?:jan|feb|mrt|maa|mar|apr|mei|may|jun|jul|aug|sep|okt|oct|nov|dec)[a-z]*\.?"
    r"(?:\s+\d{4})?",
    re.IGNORECASE,
)
BACKGROUND_URL = re.compile(r"url\(['\"]?([^'\")]+)['\"]?\)")


def _first_text(el: Tag, selectors: Sequence[str]) -> str:
    for selector in selectors:
        found = el.select_one(selector)
        if found is not None:
            text = clean_text(found.get_text(" "))
            if text:
                return text
    return ""


def _find_date(el: Tag) -> str:
    for selector in DATE_SELECTORS:
        found = el.select_one(selector)
        if found is None:
            continue
        value = clean_text(found.get("datetime")) or clean_text(found.get_text(" "))
        if value:
            return value
    if el.get("datetime"):
        return clean_text(el.get("datetime"))
    m = MONTH_DATE.search(el.get_text(" "))
    return m.group(0) if m else ""


def _find_image(el: Tag, base_url: str) -> Optional[str]:
    img = el.find("img")
    if img is not None:
        src = img.get("src") or img.get("data-src")
        if src:
            return urljoin(base_url, src)
    styled = el.select_one("[style*='background']")
    if styled is not None:
        m = BACKGROUND_URL.search(styled.get("style", ""))
        if m:
            return urljoin(base_url, m.group(1))
    return None


def parse_element(el: Tag, base_url: str) -> Optional[RawEventCard]:
    title = _first_text(el, TITLE_SELECTORS)
    link = el.find("a", href=True)
    if not title and link is not None:
        title = clean_text(link.get_text(" "))
    if len(title) < MIN_TITLE_LENGTH:
        return None
    href = link["href"] if link is not None else el.get("href")
    return RawEventCard(
        title=title,
        date=_find_date(el),
        location=_first_text(el, LOCATION_SELECTORS),
        description=_first_text(el, DESCRIPTION_SELECTORS),
        detail_url=urljoin(base_url, href) if href else None,
        image_url=_find_image(el, base_url),
        raw=str(el)[:2000],
    )


class DomStrategy(BaseStrategy):
    confidence = 0.6

    @property
    def name(self) -> str:
        return ExtractionMethod.DOM.value

    async def extract(self, context: ExtractionContext) -> ExtractionResult:
        try:
            soup = BeautifulSoup(context.html, "html.parser")
            cms = context.cms or detect_cms(context.html).cms
            for selector in selectors_for(cms):
                cards: List[RawEventCard] = []
                for el in soup.select(selector):
                    card = parse_element(el, context.url)
                    if card is not None and is_extractable(card):
                        cards.append(card)
                if cards:
                    logger.debug("DOM selector %r matched %d cards (cms=%s)", selector, len(cards), cms)
                    return self.result(cards)
        except Exception as e:
            logger.warning("DOM extraction failed for %s: %s", context.url, e)
        return ExtractionResult()
