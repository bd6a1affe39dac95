"""
Feed strategy: RSS 2.0 / Atom feeds advertised by the page or found at common paths.
"""
import logging
import xml.etree.ElementTree as ET
from typing import List
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from extract.base import BaseStrategy, ExtractionContext, ExtractionResult, clean_text, is_extractable
from models import ExtractionMethod, RawEventCard

logger = logging.getLogger(__name__)

ATOM_NS = "http://www.w3.org/2005/Atom"
FEED_TYPES = ("application/rss+xml", "application/atom+xml")
COMMON_FEED_PATHS = (
    "/feed", "/rss", "/rss.xml", "/atom.xml",
    "/events/feed", "/agenda/feed", "/feed/events",
)
MAX_FEEDS = 3


def _strip_html(text: str) -> str:
    if not text or "<" not in text:
        return clean_text(text)
    return clean_text(BeautifulSoup(text, "html.parser").get_text(" "))


def discover_feed_urls(html: str, base_url: str) -> List[str]:
    """Feed URLs from <link rel="alternate"> tags, falling back to common paths."""
    urls: List[str] = []
    soup = BeautifulSoup(html or "", "html.parser")
    for link in soup.find_all("link", href=True):
        if (link.get("type") or "").lower() in FEED_TYPES:
            url = urljoin(base_url, link["href"])
            if url not in urls:
                urls.append(url)
    if not urls:
        urls = [urljoin(base_url, path) for path in COMMON_FEED_PATHS]
    return urls


def parse_feed(text: str, base_url: str = "") -> List[RawEventCard]:
    """RSS items or Atom entries as cards; entries without a title are dropped."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError:
        return []

    is_atom = root.tag == f"{{{ATOM_NS}}}feed" or root.tag.lower().endswith("feed")
    if is_atom:
        items = root.findall(f"{{{ATOM_NS}}}entry") or root.findall("entry")
    else:
        channel = root.find("channel")
        items = (channel if channel is not None else root).findall("item")

    cards: List[RawEventCard] = []
    for item in items:
        def text_of(tag: str, ns: str = "") -> str:
            el = item.find(f"{{{ns}}}{tag}" if ns else tag)
            return (el.text or "").strip() if el is not None else ""

        if is_atom:
            title = text_of("title", ATOM_NS) or text_of("title")
            date = text_of("published", ATOM_NS) or text_of("updated", ATOM_NS)
            description = text_of("summary", ATOM_NS) or text_of("content", ATOM_NS)
            link_el = item.find(f"{{{ATOM_NS}}}link")
            link = link_el.get("href", "") if link_el is not None else ""
        else:
            title = text_of("title")
            date = text_of("pubDate") or text_of("{http://purl.org/dc/elements/1.1/}date")
            description = text_of("description")
            link = text_of("link") or text_of("guid")

        if not title:
            continue
        cards.append(RawEventCard(
            title=clean_text(title),
            date=date,
            description=_strip_html(description)[:1000],
            detail_url=urljoin(base_url, link) if link else None,
            raw=ET.tostring(item, encoding="unicode")[:2000],
        ))
    return cards


class FeedStrategy(BaseStrategy):
    """Only runs for sources flagged for feed discovery or that last won with feeds."""

    confidence = 0.8

    @property
    def name(self) -> str:
        return ExtractionMethod.FEED.value

    async def extract(self, context: ExtractionContext) -> ExtractionResult:
        if not context.feed_enabled or context.fetch_page is None:
            return ExtractionResult()
        cards: List[RawEventCard] = []
        try:
            for url in discover_feed_urls(context.html, context.url)[:MAX_FEEDS]:
                body = await context.fetch_page(url)
                if not body:
                    continue
                found = [c for c in parse_feed(body, url) if is_extractable(c)]
                logger.debug("Feed %s: %d items", url, len(found))
                if found:
                    cards = found
                    break
        except Exception as e:
            logger.warning("Feed extraction failed for %s: %s", context.url, e)
            return ExtractionResult()
        return self.result(cards)
