"""
AI fallback strategy: hand the page text to a completion model and decode one event card.
Only reached when every deterministic strategy found nothing.
"""
import json
import logging
import re
from typing import Any, Mapping, Optional, Protocol

from bs4 import BeautifulSoup
from google import genai

from extract.base import BaseStrategy, ExtractionContext, ExtractionResult, clean_text
from models import ExtractionMethod, RawEventCard

logger = logging.getLogger(__name__)

PROMPT = """You extract a single event from the text of a web page.
Reply with one JSON object with the keys:
title, date, location, description, detail_url, image_url.
Use an ISO 8601 date-time for "date" when the page states a time, otherwise an ISO date.
Use null for unknown values. If the page describes no event, reply with null.

Page URL: {url}

Page text:
{text}
"""
CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


class CompletionClient(Protocol):
    async def complete_event(self, page_text: str, source_url: str) -> Optional[Mapping[str, Any]]:
        """Return a mapping with RawEventCard field names, or None when no event is found."""
        ...


def page_text(html: str, max_chars: int) -> str:
    """Visible text of the page with scripts and styles removed, truncated."""
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(["script", "style", "noscript", "svg"]):
        tag.decompose()
    return clean_text(soup.get_text(" "))[:max_chars]


def decode_reply(text: Optional[str]) -> Optional[Mapping[str, Any]]:
    if not text:
        return None
    cleaned = CODE_FENCE.sub("", text.strip())
    try:
        data = json.loads(cleaned)
    except ValueError:
        logger.warning("AI reply is not JSON: %.120s", text)
        return None
    if isinstance(data, list):
        data = data[0] if data else None
    return data if isinstance(data, dict) else None


def card_from_mapping(data: Mapping[str, Any]) -> RawEventCard:
    """Coerce an untyped reply into a card; missing or non-string fields become empty."""
    return RawEventCard(
        title=clean_text(data.get("title")),
        date=clean_text(data.get("date")),
        location=clean_text(data.get("location")),
        description=clean_text(data.get("description")),
        detail_url=clean_text(data.get("detail_url")) or None,
        image_url=clean_text(data.get("image_url")) or None,
        raw=json.dumps(dict(data), default=str)[:2000],
    )


class GeminiCompletionClient:
    """CompletionClient backed by the Gemini API."""

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash"):
        self._client = genai.Client(api_key=api_key)
        self._model = model

    async def complete_event(self, page_text: str, source_url: str) -> Optional[Mapping[str, Any]]:
        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=PROMPT.format(url=source_url, text=page_text),
            config={
                "temperature": 0.0,
                "response_mime_type": "application/json",
            },
        )
        return decode_reply(response.text)


class AIFallbackStrategy(BaseStrategy):
    confidence = 0.4

    def __init__(self, client: Optional[CompletionClient], max_chars: int = 25_000):
        self._client = client
        self._max_chars = max_chars

    @property
    def name(self) -> str:
        return ExtractionMethod.AI.value

    async def extract(self, context: ExtractionContext) -> ExtractionResult:
        if self._client is None:
            return ExtractionResult()
        text = page_text(context.html, self._max_chars)
        if not text:
            return ExtractionResult()
        try:
            data = await self._client.complete_event(text, context.url)
        except Exception as e:
            logger.warning("AI fallback failed for %s: %s", context.url, e)
            return ExtractionResult()
        if not data:
            return ExtractionResult()
        return self.result([card_from_mapping(data)])
