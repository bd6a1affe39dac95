"""Tests for hydration-state extraction."""
import json

import pytest

from extract.base import ExtractionContext
from extract.hydration import (
    HydrationStrategy,
    extract_state_blobs,
    find_event_objects,
    is_event_like,
)


class TestIsEventLike:
    def test_title_and_date(self):
        assert is_event_like({"title": "Jazz Night", "startDate": "2026-04-01"})
        assert is_event_like({"name": "Quiz", "begin": "2026-04-01T20:00"})

    def test_missing_date(self):
        assert not is_event_like({"title": "About us"})

    def test_negative_keys(self):
        assert not is_event_like({"name": "jan", "date": "2026-01-01", "email": "jan@example.org"})
        assert not is_event_like({"title": "Agenda", "date": "x", "navigation": []})


class TestFindEventObjects:
    def test_depth_is_bounded(self):
        event = {"title": "Deep", "date": "2026-04-01"}
        shallow = {"a": {"b": {"c": event}}}
        deep = {"a": {"b": {"c": {"d": {"e": {"f": event}}}}}}
        assert list(find_event_objects(shallow)) == [event]
        assert list(find_event_objects(deep)) == []

    def test_skips_markup_keys(self):
        blob = {"content": {"title": "Hidden", "date": "2026-04-01"}}
        assert list(find_event_objects(blob)) == []


NEXT_DATA = {
    "props": {
        "pageProps": {
            "events": [
                {
                    "title": "Open Air Yoga",
                    "startDate": "2026-06-12T09:00:00+02:00",
                    "venue": {"name": "Vondelpark"},
                    "url": "/events/open-air-yoga",
                    "image": "/img/yoga.jpg",
                },
                {"title": "Open Air Yoga", "startDate": "2026-06-12T09:00:00+02:00"},
            ],
            "user": {"username": "admin", "name": "Admin", "createdDate": "2020-01-01"},
        }
    }
}


class TestHydrationStrategy:
    @pytest.mark.asyncio
    async def test_next_data_cards(self):
        html = (
            '<html><body><script id="__NEXT_DATA__" type="application/json">'
            f"{json.dumps(NEXT_DATA)}</script></body></html>"
        )
        result = await HydrationStrategy().extract(
            ExtractionContext(html=html, url="https://venue.example/agenda")
        )
        [card] = result.cards
        assert result.confidence == 1.0
        assert card.title == "Open Air Yoga"
        assert card.location == "Vondelpark"
        assert card.detail_url == "https://venue.example/events/open-air-yoga"
        assert card.image_url == "https://venue.example/img/yoga.jpg"

    def test_window_assignment(self):
        html = (
            "<script>window.__INITIAL_STATE__ = "
            '{"agenda": [{"name": "Pubquiz", "date": "2026-05-05"}]};</script>'
        )
        blobs = extract_state_blobs(html)
        assert blobs == [{"agenda": [{"name": "Pubquiz", "date": "2026-05-05"}]}]

    @pytest.mark.asyncio
    async def test_page_without_state(self):
        result = await HydrationStrategy().extract(
            ExtractionContext(html="<html><body>nothing</body></html>", url="https://x.example/")
        )
        assert result.cards == []
        assert result.confidence == 0.0
