"""Tests for date parsing, categorization and card normalization."""
from datetime import date, timezone

from enrichment.registry import VENUE_REGISTRY
from models import CategoryKey, NormalizedEvent, RawEventCard, Source
from normalize.categories import assign_category
from normalize.dates import parse_event_date
from normalize.normalizer import completeness_score, normalize_card

TODAY = date(2026, 3, 15)


class TestParseEventDate:
    def test_iso_with_offset(self):
        parsed = parse_event_date("2026-03-01T19:30:00+01:00", today=TODAY)
        assert parsed.event_date == "2026-03-01"
        assert parsed.event_time == "19:30"
        assert parsed.starts_at.tzinfo == timezone.utc
        assert (parsed.starts_at.hour, parsed.starts_at.minute) == (18, 30)

    def test_iso_without_offset_is_amsterdam_local(self):
        parsed = parse_event_date("2026-07-01T20:00", today=TODAY)
        assert parsed.starts_at.hour == 18  # CEST is UTC+2

    def test_bare_date_has_tbd_time(self):
        parsed = parse_event_date("2026-05-02", today=TODAY)
        assert parsed.event_time == "TBD"

    def test_numeric_day_month_year(self):
        assert parse_event_date("15-08-2026 21:00", today=TODAY).event_date == "2026-08-15"

    def test_dutch_month_with_weekday_and_time(self):
        parsed = parse_event_date("za 12 april 2026, 20.30 uur", today=TODAY)
        assert parsed.event_date == "2026-04-12"
        assert parsed.event_time == "20:30"

    def test_english_month_first(self):
        assert parse_event_date("Friday, May 8th 2026", today=TODAY).event_date == "2026-05-08"

    def test_yearless_date_rolls_forward(self):
        assert parse_event_date("3 januari", today=TODAY).event_date == "2027-01-03"
        assert parse_event_date("20 maart", today=TODAY).event_date == "2026-03-20"

    def test_relative_words(self):
        assert parse_event_date("morgen 14:00", today=TODAY).event_date == "2026-03-16"
        assert parse_event_date("Today", today=TODAY).event_date == "2026-03-15"

    def test_rfc822_feed_date(self):
        parsed = parse_event_date("Sat, 06 Jun 2026 10:00:00 +0200", today=TODAY)
        assert parsed.event_date == "2026-06-06"
        assert parsed.event_time == "10:00"

    def test_unparseable_and_out_of_window(self):
        assert parse_event_date("binnenkort", today=TODAY) is None
        assert parse_event_date("", today=TODAY) is None
        assert parse_event_date("2019-01-01", today=TODAY) is None


class TestAssignCategory:
    def test_url_pattern_first(self):
        assert assign_category("Quiz", url="https://x.example/concerten/quiz") == CategoryKey.MUSIC

    def test_keyword_priority(self):
        # "club" (nightlife) beats "concert" (music)
        assert assign_category("Club concert night") == CategoryKey.NIGHTLIFE
        assert assign_category("Yoga in het park") == CategoryKey.ACTIVE

    def test_word_boundaries(self):
        # "art" must not match inside "start"
        assert assign_category("Start van de week") == CategoryKey.COMMUNITY

    def test_default_then_community(self):
        assert assign_category("Iets", default=CategoryKey.FOOD) == CategoryKey.FOOD
        assert assign_category("Iets") == CategoryKey.COMMUNITY


SOURCE = Source(
    source_id="ziggo_dome",
    url="https://www.ziggodome.nl/agenda",
    default_venue="Ziggo Dome",
    default_category=CategoryKey.MUSIC,
)


class TestNormalizeCard:
    def test_card_to_event(self):
        card = RawEventCard(
            title="  Suzan   &  Freek ",
            date="za 12 april 2026 20:00",
            location="ziggo dome amsterdam",
            detail_url="https://www.ziggodome.nl/agenda/suzan-freek",
            extras={"price": "€45.00"},
        )
        event = normalize_card(card, SOURCE, registry=VENUE_REGISTRY, method="dom", today=TODAY)
        assert event.title == "Suzan & Freek"
        assert event.event_date == "2026-04-12"
        assert event.event_time == "20:00"
        assert event.venue_name == "Ziggo Dome"
        assert event.venue_address == "De Passage 100, 1101 AX Amsterdam"
        assert event.category == CategoryKey.MUSIC
        assert event.price == "€45.00"
        assert event.parsing_method == "dom"
        assert event.data_completeness > 0

    def test_source_default_venue(self):
        card = RawEventCard(title="Expo", date="2026-06-01")
        event = normalize_card(card, SOURCE, today=TODAY)
        assert event.venue_name == "Ziggo Dome"

    def test_unparseable_date_rejected(self):
        card = RawEventCard(title="Expo", date="binnenkort")
        assert normalize_card(card, SOURCE, today=TODAY) is None


class TestCompleteness:
    def test_bounds(self):
        bare = NormalizedEvent(title="", event_date="", event_time="TBD", category=None)
        assert completeness_score(bare) == 0.0
        full = NormalizedEvent(
            title="T", event_date="2026-01-01", event_time="20:00", description="d" * 60,
            venue_name="V", venue_address="A", image_url="i", end_time="23:00", price="€1",
            tickets_url="t", organizer="o", performer="p", category=CategoryKey.MUSIC,
        )
        assert completeness_score(full) == 1.0
