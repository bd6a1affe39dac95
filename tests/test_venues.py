"""Tests for venue name matching against the registry."""
from enrichment.registry import VENUE_REGISTRY
from matcher.venues import (
    containment_score,
    levenshtein,
    match_venue,
    normalize_venue_name,
    similarity,
)


class TestNormalization:
    def test_diacritics_and_punctuation(self):
        assert normalize_venue_name("  Café  De-Zwaan! ") == "cafe de zwaan"
        assert normalize_venue_name("MAC³PARK Stadion") == "mac3park stadion"

    def test_levenshtein(self):
        assert levenshtein("kitten", "sitting") == 3
        assert levenshtein("", "abc") == 3
        assert similarity("paradiso", "paradiso") == 1.0

    def test_containment(self):
        assert containment_score("melkweg", "melkweg amsterdam") == len("melkweg") / len("melkweg amsterdam")
        assert containment_score("melkweg", "paradiso") == 0.0


class TestMatchVenue:
    def test_exact_name(self):
        match = match_venue("Paradiso", VENUE_REGISTRY)
        assert match.venue.name == "Paradiso"
        assert match.method == "exact"

    def test_alias(self):
        match = match_venue("Heineken Music Hall", VENUE_REGISTRY)
        assert match.venue.name == "AFAS Live"
        assert match.method == "alias"

    def test_containment_needs_length_ratio(self):
        match = match_venue("Het Philips Stadion", VENUE_REGISTRY)
        assert match.venue.name == "Philips Stadion"
        assert match.method == "containment"
        assert match_venue("Ziggo Dome Amsterdam Zuidoost", VENUE_REGISTRY) is None
        assert match_venue("Grote zaal van de Melkweg in Amsterdam centrum", VENUE_REGISTRY) is None

    def test_abbreviated_name_matches_by_similarity(self):
        match = match_venue("Joh. Cruijff ArenA", VENUE_REGISTRY)
        assert match.venue.name == "Johan Cruijff ArenA"
        assert match.method == "similarity"
        assert match.score >= 0.82

    def test_unknown_venue(self):
        assert match_venue("Some Random Hall", VENUE_REGISTRY) is None
        assert match_venue("", VENUE_REGISTRY) is None
