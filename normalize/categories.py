"""
Category assignment: URL patterns, then bilingual keywords, then the source default.
"""
import re
from typing import Dict, List, Optional, Tuple

from models import CategoryKey

# Checked in this order; more specific categories come first.
KEYWORDS: List[Tuple[CategoryKey, List[str]]] = [
    (CategoryKey.NIGHTLIFE, [
        "club", "nightclub", "disco", "uitgaan", "feest", "dansen", "nachtleven",
        "party", "dance", "nightlife", "clubbing", "rave",
    ]),
    (CategoryKey.MUSIC, [
        "muziek", "optreden", "concert", "festival", "band", "dj", "jazz", "klassiek",
        "pop", "rock", "live", "music", "gig", "performance", "live music", "classical",
    ]),
    (CategoryKey.ACTIVE, [
        "sport", "sports", "yoga", "wandeling", "hardlopen", "fietsen", "fitness", "gym",
        "marathon", "voetbal", "tennis", "zwemmen", "hiking", "running", "cycling",
        "workout", "football", "soccer", "swimming",
    ]),
    (CategoryKey.CULTURE, [
        "theater", "theatre", "museum", "tentoonstelling", "kunst", "film", "bioscoop",
        "voorstelling", "cabaret", "comedy", "workshop", "cursus", "gaming", "exhibition",
        "art", "cinema", "show", "course",
    ]),
    (CategoryKey.FOOD, [
        "eten", "proeverij", "culinair", "restaurant", "markt", "foodtruck", "wijn", "bier",
        "diner", "lunch", "koken", "food", "tasting", "culinary", "market", "food truck",
        "wine", "beer", "dining", "dinner", "cooking",
    ]),
    (CategoryKey.FAMILY, [
        "kinderen", "familie", "gezin", "kids", "jeugd", "basisschool", "speeltuin",
        "kinderfestival", "children", "family", "youth", "playground", "family-friendly",
    ]),
    (CategoryKey.SOCIAL, [
        "borrel", "netwerken", "meetup", "vrijmibo", "vrijdagmiddag", "networking", "drink",
        "sociaal", "afterwork", "drinks", "social", "happy hour", "gathering",
    ]),
    (CategoryKey.CIVIC, [
        "politiek", "gemeente", "inspraak", "vergadering", "gemeenteraad", "overheid",
        "politics", "municipality", "civic", "meeting", "government", "council",
    ]),
]

URL_PATTERNS: List[Tuple[CategoryKey, List[str]]] = [
    (CategoryKey.NIGHTLIFE, ["/club", "/party", "/nightlife"]),
    (CategoryKey.MUSIC, ["/concert", "/muziek", "/music", "/live"]),
    (CategoryKey.ACTIVE, ["/sport", "/fitness", "/yoga"]),
    (CategoryKey.CULTURE, ["/theater", "/museum", "/art", "/workshop"]),
    (CategoryKey.FOOD, ["/food", "/restaurant", "/markt", "/market"]),
    (CategoryKey.FAMILY, ["/kids", "/family", "/kinderen"]),
    (CategoryKey.SOCIAL, ["/networking", "/meetup", "/social"]),
    (CategoryKey.CIVIC, ["/gemeente", "/civic", "/politics"]),
]


def _word_pattern(words: List[str]) -> re.Pattern:
    alternatives = "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    return re.compile(rf"(?<!\w)(?:{alternatives})(?!\w)", re.IGNORECASE)


def _url_pattern(prefixes: List[str]) -> re.Pattern:
    alternatives = "|".join(re.escape(p) for p in prefixes)
    return re.compile(rf"(?:{alternatives})(?:en|s)?(?=[/\-_?#.]|$)", re.IGNORECASE)


KEYWORD_PATTERNS: Dict[CategoryKey, re.Pattern] = {
    key: _word_pattern(words) for key, words in KEYWORDS
}
URL_REGEXES: Dict[CategoryKey, re.Pattern] = {
    key: _url_pattern(prefixes) for key, prefixes in URL_PATTERNS
}


def assign_category(
    text: str,
    url: Optional[str] = None,
    default: Optional[CategoryKey] = None,
) -> CategoryKey:
    """URL path hint, then first keyword category in priority order, then default, then COMMUNITY."""
    if url:
        for key, rx in URL_REGEXES.items():
            if rx.search(url):
                return key
    if text:
        for key, rx in KEYWORD_PATTERNS.items():
            if rx.search(text):
                return key
    if default is not None:
        return default
    return CategoryKey.COMMUNITY
