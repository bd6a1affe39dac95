"""
Venue name matching against the registry: exact name, exact alias,
containment scored by length ratio, then edit-distance similarity.
"""
import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import Iterable, Optional

from models import RegisteredVenue

logger = logging.getLogger(__name__)

CONTAINMENT_FLOOR = 0.75
SIMILARITY_FLOOR = 0.82
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


@dataclass
class VenueMatch:
    venue: RegisteredVenue
    score: float
    method: str  # exact | alias | containment | similarity


def normalize_venue_name(name: str) -> str:
    """Lowercase, strip diacritics and punctuation, collapse whitespace."""
    decomposed = unicodedata.normalize("NFKD", (name or "").lower())
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return " ".join(_NON_ALNUM.sub(" ", stripped).split())


def levenshtein(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """1 - edit distance / length of the longer string."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein(a, b) / longest


def containment_score(a: str, b: str) -> float:
    """Length ratio when one string contains the other, else 0."""
    if not a or not b:
        return 0.0
    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)
    if shorter not in longer:
        return 0.0
    return len(shorter) / len(longer)


def match_venue(
    name: str,
    registry: Iterable[RegisteredVenue],
    *,
    containment_floor: float = CONTAINMENT_FLOOR,
    similarity_floor: float = SIMILARITY_FLOOR,
) -> Optional[VenueMatch]:
    """Best registry match for name, or None when no candidate clears its floor."""
    needle = normalize_venue_name(name)
    if not needle:
        return None
    venues = list(registry)

    for venue in venues:
        if normalize_venue_name(venue.name) == needle:
            return VenueMatch(venue, 1.0, "exact")
    for venue in venues:
        if any(normalize_venue_name(a) == needle for a in venue.aliases):
            return VenueMatch(venue, 1.0, "alias")

    best: Optional[VenueMatch] = None
    for venue in venues:
        for candidate in [venue.name, *venue.aliases]:
            normalized = normalize_venue_name(candidate)
            score = containment_score(needle, normalized)
            if score >= containment_floor and (best is None or score > best.score):
                best = VenueMatch(venue, score, "containment")
    if best is not None:
        logger.debug("Venue %r -> %r (containment %.2f)", name, best.venue.name, best.score)
        return best

    for venue in venues:
        for candidate in [venue.name, *venue.aliases]:
            score = similarity(needle, normalize_venue_name(candidate))
            if score >= similarity_floor and (best is None or score > best.score):
                best = VenueMatch(venue, score, "similarity")
    if best is not None:
        logger.debug("Venue %r -> %r (similarity %.2f)", name, best.venue.name, best.score)
    return best
