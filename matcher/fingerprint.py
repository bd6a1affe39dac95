"""
Stable identities for events: a same-source fingerprint, a cross-source
fingerprint and a content hash used to skip unchanged re-scrapes.
"""
import hashlib
import re
from typing import Iterable, Optional

from models import NormalizedEvent

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_part(value: Optional[str]) -> str:
    """Lowercase and keep only ASCII letters and digits."""
    return _NON_ALNUM.sub("", (value or "").lower())


def _digest(parts: Iterable[Optional[str]]) -> str:
    normalized = sorted(normalize_part(p) for p in parts)
    return hashlib.sha256("|".join(normalized).encode("utf-8")).hexdigest()


def event_fingerprint(event: NormalizedEvent) -> str:
    """Same source describing the same event: title + date + source id."""
    return _digest([event.title, event.event_date, event.source_id])


def cross_source_fingerprint(event: NormalizedEvent) -> str:
    """Same event seen on different sources: title + date + venue."""
    return _digest([event.title, event.event_date, event.venue_name])


def content_hash(event: NormalizedEvent) -> str:
    """Digest of everything the source told us; changes when the listing changes."""
    return _digest([
        event.title,
        event.event_date,
        event.event_time,
        event.venue_name,
        event.description,
        event.image_url,
        event.detail_url,
        event.source_id,
    ])
