"""
Default crawl targets: Amsterdam venue agendas and ticket listings.
Seeded into the sources table on start-up; learned preferred methods are kept.
"""
import logging
from typing import List

from models import CategoryKey, Source
from storage import sources as sources_store

logger = logging.getLogger(__name__)

DEFAULT_SOURCES: List[Source] = [
    Source(
        source_id="paradiso",
        name="Paradiso",
        url="https://www.paradiso.nl/en/landing/concertagenda-paradiso/2069817",
        default_venue="Paradiso",
        default_category=CategoryKey.MUSIC,
        default_lat=52.3638,
        default_lng=4.8820,
    ),
    Source(
        source_id="melkweg",
        name="Melkweg",
        url="https://www.melkweg.nl/en/agenda",
        default_venue="Melkweg",
        default_category=CategoryKey.MUSIC,
        default_lat=52.3632,
        default_lng=4.8796,
        feed_discovery=True,
    ),
    Source(
        source_id="afas_live",
        name="AFAS Live",
        url="https://www.afaslive.nl/en/agenda",
        default_venue="AFAS Live",
        default_category=CategoryKey.MUSIC,
        default_lat=52.3124,
        default_lng=4.9465,
    ),
    Source(
        source_id="ziggo_dome",
        name="Ziggo Dome",
        url="https://www.ziggodome.nl/agenda",
        default_venue="Ziggo Dome",
        default_category=CategoryKey.MUSIC,
        default_lat=52.3120,
        default_lng=4.9449,
    ),
    Source(
        source_id="ticketmaster_nl",
        name="Ticketmaster NL",
        url="https://www.ticketmaster.nl/music",
        default_category=CategoryKey.MUSIC,
        requests_per_minute=6,
    ),
    Source(
        source_id="johan_cruijff_arena",
        name="Johan Cruijff ArenA",
        url="https://www.johancruijffarena.nl/en/calendar/",
        default_venue="Johan Cruijff ArenA",
        default_lat=52.3140,
        default_lng=4.9416,
    ),
]


async def seed(sources: List[Source] = DEFAULT_SOURCES) -> None:
    for source in sources:
        await sources_store.upsert(source)
    logger.info("Seeded %d default sources", len(sources))
