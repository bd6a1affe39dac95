"""
Static registry of well-known Dutch venues. Consulted before any paid lookup.
"""
from typing import List

from models import RegisteredVenue

_ZIGGO_HOURS = {
    "sunday": "closed",
    "monday": [{"open": "10:00", "close": "17:00"}],
    "tuesday": [{"open": "10:00", "close": "17:00"}],
    "wednesday": [{"open": "10:00", "close": "17:00"}],
    "thursday": [{"open": "10:00", "close": "17:00"}],
    "friday": [{"open": "10:00", "close": "17:00"}],
    "saturday": "closed",
}

VENUE_REGISTRY: List[RegisteredVenue] = [
    RegisteredVenue(
        name="Johan Cruijff ArenA",
        aliases=["Amsterdam Arena", "Johan Cruijff Arena", "ArenA", "Ajax Stadium", "Arena Amsterdam"],
        lat=52.3140, lng=4.9416,
        google_place_id="ChIJMwmhB7UJxkcRHw_YqmTLNYE",
        category="sports",
        address="Johan Cruijff Boulevard 1, 1101 AX Amsterdam",
        website_url="https://www.johancruijffarena.nl",
        capacity=55000,
    ),
    RegisteredVenue(
        name="Ziggo Dome",
        aliases=["Ziggo", "Ziggo Dome Amsterdam"],
        lat=52.3120, lng=4.9449,
        google_place_id="ChIJHVFXCrUJxkcRv4u7nN2rHj0",
        category="music",
        address="De Passage 100, 1101 AX Amsterdam",
        website_url="https://www.ziggodome.nl",
        opening_hours=_ZIGGO_HOURS,
        capacity=17000,
    ),
    RegisteredVenue(
        name="AFAS Live",
        aliases=["Heineken Music Hall", "AFAS Live Amsterdam"],
        lat=52.3124, lng=4.9465,
        category="music",
        address="Johan Cruijff Boulevard 590, 1101 DS Amsterdam",
        website_url="https://www.afaslive.nl",
        capacity=6000,
    ),
    RegisteredVenue(
        name="Paradiso",
        aliases=["Paradiso Amsterdam"],
        lat=52.3638, lng=4.8820,
        category="music",
        address="Weteringschans 6-8, 1017 SG Amsterdam",
        contact_phone="+31206264521",
        website_url="https://www.paradiso.nl",
        capacity=1500,
    ),
    RegisteredVenue(
        name="Melkweg",
        aliases=["Melkweg Amsterdam"],
        lat=52.3632, lng=4.8796,
        category="music",
        address="Lijnbaansgracht 234a, 1017 PH Amsterdam",
        contact_phone="+31205318181",
        website_url="https://www.melkweg.nl",
        capacity=1500,
    ),
    RegisteredVenue(
        name="TivoliVredenburg",
        aliases=["Tivoli", "Tivoli Vredenburg"],
        lat=52.0934, lng=5.1126,
        category="music",
        address="Vredenburgkade 11, 3511 WC Utrecht",
        website_url="https://www.tivolivredenburg.nl",
        capacity=5000,
    ),
    RegisteredVenue(
        name="013",
        aliases=["Poppodium 013", "013 Tilburg"],
        lat=51.5604, lng=5.0839,
        category="music",
        address="Veemarktstraat 44, 5038 CV Tilburg",
        website_url="https://www.013.nl",
        capacity=3000,
    ),
    RegisteredVenue(
        name="Poppodium Vera",
        aliases=["Vera Groningen"],
        lat=53.2196, lng=6.5634,
        category="music",
        address="Oosterstraat 44, 9711 NV Groningen",
        website_url="https://www.vera-groningen.nl",
        capacity=700,
    ),
    RegisteredVenue(
        name="Stadion Feijenoord (De Kuip)",
        aliases=["De Kuip", "Feyenoord Stadium", "Stadion Feijenoord"],
        lat=51.8936, lng=4.5230,
        google_place_id="ChIJA8JmKb_iwkcRTZKRvnH-7rc",
        category="sports",
        address="Van Zandvlietplein 1, 3077 AA Rotterdam",
        website_url="https://www.feyenoord.nl",
        capacity=51000,
    ),
    RegisteredVenue(
        name="Philips Stadion",
        aliases=["PSV Stadion", "PSV Stadium"],
        lat=51.4416, lng=5.4670,
        category="sports",
        address="Frederiklaan 10A, 5616 NH Eindhoven",
        website_url="https://www.psv.nl",
        capacity=35000,
    ),
    RegisteredVenue(
        name="GelreDome",
        aliases=["Gelredome", "Vitesse Stadium"],
        lat=51.9648, lng=5.8922,
        category="sports",
        address="Batavierenweg 25, 6841 HN Arnhem",
        website_url="https://www.gelredome.nl",
        capacity=34000,
    ),
    RegisteredVenue(
        name="De Grolsch Veste",
        aliases=["Grolsch Veste", "FC Twente Stadion"],
        lat=52.2369, lng=6.8403,
        category="sports",
        address="Colosseum 65, 7521 PP Enschede",
        website_url="https://www.fctwente.nl",
        capacity=30500,
    ),
    RegisteredVenue(
        name="MAC³PARK Stadion",
        aliases=["PEC Zwolle Stadion", "Oosterenkstadion"],
        lat=52.5181, lng=6.0878,
        category="sports",
        address="Stadionplein 20, 8025 CP Zwolle",
        website_url="https://www.peczwolle.nl",
        capacity=14000,
    ),
]
