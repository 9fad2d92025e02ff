"""Deep links for flights, hotels and sharing summaries."""

import re
from urllib.parse import quote

from tripquote.schemas.trip import FlightLeg, HotelStay

_IATA_IN_PARENS = re.compile(r"\(([A-Z]{3})\)")

# Characters encodeURIComponent leaves as-is
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def airport_code(place: str) -> str:
    """IATA code in parentheses ("Paris (CDG)" -> "CDG"), else the first word."""
    match = _IATA_IN_PARENS.search(place)
    if match:
        return match.group(1)
    parts = place.split()
    return parts[0] if parts else ""


def flight_search_url(leg: FlightLeg, currency: str = "BRL") -> str:
    departure_day = leg.departure.split(" ")[0] if leg.departure else ""
    origin = airport_code(leg.origin)
    destination = airport_code(leg.destination)
    return (
        f"https://www.google.com/flights#flt={origin}.{destination}.{departure_day}"
        f";c:{currency};e:1;sd:1;t:f"
    )


def hotel_search_url(stay: HotelStay) -> str:
    return f"https://www.google.com/search?q={encode_component(f'{stay.name} {stay.city}')}"


def mailto_link(recipient: str, subject: str, body: str) -> str:
    return f"mailto:{recipient}?subject={encode_component(subject)}&body={encode_component(body)}"


def whatsapp_link(phone: str, text: str) -> str:
    return f"https://wa.me/{phone}?text={encode_component(text)}"
