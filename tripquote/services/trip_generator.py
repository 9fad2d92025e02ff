"""Trip generator — asks the LLM for a flight + hotel itinerary in a fixed JSON shape."""

import logging

from pydantic import ValidationError

from tripquote.config import settings
from tripquote.schemas.trip import TripResults, TripSearchRequest
from tripquote.services.llm_client import LLMClient, llm_client
from tripquote.services.trip_dates import trip_days

logger = logging.getLogger(__name__)


class TripSearchError(Exception):
    """The itinerary could not be generated. The message is safe to show to users."""


SYSTEM_PROMPT = """You are a travel pricing simulator. You produce realistic, budget-conscious
flight and hotel options for a multi-city trip.

Respond ONLY with valid JSON, no markdown, no preamble, matching exactly:
{
    "flights": [
        {
            "from": "City (IATA)",
            "to": "City (IATA)",
            "airline": "Airline name",
            "departure": "YYYY-MM-DD HH:mm",
            "arrival": "YYYY-MM-DD HH:mm",
            "price": 0
        }
    ],
    "accommodations": [
        {
            "city": "City",
            "name": "Hotel name",
            "days": 0,
            "pricePerNight": 0,
            "checkInDate": "YYYY-MM-DD"
        }
    ]
}
All fields are required. "price" and "pricePerNight" are numbers, "days" is an integer."""


def build_trip_prompt(request: TripSearchRequest) -> str:
    home = settings.home_airport
    stops = settings.route_stop_list
    days = trip_days(request.departure_date, request.return_date)
    route = " -> ".join([home, *stops, home])
    first_stop = stops[0] if stops else home

    return f"""Simulate budget travel options for a trip for {request.adults} adult(s) and {request.children} child(ren).
The trip starts and ends in {home}.
Departure from {home} is on {request.departure_date.isoformat()} and the return is on {request.return_date.isoformat()}, {days} days in total.
The route is: {route}.
- The first flight ({home} to {first_stop}) must be direct.
- Split the hotel nights between {", ".join(stops) or home} in proportion to the trip length (for example, an 11-day trip could be 4 days, 4 days and 3 days).
- For each flight leg, "departure" and "arrival" must include the full date as "YYYY-MM-DD HH:mm".
- For each hotel stay, give a check-in date as "YYYY-MM-DD".
Generate realistic flight times, airlines and prices in {settings.currency} for the total number of passengers.
Generate realistic hotel names and nightly prices in {settings.currency} that fit the whole group."""


def _strip_code_fences(raw: str) -> str:
    if raw.startswith("```"):
        lines = [line for line in raw.split("\n") if not line.strip().startswith("```")]
        raw = "\n".join(lines).strip()
    return raw


class TripGenerator:
    """Turns a trip search request into validated TripResults."""

    def __init__(self, llm: LLMClient | None = None):
        self.llm = llm or llm_client

    async def generate(self, request: TripSearchRequest) -> TripResults:
        """Generate trip options.

        Raises:
            TripSearchError if the LLM call fails or returns an unusable shape.
        """
        prompt = build_trip_prompt(request)
        raw = ""
        try:
            raw = await self.llm.complete(
                system=SYSTEM_PROMPT,
                user=prompt,
                max_tokens=2000,
                temperature=0.7,
                json_mode=True,
            )
            results = TripResults.model_validate_json(_strip_code_fences(raw))
        except ValidationError as e:
            logger.error(f"Trip data did not match the expected shape: {e}\nRaw: {raw[:500]}")
            raise TripSearchError(settings.error_default) from e
        except Exception as e:
            logger.error(f"Error fetching trip data from LLM: {e}")
            raise TripSearchError(settings.error_default) from e

        if not results.flights:
            logger.error("LLM returned an itinerary with no flights")
            raise TripSearchError(settings.error_default)

        logger.info(
            f"Generated trip: {len(results.flights)} flights, "
            f"{len(results.accommodations)} stays, total flights {results.total_flight_price:.2f}"
        )
        return results


trip_generator = TripGenerator()
