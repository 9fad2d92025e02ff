"""Summary generator — uses the LLM to write shareable email and WhatsApp trip summaries."""

import asyncio
import html
import json
import logging
import re

from tripquote.config import settings
from tripquote.data.currency import format_price
from tripquote.schemas.trip import TripResults
from tripquote.services.llm_client import LLMClient, llm_client
from tripquote.services.share_links import airport_code

logger = logging.getLogger(__name__)

EMAIL = "email"
WHATSAPP = "whatsapp"

_BOLD = re.compile(r"\*([^*]+)\*")
_ITALIC = re.compile(r"_([^_]+)_")


def price_analysis(total: float, previous: float | None, channel: str = EMAIL) -> str:
    """Price-movement narrative for the summary, relative to the previous search.

    No baseline and an unchanged price are different states with different
    wording.
    """
    currency = settings.currency
    if previous is None:
        if channel == WHATSAPP:
            return "This is our starting point for tracking prices!"
        return (
            "This is the first time we've searched this trip, so this price "
            "becomes our reference going forward!"
        )

    difference = round(total - previous, 2)
    if channel == WHATSAPP:
        if difference > 0:
            return (
                f"*Price check:* Up {format_price(difference, currency)} since the last search. "
                f"_My advice is to wait a little and see if fares improve!_ ⏳"
            )
        if difference < 0:
            return (
                f"*Price check:* Good news! Down {format_price(abs(difference), currency)}. "
                f"_This could be a great moment to book!_ 🎉"
            )
        return "*Price check:* The price is stable. _We keep watching calmly!_ 👀"

    if difference > 0:
        return (
            f"I noticed the price went up {format_price(difference, currency)} since our last search. "
            f"My advice? Let's keep an eye on it a while longer, airfares can be volatile!"
        )
    if difference < 0:
        return (
            f"Great news! The price dropped {format_price(abs(difference), currency)} since we last checked. "
            f"This could be a great opportunity to lock in your booking!"
        )
    return (
        "The price has stayed stable since the last search. We're in a good "
        "position to keep monitoring without rushing."
    )


def whatsapp_html(text: str) -> str:
    """Render WhatsApp markup (*bold*, _italic_, newlines) as safe HTML."""
    escaped = html.escape(text, quote=False)
    escaped = _BOLD.sub(r"<strong>\1</strong>", escaped)
    escaped = _ITALIC.sub(r"<em>\1</em>", escaped)
    return escaped.replace("\n", "<br />")


class SummaryGenerator:
    """Generates email and WhatsApp summaries; never raises on LLM failure."""

    def __init__(self, llm: LLMClient | None = None):
        self.llm = llm or llm_client

    def _system_prompt(self) -> str:
        return (
            f"You are {settings.agent_name}, a friendly and enthusiastic travel agent at "
            f"{settings.agency_name}. Write in {settings.summary_language}."
        )

    def _build_email_prompt(self, results: TripResults, previous: float | None) -> str:
        total = results.total_flight_price
        flights = [f"{leg.origin} -> {leg.destination} with {leg.airline}" for leg in results.flights]
        stays = [f"{stay.days} days in {stay.city} at {stay.name}" for stay in results.accommodations]
        return f"""Write a warm, personal, easy-to-read email summary for a client. Use an encouraging tone and a few emojis.

The email must:
1. Open with an upbeat greeting.
2. Present the estimated total flight cost.
3. Include this price analysis and recommendation: "{price_analysis(total, previous, EMAIL)}".
4. Describe the flight itinerary simply.
5. Mention the hotel suggestions.
6. End with an optimistic note about continued price monitoring.
7. Do not include a formal sign-off.

Trip data:
- Total flight cost: {format_price(total, settings.currency)}
- Flights: {json.dumps(flights, ensure_ascii=False)}
- Stays: {json.dumps(stays, ensure_ascii=False)}"""

    def _build_whatsapp_prompt(self, results: TripResults, previous: float | None) -> str:
        total = results.total_flight_price
        route = [airport_code(leg.origin) for leg in results.flights]
        if results.flights:
            route.append(airport_code(results.flights[-1].destination))
        cities = ", ".join(stay.city for stay in results.accommodations)
        return f"""Write a short, friendly WhatsApp summary. Use emoji bullet points and WhatsApp syntax (*bold*, _italic_).

The summary must contain:
- A quick greeting.
- A bullet with the total flight cost.
- This price analysis bullet: "{price_analysis(total, previous, WHATSAPP)}".
- A bullet with the flight route.
- A bullet with the hotel cities.
- A closing call to action.

Trip data:
- Total flight cost: {format_price(total, settings.currency)}
- Route: {" -> ".join(route)}
- Cities: {cities}"""

    async def email_summary(self, results: TripResults, previous: float | None) -> str:
        try:
            return await self.llm.complete(
                system=self._system_prompt(),
                user=self._build_email_prompt(results, previous),
                max_tokens=800,
                temperature=0.7,
            )
        except Exception as e:
            logger.error(f"Error generating email summary: {e}")
            return settings.email_summary_fallback

    async def whatsapp_summary(self, results: TripResults, previous: float | None) -> str:
        try:
            return await self.llm.complete(
                system=self._system_prompt(),
                user=self._build_whatsapp_prompt(results, previous),
                max_tokens=500,
                temperature=0.7,
            )
        except Exception as e:
            logger.error(f"Error generating WhatsApp summary: {e}")
            return settings.whatsapp_summary_fallback

    async def both(self, results: TripResults, previous: float | None) -> tuple[str, str]:
        email, whatsapp = await asyncio.gather(
            self.email_summary(results, previous),
            self.whatsapp_summary(results, previous),
        )
        return email, whatsapp


summary_generator = SummaryGenerator()
