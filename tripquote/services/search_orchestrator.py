"""Search orchestrator — runs a trip search and records it in the price history."""

import asyncio
import logging
import time
from datetime import datetime, timezone

from tripquote.config import settings
from tripquote.schemas.trip import TripResults, TripSearchRequest
from tripquote.services.history_store import HistoryStore
from tripquote.services.ledger import Observation, PriceHistoryLedger
from tripquote.services.share_links import flight_search_url, hotel_search_url, mailto_link, whatsapp_link
from tripquote.services.summary_generator import SummaryGenerator, summary_generator, whatsapp_html
from tripquote.services.trip_generator import TripGenerator, trip_generator

logger = logging.getLogger(__name__)


def series_to_dicts(ledger: PriceHistoryLedger) -> list[dict]:
    return [
        {"date": point.date.isoformat(), "price": point.price, "change": point.change}
        for point in ledger.derive_series()
    ]


class SearchOrchestrator:
    """Coordinates trip generation, history bookkeeping and summaries.

    The history is only touched after the trip generator succeeds, so a
    failed search leaves it exactly as it was.
    """

    def __init__(
        self,
        store: HistoryStore,
        generator: TripGenerator | None = None,
        summaries: SummaryGenerator | None = None,
    ):
        self.store = store
        self.generator = generator or trip_generator
        self.summaries = summaries or summary_generator
        self._history_lock = asyncio.Lock()

    async def record(self, results: TripResults, observed_at: datetime | None = None) -> tuple[float | None, PriceHistoryLedger]:
        """Append a completed search to the history.

        Returns the previous latest price (read before the append) and the
        updated ledger.
        """
        async with self._history_lock:
            ledger = await self.store.load()
            previous = ledger.latest_reference_price()
            stamp = observed_at or datetime.now(timezone.utc)
            if ledger and stamp < ledger.entries[-1].observed_at:
                # Clock moved backwards; keep the history ordered.
                stamp = ledger.entries[-1].observed_at
            ledger.append(Observation(
                observed_at=stamp,
                reference_price=results.total_flight_price,
                payload=results.to_payload(),
            ))
            try:
                await self.store.save(ledger)
            except Exception as e:
                logger.error(f"Failed to persist price history: {e}")
        return previous, ledger

    async def clear(self) -> None:
        """Drop the stored history once any in-flight record has finished."""
        async with self._history_lock:
            await self.store.clear()

    async def run_search(self, request: TripSearchRequest) -> dict:
        """Execute one trip search.

        Raises:
            TripSearchError if the itinerary could not be generated.
        """
        start_time = time.monotonic()

        results = await self.generator.generate(request)
        previous, ledger = await self.record(results)
        email, whatsapp = await self.summaries.both(results, previous)

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            f"Trip search {request.departure_date}..{request.return_date} "
            f"({request.adults}+{request.children}) finished in {elapsed_ms}ms; "
            f"history now {len(ledger)} entries"
        )

        return {
            "results": results.to_payload(),
            "total_flight_price": results.total_flight_price,
            "previous_price": previous,
            "currency": settings.currency,
            "flight_links": [flight_search_url(leg, settings.currency) for leg in results.flights],
            "hotel_links": [hotel_search_url(stay) for stay in results.accommodations],
            "hotel_totals": [stay.total_price for stay in results.accommodations],
            "email_summary": email,
            "email_link": mailto_link(settings.email_recipient, settings.email_subject, email),
            "whatsapp_summary": whatsapp,
            "whatsapp_html": whatsapp_html(whatsapp),
            "whatsapp_link": whatsapp_link(settings.whatsapp_phone, whatsapp),
            "history": series_to_dicts(ledger),
            "metadata": {"response_time_ms": elapsed_ms},
        }
