import asyncio
import json
from datetime import date, timedelta

import pytest

from tests.conftest import FakeLLM, stamp, trip_payload
from tripquote.schemas.trip import TripResults, TripSearchRequest
from tripquote.services.history_store import MemoryHistoryStore
from tripquote.services.ledger import Observation, PriceHistoryLedger
from tripquote.services.search_orchestrator import SearchOrchestrator
from tripquote.services.summary_generator import SummaryGenerator
from tripquote.services.trip_generator import TripGenerator, TripSearchError


def _request():
    departure = date.today() + timedelta(days=60)
    return TripSearchRequest(departure_date=departure, return_date=departure + timedelta(days=14))


class RecordingSummaries(SummaryGenerator):
    def __init__(self):
        super().__init__(FakeLLM())
        self.previous_prices = []

    async def both(self, results, previous):
        self.previous_prices.append(previous)
        return "email body", "*whatsapp* body"


class FailingStore(MemoryHistoryStore):
    async def _write_blob(self, blob, entry_count):
        raise OSError("disk full")


class SlowStore(MemoryHistoryStore):
    async def _read_blob(self):
        blob = self.blob
        await asyncio.sleep(0.05)
        return blob


def _orchestrator(replies, store=None):
    summaries = RecordingSummaries()
    orchestrator = SearchOrchestrator(
        store or MemoryHistoryStore(capacity=7),
        generator=TripGenerator(FakeLLM(replies)),
        summaries=summaries,
    )
    return orchestrator, summaries


@pytest.mark.asyncio
async def test_successful_search_appends_and_persists():
    orchestrator, summaries = _orchestrator([json.dumps(trip_payload((1200.0, 800.0)))])
    response = await orchestrator.run_search(_request())

    assert response["total_flight_price"] == 2000.0
    assert response["previous_price"] is None
    assert summaries.previous_prices == [None]
    assert response["history"][-1]["price"] == 2000.0
    assert response["history"][-1]["change"] is None

    stored = await orchestrator.store.load()
    assert len(stored) == 1
    assert stored.entries[0].payload == trip_payload((1200.0, 800.0))


@pytest.mark.asyncio
async def test_baseline_is_read_before_append():
    replies = [json.dumps(trip_payload((p,))) for p in (200.0, 180.0, 180.0)]
    orchestrator, summaries = _orchestrator(replies)
    for _ in replies:
        await orchestrator.run_search(_request())

    assert summaries.previous_prices == [None, 200.0, 180.0]
    history = await orchestrator.store.load()
    assert [p.change for p in history.derive_series()] == [None, -20.0, 0.0]


@pytest.mark.asyncio
async def test_failed_search_leaves_history_untouched():
    store = MemoryHistoryStore(capacity=7)
    ledger = PriceHistoryLedger(capacity=7)
    ledger.append(Observation(observed_at=stamp(0), reference_price=500.0, payload=trip_payload((500.0,))))
    await store.save(ledger)
    before = store.blob

    orchestrator, summaries = _orchestrator([RuntimeError("quota exceeded")], store=store)
    with pytest.raises(TripSearchError):
        await orchestrator.run_search(_request())

    assert store.blob == before
    assert summaries.previous_prices == []


@pytest.mark.asyncio
async def test_history_is_capped_at_capacity():
    prices = [200.0, 180.0, 180.0, 250.0, 260.0, 240.0, 230.0, 210.0]
    orchestrator, _ = _orchestrator([json.dumps(trip_payload((p,))) for p in prices])
    for _ in prices:
        response = await orchestrator.run_search(_request())

    assert [p["price"] for p in response["history"]] == prices[1:]
    assert [p["change"] for p in response["history"]] == [None, 0.0, 70.0, 10.0, -20.0, -10.0, -20.0]


@pytest.mark.asyncio
async def test_concurrent_searches_do_not_lose_entries():
    replies = [json.dumps(trip_payload((100.0 + i,))) for i in range(5)]
    orchestrator, _ = _orchestrator(replies)
    await asyncio.gather(*(orchestrator.run_search(_request()) for _ in replies))
    assert len(await orchestrator.store.load()) == 5


@pytest.mark.asyncio
async def test_record_keeps_order_when_clock_goes_backwards():
    orchestrator, _ = _orchestrator([])
    results = TripResults.model_validate(trip_payload((100.0,)))
    await orchestrator.record(results, observed_at=stamp(10))
    previous, ledger = await orchestrator.record(results, observed_at=stamp(5))
    assert previous == 100.0
    assert [e.observed_at for e in ledger] == [stamp(10), stamp(10)]


@pytest.mark.asyncio
async def test_save_failure_still_returns_results():
    orchestrator, _ = _orchestrator([json.dumps(trip_payload())], store=FailingStore())
    response = await orchestrator.run_search(_request())
    assert response["total_flight_price"] == 2000.0


@pytest.mark.asyncio
async def test_response_carries_links_and_rendered_whatsapp():
    orchestrator, _ = _orchestrator([json.dumps(trip_payload((1200.0, 800.0)))])
    response = await orchestrator.run_search(_request())

    assert response["flight_links"][0].startswith("https://www.google.com/flights#flt=GRU.LIS.2025-05-10")
    assert response["hotel_links"][0].startswith("https://www.google.com/search?q=Hotel%20Avenida%200")
    assert response["hotel_totals"] == [1800.0]
    assert response["email_link"].startswith("mailto:")
    assert response["whatsapp_link"].startswith("https://wa.me/")
    assert response["whatsapp_html"] == "<strong>whatsapp</strong> body"


@pytest.mark.asyncio
async def test_clear_waits_for_in_flight_record():
    store = SlowStore(capacity=7)
    ledger = PriceHistoryLedger(capacity=7)
    ledger.append(Observation(observed_at=stamp(0), reference_price=500.0, payload=trip_payload((500.0,))))
    await store.save(ledger)

    orchestrator, _ = _orchestrator([], store=store)
    results = TripResults.model_validate(trip_payload((100.0,)))
    recording = asyncio.create_task(orchestrator.record(results, observed_at=stamp(1)))
    await asyncio.sleep(0.01)
    await orchestrator.clear()
    await recording

    assert store.blob is None
    assert len(await store.load()) == 0
