"""Price history router — series, latest price and exports."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from tripquote.config import settings
from tripquote.dependencies import get_history_store, get_search_orchestrator
from tripquote.schemas.history import LatestPriceResponse, ObservationResponse, SeriesResponse
from tripquote.services.export_service import export_service
from tripquote.services.history_store import HistoryStore
from tripquote.services.search_orchestrator import SearchOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[ObservationResponse])
async def list_history(store: HistoryStore = Depends(get_history_store)):
    """Stored searches, oldest first."""
    ledger = await store.load()
    return [
        {
            "timestamp": entry.observed_at,
            "total_flight_price": entry.reference_price,
            "results": entry.payload,
        }
        for entry in ledger
    ]


@router.get("/series", response_model=SeriesResponse)
async def get_series(store: HistoryStore = Depends(get_history_store)):
    """Chart/table points with the change from the previous search."""
    ledger = await store.load()
    points = [
        {"date": point.date, "price": point.price, "change": point.change}
        for point in ledger.derive_series()
    ]
    return {
        "points": points,
        "max_price": max((p["price"] for p in points), default=0),
        "capacity": ledger.capacity,
        "currency": settings.currency,
    }


@router.get("/latest", response_model=LatestPriceResponse)
async def get_latest_price(store: HistoryStore = Depends(get_history_store)):
    ledger = await store.load()
    return {"price": ledger.latest_reference_price()}


@router.delete("")
async def clear_history(orchestrator: SearchOrchestrator = Depends(get_search_orchestrator)):
    await orchestrator.clear()
    logger.info("Price history cleared")
    return {"deleted": True}


@router.get("/export/csv")
async def export_csv(store: HistoryStore = Depends(get_history_store)):
    """Download the history as CSV, one row per flight leg."""
    ledger = await store.load()
    if not ledger:
        raise HTTPException(status_code=404, detail="No search history to export")

    return Response(
        content=export_service.history_csv(ledger),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=trip_history.csv"},
    )


@router.get("/export/pdf")
async def export_pdf(store: HistoryStore = Depends(get_history_store)):
    """Download the price history report as PDF."""
    ledger = await store.load()
    if not ledger:
        raise HTTPException(status_code=404, detail="No search history to export")

    return Response(
        content=export_service.history_pdf(ledger),
        media_type="application/pdf",
        headers={"Content-Disposition": "attachment; filename=trip_history.pdf"},
    )
