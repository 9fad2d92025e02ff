"""Trip search router."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from tripquote.config import settings
from tripquote.dependencies import get_search_orchestrator
from tripquote.schemas.trip import TripSearchRequest
from tripquote.services.search_orchestrator import SearchOrchestrator
from tripquote.services.trip_dates import initial_departure_date, initial_return_date, max_date, min_date
from tripquote.services.trip_generator import TripSearchError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/defaults")
async def search_defaults():
    """Initial form values and the allowed date window."""
    today = date.today()
    departure = initial_departure_date(today)
    return {
        "departure_date": departure.isoformat(),
        "return_date": initial_return_date(departure).isoformat(),
        "min_date": min_date(today).isoformat(),
        "max_date": max_date(today).isoformat(),
        "adults": settings.default_adults,
        "children": settings.default_children,
    }


@router.post("")
async def run_search(
    req: TripSearchRequest,
    orchestrator: SearchOrchestrator = Depends(get_search_orchestrator),
):
    """Generate trip options and record the price in the history."""
    try:
        return await orchestrator.run_search(req)
    except TripSearchError as e:
        raise HTTPException(status_code=502, detail=str(e))
