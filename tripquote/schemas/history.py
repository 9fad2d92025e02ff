from datetime import datetime
from typing import Any

from pydantic import BaseModel


class ObservationResponse(BaseModel):
    timestamp: datetime
    total_flight_price: float
    results: Any


class SeriesPointResponse(BaseModel):
    date: datetime
    price: float
    change: float | None  # null = no previous search, 0 = unchanged


class SeriesResponse(BaseModel):
    points: list[SeriesPointResponse]
    max_price: float
    capacity: int
    currency: str


class LatestPriceResponse(BaseModel):
    price: float | None
