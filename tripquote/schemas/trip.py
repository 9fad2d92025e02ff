import math
from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from tripquote.services.trip_dates import max_date, min_date


def _check_amount(value: float) -> float:
    if not math.isfinite(value) or value < 0:
        raise ValueError("amount must be a finite, non-negative number")
    return value


class FlightLeg(BaseModel):
    origin: str = Field(alias="from")
    destination: str = Field(alias="to")
    airline: str
    departure: str  # "YYYY-MM-DD HH:mm"
    arrival: str  # "YYYY-MM-DD HH:mm"
    price: float

    model_config = {"populate_by_name": True}

    @field_validator("price")
    @classmethod
    def price_is_amount(cls, v: float) -> float:
        return _check_amount(v)


class HotelStay(BaseModel):
    city: str
    name: str
    days: int = Field(ge=0)
    price_per_night: float = Field(alias="pricePerNight")
    check_in_date: str = Field(alias="checkInDate")  # "YYYY-MM-DD"

    model_config = {"populate_by_name": True}

    @field_validator("price_per_night")
    @classmethod
    def price_is_amount(cls, v: float) -> float:
        return _check_amount(v)

    @property
    def total_price(self) -> float:
        return self.price_per_night * self.days


class TripResults(BaseModel):
    flights: list[FlightLeg]
    accommodations: list[HotelStay]

    @property
    def total_flight_price(self) -> float:
        return round(sum(leg.price for leg in self.flights), 2)

    def to_payload(self) -> dict:
        """Plain dict in the model's own JSON shape, as stored in the history."""
        return self.model_dump(by_alias=True)


class TripSearchRequest(BaseModel):
    departure_date: date
    return_date: date
    adults: int = Field(default=2, ge=1)
    children: int = Field(default=1, ge=0)

    @field_validator("departure_date")
    @classmethod
    def departure_in_window(cls, v: date) -> date:
        today = date.today()
        if v < min_date(today):
            raise ValueError("departure date cannot be in the past")
        if v > max_date(today):
            raise ValueError(f"departure date cannot be after {max_date(today).isoformat()}")
        return v

    @model_validator(mode="after")
    def return_after_departure(self) -> "TripSearchRequest":
        if self.return_date < self.departure_date:
            raise ValueError("return date cannot be before departure date")
        if self.return_date > max_date(date.today()):
            raise ValueError(f"return date cannot be after {max_date(date.today()).isoformat()}")
        return self
