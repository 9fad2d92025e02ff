import os

# Settings are read at import time; keep tests off real services.
os.environ.setdefault("HISTORY_BACKEND", "memory")
os.environ.setdefault("OPENAI_API_KEY", "")
os.environ.setdefault("ANTHROPIC_API_KEY", "")

import json
from datetime import datetime, timedelta, timezone

import pytest

BASE_TIME = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def trip_payload(flight_prices=(1200.0, 800.0), stays=1) -> dict:
    """Trip result in the model's JSON shape."""
    places = ["São Paulo (GRU)", "Portugal (LIS)", "Paris (CDG)", "Londres (LHR)"]
    flights = []
    for i, price in enumerate(flight_prices):
        flights.append({
            "from": places[i % len(places)],
            "to": places[(i + 1) % len(places)],
            "airline": "TAP Air Portugal" if i == 0 else "Air France",
            "departure": f"2025-05-{10 + i:02d} 22:15",
            "arrival": f"2025-05-{11 + i:02d} 11:40",
            "price": price,
        })
    accommodations = [
        {
            "city": "Lisboa",
            "name": f"Hotel Avenida {n}",
            "days": 4,
            "pricePerNight": 450.0,
            "checkInDate": "2025-05-11",
        }
        for n in range(stays)
    ]
    return {"flights": flights, "accommodations": accommodations}


def stamp(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


class FakeLLM:
    """Stands in for LLMClient: returns queued replies, or raises queued exceptions."""

    def __init__(self, replies=None, default: str = "summary text"):
        self.replies = list(replies or [])
        self.default = default
        self.calls: list[dict] = []
        self.configured = True

    async def complete(self, system, user, *, max_tokens=1000, temperature=0, json_mode=False):
        self.calls.append({"system": system, "user": user, "json_mode": json_mode})
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def trip_json():
    return json.dumps(trip_payload())
