"""Price history ledger — bounded, append-only window of trip searches."""

import json
import math
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Iterator

DEFAULT_CAPACITY = 7


class LedgerDecodeError(ValueError):
    """Raised when a persisted history blob cannot be decoded."""


@dataclass(frozen=True)
class Observation:
    """One completed trip search.

    `payload` is the trip result as returned by the model, stored verbatim.
    It must come back unchanged from a JSON round trip so the persisted
    ledger decodes to an equal one. Timestamps must carry a timezone.
    """

    observed_at: datetime
    reference_price: float
    payload: Any

    def __post_init__(self):
        if not isinstance(self.observed_at, datetime) or self.observed_at.tzinfo is None:
            raise ValueError(f"observed_at must be a timezone-aware datetime, got {self.observed_at!r}")
        if isinstance(self.reference_price, bool) or not isinstance(self.reference_price, (int, float)):
            raise ValueError(f"reference_price must be a number, got {self.reference_price!r}")
        if not math.isfinite(self.reference_price) or self.reference_price < 0:
            raise ValueError(f"reference_price must be finite and non-negative, got {self.reference_price!r}")
        try:
            restored = json.loads(json.dumps(self.payload))
        except (TypeError, ValueError) as e:
            raise ValueError(f"payload is not JSON-serializable: {e}") from e
        if restored != self.payload:
            raise ValueError(f"payload does not survive a JSON round trip: {self.payload!r}")


@dataclass(frozen=True)
class DerivedPoint:
    """Display projection of one observation.

    `change` is None for the first point (no baseline) and 0 when the price
    did not move; callers render those two states differently.
    """

    date: datetime
    price: float
    change: float | None


class PriceHistoryLedger:
    """Ordered observations, oldest first, capped at `capacity` entries."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY, entries: Iterable[Observation] = ()):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: deque[Observation] = deque(maxlen=capacity)
        for entry in entries:
            self.append(entry)

    def append(self, observation: Observation) -> "PriceHistoryLedger":
        """Add an observation at the tail, evicting the oldest beyond capacity."""
        if self._entries and observation.observed_at < self._entries[-1].observed_at:
            raise ValueError(
                f"observation at {observation.observed_at.isoformat()} is older than "
                f"the latest entry at {self._entries[-1].observed_at.isoformat()}"
            )
        self._entries.append(observation)
        return self

    def latest_reference_price(self) -> float | None:
        """Price of the most recent observation, or None when empty.

        Call this before appending the new search so the returned value is
        the baseline the new price is compared against.
        """
        if not self._entries:
            return None
        return self._entries[-1].reference_price

    def derive_series(self) -> Iterator[DerivedPoint]:
        """Yield one point per observation with its delta from the previous one.

        Deltas are rounded to cents so equal totals read as unchanged.
        """
        previous: float | None = None
        for entry in list(self._entries):
            change = None if previous is None else round(entry.reference_price - previous, 2)
            yield DerivedPoint(date=entry.observed_at, price=entry.reference_price, change=change)
            previous = entry.reference_price

    @property
    def entries(self) -> tuple[Observation, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self.entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PriceHistoryLedger):
            return NotImplemented
        return self.capacity == other.capacity and self.entries == other.entries

    def __repr__(self) -> str:
        return f"PriceHistoryLedger(capacity={self.capacity}, entries={len(self._entries)})"


# Persisted shape matches the stored search records: a JSON list of
# {"timestamp", "totalFlightPrice", "results"} objects, oldest first.

def encode(ledger: PriceHistoryLedger) -> str:
    return json.dumps([
        {
            "timestamp": entry.observed_at.isoformat(),
            "totalFlightPrice": entry.reference_price,
            "results": entry.payload,
        }
        for entry in ledger.entries
    ])


def decode(blob: str | bytes, capacity: int = DEFAULT_CAPACITY) -> PriceHistoryLedger:
    """Rebuild a ledger from `encode` output.

    Older entries beyond `capacity` are dropped. Raises LedgerDecodeError on
    malformed JSON, a wrong shape, or entries that break the ledger invariants.
    """
    try:
        raw = json.loads(blob)
    except (TypeError, ValueError) as e:
        raise LedgerDecodeError(f"History blob is not valid JSON: {e}") from e

    if not isinstance(raw, list):
        raise LedgerDecodeError(f"History blob must be a list, got {type(raw).__name__}")

    ledger = PriceHistoryLedger(capacity=capacity)
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise LedgerDecodeError(f"History entry {index} is not an object")
        missing = {"timestamp", "totalFlightPrice", "results"} - item.keys()
        if missing:
            raise LedgerDecodeError(f"History entry {index} is missing {sorted(missing)}")
        try:
            observed_at = datetime.fromisoformat(str(item["timestamp"]).replace("Z", "+00:00"))
            ledger.append(Observation(
                observed_at=observed_at,
                reference_price=item["totalFlightPrice"],
                payload=item["results"],
            ))
        except (TypeError, ValueError) as e:
            raise LedgerDecodeError(f"History entry {index} is invalid: {e}") from e
    return ledger
