"""Date helpers for the trip search form."""

import calendar
from datetime import date, timedelta

DEFAULT_LEAD_MONTHS = 2
DEFAULT_TRIP_LENGTH_DAYS = 14


def add_months(d: date, months: int) -> date:
    """Shift by calendar months, clamping the day to the target month's end."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def initial_departure_date(today: date | None = None) -> date:
    return add_months(today or date.today(), DEFAULT_LEAD_MONTHS)


def initial_return_date(departure: date) -> date:
    return departure + timedelta(days=DEFAULT_TRIP_LENGTH_DAYS)


def min_date(today: date | None = None) -> date:
    return today or date.today()


def max_date(today: date | None = None) -> date:
    """Last bookable day: Dec 31 of next year."""
    return date((today or date.today()).year + 1, 12, 31)


def trip_days(departure: date, return_date: date) -> int:
    """Number of travel days, counting both ends."""
    return abs((return_date - departure).days) + 1
