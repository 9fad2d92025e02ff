"""Currency display helpers."""

from decimal import ROUND_HALF_UP, Decimal

CURRENCY_SYMBOLS: dict[str, str] = {
    "BRL": "R$ ", "USD": "$", "CAD": "CA$", "GBP": "£", "EUR": "€",
    "JPY": "¥", "AUD": "A$", "INR": "₹", "CHF": "CHF ",
}

# Currencies displayed with "." as the thousands separator (pt-BR style)
DOT_GROUPED: set[str] = {"BRL"}


def _whole_units(amount: float) -> int:
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_price(amount: float, currency: str = "BRL") -> str:
    """Format a price in whole units with the currency symbol, e.g. "R$ 1.234"."""
    symbol = CURRENCY_SYMBOLS.get(currency, currency + " ")
    units = _whole_units(amount)
    grouped = f"{abs(units):,}"
    if currency in DOT_GROUPED:
        grouped = grouped.replace(",", ".")
    sign = "-" if units < 0 else ""
    return f"{sign}{symbol}{grouped}"


def format_change(change: float | None, currency: str = "BRL") -> str:
    """Format a period delta: "-" with no baseline, "+R$ 20" / "-R$ 30" otherwise."""
    if change is None:
        return "-"
    if change > 0:
        return "+" + format_price(change, currency)
    return format_price(change, currency)
