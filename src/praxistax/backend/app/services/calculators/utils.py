"""Utility helpers for calculator modules."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def round_currency(value: Decimal | int) -> Decimal:
    """Round monetary amounts to cents, half-up."""

    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def ensure_non_negative(value: Decimal | int) -> Decimal:
    """Round ``value`` to cents and floor it at zero."""

    rounded = round_currency(value)
    return rounded if rounded > 0 else round_currency(ZERO)


def as_percentage(part: Decimal, whole: Decimal) -> Decimal:
    """Return ``part / whole`` as a rounded percentage, 0 for an empty ``whole``."""

    if whole <= 0:
        return round_currency(ZERO)
    return round_currency(part / whole * HUNDRED)


def format_percentage(rate: Decimal) -> str:
    """Return a human-readable percentage label for the fraction ``rate``."""

    percentage = rate * HUNDRED
    if percentage == percentage.to_integral_value():
        return f"{int(percentage)}%"
    return f"{percentage.quantize(CENT, rounding=ROUND_HALF_UP)}%"


def format_euro(amount: Decimal, locale: str = "de", decimals: int = 0) -> str:
    """Format ``amount`` as euros using the locale's digit grouping."""

    quantum = Decimal(1).scaleb(-decimals)
    rounded = Decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP)
    text = f"{rounded:,.{decimals}f}"
    if locale == "de":
        text = text.replace(",", "\0").replace(".", ",").replace("\0", ".")
        return f"€ {text}"
    return f"€{text}"


__all__ = [
    "CENT",
    "HUNDRED",
    "ZERO",
    "as_percentage",
    "ensure_non_negative",
    "format_euro",
    "format_percentage",
    "round_currency",
]
