"""Monetary rounding helpers.

Amounts are stored as floats on aggregates, but every calculation goes
through Decimal and is rounded half-up to two places.
"""

from decimal import ROUND_HALF_UP, Decimal

_CENTS = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Convert a float, int or string amount to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value if value is not None else 0))


def round_money(value) -> Decimal:
    return to_decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)


def as_float(value) -> float:
    """Round half-up to cents and return a float for persistence."""
    return float(round_money(value))
