"""
Fixed-point money helpers.

All monetary values are ``Decimal`` with two fractional digits. Rounding is always
round-half-up to the cent; binary floats never touch an amount.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal(100)


def quantize_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    return quantize_money(amount * percent / HUNDRED)


def to_minor_units(amount: Decimal) -> int:
    """Convert a currency amount to integer cents, rounding to the nearest cent."""
    return int((quantize_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(minor_units: int) -> Decimal:
    return quantize_money(Decimal(minor_units) / 100)
