from decimal import Decimal

import pytest

from prizepool.utils.money import from_minor_units, percent_of, quantize_money, to_minor_units


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("1.005", "1.01"),
        ("1.004", "1.00"),
        ("2.675", "2.68"),
        (3, "3.00"),
        (Decimal("-0.125"), "-0.13"),
    ],
)
def test_quantize_rounds_half_up(value: Decimal | int | str, expected: str) -> None:
    assert quantize_money(value) == Decimal(expected)


def test_percent_of() -> None:
    assert percent_of(Decimal("10.00"), Decimal(75)) == Decimal("7.50")
    assert percent_of(Decimal("4.47"), Decimal(75)) == Decimal("3.35")
    assert percent_of(Decimal("100.00"), Decimal("12.5")) == Decimal("12.50")


def test_minor_units() -> None:
    assert to_minor_units(Decimal("100.00")) == 10000
    assert to_minor_units(Decimal("0.015")) == 2
    assert from_minor_units(1999) == Decimal("19.99")
