"""Decimal helpers for money amounts."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

WHOLE_DONG = Decimal("1")


def to_decimal(value: Any) -> Decimal:
    """Coerce an int/float/str/Decimal to Decimal.

    Floats go through ``str`` so 0.105 stays 0.105.
    """
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a number: {value!r}") from e


def round_money(amount: Decimal, precision: Decimal = WHOLE_DONG) -> Decimal:
    """Round a money amount half-up to the given precision."""
    return amount.quantize(precision, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal, currency: str = "VND") -> str:
    """Format an amount with thousands separators, e.g. ``1,050,000 VND``."""
    if amount == amount.to_integral_value():
        text = f"{int(amount):,}"
    else:
        text = f"{amount:,.2f}"
    return f"{text} {currency}" if currency else text
