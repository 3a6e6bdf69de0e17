"""Utility functions for the EMI plan calculator.

This module provides helpers for parsing user input into ``Decimal`` values
and for rendering amounts for display. Amounts are kept at full precision
everywhere else; rounding happens only here.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Optional, Union

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

CENT = Decimal("0.01")

Number = Union[Decimal, int, float]


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and surrounding whitespace and handles both
    integer and float-like strings. It raises ``ValueError`` if conversion
    fails.
    """
    try:
        cleaned = str(value).replace(",", "").strip()
        result = Decimal(cleaned)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000", "1,250.50") and shorthand with ``k``/``m``
    suffixes (e.g., "500k" meaning 500_000). An empty string parses as zero,
    like an empty currency field in the form.
    """
    value = str(value).strip().lower().replace(",", "")
    if value == "":
        return Decimal("0")
    factor = Decimal("1")
    if value.endswith("k"):
        factor = Decimal("1000")
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal("1000000")
        value = value[:-1]
    return decimal_from_str(value) * factor


def parse_optional_amount(value: Optional[str]) -> Optional[Decimal]:
    if value is None or str(value).strip() == "":
        return None
    return parse_amount(value)


def parse_int(value: str) -> int:
    """Parse a whole number of years; blank means zero."""
    value = str(value).strip()
    if value == "":
        return 0
    number = decimal_from_str(value)
    if number != number.to_integral_value():
        raise ValueError(f"Expected a whole number: {value}")
    return int(number)


def format_amount(value: Number) -> str:
    """Render an amount with thousands separators.

    Two decimal places are shown, or none when the value is a whole number
    once rounded to the cent.
    """
    rounded = Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded == 0:
        rounded = abs(rounded)  # no "-0"
    if rounded == rounded.to_integral_value():
        return f"{rounded:,.0f}"
    return f"{rounded:,.2f}"


def format_plain(value: Number) -> str:
    """Render a value at full precision, without grouping or exponent.

    Used to refill form inputs so a re-submitted form reads back the same
    number.
    """
    number = Decimal(str(value)).normalize()
    if number == 0:
        return "0"
    return format(number, "f")


def format_currency(value: Number, symbol: str = "$") -> str:
    text = format_amount(value)
    if text.startswith("-"):
        return f"-{symbol}{text[1:]}"
    return f"{symbol}{text}"


def format_percentage(value: Optional[Number]) -> str:
    if value is None:
        value = 0
    return f"{Decimal(str(value)):.2f}%"
