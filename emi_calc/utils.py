"""Utility functions for the EMI calculator.

This module provides helpers for currency rounding, for stepping due dates
forward by one installment period and for parsing user input (amounts and
ISO calendar dates) into Python data types.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal, DecimalException, InvalidOperation

from .data_models import Periodicity

CENT = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    """Round a currency amount to whole cents, halves away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def advance(dt: date, periodicity: Periodicity) -> date:
    """Return the date one installment period after ``dt``."""
    if periodicity is Periodicity.WEEKLY:
        return dt + timedelta(days=7)
    return add_months(dt, 1)


def parse_iso_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string into a ``date``.

    Raises
    ------
    ValueError
        If the string is not a valid calendar date.
    """
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value}") from exc


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails.
    """
    try:
        cleaned = value.replace(",", "").strip()
        return Decimal(cleaned)
    except (AttributeError, InvalidOperation) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc


def parse_amount(value: str) -> Decimal:
    """Parse an amount with optional ``k``/``m`` suffix.

    Accepts plain numbers ("50000", "50,000") and shorthand such as "50k"
    meaning 50 000.
    """
    text = str(value).strip().lower().replace(",", "")
    factor = Decimal(1)
    if text.endswith("k"):
        factor = Decimal(1_000)
        text = text[:-1]
    elif text.endswith("m"):
        factor = Decimal(1_000_000)
        text = text[:-1]
    amount = decimal_from_str(text)
    try:
        return amount * factor
    except DecimalException as exc:
        raise ValueError(f"Amount out of range: {value}") from exc
