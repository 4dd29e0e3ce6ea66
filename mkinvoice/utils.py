"""Utility functions shared across the invoice generator."""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from dateutil import parser

from .money import Money

CURRENCY_SYMBOLS = {"USD": "$", "AUD": "$", "CAD": "$", "NZD": "$", "EUR": "€", "GBP": "£", "INR": "₹", "JPY": "¥"}

# Fixed English abbreviations; strftime("%b") follows the process locale.
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_SENTINELS = (dt.datetime(2000, 1, 1), dt.datetime(2001, 2, 2))


def parse_date(value: str) -> Optional[dt.date]:
    """Parse a complete calendar date; returns None on failure.

    Partial dates such as ``"March 2024"`` are rejected: dateutil fills missing
    components from a default, so the string is parsed against two different
    defaults and must give the same answer both times.
    """
    if not value or not value.strip():
        return None
    try:
        first, second = (parser.parse(value, yearfirst=True, dayfirst=False, default=d) for d in _SENTINELS)
    except (ValueError, TypeError, OverflowError):
        return None
    if first.date() != second.date():
        return None
    return first.date()


def format_date(value: dt.date) -> str:
    """Render a date as ``15 Jan 2024``."""
    return f"{value.day:02d} {MONTH_ABBR[value.month - 1]} {value.year}"


def currency_symbol(code: str) -> str:
    """Display prefix for a currency code; unknown codes are used as-is."""
    code = code.strip().upper()
    return CURRENCY_SYMBOLS.get(code, f"{code} ")


def format_money(amount: Money, currency: str) -> str:
    return f"{currency_symbol(currency)}{amount.format()}"


def format_quantity(value: Decimal) -> str:
    """Drop trailing zeros: ``Decimal("4.00")`` -> ``4``, ``Decimal("1.50")`` -> ``1.5``."""
    return format(value.normalize(), "f")


def clean_text(value: object) -> Optional[str]:
    """Strip a scalar to text; None and blank strings become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None
