"""Cell-level parsers for money, quantities and dates found in CSV exports."""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any, Mapping, Optional

import pandas as pd

_MONEY_NOISE = re.compile(r"[$€£,\s]")

ACTIVITY_DATE_FORMATS = ("%m/%d/%Y", "%m/%d/%y", "%Y-%m-%d")
US_DATE_FORMAT = "%m/%d/%Y"


def cell(row: Mapping[str, Any], column: str) -> str:
    """Return a stripped string for ``column``; missing or NaN cells become ``""``."""

    value = row.get(column)
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    return str(value).strip()


def parse_amount(raw: Any, *, empty: Optional[float] = None) -> Optional[float]:
    """Parse a money or quantity cell.

    Currency symbols, thousands separators and whitespace are stripped. A value
    wrapped in parentheses is accounting notation for a negative number. Blank
    cells return ``empty``; anything else that is not a finite number returns
    ``None``.
    """

    if raw is None:
        return empty
    text = _MONEY_NOISE.sub("", str(raw))
    if not text:
        return empty
    negative = "(" in text or ")" in text
    text = text.replace("(", "").replace(")", "")
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return -value if negative else value


def _parse_with_formats(raw: str, formats: tuple[str, ...]) -> Optional[datetime]:
    text = raw.strip()
    if not text:
        return None
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_activity_date(raw: str) -> Optional[datetime]:
    """Parse a brokerage activity date into a midnight timestamp."""

    return _parse_with_formats(raw, ACTIVITY_DATE_FORMATS)


def parse_us_date(raw: str) -> Optional[datetime]:
    """Parse a US-locale ``MM/DD/YYYY`` bank statement date."""

    return _parse_with_formats(raw, (US_DATE_FORMAT,))


__all__ = [
    "ACTIVITY_DATE_FORMATS",
    "US_DATE_FORMAT",
    "cell",
    "parse_amount",
    "parse_activity_date",
    "parse_us_date",
]
