"""Diagnostics returned alongside each pipeline stage's result.

Row-level problems never raise; they are tallied here so callers and tests
can see what was dropped and why without scraping log output.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import List, Set


@dataclass
class ParseDiagnostics:
    """Row accounting for one CSV parse."""

    total_rows: int = 0
    parsed_rows: int = 0
    dropped_rows: int = 0
    unrecognized_codes: Counter = field(default_factory=Counter)
    codes_seen: Set[str] = field(default_factory=set)

    @property
    def unrecognized_rows(self) -> int:
        return sum(self.unrecognized_codes.values())

    def record_dropped(self) -> None:
        self.dropped_rows += 1

    def record_unrecognized(self, code: str) -> None:
        self.unrecognized_codes[code] += 1


@dataclass
class SplitDiagnostics:
    """Splits applied and anomalies found while adjusting share history."""

    splits_applied: int = 0
    ignored_splits: int = 0
    negative_holdings: Set[str] = field(default_factory=set)


@dataclass(frozen=True)
class MissingPrice:
    ticker: str
    date: date
    quantity: float


@dataclass
class ValuationDiagnostics:
    """Gaps encountered while pricing a portfolio series."""

    missing_prices: List[MissingPrice] = field(default_factory=list)
    negative_holdings: Set[str] = field(default_factory=set)

    @property
    def tickers_missing_prices(self) -> Set[str]:
        return {gap.ticker for gap in self.missing_prices}


__all__ = [
    "ParseDiagnostics",
    "SplitDiagnostics",
    "MissingPrice",
    "ValuationDiagnostics",
]
