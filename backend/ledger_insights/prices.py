"""Historical price lookup used by portfolio valuation.

Prices are exchanged as a :data:`~ledger_insights.models.PriceTable`, a
mapping of ticker to ``{"YYYY-MM-DD": close}``. Fetching happens up front
through a pluggable :class:`PriceSource`; valuation itself only reads the
table, so it stays free of I/O.
"""

from __future__ import annotations

import bisect
from datetime import date
from typing import Dict, Mapping, MutableMapping, Optional, Protocol, Sequence

from .models import PriceTable


def iso_day(day: date) -> str:
    return day.isoformat()


class PriceSource(Protocol):
    """Pluggable provider of daily closing prices."""

    def get_historical_prices(
        self,
        tickers: Sequence[str],
        start: date,
        end: date,
    ) -> Dict[str, Dict[str, float]]:
        ...


class InMemoryPriceSource:
    """Simple price source for tests and offline runs."""

    def __init__(self, prices: Mapping[str, Mapping[date | str, float | str]]):
        self._prices: dict[str, dict[str, float]] = {}
        for ticker, date_map in prices.items():
            normalized: dict[str, float] = {}
            for day, value in date_map.items():
                key = day if isinstance(day, str) else iso_day(day)
                normalized[key] = float(value)
            self._prices[ticker] = normalized

    def get_historical_prices(
        self,
        tickers: Sequence[str],
        start: date,
        end: date,
    ) -> Dict[str, Dict[str, float]]:
        lower, upper = iso_day(start), iso_day(end)
        result: Dict[str, Dict[str, float]] = {}
        for ticker in tickers:
            series = self._prices.get(ticker, {})
            result[ticker] = {day: price for day, price in sorted(series.items()) if lower <= day <= upper}
        return result


class CachingPriceSource:
    """Cache wrapper to avoid refetching the same ticker and range."""

    def __init__(self, delegate: PriceSource):
        self.delegate = delegate
        self._range_cache: MutableMapping[tuple, Dict[str, float]] = {}

    def get_historical_prices(
        self,
        tickers: Sequence[str],
        start: date,
        end: date,
    ) -> Dict[str, Dict[str, float]]:
        missing = [ticker for ticker in tickers if (ticker, start, end) not in self._range_cache]
        if missing:
            fetched = self.delegate.get_historical_prices(missing, start, end)
            for ticker in missing:
                self._range_cache[(ticker, start, end)] = dict(fetched.get(ticker, {}))
        return {ticker: dict(self._range_cache[(ticker, start, end)]) for ticker in tickers}


class PriceLookup:
    """Pre-sorted view over a price table for repeated as-of queries."""

    def __init__(self, table: PriceTable):
        self._dates: dict[str, list[str]] = {}
        self._prices: dict[str, Mapping[str, float]] = {}
        for ticker, series in table.items():
            self._dates[ticker] = sorted(series)
            self._prices[ticker] = series

    def price_on(self, ticker: str, day: date) -> Optional[float]:
        """Price on ``day`` or the latest earlier date; ``None`` when nothing precedes it."""

        series = self._prices.get(ticker)
        if not series:
            return None
        key = iso_day(day)
        if key in series:
            return series[key]
        dates = self._dates[ticker]
        index = bisect.bisect_right(dates, key)
        if index == 0:
            return None
        return series[dates[index - 1]]


def resolve_price(table: PriceTable, ticker: str, day: date) -> Optional[float]:
    """Exact-date price, falling back to the most recent earlier one."""

    return PriceLookup({ticker: table.get(ticker, {})}).price_on(ticker, day)


__all__ = [
    "PriceSource",
    "InMemoryPriceSource",
    "CachingPriceSource",
    "PriceLookup",
    "resolve_price",
    "iso_day",
]
