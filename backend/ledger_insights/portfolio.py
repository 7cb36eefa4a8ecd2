"""Point-in-time portfolio reconstruction and valuation series."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from .diagnostics import MissingPrice, ValuationDiagnostics
from .models import CashTransaction, Portfolio, PortfolioValuePoint, PriceTable, StockTransaction
from .prices import PriceLookup
from .splits import DEFAULT_HOLDINGS_EPSILON, replay_key

logger = logging.getLogger(__name__)


@dataclass
class PortfolioValueSeries:
    points: List[PortfolioValuePoint] = field(default_factory=list)
    diagnostics: ValuationDiagnostics = field(default_factory=ValuationDiagnostics)


def unique_tickers(stock: Iterable[StockTransaction]) -> List[str]:
    """Tickers in the order they first appear."""

    seen: Dict[str, None] = {}
    for tx in stock:
        seen.setdefault(tx.ticker, None)
    return list(seen)


def _fold_holdings(stock: Iterable[StockTransaction], at: datetime) -> Dict[str, float]:
    holdings: Dict[str, float] = {}
    for tx in stock:
        if tx.timestamp > at:
            continue
        holdings[tx.ticker] = holdings.get(tx.ticker, 0.0) + tx.signed_quantity
    return holdings


def compute_portfolio_at(
    stock: Iterable[StockTransaction],
    cash: Iterable[CashTransaction],
    at: datetime,
    *,
    epsilon: float = DEFAULT_HOLDINGS_EPSILON,
) -> Portfolio:
    """Cash balance and open positions from every row at or before ``at``.

    Positions at or under ``epsilon`` (including negative ones) are left out.
    """

    holdings = {
        ticker: quantity
        for ticker, quantity in _fold_holdings(stock, at).items()
        if quantity > epsilon
    }
    balance = sum(tx.amount for tx in cash if tx.timestamp <= at)
    return Portfolio(cash=balance, holdings=holdings)


def compute_portfolio_value_series(
    stock: Sequence[StockTransaction],
    cash: Sequence[CashTransaction],
    price_table: PriceTable,
    start: Optional[datetime],
    end: datetime,
    *,
    epsilon: float = DEFAULT_HOLDINGS_EPSILON,
) -> PortfolioValueSeries:
    """Value the portfolio at each transaction timestamp, plus ``end``.

    History is always replayed from the first row; ``start`` only trims the
    returned points. Holdings without a price on or before a date are valued
    at zero and reported in the diagnostics.
    """

    series = PortfolioValueSeries()
    diagnostics = series.diagnostics
    lookup = PriceLookup(price_table)
    ordered_stock = sorted(stock, key=replay_key)

    timestamps = sorted({tx.timestamp for tx in ordered_stock} | {tx.timestamp for tx in cash})
    if not timestamps or timestamps[-1] < end:
        timestamps.append(end)

    for at in timestamps:
        if start is not None and at < start:
            continue
        for ticker, quantity in _fold_holdings(ordered_stock, at).items():
            if quantity < -epsilon:
                diagnostics.negative_holdings.add(ticker)

        portfolio = compute_portfolio_at(ordered_stock, cash, at, epsilon=epsilon)
        day = at.date()
        stock_value = 0.0
        for ticker, quantity in portfolio.holdings.items():
            price = lookup.price_on(ticker, day)
            if price is None:
                diagnostics.missing_prices.append(MissingPrice(ticker=ticker, date=day, quantity=quantity))
                continue
            stock_value += quantity * price

        series.points.append(
            PortfolioValuePoint(
                date=day,
                timestamp=at,
                portfolio_value=portfolio.cash + stock_value,
                cash_value=portfolio.cash,
                stock_value=stock_value,
            )
        )

    if diagnostics.missing_prices:
        logger.warning(
            "No price on or before valuation date for %d position(s): %s",
            len(diagnostics.missing_prices),
            ", ".join(sorted(diagnostics.tickers_missing_prices)),
        )
    if diagnostics.negative_holdings:
        logger.warning("Negative holdings during valuation: %s", ", ".join(sorted(diagnostics.negative_holdings)))
    logger.debug("Computed %d portfolio value points", len(series.points))
    return series


__all__ = [
    "PortfolioValueSeries",
    "compute_portfolio_at",
    "compute_portfolio_value_series",
    "unique_tickers",
]
