"""Split adjustment for brokerage share history.

A split shows up in the export as an ``SPL`` row carrying only the share delta.
Adjusting rewrites every earlier row of the same ticker so that quantities are
expressed in post-split shares and prices in post-split dollars, keeping the
trade notional unchanged. The ``SPL`` row itself is zeroed afterwards since its
delta is already folded into the adjusted history.

Run this once per raw parse: feeding adjusted output back in would apply the
ratios a second time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Iterable, List, Sequence, Tuple

from .diagnostics import SplitDiagnostics
from .models import StockTransaction

logger = logging.getLogger(__name__)

DEFAULT_HOLDINGS_EPSILON = 1e-4


@dataclass
class SplitAdjustment:
    """Adjusted share history sorted ascending, plus what the adjuster saw."""

    transactions: List[StockTransaction]
    diagnostics: SplitDiagnostics


def replay_key(tx: StockTransaction) -> tuple:
    """Ordering used for replay: split rows last within a timestamp, then a full tie-break."""

    return (
        tx.timestamp,
        tx.is_split,
        tx.ticker,
        str(getattr(tx.type, "value", tx.type)),
        tx.quantity,
        tx.price,
        tx.amount,
    )


def _group_by_ticker(transactions: Iterable[StockTransaction]) -> Dict[str, List[StockTransaction]]:
    grouped: Dict[str, List[StockTransaction]] = {}
    for tx in transactions:
        grouped.setdefault(tx.ticker, []).append(tx)
    return grouped


def find_split_ratios(ordered: Sequence[StockTransaction]) -> Tuple[List[Tuple[datetime, float]], int]:
    """Return ``(timestamp, ratio)`` per split for one ticker's ordered history.

    The ratio is holdings after the split over holdings before it. Splits that
    arrive while the position is empty (or would leave it empty) cannot yield a
    ratio; they are counted and returned as the second element.
    """

    holdings = 0.0
    splits: List[Tuple[datetime, float]] = []
    ignored = 0
    for tx in ordered:
        holdings += tx.signed_quantity
        if not tx.is_split:
            continue
        before = holdings - tx.signed_quantity
        if before > 0 and holdings > 0:
            splits.append((tx.timestamp, holdings / before))
        else:
            ignored += 1
    return splits, ignored


def _adjust_ticker(
    ordered: Sequence[StockTransaction],
    splits: Sequence[Tuple[datetime, float]],
) -> List[StockTransaction]:
    adjusted: List[StockTransaction] = []
    for tx in ordered:
        if tx.is_split:
            adjusted.append(replace(tx, quantity=0.0, price=0.0))
            continue
        factor = 1.0
        for split_time, ratio in splits:
            # Rows replayed before the split row are pre-split shares.
            if tx.timestamp <= split_time:
                factor *= ratio
        if factor == 1.0:
            adjusted.append(tx)
            continue
        # Zero-price rows (transfers in) only carry a share count.
        price = tx.price / factor if tx.price > 0 else tx.price
        adjusted.append(replace(tx, quantity=tx.quantity * factor, price=price))
    return adjusted


def _went_negative(ordered: Sequence[StockTransaction], epsilon: float) -> bool:
    holdings = 0.0
    for tx in ordered:
        holdings += tx.signed_quantity
        if holdings < -epsilon:
            return True
    return False


def adjust_for_splits(
    transactions: Iterable[StockTransaction],
    *,
    epsilon: float = DEFAULT_HOLDINGS_EPSILON,
) -> SplitAdjustment:
    """Return a new, ascending list with every ticker's history split-adjusted."""

    diagnostics = SplitDiagnostics()
    adjusted: List[StockTransaction] = []

    for ticker, ticker_transactions in _group_by_ticker(transactions).items():
        ordered = sorted(ticker_transactions, key=replay_key)
        splits, ignored = find_split_ratios(ordered)
        diagnostics.splits_applied += len(splits)
        diagnostics.ignored_splits += ignored
        for split_time, ratio in splits:
            logger.info("%s split detected: %.4fx ratio on %s", ticker, ratio, split_time.date())
        if ignored:
            logger.warning("%s has %d split row(s) with no position to split", ticker, ignored)

        ticker_adjusted = _adjust_ticker(ordered, splits)
        if _went_negative(ticker_adjusted, epsilon):
            diagnostics.negative_holdings.add(ticker)
            logger.warning("%s holdings drop below zero after split adjustment", ticker)
        adjusted.extend(ticker_adjusted)

    adjusted.sort(key=replay_key)
    return SplitAdjustment(transactions=adjusted, diagnostics=diagnostics)


__all__ = [
    "DEFAULT_HOLDINGS_EPSILON",
    "SplitAdjustment",
    "adjust_for_splits",
    "find_split_ratios",
    "replay_key",
]
