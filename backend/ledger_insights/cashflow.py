"""Deposit and withdrawal aggregation for the cash stream."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Dict, Iterable, List, Sequence

from .models import CashTransaction, CashType, DepositPoint, RangeStatistics

DAYS_PER_MONTH = 30.44
_SECONDS_PER_DAY = 86400.0


def aggregate_by_date(cash: Iterable[CashTransaction]) -> List[DepositPoint]:
    """Bucket deposits and withdrawals per calendar date, ascending.

    Both totals are absolute values; other cash types are ignored.
    """

    deposits: Dict[date, float] = {}
    withdrawals: Dict[date, float] = {}
    for tx in cash:
        if tx.type == CashType.DEPOSIT:
            deposits[tx.date] = deposits.get(tx.date, 0.0) + abs(tx.amount)
            withdrawals.setdefault(tx.date, 0.0)
        elif tx.type == CashType.WITHDRAWAL:
            withdrawals[tx.date] = withdrawals.get(tx.date, 0.0) + abs(tx.amount)
            deposits.setdefault(tx.date, 0.0)

    return [
        DepositPoint(
            date=day,
            timestamp=datetime.combine(day, time.min),
            deposit=deposits[day],
            withdrawal=withdrawals[day],
        )
        for day in sorted(deposits)
    ]


def cumulative(series: Iterable[DepositPoint]) -> List[DepositPoint]:
    """Attach the running net (deposits minus withdrawals) to each point."""

    running = 0.0
    result: List[DepositPoint] = []
    for point in series:
        running += point.deposit - point.withdrawal
        result.append(
            DepositPoint(
                date=point.date,
                timestamp=point.timestamp,
                deposit=point.deposit,
                withdrawal=point.withdrawal,
                cumulative=running,
            )
        )
    return result


def range_statistics(
    series: Sequence[DepositPoint],
    start: datetime,
    end: datetime,
    *,
    days_per_month: float = DAYS_PER_MONTH,
) -> RangeStatistics:
    """Totals over the inclusive range between ``start`` and ``end`` (either order)."""

    lower, upper = min(start, end), max(start, end)
    deposited = 0.0
    withdrawn = 0.0
    for point in series:
        if lower <= point.timestamp <= upper:
            deposited += point.deposit
            withdrawn += point.withdrawal

    days = (upper - lower).total_seconds() / _SECONDS_PER_DAY
    net_change = deposited - withdrawn
    avg_per_month = net_change / (days / days_per_month) if days > 0 else 0.0
    return RangeStatistics(
        total_deposited=deposited,
        total_withdrawn=withdrawn,
        net_change=net_change,
        days_elapsed=round(days),
        avg_per_month=avg_per_month,
        start_date=lower.date(),
        end_date=upper.date(),
    )


__all__ = ["DAYS_PER_MONTH", "aggregate_by_date", "cumulative", "range_statistics"]
