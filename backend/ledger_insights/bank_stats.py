"""Headline figures and filtering for bank statements."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from .models import BankTransaction


@dataclass(frozen=True)
class BankStats:
    current_balance: float
    deposits_this_month: float
    withdrawals_this_month: float


def compute_bank_stats(transactions: Sequence[BankTransaction], reference: datetime) -> BankStats:
    """Balance from the newest row that carries one, plus in/out flow for ``reference``'s month.

    ``transactions`` may be in any order. Credit card rows never carry a
    balance, so their current balance is reported as zero.
    """

    with_balance = [tx for tx in transactions if tx.balance is not None]
    current_balance = 0.0
    if with_balance:
        # Stable max keeps the first listed row among same-day postings.
        current_balance = max(with_balance, key=lambda tx: tx.timestamp).balance or 0.0

    deposits = 0.0
    withdrawals = 0.0
    for tx in transactions:
        if tx.timestamp.year != reference.year or tx.timestamp.month != reference.month:
            continue
        if tx.amount > 0:
            deposits += tx.amount
        else:
            withdrawals += abs(tx.amount)

    return BankStats(
        current_balance=current_balance,
        deposits_this_month=deposits,
        withdrawals_this_month=withdrawals,
    )


def filter_bank_transactions(
    transactions: Iterable[BankTransaction],
    *,
    min_amount: Optional[float] = None,
    max_amount: Optional[float] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[BankTransaction]:
    """Keep rows whose absolute amount and date fall in the given inclusive bounds."""

    kept: List[BankTransaction] = []
    for tx in transactions:
        magnitude = abs(tx.amount)
        if min_amount is not None and magnitude < min_amount:
            continue
        if max_amount is not None and magnitude > max_amount:
            continue
        if start is not None and tx.date < start:
            continue
        if end is not None and tx.date > end:
            continue
        kept.append(tx)
    return kept


__all__ = ["BankStats", "compute_bank_stats", "filter_bank_transactions"]
