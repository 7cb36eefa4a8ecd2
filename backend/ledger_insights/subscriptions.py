"""Recurring charge detection over bank statement rows.

Detection runs in stages: descriptions are normalized into merchant keys,
near-identical keys are merged, each merchant is split into amount clusters,
and every cluster with a regular cadence becomes a
:class:`~ledger_insights.models.SubscriptionCandidate`. Every cut-off lives in
:class:`SubscriptionThresholds` so callers and tests can move them.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from rapidfuzz.distance import Levenshtein

from .models import (
    BankTransaction,
    ConfidenceTier,
    RecurrenceInterval,
    RecurrencePattern,
    SubscriptionCandidate,
)

logger = logging.getLogger(__name__)

PROCESSOR_TOKENS = ("sq", "tst", "paypal", "pos")
KEY_WORDS = 3

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_PROCESSORS = re.compile(r"\b(?:%s)\b" % "|".join(PROCESSOR_TOKENS))
_STANDALONE_NUMBER = re.compile(r"\b\d+\b")

ACTIVE_GRACE_DAYS: Mapping[RecurrenceInterval, int] = {
    RecurrenceInterval.WEEKLY: 21,
    RecurrenceInterval.BI_WEEKLY: 35,
    RecurrenceInterval.MONTHLY: 60,
    RecurrenceInterval.YEARLY: 400,
    RecurrenceInterval.UNKNOWN: 60,
}

# Multipliers converting one charge into a monthly equivalent.
MONTHLY_COST_FACTORS: Mapping[RecurrenceInterval, float] = {
    RecurrenceInterval.WEEKLY: 4.33,
    RecurrenceInterval.BI_WEEKLY: 2.17,
    RecurrenceInterval.MONTHLY: 1.0,
    RecurrenceInterval.YEARLY: 1.0 / 12,
    RecurrenceInterval.UNKNOWN: 1.0,
}

_SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True)
class SubscriptionThresholds:
    """Decision thresholds for the detector."""

    min_occurrences: int = 2
    min_time_span_days: float = 60.0
    min_date_consistency: float = 0.75
    high_confidence_threshold: float = 0.9
    medium_confidence_threshold: float = 0.75
    amount_variance_high: float = 0.1
    amount_variance_medium: float = 1.0
    amount_tolerance: float = 2.0
    merchant_max_edit_distance: int = 3
    gap_tolerance_days: float = 3.0
    yearly_gap_tolerance_days: float = 5.0
    monthly_gap_range: tuple[float, float] = (28.0, 31.0)
    yearly_gap_range: tuple[float, float] = (360.0, 370.0)
    active_grace_days: Mapping[RecurrenceInterval, int] = field(default_factory=lambda: dict(ACTIVE_GRACE_DAYS))


DEFAULT_THRESHOLDS = SubscriptionThresholds()


@dataclass(frozen=True)
class AmountGroup:
    base_amount: float
    transactions: tuple[BankTransaction, ...]


@dataclass(frozen=True)
class SubscriptionCostSummary:
    active_count: int
    inactive_count: int
    monthly_cost: float
    yearly_cost: float


def _days_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / _SECONDS_PER_DAY


def normalize_description(description: str) -> str:
    """Reduce a raw statement description to a short merchant key.

    >>> normalize_description("SQ *BLUE BOTTLE 1234 OAKLAND")
    'blue bottle oakland'
    """

    text = _NON_ALNUM.sub("", description.lower())
    text = _PROCESSORS.sub("", text)
    text = _STANDALONE_NUMBER.sub("", text)
    return " ".join(text.split()[:KEY_WORDS])


def levenshtein_distance(first: str, second: str) -> int:
    """Unit-cost edit distance (insertions, deletions, substitutions)."""

    return Levenshtein.distance(first, second)


def group_by_similar_merchants(
    transactions: Iterable[BankTransaction],
    max_distance: int = DEFAULT_THRESHOLDS.merchant_max_edit_distance,
) -> Dict[str, List[BankTransaction]]:
    """Group rows by normalized key, then fold near-identical keys together.

    Keys are compared in first-seen order; a key merged into an earlier one
    is consumed and takes no further part in comparisons.
    """

    groups: Dict[str, List[BankTransaction]] = {}
    for tx in transactions:
        groups.setdefault(normalize_description(tx.description), []).append(tx)

    keys = list(groups)
    consumed: set[str] = set()
    for index, key in enumerate(keys):
        if key in consumed:
            continue
        for other in keys[index + 1:]:
            if other in consumed:
                continue
            if levenshtein_distance(key, other) <= max_distance:
                groups[key].extend(groups.pop(other))
                consumed.add(other)
    return groups


def group_by_similar_amounts(
    transactions: Sequence[BankTransaction],
    tolerance: float = DEFAULT_THRESHOLDS.amount_tolerance,
) -> List[AmountGroup]:
    """Cluster rows whose absolute amounts sit within ``tolerance`` of a window base.

    Only clusters of two or more rows are returned.
    """

    ordered = sorted(transactions, key=lambda tx: abs(tx.amount))
    groups: List[AmountGroup] = []
    index = 0
    while index < len(ordered):
        base = abs(ordered[index].amount)
        end = index + 1
        while end < len(ordered) and abs(ordered[end].amount) - base <= tolerance:
            end += 1
        members = ordered[index:end]
        if len(members) >= 2:
            groups.append(AmountGroup(base_amount=base, transactions=tuple(members)))
        index = end
    return groups


def _classify_gap(median: float, thresholds: SubscriptionThresholds) -> tuple[RecurrenceInterval, float]:
    tolerance = thresholds.gap_tolerance_days
    monthly_low, monthly_high = thresholds.monthly_gap_range
    yearly_low, yearly_high = thresholds.yearly_gap_range
    if abs(median - 7) <= tolerance:
        return RecurrenceInterval.WEEKLY, tolerance
    if abs(median - 14) <= tolerance:
        return RecurrenceInterval.BI_WEEKLY, tolerance
    if monthly_low <= median <= monthly_high:
        return RecurrenceInterval.MONTHLY, tolerance
    if yearly_low <= median <= yearly_high:
        return RecurrenceInterval.YEARLY, thresholds.yearly_gap_tolerance_days
    return RecurrenceInterval.UNKNOWN, tolerance


def detect_recurrence(
    timestamps: Sequence[datetime],
    thresholds: SubscriptionThresholds = DEFAULT_THRESHOLDS,
) -> RecurrencePattern:
    """Classify the cadence of a set of charge times.

    The median gap (upper middle element for an even count) picks the
    interval; confidence is the share of gaps within the interval's tolerance
    of that median.
    """

    if len(timestamps) < 2:
        return RecurrencePattern(interval=RecurrenceInterval.UNKNOWN, confidence=0.0, next_expected=None)

    ordered = sorted(timestamps)
    gaps = [_days_between(previous, current) for previous, current in zip(ordered, ordered[1:])]
    median = sorted(gaps)[len(gaps) // 2]
    interval, tolerance = _classify_gap(median, thresholds)
    consistent = sum(1 for gap in gaps if abs(gap - median) <= tolerance)
    return RecurrencePattern(
        interval=interval,
        confidence=consistent / len(gaps),
        next_expected=ordered[-1] + timedelta(days=median),
    )


def is_subscription_active(
    last_transaction: datetime,
    interval: RecurrenceInterval,
    now: datetime,
    grace_days: Mapping[RecurrenceInterval, int] = ACTIVE_GRACE_DAYS,
) -> bool:
    window = grace_days.get(interval, grace_days[RecurrenceInterval.UNKNOWN])
    return _days_between(last_transaction, now) <= window


def _confidence_tier(confidence: float, variance: float, thresholds: SubscriptionThresholds) -> ConfidenceTier:
    if confidence >= thresholds.high_confidence_threshold and variance < thresholds.amount_variance_high:
        return ConfidenceTier.HIGH
    if confidence >= thresholds.medium_confidence_threshold and variance < thresholds.amount_variance_medium:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW


def _merchant_label(transactions: Sequence[BankTransaction]) -> str:
    # Counter preserves insertion order, so ties go to the earliest description.
    counts = Counter(tx.description for tx in transactions)
    return max(counts, key=counts.__getitem__)


def _evaluate_group(
    key: str,
    group: AmountGroup,
    now: datetime,
    thresholds: SubscriptionThresholds,
) -> Optional[SubscriptionCandidate]:
    members = sorted(group.transactions, key=lambda tx: tx.timestamp)
    if len(members) < thresholds.min_occurrences:
        return None
    first, last = members[0].timestamp, members[-1].timestamp
    if _days_between(first, last) < thresholds.min_time_span_days:
        return None

    pattern = detect_recurrence([tx.timestamp for tx in members], thresholds)
    if pattern.interval is RecurrenceInterval.UNKNOWN:
        return None
    if pattern.confidence < thresholds.min_date_consistency:
        return None

    amounts = [abs(tx.amount) for tx in members]
    mean = sum(amounts) / len(amounts)
    variance = sum((amount - mean) ** 2 for amount in amounts) / len(amounts)

    return SubscriptionCandidate(
        merchant_label=_merchant_label(members),
        normalized_key=key,
        transactions=tuple(members),
        pattern=pattern,
        typical_amount=mean,
        amount_variance=variance,
        confidence_tier=_confidence_tier(pattern.confidence, variance, thresholds),
        is_active=is_subscription_active(last, pattern.interval, now, thresholds.active_grace_days),
        last_transaction=last,
    )


def detect_subscriptions(
    transactions: Iterable[BankTransaction],
    *,
    now: datetime,
    thresholds: SubscriptionThresholds | None = None,
) -> List[SubscriptionCandidate]:
    """Find recurring charges; ``now`` is the reference time for the active check."""

    thresholds = thresholds or DEFAULT_THRESHOLDS
    chronological = sorted(transactions, key=lambda tx: tx.timestamp)

    candidates: List[SubscriptionCandidate] = []
    merchants = group_by_similar_merchants(chronological, thresholds.merchant_max_edit_distance)
    for key, merchant_transactions in merchants.items():
        for group in group_by_similar_amounts(merchant_transactions, thresholds.amount_tolerance):
            candidate = _evaluate_group(key, group, now, thresholds)
            if candidate is not None:
                candidates.append(candidate)

    logger.info(
        "Detected %d recurring charge(s) across %d merchant group(s) from %d transactions",
        len(candidates),
        len(merchants),
        len(chronological),
    )
    return candidates


def monthly_cost(candidate: SubscriptionCandidate) -> float:
    factor = MONTHLY_COST_FACTORS.get(candidate.pattern.interval, 1.0)
    return candidate.typical_amount * factor


def summarize_subscription_costs(candidates: Iterable[SubscriptionCandidate]) -> SubscriptionCostSummary:
    """Monthly and yearly spend across active subscriptions."""

    active = 0
    inactive = 0
    total = 0.0
    for candidate in candidates:
        if candidate.is_active:
            active += 1
            total += monthly_cost(candidate)
        else:
            inactive += 1
    return SubscriptionCostSummary(
        active_count=active,
        inactive_count=inactive,
        monthly_cost=total,
        yearly_cost=total * 12,
    )


__all__ = [
    "ACTIVE_GRACE_DAYS",
    "AmountGroup",
    "DEFAULT_THRESHOLDS",
    "MONTHLY_COST_FACTORS",
    "SubscriptionCostSummary",
    "SubscriptionThresholds",
    "detect_recurrence",
    "detect_subscriptions",
    "group_by_similar_amounts",
    "group_by_similar_merchants",
    "is_subscription_active",
    "levenshtein_distance",
    "monthly_cost",
    "normalize_description",
    "summarize_subscription_costs",
]
