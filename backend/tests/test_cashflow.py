from __future__ import annotations

from datetime import date, datetime

import pytest

from ledger_insights.cashflow import aggregate_by_date, cumulative, range_statistics
from ledger_insights.models import CashTransaction, CashType


def flow(day: date, amount: float, kind: CashType) -> CashTransaction:
    return CashTransaction(date=day, timestamp=datetime.combine(day, datetime.min.time()), type=kind, amount=amount)


def build_flows():
    return [
        flow(date(2024, 1, 1), 1000.0, CashType.DEPOSIT),
        flow(date(2024, 1, 1), 250.0, CashType.DEPOSIT),
        flow(date(2024, 1, 15), -200.0, CashType.WITHDRAWAL),
        flow(date(2024, 1, 20), 3.5, CashType.DIVIDEND),
        flow(date(2024, 2, 1), -1.0, CashType.FEE),
        flow(date(2024, 3, 1), 500.0, CashType.DEPOSIT),
        flow(date(2024, 3, 1), -50.0, CashType.WITHDRAWAL),
    ]


def test_aggregate_by_date_buckets_deposits_and_withdrawals():
    series = aggregate_by_date(build_flows())
    assert [point.date for point in series] == [date(2024, 1, 1), date(2024, 1, 15), date(2024, 3, 1)]
    first, middle, last = series
    assert (first.deposit, first.withdrawal) == (1250.0, 0.0)
    assert (middle.deposit, middle.withdrawal) == (0.0, 200.0)
    assert (last.deposit, last.withdrawal) == (500.0, 50.0)


def test_cumulative_is_running_net():
    series = cumulative(aggregate_by_date(build_flows()))
    assert [point.cumulative for point in series] == pytest.approx([1250.0, 1050.0, 1500.0])
    assert series[-1].net == pytest.approx(450.0)


def test_cumulative_returns_new_points():
    original = aggregate_by_date(build_flows())
    cumulative(original)
    assert all(point.cumulative is None for point in original)


def test_range_statistics_round_trip_over_full_range():
    series = aggregate_by_date(build_flows())
    stats = range_statistics(series, series[0].timestamp, series[-1].timestamp)

    assert stats.total_deposited - stats.total_withdrawn == stats.net_change
    assert stats.total_deposited == pytest.approx(1750.0)
    assert stats.total_withdrawn == pytest.approx(250.0)
    assert stats.days_elapsed == 60
    assert stats.avg_per_month == pytest.approx(1500.0 / (60 / 30.44))
    assert (stats.start_date, stats.end_date) == (date(2024, 1, 1), date(2024, 3, 1))


def test_range_statistics_accepts_reversed_bounds():
    series = aggregate_by_date(build_flows())
    forward = range_statistics(series, datetime(2024, 1, 10), datetime(2024, 3, 1))
    backward = range_statistics(series, datetime(2024, 3, 1), datetime(2024, 1, 10))
    assert forward == backward
    assert forward.total_deposited == pytest.approx(500.0)


def test_range_statistics_rounds_partial_days():
    series = aggregate_by_date(build_flows())
    stats = range_statistics(series, datetime(2024, 1, 1), datetime(2024, 1, 2, 18))
    assert stats.days_elapsed == 2


def test_zero_length_range_has_zero_average():
    series = aggregate_by_date(build_flows())
    at = series[0].timestamp
    stats = range_statistics(series, at, at)
    assert stats.days_elapsed == 0
    assert stats.avg_per_month == 0.0
    assert stats.net_change == pytest.approx(1250.0)
