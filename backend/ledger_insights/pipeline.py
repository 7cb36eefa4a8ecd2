"""End-to-end analysis of a single uploaded export.

Each stage runs inside its own tracing span so a slow or lossy parse can be
spotted from the trace alone; spans are no-ops unless telemetry is set up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union

from .bank_stats import BankStats, compute_bank_stats
from .cashflow import aggregate_by_date, cumulative, range_statistics
from .config import LedgerSettings, get_settings
from .core.telemetry import get_tracer
from .diagnostics import ParseDiagnostics, SplitDiagnostics
from .errors import UnknownFileFormatError
from .models import (
    AccountKind,
    BankTransaction,
    CashTransaction,
    DepositPoint,
    FileType,
    RangeStatistics,
    StockTransaction,
    SubscriptionCandidate,
)
from .parsing.bank import account_kind_for, parse_bank_csv
from .parsing.brokerage import parse_brokerage_csv
from .parsing.file_types import detect_file_type, header_line
from .portfolio import PortfolioValueSeries, compute_portfolio_value_series
from .prices import PriceSource
from .subscriptions import SubscriptionCostSummary, detect_subscriptions, summarize_subscription_costs

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


@dataclass
class BrokerageReport:
    stock_transactions: List[StockTransaction]
    cash_transactions: List[CashTransaction]
    deposits: List[DepositPoint]
    statistics: Optional[RangeStatistics]
    tickers: List[str]
    diagnostics: ParseDiagnostics
    split_diagnostics: SplitDiagnostics
    value_series: Optional[PortfolioValueSeries] = None
    file_type: FileType = FileType.BROKERAGE


@dataclass
class BankReport:
    account_kind: AccountKind
    transactions: List[BankTransaction]
    subscriptions: List[SubscriptionCandidate]
    stats: BankStats
    cost_summary: SubscriptionCostSummary
    diagnostics: ParseDiagnostics = field(default_factory=ParseDiagnostics)

    @property
    def file_type(self) -> FileType:
        if self.account_kind is AccountKind.CHECKING:
            return FileType.BANK_CHECKING
        return FileType.BANK_CREDIT


def analyze_brokerage_export(
    content: str | bytes,
    price_source: PriceSource | None = None,
    end: datetime | None = None,
    *,
    settings: LedgerSettings | None = None,
) -> BrokerageReport:
    """Parse, split-adjust and summarise a brokerage export.

    The value series is only computed when a ``price_source`` is supplied.
    ``end`` defaults to the latest transaction time.
    """

    settings = settings or get_settings()

    with tracer.start_as_current_span("ledger.parse_brokerage") as span:
        ledger = parse_brokerage_csv(content)
        span.set_attribute("ledger.rows.total", ledger.diagnostics.total_rows)
        span.set_attribute("ledger.rows.dropped", ledger.diagnostics.dropped_rows)
        span.set_attribute("ledger.rows.unrecognized", ledger.diagnostics.unrecognized_rows)
        span.set_attribute("ledger.splits.applied", ledger.split_diagnostics.splits_applied)

    stock = ledger.stock_transactions
    cash = ledger.cash_transactions

    with tracer.start_as_current_span("ledger.cashflow"):
        deposits = cumulative(aggregate_by_date(cash))
        statistics = None
        if deposits:
            statistics = range_statistics(
                deposits,
                deposits[0].timestamp,
                deposits[-1].timestamp,
                days_per_month=settings.days_per_month,
            )

    report = BrokerageReport(
        stock_transactions=stock,
        cash_transactions=cash,
        deposits=deposits,
        statistics=statistics,
        tickers=ledger.tickers,
        diagnostics=ledger.diagnostics,
        split_diagnostics=ledger.split_diagnostics,
    )

    timestamps = [tx.timestamp for tx in stock] + [tx.timestamp for tx in cash]
    if price_source is None or not timestamps:
        return report

    first = min(timestamps)
    last = end or max(timestamps)
    with tracer.start_as_current_span("ledger.valuation") as span:
        span.set_attribute("ledger.tickers", len(report.tickers))
        prices = price_source.get_historical_prices(report.tickers, first.date(), last.date())
        report.value_series = compute_portfolio_value_series(
            stock,
            cash,
            prices,
            None,
            last,
            epsilon=settings.holdings_epsilon,
        )
        span.set_attribute("ledger.valuation.points", len(report.value_series.points))
        span.set_attribute("ledger.valuation.missing_prices", len(report.value_series.diagnostics.missing_prices))
    return report


def analyze_bank_export(
    content: str | bytes,
    now: datetime,
    *,
    account_kind: AccountKind | None = None,
    settings: LedgerSettings | None = None,
) -> BankReport:
    """Parse a checking or credit export and look for recurring charges as of ``now``."""

    settings = settings or get_settings()

    with tracer.start_as_current_span("ledger.parse_bank") as span:
        statement = parse_bank_csv(content, account_kind)
        span.set_attribute("ledger.account_kind", statement.account_kind.value)
        span.set_attribute("ledger.rows.total", statement.diagnostics.total_rows)
        span.set_attribute("ledger.rows.dropped", statement.diagnostics.dropped_rows)

    with tracer.start_as_current_span("ledger.subscriptions") as span:
        subscriptions = detect_subscriptions(
            statement.transactions,
            now=now,
            thresholds=settings.subscription_thresholds(),
        )
        span.set_attribute("ledger.subscriptions", len(subscriptions))

    return BankReport(
        account_kind=statement.account_kind,
        transactions=statement.transactions,
        subscriptions=subscriptions,
        stats=compute_bank_stats(statement.transactions, now),
        cost_summary=summarize_subscription_costs(subscriptions),
        diagnostics=statement.diagnostics,
    )


def analyze_export(
    content: str | bytes,
    *,
    now: datetime,
    price_source: PriceSource | None = None,
    settings: LedgerSettings | None = None,
) -> Union[BrokerageReport, BankReport]:
    """Detect the export layout and run the matching analysis.

    ``now`` is the valuation end for brokerage exports and the reference time
    for bank exports. Raises :class:`UnknownFileFormatError` for any other
    layout.
    """

    file_type = detect_file_type(content)
    logger.info("Detected %s export", file_type.value)
    if file_type is FileType.BROKERAGE:
        return analyze_brokerage_export(content, price_source, now, settings=settings)
    if file_type.is_bank:
        return analyze_bank_export(content, now, account_kind=account_kind_for(file_type), settings=settings)
    raise UnknownFileFormatError(header_line(content))


__all__ = [
    "BankReport",
    "BrokerageReport",
    "analyze_bank_export",
    "analyze_brokerage_export",
    "analyze_export",
]
