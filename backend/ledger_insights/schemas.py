"""Pydantic response schemas for analysis reports."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .models import (
    AccountKind,
    CashType,
    ConfidenceTier,
    FileType,
    RecurrenceInterval,
    TradeSide,
    TransCode,
)
from .pipeline import BankReport, BrokerageReport


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class StockTransactionSchema(_FromAttributes):
    date: date
    timestamp: datetime
    ticker: str
    type: TradeSide
    quantity: float
    price: float
    amount: float
    source_code: TransCode


class CashTransactionSchema(_FromAttributes):
    date: date
    timestamp: datetime
    type: CashType
    amount: float
    ticker: str | None = None
    source_code: TransCode | None = None


class BankTransactionSchema(_FromAttributes):
    date: date
    timestamp: datetime
    description: str
    amount: float
    type: str
    balance: float | None = None
    account_kind: AccountKind
    details: str | None = None
    check_or_slip: str | None = None
    category: str | None = None
    memo: str | None = None
    post_date: date | None = None


class DepositPointSchema(_FromAttributes):
    date: date
    timestamp: datetime
    deposit: float
    withdrawal: float
    net: float
    cumulative: float | None = None


class RangeStatisticsSchema(_FromAttributes):
    total_deposited: float
    total_withdrawn: float
    net_change: float
    days_elapsed: int
    avg_per_month: float
    start_date: date
    end_date: date


class PortfolioValuePointSchema(_FromAttributes):
    date: date
    timestamp: datetime
    portfolio_value: float
    cash_value: float
    stock_value: float


class MissingPriceSchema(_FromAttributes):
    ticker: str
    date: date
    quantity: float


class ValuationDiagnosticsSchema(_FromAttributes):
    missing_prices: list[MissingPriceSchema] = Field(default_factory=list)
    negative_holdings: set[str] = Field(default_factory=set)
    tickers_missing_prices: set[str] = Field(default_factory=set)


class PortfolioValueSeriesSchema(_FromAttributes):
    points: list[PortfolioValuePointSchema]
    diagnostics: ValuationDiagnosticsSchema


class ParseDiagnosticsSchema(_FromAttributes):
    total_rows: int
    parsed_rows: int
    dropped_rows: int
    unrecognized_rows: int
    unrecognized_codes: dict[str, int] = Field(default_factory=dict)
    codes_seen: set[str] = Field(default_factory=set)


class SplitDiagnosticsSchema(_FromAttributes):
    splits_applied: int
    ignored_splits: int
    negative_holdings: set[str] = Field(default_factory=set)


class RecurrencePatternSchema(_FromAttributes):
    interval: RecurrenceInterval
    confidence: float
    next_expected: datetime | None = None


class SubscriptionSchema(_FromAttributes):
    merchant_label: str
    normalized_key: str
    transactions: list[BankTransactionSchema]
    pattern: RecurrencePatternSchema
    typical_amount: float
    amount_variance: float
    confidence_tier: ConfidenceTier
    is_active: bool
    last_transaction: datetime


class BankStatsSchema(_FromAttributes):
    current_balance: float
    deposits_this_month: float
    withdrawals_this_month: float


class SubscriptionCostSummarySchema(_FromAttributes):
    active_count: int
    inactive_count: int
    monthly_cost: float
    yearly_cost: float


class BrokerageReportSchema(_FromAttributes):
    file_type: FileType
    stock_transactions: list[StockTransactionSchema]
    cash_transactions: list[CashTransactionSchema]
    deposits: list[DepositPointSchema]
    statistics: Optional[RangeStatisticsSchema] = None
    tickers: list[str]
    diagnostics: ParseDiagnosticsSchema
    split_diagnostics: SplitDiagnosticsSchema
    value_series: Optional[PortfolioValueSeriesSchema] = None


class BankReportSchema(_FromAttributes):
    file_type: FileType
    account_kind: AccountKind
    transactions: list[BankTransactionSchema]
    subscriptions: list[SubscriptionSchema]
    stats: BankStatsSchema
    cost_summary: SubscriptionCostSummarySchema
    diagnostics: ParseDiagnosticsSchema


def serialize_report(report: Union[BrokerageReport, BankReport]) -> Union[BrokerageReportSchema, BankReportSchema]:
    """Convert a pipeline report into its response schema."""

    if isinstance(report, BrokerageReport):
        return BrokerageReportSchema.model_validate(report)
    return BankReportSchema.model_validate(report)


__all__ = [
    "BankReportSchema",
    "BankStatsSchema",
    "BankTransactionSchema",
    "BrokerageReportSchema",
    "CashTransactionSchema",
    "DepositPointSchema",
    "ParseDiagnosticsSchema",
    "PortfolioValuePointSchema",
    "PortfolioValueSeriesSchema",
    "RangeStatisticsSchema",
    "RecurrencePatternSchema",
    "SplitDiagnosticsSchema",
    "StockTransactionSchema",
    "SubscriptionCostSummarySchema",
    "SubscriptionSchema",
    "serialize_report",
]
