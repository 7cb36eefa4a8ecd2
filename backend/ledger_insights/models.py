"""Domain models shared by the parsing, valuation and detection stages."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple


class TransCode(str, Enum):
    """Brokerage activity codes the parser knows how to model."""

    BUY = "Buy"
    SELL = "Sell"
    SPLIT = "SPL"
    RECEIVED = "REC"
    ACH = "ACH"
    RTP = "RTP"
    CASH_DIVIDEND = "CDIV"
    INTEREST = "INT"
    SLIP = "SLIP"
    GOLD = "GOLD"
    MARGIN_INTEREST = "MINT"
    MISC = "MISC"
    FUTURES_SWEEP = "FUTSWP"

    @classmethod
    def lookup(cls, raw: str) -> Optional["TransCode"]:
        try:
            return cls(raw)
        except ValueError:
            return None


class TradeSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class CashType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DIVIDEND = "dividend"
    INTEREST = "interest"
    FEE = "fee"


class AccountKind(str, Enum):
    CHECKING = "checking"
    CREDIT = "credit"


class FileType(str, Enum):
    BROKERAGE = "brokerage"
    BANK_CHECKING = "bank_checking"
    BANK_CREDIT = "bank_credit"
    UNKNOWN = "unknown"

    @property
    def is_bank(self) -> bool:
        return self in (FileType.BANK_CHECKING, FileType.BANK_CREDIT)


class RecurrenceInterval(str, Enum):
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    UNKNOWN = "unknown"


class ConfidenceTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class StockTransaction:
    """A share movement: trade, split delta or transfer-in."""

    date: date
    timestamp: datetime
    ticker: str
    type: TradeSide
    quantity: float
    price: float
    amount: float
    source_code: TransCode

    @property
    def is_split(self) -> bool:
        return self.source_code == TransCode.SPLIT

    @property
    def signed_quantity(self) -> float:
        """Quantity with sells negated, as replayed into holdings."""

        return self.quantity if self.type == TradeSide.BUY else -self.quantity


@dataclass(frozen=True)
class CashTransaction:
    """A signed cash movement; inflows positive, outflows negative."""

    date: date
    timestamp: datetime
    type: CashType
    amount: float
    ticker: Optional[str] = None
    source_code: Optional[TransCode] = None


@dataclass(frozen=True)
class BankTransaction:
    """One row of a checking or credit card statement."""

    date: date
    timestamp: datetime
    description: str
    amount: float
    type: str
    balance: Optional[float]
    account_kind: AccountKind
    details: Optional[str] = None
    check_or_slip: Optional[str] = None
    category: Optional[str] = None
    memo: Optional[str] = None
    post_date: Optional[date] = None


@dataclass(frozen=True)
class Portfolio:
    """Cash and open positions as of a single point in time."""

    cash: float
    holdings: Dict[str, float] = field(default_factory=dict)

    def quantity(self, ticker: str) -> float:
        return self.holdings.get(ticker, 0.0)


@dataclass(frozen=True)
class PortfolioValuePoint:
    date: date
    timestamp: datetime
    portfolio_value: float
    cash_value: float
    stock_value: float


@dataclass(frozen=True)
class DepositPoint:
    """Deposits and withdrawals bucketed on one calendar date."""

    date: date
    timestamp: datetime
    deposit: float
    withdrawal: float
    cumulative: Optional[float] = None

    @property
    def net(self) -> float:
        return self.deposit - self.withdrawal


@dataclass(frozen=True)
class RangeStatistics:
    total_deposited: float
    total_withdrawn: float
    net_change: float
    days_elapsed: int
    avg_per_month: float
    start_date: date
    end_date: date


@dataclass(frozen=True)
class RecurrencePattern:
    interval: RecurrenceInterval
    confidence: float
    next_expected: Optional[datetime]


@dataclass(frozen=True)
class SubscriptionCandidate:
    """A cluster of bank transactions recurring at a stable amount."""

    merchant_label: str
    normalized_key: str
    transactions: Tuple[BankTransaction, ...]
    pattern: RecurrencePattern
    typical_amount: float
    amount_variance: float
    confidence_tier: ConfidenceTier
    is_active: bool
    last_transaction: datetime


PriceTable = Mapping[str, Mapping[str, float]]


__all__ = [
    "TransCode",
    "TradeSide",
    "CashType",
    "AccountKind",
    "FileType",
    "RecurrenceInterval",
    "ConfidenceTier",
    "StockTransaction",
    "CashTransaction",
    "BankTransaction",
    "Portfolio",
    "PortfolioValuePoint",
    "DepositPoint",
    "RangeStatistics",
    "RecurrencePattern",
    "SubscriptionCandidate",
    "PriceTable",
]
