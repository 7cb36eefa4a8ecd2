"""Parse brokerage activity exports into stock and cash ledgers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional

from ..diagnostics import ParseDiagnostics, SplitDiagnostics
from ..models import CashTransaction, CashType, StockTransaction, TradeSide, TransCode
from ..splits import adjust_for_splits
from .reader import read_csv_rows
from .values import cell, parse_activity_date, parse_amount

logger = logging.getLogger(__name__)

ACTIVITY_DATE = "Activity Date"
INSTRUMENT = "Instrument"
DESCRIPTION = "Description"
TRANS_CODE = "Trans Code"
QUANTITY = "Quantity"
PRICE = "Price"
AMOUNT = "Amount"

REQUIRED_COLUMNS = (ACTIVITY_DATE, TRANS_CODE, AMOUNT)

_TRADE_CODES = {TransCode.BUY, TransCode.SELL}
_SHARE_DELTA_CODES = {TransCode.SPLIT, TransCode.RECEIVED}


@dataclass
class BrokerageLedger:
    """Stock and cash streams, both ascending by timestamp."""

    stock_transactions: List[StockTransaction] = field(default_factory=list)
    cash_transactions: List[CashTransaction] = field(default_factory=list)
    diagnostics: ParseDiagnostics = field(default_factory=ParseDiagnostics)
    split_diagnostics: SplitDiagnostics = field(default_factory=SplitDiagnostics)

    @property
    def tickers(self) -> List[str]:
        seen: dict[str, None] = {}
        for tx in self.stock_transactions:
            seen.setdefault(tx.ticker, None)
        return list(seen)


def classify_cash(code: TransCode, amount: float, description: str = "") -> Optional[CashType]:
    """Map a cash-only activity code and signed amount onto a cash type.

    Returns ``None`` for codes that never produce a standalone cash movement.
    """

    if code in (TransCode.ACH, TransCode.RTP):
        if amount > 0:
            return CashType.DEPOSIT
        if "fee" in description.lower():
            return CashType.FEE
        return CashType.WITHDRAWAL
    if code == TransCode.CASH_DIVIDEND:
        return CashType.DIVIDEND
    if code in (TransCode.INTEREST, TransCode.SLIP):
        return CashType.INTEREST
    if code in (TransCode.GOLD, TransCode.MARGIN_INTEREST):
        return CashType.FEE
    if code in (TransCode.MISC, TransCode.FUTURES_SWEEP):
        return CashType.INTEREST if amount > 0 else CashType.FEE
    return None


def trade_settlement_type(amount: float) -> CashType:
    """Label for the cash leg of a buy or sell, bucketed by sign."""

    return CashType.FEE if amount < 0 else CashType.DIVIDEND


def _stock_row(
    row: Mapping[str, Any],
    code: TransCode,
    timestamp: datetime,
    ticker: str,
    amount: float,
) -> Optional[StockTransaction]:
    quantity = parse_amount(cell(row, QUANTITY))
    if not ticker or quantity is None:
        return None
    if code in _TRADE_CODES:
        price = parse_amount(cell(row, PRICE))
        if price is None:
            return None
        return StockTransaction(
            date=timestamp.date(),
            timestamp=timestamp,
            ticker=ticker,
            type=TradeSide(code.value.lower()),
            quantity=abs(quantity),
            price=price,
            amount=abs(amount),
            source_code=code,
        )
    # SPL and REC carry shares without cost basis.
    return StockTransaction(
        date=timestamp.date(),
        timestamp=timestamp,
        ticker=ticker,
        type=TradeSide.BUY,
        quantity=quantity,
        price=0.0,
        amount=0.0,
        source_code=code,
    )


def parse_brokerage_rows(
    rows: Iterable[Mapping[str, Any]],
    *,
    adjust_splits: bool = True,
) -> BrokerageLedger:
    """Turn raw activity rows into typed, sign-normalized ledgers.

    Rows with an unparseable date or amount, or a trade missing its ticker,
    quantity or price, are dropped and counted. Unknown activity codes are
    dropped and tallied separately per code.
    """

    ledger = BrokerageLedger()
    diagnostics = ledger.diagnostics
    stock: List[StockTransaction] = []
    cash: List[CashTransaction] = []

    for row in rows:
        diagnostics.total_rows += 1
        raw_code = cell(row, TRANS_CODE)
        if raw_code:
            diagnostics.codes_seen.add(raw_code)

        timestamp = parse_activity_date(cell(row, ACTIVITY_DATE))
        amount = parse_amount(cell(row, AMOUNT), empty=0.0)
        if timestamp is None or amount is None or not raw_code:
            diagnostics.record_dropped()
            continue

        code = TransCode.lookup(raw_code)
        if code is None:
            diagnostics.record_unrecognized(raw_code)
            logger.debug("Unknown transaction code %r with amount %.2f on %s", raw_code, amount, timestamp.date())
            continue

        ticker = cell(row, INSTRUMENT)
        if code in _TRADE_CODES or code in _SHARE_DELTA_CODES:
            stock_tx = _stock_row(row, code, timestamp, ticker, amount)
            if stock_tx is None:
                diagnostics.record_dropped()
                continue
            stock.append(stock_tx)
            if code in _TRADE_CODES:
                cash.append(
                    CashTransaction(
                        date=timestamp.date(),
                        timestamp=timestamp,
                        type=trade_settlement_type(amount),
                        amount=amount,
                        ticker=ticker,
                        source_code=code,
                    )
                )
            diagnostics.parsed_rows += 1
            continue

        cash_type = classify_cash(code, amount, cell(row, DESCRIPTION))
        if cash_type is None:
            diagnostics.record_unrecognized(raw_code)
            continue
        cash.append(
            CashTransaction(
                date=timestamp.date(),
                timestamp=timestamp,
                type=cash_type,
                amount=amount,
                ticker=(ticker or None) if code == TransCode.CASH_DIVIDEND else None,
                source_code=code,
            )
        )
        diagnostics.parsed_rows += 1

    stock.sort(key=lambda tx: tx.timestamp)
    cash.sort(key=lambda tx: tx.timestamp)

    if adjust_splits:
        adjustment = adjust_for_splits(stock)
        stock = adjustment.transactions
        ledger.split_diagnostics = adjustment.diagnostics

    ledger.stock_transactions = stock
    ledger.cash_transactions = cash

    if diagnostics.unrecognized_codes:
        logger.warning(
            "Skipped unrecognised transaction codes: %s",
            ", ".join(f"{code} x{count}" for code, count in sorted(diagnostics.unrecognized_codes.items())),
        )
    logger.info(
        "Parsed %d stock and %d cash transactions from %d rows (%d dropped)",
        len(stock),
        len(cash),
        diagnostics.total_rows,
        diagnostics.dropped_rows,
    )
    return ledger


def parse_brokerage_csv(content: str | bytes, *, adjust_splits: bool = True) -> BrokerageLedger:
    """Parse a brokerage activity export from raw CSV text or bytes."""

    rows = read_csv_rows(content, required=REQUIRED_COLUMNS)
    return parse_brokerage_rows(rows, adjust_splits=adjust_splits)


__all__ = [
    "BrokerageLedger",
    "REQUIRED_COLUMNS",
    "classify_cash",
    "trade_settlement_type",
    "parse_brokerage_rows",
    "parse_brokerage_csv",
]
