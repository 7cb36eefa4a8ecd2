"""CSV ingestion for brokerage and bank exports."""

from .bank import BankStatement, parse_bank_csv, parse_bank_rows
from .brokerage import (
    BrokerageLedger,
    classify_cash,
    parse_brokerage_csv,
    parse_brokerage_rows,
    trade_settlement_type,
)
from .file_types import detect_file_type, header_line
from .values import parse_activity_date, parse_amount, parse_us_date

__all__ = [
    "BankStatement",
    "BrokerageLedger",
    "classify_cash",
    "detect_file_type",
    "header_line",
    "parse_activity_date",
    "parse_amount",
    "parse_bank_csv",
    "parse_bank_rows",
    "parse_brokerage_csv",
    "parse_brokerage_rows",
    "parse_us_date",
    "trade_settlement_type",
]
