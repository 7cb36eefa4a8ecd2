"""Parse checking and credit card statement exports."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

from ..diagnostics import ParseDiagnostics
from ..errors import UnknownFileFormatError
from ..models import AccountKind, BankTransaction, FileType
from .file_types import detect_file_type, header_line
from .reader import read_csv_rows
from .values import cell, parse_amount, parse_us_date

logger = logging.getLogger(__name__)

# Checking layout
DETAILS = "Details"
POSTING_DATE = "Posting Date"
BALANCE = "Balance"
CHECK_OR_SLIP = "Check or Slip #"

# Credit layout
TRANSACTION_DATE = "Transaction Date"
POST_DATE = "Post Date"
CATEGORY = "Category"
MEMO = "Memo"

DESCRIPTION = "Description"
AMOUNT = "Amount"
TYPE = "Type"

REQUIRED_COLUMNS = {
    AccountKind.CHECKING: (POSTING_DATE, DESCRIPTION, AMOUNT),
    AccountKind.CREDIT: (TRANSACTION_DATE, DESCRIPTION, AMOUNT),
}


@dataclass
class BankStatement:
    """Statement rows ordered newest first."""

    account_kind: AccountKind
    transactions: List[BankTransaction] = field(default_factory=list)
    diagnostics: ParseDiagnostics = field(default_factory=ParseDiagnostics)

    def chronological(self) -> List[BankTransaction]:
        """Return the rows oldest first."""

        return sorted(self.transactions, key=lambda tx: tx.timestamp)


def account_kind_for(file_type: FileType) -> Optional[AccountKind]:
    if file_type is FileType.BANK_CHECKING:
        return AccountKind.CHECKING
    if file_type is FileType.BANK_CREDIT:
        return AccountKind.CREDIT
    return None


def _optional(value: str) -> Optional[str]:
    return value or None


def _parse_row(row: Mapping[str, Any], account_kind: AccountKind) -> Optional[BankTransaction]:
    description = cell(row, DESCRIPTION)
    amount = parse_amount(cell(row, AMOUNT))
    if account_kind is AccountKind.CHECKING:
        timestamp = parse_us_date(cell(row, POSTING_DATE))
    else:
        timestamp = parse_us_date(cell(row, TRANSACTION_DATE)) or parse_us_date(cell(row, POST_DATE))
    if not description or timestamp is None or amount is None:
        return None

    if account_kind is AccountKind.CHECKING:
        return BankTransaction(
            date=timestamp.date(),
            timestamp=timestamp,
            description=description,
            amount=amount,
            type=cell(row, TYPE),
            balance=parse_amount(cell(row, BALANCE)),
            account_kind=account_kind,
            details=_optional(cell(row, DETAILS)),
            check_or_slip=_optional(cell(row, CHECK_OR_SLIP)),
        )

    post_date = parse_us_date(cell(row, POST_DATE))
    return BankTransaction(
        date=timestamp.date(),
        timestamp=timestamp,
        description=description,
        amount=amount,
        type=cell(row, TYPE),
        balance=None,
        account_kind=account_kind,
        category=_optional(cell(row, CATEGORY)),
        memo=_optional(cell(row, MEMO)),
        post_date=post_date.date() if post_date else None,
    )


def parse_bank_rows(rows: Iterable[Mapping[str, Any]], account_kind: AccountKind) -> BankStatement:
    """Parse statement rows of a known layout; malformed rows are dropped and counted."""

    statement = BankStatement(account_kind=account_kind)
    diagnostics = statement.diagnostics
    transactions: List[BankTransaction] = []
    for row in rows:
        diagnostics.total_rows += 1
        tx = _parse_row(row, account_kind)
        if tx is None:
            diagnostics.record_dropped()
            continue
        transactions.append(tx)
        diagnostics.parsed_rows += 1

    transactions.sort(key=lambda tx: tx.timestamp, reverse=True)
    statement.transactions = transactions
    logger.info(
        "Parsed %d %s transactions (%d rows dropped)",
        len(transactions),
        account_kind.value,
        diagnostics.dropped_rows,
    )
    return statement


def parse_bank_csv(content: str | bytes, account_kind: AccountKind | None = None) -> BankStatement:
    """Parse a bank export, detecting checking vs credit from the header when not given."""

    if account_kind is None:
        account_kind = account_kind_for(detect_file_type(content))
        if account_kind is None:
            raise UnknownFileFormatError(header_line(content))
    rows = read_csv_rows(content, required=REQUIRED_COLUMNS[account_kind])
    return parse_bank_rows(rows, account_kind)


__all__ = [
    "BankStatement",
    "REQUIRED_COLUMNS",
    "account_kind_for",
    "parse_bank_rows",
    "parse_bank_csv",
]
