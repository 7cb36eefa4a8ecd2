"""Ledger Insights: brokerage and bank export analytics.

Parses account exports into typed ledgers, reconstructs split-adjusted
portfolio history, aggregates cash flows and detects recurring charges.
"""

from .errors import LedgerInsightsError, LedgerParseError, UnknownFileFormatError
from .pipeline import BankReport, BrokerageReport, analyze_bank_export, analyze_brokerage_export, analyze_export

__version__ = "0.1.0"

__all__ = [
    "BankReport",
    "BrokerageReport",
    "LedgerInsightsError",
    "LedgerParseError",
    "UnknownFileFormatError",
    "analyze_bank_export",
    "analyze_brokerage_export",
    "analyze_export",
]
