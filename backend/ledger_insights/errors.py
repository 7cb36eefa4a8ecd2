"""Exceptions raised by the ledger insights core."""

from __future__ import annotations


class LedgerInsightsError(Exception):
    """Base class for all ledger insights failures."""


class LedgerParseError(LedgerInsightsError):
    """The input is not delimited text the parsers can read at all."""


class UnknownFileFormatError(LedgerInsightsError):
    """The header line matches none of the supported export layouts."""

    def __init__(self, header: str) -> None:
        self.header = header
        super().__init__(f"Unrecognised export header: {header!r}")


__all__ = ["LedgerInsightsError", "LedgerParseError", "UnknownFileFormatError"]
