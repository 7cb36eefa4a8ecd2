"""Header-based detection of brokerage and bank export layouts."""

from __future__ import annotations

from ..models import FileType
from .reader import decode_export

HEADER_PROBE_CHARS = 1024

BROKERAGE_HEADER_TOKENS = ("activity date", "process date", "trans code")
CHECKING_HEADER_TOKENS = ("details", "posting date", "description", "amount", "balance")
CREDIT_HEADER_TOKENS = ("transaction date", "post date", "description", "category", "amount")


def header_line(content: str | bytes) -> str:
    """Return the first line within the probe window, lower-cased."""

    if isinstance(content, bytes):
        content = content[:HEADER_PROBE_CHARS * 4]
    text = decode_export(content)[:HEADER_PROBE_CHARS]
    return text.splitlines()[0].strip().lower() if text else ""


def detect_file_type(content: str | bytes) -> FileType:
    """Classify an export by the tokens present in its header line."""

    first_line = header_line(content)
    if not first_line:
        return FileType.UNKNOWN
    if all(token in first_line for token in BROKERAGE_HEADER_TOKENS):
        return FileType.BROKERAGE
    if all(token in first_line for token in CHECKING_HEADER_TOKENS):
        return FileType.BANK_CHECKING
    if all(token in first_line for token in CREDIT_HEADER_TOKENS):
        return FileType.BANK_CREDIT
    return FileType.UNKNOWN


__all__ = [
    "HEADER_PROBE_CHARS",
    "BROKERAGE_HEADER_TOKENS",
    "CHECKING_HEADER_TOKENS",
    "CREDIT_HEADER_TOKENS",
    "header_line",
    "detect_file_type",
]
