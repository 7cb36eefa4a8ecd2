"""Load CSV export text into header-keyed row dicts."""

from __future__ import annotations

import io
from typing import Any, Dict, Iterable, List

import pandas as pd

from ..errors import LedgerParseError


def decode_export(content: str | bytes) -> str:
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    return content.lstrip("\ufeff")


def read_csv_rows(content: str | bytes, *, required: Iterable[str] = ()) -> List[Dict[str, Any]]:
    """Read an export into row dicts keyed by stripped header names.

    Rows with a trailing delimiter (common in bank exports) keep only the
    named columns. Raises :class:`LedgerParseError` when the text cannot be
    read as delimited data or lacks a ``required`` column.
    """

    text = decode_export(content)
    if not text.strip():
        raise LedgerParseError("Export is empty")
    try:
        frame = pd.read_csv(
            io.StringIO(text),
            dtype=object,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
            engine="python",
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as exc:
        raise LedgerParseError(f"Export is not readable as CSV: {exc}") from exc

    frame.columns = [str(column).strip() for column in frame.columns]
    missing = [column for column in required if column not in frame.columns]
    if missing:
        raise LedgerParseError(f"Export is missing required columns: {', '.join(missing)}")
    return frame.to_dict(orient="records")


__all__ = ["decode_export", "read_csv_rows"]
