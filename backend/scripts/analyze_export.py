"""CLI wrapper for analysing a single account export."""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys
from datetime import datetime

import pandas as pd

from ledger_insights.config import get_settings
from ledger_insights.core import setup_logging, setup_telemetry
from ledger_insights.errors import LedgerInsightsError
from ledger_insights.pipeline import analyze_export
from ledger_insights.prices import InMemoryPriceSource
from ledger_insights.schemas import serialize_report

logger = logging.getLogger(__name__)

PRICE_COLUMNS = ("ticker", "date", "price")


def load_price_file(path: pathlib.Path) -> InMemoryPriceSource:
    """Build a price source from a ``ticker,date,price`` CSV."""

    frame = pd.read_csv(path, dtype={"ticker": str, "date": str})
    missing = [column for column in PRICE_COLUMNS if column not in frame.columns]
    if missing:
        raise LedgerInsightsError(f"Price file {path} is missing columns: {', '.join(missing)}")
    frame["date"] = pd.to_datetime(frame["date"]).dt.strftime("%Y-%m-%d")
    prices: dict[str, dict[str, float]] = {}
    for row in frame.itertuples(index=False):
        prices.setdefault(row.ticker, {})[row.date] = float(row.price)
    return InMemoryPriceSource(prices)


def parse_as_of(value: str) -> datetime:
    """Parse an ISO 8601 reference time as naive local time, like the parsed exports."""

    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Analyse a brokerage or bank CSV export")
    parser.add_argument("export", type=pathlib.Path)
    parser.add_argument("--prices", type=pathlib.Path, help="CSV of ticker,date,price used for valuation")
    parser.add_argument(
        "--as-of",
        type=parse_as_of,
        default=None,
        help="Reference time (ISO 8601); defaults to now",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level, stream=sys.stderr)
    setup_telemetry(settings)
    logger.debug("Ledger insights configuration", extra=settings.dict_for_logging())

    price_source = load_price_file(args.prices) if args.prices else None
    try:
        report = analyze_export(
            args.export.read_bytes(),
            now=args.as_of or datetime.now(),
            price_source=price_source,
            settings=settings,
        )
    except LedgerInsightsError as exc:
        logger.error("Could not analyse %s: %s", args.export, exc)
        return 1

    print(serialize_report(report).model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
