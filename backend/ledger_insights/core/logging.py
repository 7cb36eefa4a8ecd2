import logging
import sys
from typing import TextIO


def setup_logging(level: str | int = logging.INFO, stream: TextIO | None = None) -> None:
    """Configure logging to output to stdout (or ``stream``) with proper formatting."""
    root_logger = logging.getLogger()
    if any(getattr(h, "_ledger_insights", False) for h in root_logger.handlers):
        root_logger.setLevel(level)
        return
    handler = logging.StreamHandler(stream or sys.stdout)
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)
    handler._ledger_insights = True  # type: ignore[attr-defined]
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Set lower log levels for some noisy libraries
    logging.getLogger("opentelemetry").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
