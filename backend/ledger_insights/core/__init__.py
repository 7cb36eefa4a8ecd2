"""Cross-cutting logging and telemetry helpers."""

from .logging import setup_logging
from .telemetry import get_tracer, setup_telemetry

__all__ = ["setup_logging", "setup_telemetry", "get_tracer"]
