"""Shared telemetry: logging setup and tracing helpers."""

from fileflow.shared.telemetry.logging import get_logger, setup_logging
from fileflow.shared.telemetry.tracing import add_span_event, traced

__all__ = [
    "setup_logging",
    "get_logger",
    "traced",
    "add_span_event",
]
