"""Logging configuration for the fileflow library."""

import logging
import sys

from fileflow.core.config import Settings, get_settings

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: Settings | None = None) -> None:
    """Configure process-wide logging for an application embedding fileflow.

    Level is DEBUG when settings.debug is True, otherwise INFO.
    Output goes to stdout. Library modules only create loggers; they never
    call this themselves.
    """
    settings = settings or get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format=_LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Per-request SQL echo is controlled by database_echo, not debug.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name."""
    return logging.getLogger(name)
