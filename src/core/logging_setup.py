"""
Structured logging configuration shared by the API and the CLI.
"""

from __future__ import annotations

import logging
import sys

import structlog

from src.core.config import settings


def configure_logging(*, level: str | None = None, log_format: str | None = None) -> None:
    """
    Configure stdlib logging and structlog processors.

    Log lines go to stderr so CLI output on stdout stays machine-readable.
    """
    level_name = (level or settings.effective_log_level).upper()
    level_value = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level_value,
        format="%(message)s",
        stream=sys.stderr,
        force=True,
    )

    renderer: structlog.types.Processor
    if (log_format or settings.LOG_FORMAT) == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
