"""
Structured logging setup.

Modules log through ``structlog.get_logger(__name__)`` with snake_case event
names and keyword context. ``configure_logging`` is called once by entry
points (CLI, host plugin bootstrap); library code never configures logging.
"""

import logging
import sys

import structlog

from .config import config

__all__ = ["configure_logging"]


def configure_logging(level: str | None = None, json: bool = False) -> None:
    """Configure structlog processors and the level filter.

    Args:
        level: Log level name (defaults to config.log_level)
        json: Render JSON lines instead of the console format
    """
    level_name = (level or config.log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    renderer: structlog.typing.Processor
    if json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
