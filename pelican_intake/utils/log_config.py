"""structlog configuration for command line runs.

Library modules only call ``structlog.get_logger(__name__)``; the CLI
decides how events are rendered.
"""

import logging
import sys

import structlog


def configure_logging(level: str = "INFO", fmt: str = "console") -> None:
    """Configure structlog processors.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ...).
        fmt: "console" for human-readable output, "json" for one JSON object per line.
    """
    renderer = structlog.processors.JSONRenderer() if fmt == "json" else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.INFO)),
        # stdout carries command output
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )
