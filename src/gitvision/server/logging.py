"""structlog setup for the GitVision server.

The stdio transport owns stdout, so every log line goes to stderr.
"""

import logging
import sys
from typing import Any

import structlog

# GitPython logs each spawned command at DEBUG
NOISY_LOGGERS = ("git.cmd", "git.util")

LOG_FORMATS = ("json", "console")


def build_processors(log_format: str = "json") -> list[Any]:
    """Processor chain for ``log_format``; anything but "console" renders JSON."""
    chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "console":
        return [*chain, structlog.dev.ConsoleRenderer()]
    return [
        *chain,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def _route_stdlib_logging(level: int) -> None:
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Route stdlib logging to stderr and install the structlog chain.

    Unknown level names fall back to INFO.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    _route_stdlib_logging(level)
    structlog.configure(
        processors=build_processors(log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
