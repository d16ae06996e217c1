"""Structured logging configuration for Gista."""

import logging
import sys
from typing import Any

import structlog

# Roles a Gista process can run as; bound to every event as ``process``.
PROCESS_ROLES = ("main", "share")


def resolve_level(log_level: str) -> int:
    """Translate a level name such as ``"debug"`` into its logging constant.

    Raises:
        ValueError: If the name is not a standard logging level.
    """
    level = logging.getLevelNamesMapping().get(log_level.strip().upper())
    if level is None:
        raise ValueError(f"Unknown log level: {log_level!r}")
    return level


def setup_logging(log_level: str = "INFO", process: str = "main") -> None:
    """Configure structured logging for one Gista process.

    The share process and the main process both write JSON lines to stderr;
    the ``process`` field tells their events apart when the streams are
    collected together.
    """
    if process not in PROCESS_ROLES:
        raise ValueError(f"Unknown process role: {process!r}")
    level = resolve_level(log_level)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(process=process)


def get_logger(name: str) -> Any:
    """Get a structured logger bound to the module name."""
    return structlog.get_logger(name)
