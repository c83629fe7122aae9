"""
Logging configuration using structlog for structured, JSON-based logging.

Every module logs through ``structlog.get_logger(__name__)`` with snake_case
event names; run-scoped context (run id, branch) is bound through
``structlog.contextvars`` by the orchestrator.

Log lines go to stderr so stdout carries only the command's own report
(``check-config`` prints its JSON there).
"""

import sys
from typing import TextIO

import structlog

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(log_level: str = "INFO", stream: TextIO | None = None) -> None:
    """Configure structured logging with JSON output.

    Args:
        log_level: Minimum log level, one of LOG_LEVELS (any case)
        stream: Where log lines are written; stderr when omitted
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level.upper()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=True,
    )
