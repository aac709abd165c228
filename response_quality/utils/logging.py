"""Structured logging with structlog for pipeline, stores and fact checking.

Event-style messages with bound context:

    log = get_structured_logger("pipeline", request_id="rq_1")
    log.info("stage_completed", stage="fact_check", duration_ms=12.5)
"""

import os
import sys
from typing import Any

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import JSONRenderer

IS_TTY = sys.stderr.isatty()
LOG_FORMAT = os.getenv("LOG_FORMAT", "console").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_structured_logging(level: str = LOG_LEVEL) -> None:
    """
    Configure structlog processors and renderer.

    Console renderer for interactive development, JSON for everything else.
    """
    processors = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if IS_TTY and LOG_FORMAT == "console":
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_structured_logger(name: str, **context: Any) -> structlog.BoundLogger:
    """
    Get a structlog logger with a component name and optional bound context.

    Args:
        name: Component name bound as ``component``.
        **context: Additional key/value pairs to bind.

    Returns:
        Bound logger.
    """
    logger = structlog.get_logger(name).bind(component=name)
    if context:
        logger = logger.bind(**context)
    return logger


configure_structured_logging()


__all__ = [
    "get_structured_logger",
    "configure_structured_logging",
]
