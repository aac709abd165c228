"""Loguru configuration for the lexical analyzers and the CLI.

Console output is used for interactive terminals when LOG_FORMAT=console,
JSON lines otherwise. The CLI calls configure_logging() again with an
explicit level when --verbose is passed.
"""

import sys
from typing import Optional

from loguru import logger

from response_quality.config.settings import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> | <level>{message}</level>"
)


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure loguru sinks.

    Args:
        level: Override for settings.log_level.
    """
    logger.remove()
    logger.configure(extra={"component": "response_quality"})

    effective_level = (level or settings.log_level).upper()
    wants_console = settings.log_format.lower() == "console"

    if wants_console and sys.stderr.isatty():
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=effective_level,
            colorize=True,
        )
        return

    logger.add(
        sys.stderr,
        format="{message}",
        level=effective_level,
        serialize=True,
        diagnose=False,
    )


def get_logger(component: str):
    """
    Get a logger bound to a component name.

    Example:
        >>> log = get_logger("analyzers.validation")
        >>> log.info("Validating response")
    """
    return logger.bind(component=component)


configure_logging()

__all__ = ["logger", "get_logger", "configure_logging"]
