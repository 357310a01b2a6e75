"""Logging utilities for Tracyfy.

This module provides standalone structlog logger factories that write
JSON-formatted or text-formatted logs to a file or to stderr. Each logger is
self-contained and does not modify global structlog configuration, so a
library host keeps control of its own logging setup.
"""

import logging
import sys
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from tracyfy.config import LoggingConfig


def _log_level_from_string(level: str, *, respect_env: bool = True) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, TRACYFY_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer, INFO for unknown names.
    """
    if respect_env and getenv("TRACYFY_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def _create_logger(
    *,
    log_file_path: str = "",
    log_level: int = logging.INFO,
    log_format: str = "json",
) -> FilteringBoundLogger:
    """Create a standalone structlog logger.

    Args:
        log_file_path: File opened in append mode; empty writes to stderr.
        log_level: Minimum level that is emitted.
        log_format: Output format, either "json" or "text".

    Returns:
        A configured FilteringBoundLogger instance.
    """
    if log_file_path:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger_factory = structlog.WriteLoggerFactory(file=log_path.open("a"))
    else:
        logger_factory = structlog.WriteLoggerFactory(file=sys.stderr)

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Text format: "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            logger_factory(),
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
            context_class=dict,
        ),
    )


def create_logger(
    config: LoggingConfig | None = None,
    *,
    component: str = "",
) -> FilteringBoundLogger:
    """Create a logger from logging configuration.

    The level comes from the configuration unless TRACYFY_DEBUG is set, which
    forces DEBUG. When ``component`` is given it is bound to every entry.

    Args:
        config: Logging settings; defaults are used when None.
        component: Name of the service producing the entries.

    Returns:
        A FilteringBoundLogger instance.

    Example:
        >>> logger = create_logger(component="history")
        >>> logger.info("history_loaded", commits=3)
    """
    if config is None:
        from tracyfy.config import LoggingConfig  # noqa: PLC0415

        config = LoggingConfig()

    logger = _create_logger(
        log_file_path=config.file,
        log_level=_log_level_from_string(config.level),
        log_format=config.format,
    )
    if component:
        return logger.bind(component=component)
    return logger
