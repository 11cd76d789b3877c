"""
Structured logging for CacheVault.

This module configures the ``cachevault`` logger (rich console output or JSON
lines) and provides helpers that record operation start and success with their
structured context.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from cachevault.shared.constants import LogContextKeys, Logging
from cachevault.shared.errors import ErrorContext


class StructuredFormatter(logging.Formatter):
    """
    Formatter that renders each record as one JSON object.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created,
                tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in (
            LogContextKeys.ERROR_CODE,
            LogContextKeys.CONTEXT,
            LogContextKeys.OPERATION,
            LogContextKeys.DURATION_MS,
            LogContextKeys.RESULT_INFO,
        ):
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def _create_rich_console() -> Console:
    """
    Create the rich console used for log output.

    Logs go to stderr so that command output (digests, JSON documents) on
    stdout stays machine readable.
    """
    custom_theme = Theme(
        {
            "logging.level.debug": "cyan",
            "logging.level.info": "green",
            "logging.level.warning": "yellow",
            "logging.level.error": "red bold",
            "logging.level.critical": "red bold reverse",
            "log.time": "dim cyan",
            "log.message": "white",
            "log.path": "dim blue",
        }
    )
    return Console(theme=custom_theme, stderr=True)


def setup_logging(
    level: str = Logging.DEFAULT_LEVEL,
    log_file: str | None = None,
    *,
    use_rich: bool = True,
    name: str = Logging.ROOT_LOGGER,
) -> logging.Logger:
    """
    Configure the CacheVault logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path of a JSON lines log file
        use_rich: Use the rich console handler instead of JSON on stderr
        name: Logger to configure

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)

    # Reconfiguring replaces earlier handlers
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)

    if use_rich:
        handler: logging.Handler = RichHandler(
            console=_create_rich_console(),
            show_time=True,
            show_level=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            log_time_format=Logging.TIME_FORMAT,
        )
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredFormatter())
    handler.setLevel(log_level)
    logger.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def _context_to_dict(context: dict[str, Any] | ErrorContext | None) -> dict[str, Any]:
    if context is None:
        return {}
    if isinstance(context, ErrorContext):
        return context.safe_dict()
    return dict(context)


def log_operation_start(
    logger: logging.Logger,
    operation: str,
    context: dict[str, Any] | None = None,
) -> None:
    """Record the start of an operation at debug level."""
    logger.debug(
        "Starting operation '%s'",
        operation,
        extra={
            LogContextKeys.OPERATION: operation,
            LogContextKeys.CONTEXT: context or {},
        },
    )


def log_operation_success(
    logger: logging.Logger,
    operation: str,
    duration_ms: float,
    result_info: dict[str, Any] | None = None,
    context: dict[str, Any] | ErrorContext | None = None,
) -> None:
    """
    Record a completed operation at debug level.

    Args:
        logger: Logger instance
        operation: Operation name
        duration_ms: Elapsed time in milliseconds
        result_info: Summary of the result
        context: Context of the operation
    """
    logger.debug(
        "Operation '%s' completed successfully",
        operation,
        extra={
            LogContextKeys.OPERATION: operation,
            LogContextKeys.DURATION_MS: duration_ms,
            LogContextKeys.RESULT_INFO: result_info or {},
            LogContextKeys.CONTEXT: _context_to_dict(context),
        },
    )
