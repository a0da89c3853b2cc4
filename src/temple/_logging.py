"""Logging utilities for temple.

This module provides standalone structlog logger factories that write
text-formatted or JSON-formatted diagnostics to stderr (or a supplied
stream). Each logger is self-contained and does not modify global structlog
configuration.

The threshold is process-wide by default (``set_log_level``) and can be
overridden per store through ``StoreConfig.log_level``. The default
threshold is ``none``: temple stays silent unless asked.
"""

import logging
import sys
from enum import StrEnum
from os import getenv
from typing import TYPE_CHECKING, Literal, NoReturn, TextIO, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import EventDict, FilteringBoundLogger

LogFormatType = Literal["json", "text"]


class LogLevel(StrEnum):
    """Log level threshold values.

    A threshold admits its own level and everything more severe, so
    ``debug`` shows every event and ``none`` shows nothing.
    """

    NONE = "none"
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


_STDLIB_LEVELS: dict[LogLevel, int] = {
    # Critical events that pass this filter are dropped by _drop_event
    LogLevel.NONE: logging.CRITICAL,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
}


def _drop_event(
    _logger: object, _method_name: str, _event_dict: "EventDict"  # noqa: UP037
) -> NoReturn:
    raise structlog.DropEvent


def _log_level_from_env() -> LogLevel:
    """Get the initial log level from environment variables.

    Checks TEMPLE_DEBUG first (sets DEBUG if present), then TEMPLE_LOG_LEVEL.
    Defaults to NONE if neither is set or the value is unknown.
    """
    if getenv("TEMPLE_DEBUG", None):
        return LogLevel.DEBUG

    try:
        return LogLevel(getenv("TEMPLE_LOG_LEVEL", "none").lower())
    except ValueError:
        return LogLevel.NONE


_log_level: LogLevel = _log_level_from_env()


def coerce_log_level(level: LogLevel | str) -> LogLevel:
    """Convert a level name to a LogLevel.

    ``warning`` is accepted as an alias for ``warn``.

    Raises:
        ValueError: If the name is not a known level.
    """
    if isinstance(level, LogLevel):
        return level
    name = level.strip().lower()
    if name == "warning":
        return LogLevel.WARN
    return LogLevel(name)


def set_log_level(level: LogLevel | str) -> None:
    """Set the process-wide log threshold.

    Stores whose config names their own level are unaffected.

    Args:
        level: The new threshold.
    """
    global _log_level  # noqa: PLW0603
    _log_level = coerce_log_level(level)


def get_log_level() -> LogLevel:
    """Return the process-wide log threshold."""
    return _log_level


def create_logger(
    level: LogLevel | str | None = None,
    *,
    log_format: LogFormatType = "text",
    stream: TextIO | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger.

    Args:
        level: Threshold for this logger. Falls back to the process-wide
            threshold when None.
        log_format: Output format, either "text" or "json".
        stream: Stream to write to. Defaults to the current ``sys.stderr``.

    Returns:
        A FilteringBoundLogger bound with ``logger="temple"``.
    """
    effective = get_log_level() if level is None else coerce_log_level(level)

    processors: list[structlog.typing.Processor] = []
    if effective is LogLevel.NONE:
        processors.append(_drop_event)
    processors += [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Text format: "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    logger = structlog.wrap_logger(
        structlog.PrintLogger(file=stream if stream is not None else sys.stderr),
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_STDLIB_LEVELS[effective]),
        context_class=dict,
    )

    return cast("FilteringBoundLogger", logger.bind(logger="temple"))
