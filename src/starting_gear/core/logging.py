"""Structured logging for the starting gear engine.

Every module logs through a structlog logger obtained with ``get_logger``.
Events are short sentences with the facts as keyword arguments; the
session being worked on is bound once per operation with
``session_context`` instead of being repeated on every call.

Example:
    >>> from starting_gear.core.logging import get_logger, session_context
    >>> logger = get_logger(__name__)
    >>> with session_context("abc123", operation="restore"):
    ...     logger.info("Snapshot loaded", items=42)
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor

from starting_gear.core.constants import MOD_VERSION


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

    from starting_gear.core.config import Settings

_STDLIB_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def add_engine_version(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Stamp entries with the engine version unless a caller set one."""
    event_dict.setdefault("engine_version", MOD_VERSION)
    return event_dict


def stringify_paths(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Render ``Path`` values as plain strings so JSON output stays readable."""
    for key, value in event_dict.items():
        if isinstance(value, Path):
            event_dict[key] = str(value)
    return event_dict


def configure_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | Path | None = None,
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Emit one JSON object per line instead of console output.
        log_file: Optional file that also receives standard library records.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_engine_version,
        stringify_paths,
        structlog.processors.StackInfoRenderer(),
    ]

    if json_format:
        renderer: Processor = structlog.processors.JSONRenderer()
        processors = [*shared_processors, structlog.processors.format_exc_info, renderer]
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
        processors = [*shared_processors, renderer]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format=_STDLIB_FORMAT, level=numeric_level, stream=sys.stdout, force=True)
    if log_file:
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(numeric_level)
        handler.setFormatter(logging.Formatter(_STDLIB_FORMAT))
        logging.getLogger().addHandler(handler)


def configure_from_settings(settings: Settings) -> None:
    """Configure logging from settings; debug mode forces DEBUG output."""
    configure_logging(level=settings.effective_log_level, json_format=settings.log_json)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger, typically with ``__name__``."""
    return structlog.get_logger(name)


@contextmanager
def session_context(session_id: str, **extra: Any) -> Iterator[None]:
    """Bind a session id (and any extra keys) for the duration of a block.

    Keys bound here are removed again on exit, including when the block
    raises, so nested operations on other sessions do not inherit them.

    Args:
        session_id: Session the block operates on.
        **extra: Further context, e.g. ``operation="restore"``.
    """
    with structlog.contextvars.bound_contextvars(session_id=session_id, **extra):
        yield


def bind_context(**kwargs: Any) -> None:
    """Bind context variables for all subsequent log entries."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "add_engine_version",
    "stringify_paths",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "session_context",
    "bind_context",
    "clear_context",
]
