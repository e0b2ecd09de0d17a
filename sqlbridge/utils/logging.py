"""Logging helpers for sqlbridge.

All loggers live under the ``sqlbridge`` namespace. Every facade call runs inside a
correlation scope, so the compiler, dispatcher and facade records produced by one call
carry the same ``correlation_id`` and can be grouped after the fact.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, TextIO
from uuid import uuid4

from sqlbridge._serialization import encode_json

if TYPE_CHECKING:
    from collections.abc import Iterator
    from logging import LogRecord

__all__ = (
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_id_var",
    "correlation_scope",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
)

ROOT_LOGGER_NAME = "sqlbridge"
TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(correlation_id)s] %(name)s: %(message)s"

correlation_id_var: ContextVar[str | None] = ContextVar("sqlbridge_correlation_id", default=None)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the duration of a block.

    An explicit ``correlation_id`` always wins. Without one, an id already bound by an
    outer scope is reused, so nested facade calls report under the caller's id; otherwise a
    fresh id is generated. The previous value is restored on exit.

    Args:
        correlation_id: Id to bind, e.g. one taken from an incoming request header.

    Yields:
        The id in effect inside the block.
    """
    current = correlation_id_var.get()
    if correlation_id is None and current is not None:
        yield current
        return
    token = correlation_id_var.set(correlation_id or uuid4().hex)
    try:
        yield correlation_id_var.get()  # type: ignore[misc]
    finally:
        correlation_id_var.reset(token)


class CorrelationIDFilter(logging.Filter):
    """Stamp each record with the correlation id bound when it was created."""

    def filter(self, record: LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"  # type: ignore[attr-defined]
        return True


class StructuredFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def format(self, record: LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = getattr(record, "correlation_id", None) or get_correlation_id()
        if correlation_id and correlation_id != "-":
            log_entry["correlation_id"] = correlation_id
        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)  # pyright: ignore
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return encode_json(log_entry)  # type: ignore[return-value]


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger under the ``sqlbridge`` namespace.

    Args:
        name: Dotted name relative to ``sqlbridge``. ``None`` returns the namespace root.

    Returns:
        The logger, with a :class:`CorrelationIDFilter` attached.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)

    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIDFilter) for f in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def configure_logging(
    level: str = "INFO",
    *,
    structured: bool = True,
    stream: TextIO | None = None,
    extra_handlers: list[logging.Handler] | None = None,
) -> logging.Logger:
    """Attach a console handler to the ``sqlbridge`` namespace.

    Existing handlers on the namespace root are replaced and propagation to the Python root
    logger is turned off, so calling this twice does not duplicate output.

    Args:
        level: Level name, case-insensitive.
        structured: JSON lines when true, a single text line per record otherwise.
        stream: Output stream. Defaults to ``sys.stderr``.
        extra_handlers: Additional handlers to attach unchanged.

    Returns:
        The configured namespace root logger.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.addFilter(CorrelationIDFilter())
    console_handler.setFormatter(StructuredFormatter() if structured else logging.Formatter(TEXT_FORMAT))
    root_logger.addHandler(console_handler)
    for handler in extra_handlers or ():
        root_logger.addHandler(handler)
    root_logger.propagate = False

    log_with_context(
        root_logger,
        logging.DEBUG,
        "sqlbridge logging configured",
        level=level.upper(),
        structured=structured,
        handlers_count=len(root_logger.handlers),
    )
    return root_logger


def log_with_context(logger: logging.Logger, level: int, message: str, /, **extra_fields: Any) -> None:
    """Log ``message`` with ``extra_fields`` merged into the structured output."""
    if not logger.isEnabledFor(level):
        return
    logger.log(level, message, extra={"extra_fields": extra_fields})
