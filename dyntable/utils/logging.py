# ruff: noqa: PLR6301
"""Logging for dyntable.

Loggers live under the ``dyntable`` namespace. Every driver operation carries
a correlation ID: the one set for the current context by the application, or
a fresh one per operation. Records emitted through ``log_with_context`` carry
structured fields (profile, table, statement) that ``StructuredFormatter``
renders as JSON. The library only emits records; applications install
handlers with ``configure_logging``.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from dyntable._serialization import encode_json

if TYPE_CHECKING:
    from logging import LogRecord

__all__ = (
    "ROOT_LOGGER_NAME",
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_id_var",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
    "resolve_correlation_id",
    "set_correlation_id",
)

ROOT_LOGGER_NAME = "dyntable"

SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"

correlation_id_var: ContextVar[str | None] = ContextVar("dyntable_correlation_id", default=None)


def set_correlation_id(correlation_id: str | None) -> None:
    """Tag the driver operations of the current context with ``correlation_id``, or clear the tag with None."""
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


def resolve_correlation_id() -> str:
    """Return the context's correlation ID, or a new one for a single operation."""
    return get_correlation_id() or uuid.uuid4().hex


class CorrelationIDFilter(logging.Filter):
    """Stamp records with the context's correlation ID unless the call site supplied one."""

    def filter(self, record: LogRecord) -> bool:
        if getattr(record, "correlation_id", None) is None:
            record.correlation_id = get_correlation_id()  # type: ignore[attr-defined]
        return True


class StructuredFormatter(logging.Formatter):
    """Render records as one JSON object per line.

    The structured fields of ``log_with_context`` are merged into the object
    after the standard keys, so ``profile``, ``table`` or ``sql`` appear at
    the top level.
    """

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = getattr(record, "correlation_id", None) or get_correlation_id()
        if correlation_id:
            entry["correlation_id"] = correlation_id
        entry.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return encode_json(entry)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``dyntable`` namespace.

    Args:
        name: Logger name, prefixed with ``dyntable.`` when it is not already. None returns the root logger.

    Returns:
        The logger, with a ``CorrelationIDFilter`` attached once.
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
    format_style: str = "structured",
    log_to_file: str | None = None,
    extra_handlers: list[logging.Handler] | None = None,
) -> None:
    """Install handlers on the ``dyntable`` root logger.

    Args:
        level: Level name such as ``"DEBUG"``; driver statements and transaction outcomes log at DEBUG.
        format_style: ``"structured"`` for JSON lines, anything else for plain text.
        log_to_file: Path of a file that receives structured records as well.
        extra_handlers: Handlers added as given.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    # handler level filters also apply to records propagated from child loggers
    console_handler.addFilter(CorrelationIDFilter())
    if format_style == "structured":
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_to_file:
        file_handler = logging.FileHandler(log_to_file)
        file_handler.addFilter(CorrelationIDFilter())
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    for handler in extra_handlers or ():
        root_logger.addHandler(handler)

    root_logger.propagate = False
    log_with_context(
        root_logger,
        logging.INFO,
        "dyntable logging configured",
        level=level,
        format_style=format_style,
        handlers_count=len(root_logger.handlers),
    )


def log_with_context(logger: logging.Logger, level: int, message: str, **extra_fields: Any) -> None:
    """Log ``message`` with structured fields.

    A ``correlation_id`` field is lifted onto the record itself so filters and
    formatters treat it like the context's ID.
    """
    if not logger.isEnabledFor(level):
        return
    extra: dict[str, Any] = {"extra_fields": extra_fields}
    if "correlation_id" in extra_fields:
        extra["correlation_id"] = extra_fields.pop("correlation_id")
    logger.log(level, message, extra=extra)
