"""
Structured logging for the backoffice (``backoffice_kernel.logging_config``).

Every logger under the ``backoffice`` namespace writes one JSON object per
line.  A record carries:

    timestamp, level, logger, message
    + the fields bound on ``LogContext`` (actor, period, payroll entry, ...)
    + anything passed through ``extra=``
    + ``exc_*`` keys when logged with ``exc_info`` (typed errors contribute
      their structured attributes, e.g. ``exc_month`` for a duplicate period)

Services bind context around a unit of work::

    with LogContext.bind(period="2023-10", actor_id=actor_id):
        logger.info("payroll_generation_started")
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import IO, Any
from uuid import UUID

LOGGER_ROOT = "backoffice"

# Attributes every LogRecord has; anything else on a record came from extra=.
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "taskName"}


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class LogContext:
    """Request-scoped fields merged into every backoffice log record.

    Backed by a single ``ContextVar`` so values follow the current thread or
    task and never leak between concurrent units of work.
    """

    FIELDS = ("correlation_id", "actor_id", "period", "entry_id", "reference_id")

    _current: ContextVar[Mapping[str, str]] = ContextVar("backoffice_log_context", default={})

    @classmethod
    def _merged(cls, updates: Mapping[str, Any]) -> dict[str, str]:
        fields = dict(cls._current.get())
        for name, value in updates.items():
            if name not in cls.FIELDS:
                raise TypeError(f"Unknown log context field: {name}")
            if value is not None:
                fields[name] = str(value)
        return fields

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Set fields for the rest of the current context. None is ignored."""
        cls._current.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(cls._current.get())

    @classmethod
    def clear(cls) -> None:
        cls._current.set({})

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type["LogContext"]]:
        """Set fields inside the ``with`` block and restore the previous ones after."""
        token = cls._current.set(cls._merged(fields))
        try:
            yield cls
        finally:
            cls._current.reset(token)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if name.startswith("_") or name == "code":
            continue
        fields[f"exc_{name}"] = _jsonable(value)
    return fields


class StructuredFormatter(logging.Formatter):
    """Render a record as one line of JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for name, value in record.__dict__.items():
            if name in _RECORD_ATTRS or name in payload:
                continue
            payload[name] = _jsonable(value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def get_logger(name: str) -> logging.Logger:
    """Return ``backoffice.<name>``."""
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")


_HANDLER_MARKER = "_backoffice_structured"


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: IO[str] | None = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach the JSON handler to the ``backoffice`` logger.

    Calling it again is a no-op while a structured handler is attached, so
    engine initialisation can call it unconditionally.
    """
    root = logging.getLogger(LOGGER_ROOT)
    if any(getattr(h, _HANDLER_MARKER, False) for h in root.handlers):
        return

    target = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    setattr(target, _HANDLER_MARKER, True)

    root.setLevel(level)
    root.propagate = False
    root.addHandler(target)


def reset_logging() -> None:
    """Detach every handler from the ``backoffice`` logger. Used by tests."""
    root = logging.getLogger(LOGGER_ROOT)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(logging.WARNING)
    root.propagate = True
