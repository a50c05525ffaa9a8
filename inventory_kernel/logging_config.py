"""
Structured logging for the inventory kernel.

Every kernel logger lives under the ``inventory_kernel`` namespace and
writes one JSON object per line.  Event names are snake_case messages
(``sale_posted``, ``stock_invariant_violation``); details travel in
``extra``.  Request-scoped fields (correlation id, actor, operation) are
held in context variables so that nested service calls inherit them
without passing them around.

Usage::

    logger = get_logger("services.lot_store")
    with LogContext.bind(correlation_id=cid, actor_id=actor):
        logger.info("lot_created", extra={"lot_id": str(lot.id)})
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
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

NAMESPACE = "inventory_kernel"

CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "actor_id",
    "operation",
    "posting_id",
    "lot_id",
)

_context: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"inventory_log_{name}", default=None) for name in CONTEXT_FIELDS
}


def _context_var(name: str) -> ContextVar[str | None]:
    try:
        return _context[name]
    except KeyError:
        raise KeyError(f"Unknown log context field: {name}") from None


class LogContext:
    """Request-scoped log fields, safe across threads and asyncio tasks."""

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set the given fields; None values are skipped."""
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                var.set(str(value))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        snapshot = {name: var.get() for name, var in _context.items()}
        return {name: value for name, value in snapshot.items() if value is not None}

    @classmethod
    def clear(cls) -> None:
        for var in _context.values():
            var.set(None)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block, then restore them."""
        tokens = [
            (var, var.set(str(value)))
            for var, value in ((_context_var(name), value) for name, value in fields.items())
            if value is not None
        ]
        try:
            yield cls
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# Attributes every LogRecord carries; anything else on a record came from ``extra``.
_RECORD_ATTRIBUTES: frozenset[str] = frozenset(
    logging.makeLogRecord({}).__dict__
) | {"message", "asctime", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _exception_fields(error: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": error.__class__.__name__,
        "exc_message": str(error),
    }
    code = getattr(error, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # Kernel errors expose their structured attributes (lot_id, requested, ...).
    fields.update(
        (f"exc_{name}", value)
        for name, value in vars(error).items()
        if not name.startswith("_")
    )
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: core fields, context, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }

        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES
        }
        for key, value in extras.items():
            payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


def get_logger(name: str) -> logging.Logger:
    """Logger for ``inventory_kernel.<name>``."""
    return logging.getLogger(f"{NAMESPACE}.{name}")


_configured = False
_configure_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``inventory_kernel`` logger.

    Only the first call has an effect until ``reset_logging()``.  The
    namespace does not propagate to the root logger, so host applications
    keep their own formatting.
    """
    global _configured
    with _configure_lock:
        if _configured:
            return
        _configured = True

        kernel_logger = logging.getLogger(NAMESPACE)
        kernel_logger.setLevel(level)
        kernel_logger.propagate = False

        target = handler or logging.StreamHandler(stream or sys.stderr)
        target.setFormatter(StructuredFormatter())
        kernel_logger.addHandler(target)


def reset_logging() -> None:
    """Drop handlers and allow ``configure_logging()`` again.  Test use only."""
    global _configured
    with _configure_lock:
        _configured = False
        kernel_logger = logging.getLogger(NAMESPACE)
        for existing in list(kernel_logger.handlers):
            kernel_logger.removeHandler(existing)
        kernel_logger.setLevel(logging.WARNING)
