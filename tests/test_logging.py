"""
Tests for structured logging.

Covers:
- StructuredFormatter emits one JSON object with context and extras
- Decimal, UUID and date values are serialized
- LogContext.bind restores previous values on exit
- Exception payloads carry the error code and structured fields
- configure_logging() is idempotent
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import UUID

import pytest

from inventory_kernel.exceptions import InsufficientStockError
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


def _record(message="event", exc_info=None, **extra) -> logging.LogRecord:
    record = logging.LogRecord("inventory_kernel.test", logging.INFO, __file__, 1, message, (), exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:

    def test_payload_fields(self):
        payload = json.loads(StructuredFormatter().format(_record("sale_posted", sale_total=Decimal("13.50"))))
        assert payload["message"] == "sale_posted"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "inventory_kernel.test"
        assert payload["sale_total"] == "13.50"

    def test_uuid_and_date_serialized(self):
        payload = json.loads(StructuredFormatter().format(
            _record(lot=UUID(int=7), received=date(2024, 1, 1))
        ))
        assert payload["lot"] == str(UUID(int=7))
        assert payload["received"] == "2024-01-01"

    def test_context_fields_included(self):
        with LogContext.bind(correlation_id="corr-1", actor_id="actor-1"):
            payload = json.loads(StructuredFormatter().format(_record()))
        assert payload["correlation_id"] == "corr-1"
        assert payload["actor_id"] == "actor-1"

    def test_exception_fields(self):
        try:
            raise InsufficientStockError("lot-1", Decimal("12"), Decimal("7"))
        except InsufficientStockError as exc:
            record = _record("sale_rejected", exc_info=(type(exc), exc, exc.__traceback__))

        payload = json.loads(StructuredFormatter().format(record))
        assert payload["exc_type"] == "InsufficientStockError"
        assert payload["exc_code"] == "INSUFFICIENT_STOCK"
        assert payload["exc_lot_id"] == "lot-1"
        assert payload["exc_requested"] == "12"
        assert "traceback" in payload


class TestLogContext:

    def test_bind_restores_outer_value(self):
        LogContext.set(operation="outer")
        with LogContext.bind(operation="inner"):
            assert LogContext.get_all()["operation"] == "inner"
        assert LogContext.get_all()["operation"] == "outer"

    def test_unknown_field_rejected(self):
        with pytest.raises(KeyError):
            LogContext.set(tenant="x")

    def test_clear(self):
        LogContext.set(lot_id="lot-9")
        LogContext.clear()
        assert LogContext.get_all() == {}


class TestConfigureLogging:

    def test_idempotent(self):
        reset_logging()
        try:
            stream = StringIO()
            configure_logging(level=logging.INFO, stream=stream)
            configure_logging(level=logging.INFO, stream=stream)
            assert len(logging.getLogger("inventory_kernel").handlers) == 1

            get_logger("test").info("configured_once")
            lines = stream.getvalue().strip().splitlines()
            assert [json.loads(line)["message"] for line in lines] == ["configured_once"]
        finally:
            reset_logging()
            configure_logging(level=logging.DEBUG)

    def test_logger_namespace(self):
        assert get_logger("services.x").name == "inventory_kernel.services.x"
