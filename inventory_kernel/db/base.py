"""
Declarative base and column conventions for the ledger schema.

Every table gets a UUID primary key stored as text, so the same schema runs
on PostgreSQL and SQLite.  Quantities and money are ``Numeric(38, 9)``,
never float; timestamps are stored in UTC (``UTCDateTime``); plain ``int`` columns are
BigInteger because movement sequence numbers only grow.

This module is the bottom of the kernel's import graph: models import it,
it imports nothing from the kernel.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """``uuid.UUID`` in Python, 36-character text in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware ``datetime`` in Python, always UTC in the database.

    SQLite keeps DATETIME as text without an offset, so values are converted
    to UTC before they are written (naive values are taken to be UTC already)
    and UTC is re-attached on the way out.  Range filters against these
    columns therefore compare instants, whatever zone the bounds carry.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None or value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):

    type_annotation_map: ClassVar[dict] = {
        UUID: UUIDString(),
        Decimal: Numeric(38, 9),
        datetime: UTCDateTime(),
        int: BigInteger,
    }

    # Services assign ids from the injected IdGenerator; uuid4 covers rows
    # created without one (reference data seeded by hand, sequence counters).
    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)
