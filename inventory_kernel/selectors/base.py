"""
Common base for read-side selectors.

Selectors only query.  They never add, flush or commit, and what they
return (frozen DTOs, Decimals) stays usable after the session is closed.
"""

from decimal import Decimal
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

M = TypeVar("M", bound=Base)

ZERO = Decimal("0")


def as_decimal(value) -> Decimal:
    """Normalize an aggregate result (None, float on SQLite, Decimal) to Decimal."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class BaseSelector(Generic[M]):

    def __init__(self, session: Session):
        self.session = session
