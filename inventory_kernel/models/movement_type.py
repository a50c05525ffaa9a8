"""
Module: inventory_kernel.models.movement_type
Responsibility: ORM persistence for movement types -- the sign table of the
    stock ledger.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - factor is +1 (entry) or -1 (exit); DB check constraint.
    - key is unique: postings resolve types by semantic key, never by factor.
    - key and factor are immutable (db/immutability.py); changing a factor
      would silently re-sign history.
"""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base


class MovementType(Base):
    __tablename__ = "movement_types"

    __table_args__ = (
        CheckConstraint("factor IN (1, -1)", name="ck_movement_types_factor"),
    )

    key: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    factor: Mapped[int] = mapped_column(Integer, nullable=False)

    @property
    def is_entry(self) -> bool:
        return self.factor > 0

    def __repr__(self) -> str:
        return f"<MovementType {self.key} factor={self.factor:+d}>"
