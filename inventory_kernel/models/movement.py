"""
Module: inventory_kernel.models.movement
Responsibility: ORM persistence for ledger movements -- the append-only log
    of quantity changes against lots.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - quantity > 0 (check constraint).  The sign lives in the movement type
      factor, never in the stored quantity.
    - seq is unique and strictly increasing (SequenceService); it breaks
      ties between movements that share a timestamp.
    - Append-only: UPDATE and DELETE are rejected by db/immutability.py.
      Corrections are compensating movements.
    - At most one opening movement per lot (partial unique index on
      PostgreSQL; the LotStore/coordinator pairing guarantees it elsewhere).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Numeric,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, UTCDateTime, UUIDString
from inventory_kernel.domain.dtos import MovementView
from inventory_kernel.models.movement_type import MovementType


class Movement(Base):
    __tablename__ = "inventory_movements"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_movements_quantity_positive"),
        Index("idx_movement_lot", "lot_id"),
        Index("idx_movement_variant", "variant_id"),
        # Audit display order: newest first, seq breaks timestamp ties
        Index("idx_movement_occurred_seq", "occurred_at", "seq"),
        Index(
            "uq_movement_lot_opening",
            "lot_id",
            unique=True,
            postgresql_where=text("is_opening"),
            sqlite_where=text("is_opening = 1"),
        ),
    )

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)

    lot_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("lots.id"), nullable=False,
    )

    # Denormalized from the lot for query convenience
    variant_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("product_variants.id"), nullable=False,
    )

    movement_type_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("movement_types.id"), nullable=False,
    )

    quantity: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    occurred_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    actor_id: Mapped[str] = mapped_column(String(100), nullable=False)

    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)

    is_opening: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    movement_type: Mapped[MovementType] = relationship(MovementType, lazy="joined")

    @property
    def signed_quantity(self) -> Decimal:
        return self.quantity * self.movement_type.factor

    def to_dto(self) -> MovementView:
        return MovementView(
            movement_id=self.id,
            seq=self.seq,
            lot_id=self.lot_id,
            variant_id=self.variant_id,
            movement_type_id=self.movement_type_id,
            movement_type_key=self.movement_type.key,
            factor=self.movement_type.factor,
            quantity=self.quantity,
            occurred_at=self.occurred_at,
            actor_id=self.actor_id,
            reference=self.reference,
            is_opening=self.is_opening,
        )

    def __repr__(self) -> str:
        return (
            f"<Movement #{self.seq} lot={self.lot_id} qty={self.quantity} "
            f"type={self.movement_type_id}>"
        )
