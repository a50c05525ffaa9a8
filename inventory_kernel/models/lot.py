"""
Module: inventory_kernel.models.lot
Responsibility: ORM persistence for lots -- one batch of one product variant
    received into one warehouse at one unit cost.  The lot is the aggregate
    root of physical stock.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - original_quantity > 0, set once at creation (check constraint + ORM
      listener).
    - 0 <= current_quantity (check constraint); current_quantity <=
      original_quantity enforced by LotStore.
    - current_quantity is a cached projection of the ledger.  Only the
      PostingCoordinator may change it (db/immutability.py rejects updates
      made outside a posting scope).

Failure modes:
    - IntegrityError on a violated check constraint (surfaced by the
      coordinator as PersistenceError).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UTCDateTime, UUIDString
from inventory_kernel.domain.dtos import LotView


class Lot(Base):
    __tablename__ = "lots"

    __table_args__ = (
        CheckConstraint("original_quantity > 0", name="ck_lots_original_positive"),
        CheckConstraint("current_quantity >= 0", name="ck_lots_current_non_negative"),
        CheckConstraint("unit_cost >= 0", name="ck_lots_cost_non_negative"),
        # Query: stock of a variant in a warehouse
        Index("idx_lot_variant_warehouse", "variant_id", "warehouse_id"),
        # Query: lots of a donation
        Index("idx_lot_donation", "donation_id"),
        # Query: expiring lots
        Index("idx_lot_expiry", "expiry_date"),
    )

    variant_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("product_variants.id"), nullable=False,
    )

    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False,
    )

    donation_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("donations.id"), nullable=True,
    )

    lot_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    unit_cost: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    # Immutable after creation
    original_quantity: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    # Cached ledger projection
    current_quantity: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    received_date: Mapped[date] = mapped_column(Date, nullable=False)

    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    created_by: Mapped[str] = mapped_column(String(100), nullable=False)

    def to_dto(self) -> LotView:
        return LotView(
            lot_id=self.id,
            variant_id=self.variant_id,
            warehouse_id=self.warehouse_id,
            donation_id=self.donation_id,
            lot_number=self.lot_number,
            unit_cost=self.unit_cost,
            original_quantity=self.original_quantity,
            current_quantity=self.current_quantity,
            received_date=self.received_date,
            expiry_date=self.expiry_date,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return (
            f"<Lot {self.id}: variant={self.variant_id} "
            f"qty={self.current_quantity}/{self.original_quantity}>"
        )
