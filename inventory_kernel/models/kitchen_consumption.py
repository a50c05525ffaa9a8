"""
Module: inventory_kernel.models.kitchen_consumption
Responsibility: ORM persistence for kitchen consumption records and their
    approval sign-off.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - The exit movement is posted when the record is created; approval does
      not touch stock.
    - approver_id / signature_text / approved_at are write-once
      (db/immutability.py).  Status is derived from approver_id.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UTCDateTime, UUIDString
from inventory_kernel.domain.consumption import ConsumptionStatus, status_from_approver
from inventory_kernel.domain.dtos import ConsumptionRecord


class KitchenConsumption(Base):
    __tablename__ = "kitchen_consumptions"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_kitchen_consumptions_quantity_positive"),
        Index("idx_consumption_date", "consumption_date"),
        Index("idx_consumption_responsible", "responsible_id"),
        Index("idx_consumption_approver", "approver_id"),
    )

    lot_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("lots.id"), nullable=False,
    )

    variant_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("product_variants.id"), nullable=False,
    )

    quantity: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    consumption_date: Mapped[date] = mapped_column(Date, nullable=False)

    responsible_id: Mapped[str] = mapped_column(String(100), nullable=False)

    # Approval sign-off (write-once)
    approver_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    signature_text: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True,
    )

    movement_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("inventory_movements.id"), nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    @property
    def status(self) -> ConsumptionStatus:
        return status_from_approver(self.approver_id)

    def to_dto(self) -> ConsumptionRecord:
        return ConsumptionRecord(
            consumption_id=self.id,
            lot_id=self.lot_id,
            variant_id=self.variant_id,
            quantity=self.quantity,
            consumption_date=self.consumption_date,
            responsible_id=self.responsible_id,
            approver_id=self.approver_id,
            signature_text=self.signature_text,
            approved_at=self.approved_at,
            movement_id=self.movement_id,
        )

    def __repr__(self) -> str:
        return (
            f"<KitchenConsumption {self.id}: lot={self.lot_id} "
            f"qty={self.quantity} status={self.status.value}>"
        )
