"""
Module: inventory_kernel.models.donation
Responsibility: ORM persistence for donation headers and their detail lines.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - A donation has at least one detail; each detail points at exactly the
      lot that its line created (PostingCoordinator).
    - total == Σ detail.quantity × detail.unit_price at posting time.
    - Details are immutable once written (db/immutability.py).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, UTCDateTime, UUIDString
from inventory_kernel.domain.dtos import DonationDetailRecord, DonationRecord


class Donation(Base):
    __tablename__ = "donations"

    __table_args__ = (
        CheckConstraint("total >= 0", name="ck_donations_total_non_negative"),
        Index("idx_donation_date", "donation_date"),
    )

    donor_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("donors.id"), nullable=True,
    )

    donation_date: Mapped[date] = mapped_column(Date, nullable=False)

    total: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    created_by: Mapped[str] = mapped_column(String(100), nullable=False)

    details: Mapped[list[DonationDetail]] = relationship(
        "DonationDetail",
        back_populates="donation",
        lazy="selectin",
        order_by="DonationDetail.line_number",
    )

    def to_dto(self) -> DonationRecord:
        return DonationRecord(
            donation_id=self.id,
            donor_id=self.donor_id,
            donation_date=self.donation_date,
            total=self.total,
            notes=self.notes,
            actor_id=self.created_by,
            details=tuple(d.to_dto() for d in self.details),
        )

    def __repr__(self) -> str:
        return f"<Donation {self.id}: {self.donation_date} total={self.total}>"


class DonationDetail(Base):
    __tablename__ = "donation_details"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_donation_details_quantity_positive"),
        Index("idx_donation_detail_donation", "donation_id"),
    )

    donation_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("donations.id"), nullable=False,
    )

    line_number: Mapped[int] = mapped_column(nullable=False)

    lot_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("lots.id"), nullable=False,
    )

    variant_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("product_variants.id"), nullable=False,
    )

    quantity: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    unit_price: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    donation: Mapped[Donation] = relationship("Donation", back_populates="details")

    def to_dto(self) -> DonationDetailRecord:
        return DonationDetailRecord(
            detail_id=self.id,
            lot_id=self.lot_id,
            variant_id=self.variant_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
        )
