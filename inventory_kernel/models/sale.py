"""
Module: inventory_kernel.models.sale
Responsibility: ORM persistence for bazaar sales and their detail lines.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Every detail line has exactly one matching exit movement referencing
      ``sale:<sale id>`` (PostingCoordinator).
    - Details are immutable once written (db/immutability.py).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, UTCDateTime, UUIDString
from inventory_kernel.domain.dtos import SaleDetailRecord, SaleRecord


class Sale(Base):
    __tablename__ = "bazaar_sales"

    __table_args__ = (
        CheckConstraint("total >= 0", name="ck_bazaar_sales_total_non_negative"),
        Index("idx_sale_date", "sale_date"),
    )

    sale_date: Mapped[date] = mapped_column(Date, nullable=False)

    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False,
    )

    total: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    created_by: Mapped[str] = mapped_column(String(100), nullable=False)

    details: Mapped[list[SaleDetail]] = relationship(
        "SaleDetail",
        back_populates="sale",
        lazy="selectin",
        order_by="SaleDetail.line_number",
    )

    def to_dto(self) -> SaleRecord:
        return SaleRecord(
            sale_id=self.id,
            sale_date=self.sale_date,
            warehouse_id=self.warehouse_id,
            total=self.total,
            actor_id=self.created_by,
            details=tuple(d.to_dto() for d in self.details),
        )

    def __repr__(self) -> str:
        return f"<Sale {self.id}: {self.sale_date} total={self.total}>"


class SaleDetail(Base):
    __tablename__ = "bazaar_sale_details"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_sale_details_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_sale_details_price_non_negative"),
        Index("idx_sale_detail_sale", "sale_id"),
    )

    sale_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("bazaar_sales.id"), nullable=False,
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

    sale: Mapped[Sale] = relationship("Sale", back_populates="details")

    def to_dto(self) -> SaleDetailRecord:
        return SaleDetailRecord(
            detail_id=self.id,
            lot_id=self.lot_id,
            variant_id=self.variant_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
        )
