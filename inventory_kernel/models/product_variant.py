"""
Module: inventory_kernel.models.product_variant
Responsibility: ORM persistence for product variants (a product in one
    brand / presentation / unit).  Reference data.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    Soft delete only.  Once movements reference a variant it is never
    removed, only deactivated; inactive variants cannot receive new lots.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UTCDateTime
from inventory_kernel.domain.dtos import VariantView


class ProductVariant(Base):
    __tablename__ = "product_variants"

    __table_args__ = (
        Index("idx_variant_product", "product_id"),
        Index("idx_variant_barcode", "barcode"),
    )

    # Parent product (catalog owned outside the ledger)
    product_id: Mapped[str] = mapped_column(String(100), nullable=False)

    brand: Mapped[str | None] = mapped_column(String(100), nullable=True)

    presentation: Mapped[str | None] = mapped_column(String(100), nullable=True)

    barcode: Mapped[str | None] = mapped_column(String(64), nullable=True)

    unit_of_measure: Mapped[str] = mapped_column(String(20), nullable=False, default="UNIT")

    reference_unit_price: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    def to_dto(self) -> VariantView:
        return VariantView(
            variant_id=self.id,
            product_id=self.product_id,
            brand=self.brand,
            presentation=self.presentation,
            barcode=self.barcode,
            unit_of_measure=self.unit_of_measure,
            reference_unit_price=self.reference_unit_price,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return (
            f"<ProductVariant {self.id}: product={self.product_id} "
            f"brand={self.brand} uom={self.unit_of_measure}>"
        )
