"""
Module: inventory_kernel.selectors.activity_selector
Responsibility: Operational read models over the posting records: pending
    kitchen sign-offs, consumption history, daily bazaar figures and lot
    availability, expiry and low-stock alerts.
Architecture position: Kernel > Selectors.

Only APPROVED consumptions count toward approved_consumption_total; pending
records have debited stock but are not yet final.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import and_, func, select

from inventory_kernel.domain.dtos import (
    ConsumptionRecord,
    DailySalesSummary,
    LotView,
    LowStockVariant,
)
from inventory_kernel.domain.validation import require_non_negative
from inventory_kernel.models.kitchen_consumption import KitchenConsumption
from inventory_kernel.models.lot import Lot
from inventory_kernel.models.product_variant import ProductVariant
from inventory_kernel.models.sale import Sale, SaleDetail
from inventory_kernel.selectors.base import BaseSelector, as_decimal


class ActivitySelector(BaseSelector[KitchenConsumption]):

    # Kitchen consumption

    def _consumptions(self, *criteria) -> list[ConsumptionRecord]:
        stmt = (
            select(KitchenConsumption)
            .where(*criteria)
            .order_by(
                KitchenConsumption.consumption_date.desc(),
                KitchenConsumption.created_at.desc(),
                KitchenConsumption.id,
            )
        )
        return [row.to_dto() for row in self.session.execute(stmt).scalars()]

    def pending_consumptions(self) -> list[ConsumptionRecord]:
        return self._consumptions(KitchenConsumption.approver_id.is_(None))

    def consumptions_by_responsible(self, responsible_id: str) -> list[ConsumptionRecord]:
        return self._consumptions(KitchenConsumption.responsible_id == responsible_id)

    def consumptions_on(self, day: date) -> list[ConsumptionRecord]:
        return self._consumptions(KitchenConsumption.consumption_date == day)

    def approved_consumption_total(
        self,
        variant_id: UUID,
        date_from: date,
        date_to: date,
    ) -> Decimal:
        total = self.session.execute(
            select(func.sum(KitchenConsumption.quantity)).where(
                KitchenConsumption.variant_id == variant_id,
                KitchenConsumption.approver_id.is_not(None),
                KitchenConsumption.consumption_date >= date_from,
                KitchenConsumption.consumption_date <= date_to,
            )
        ).scalar()
        return as_decimal(total)

    # Bazaar

    def daily_sales_summary(self, day: date) -> DailySalesSummary:
        sale_count, revenue = self.session.execute(
            select(func.count(Sale.id), func.sum(Sale.total)).where(Sale.sale_date == day)
        ).one()
        units = self.session.execute(
            select(func.sum(SaleDetail.quantity))
            .join(Sale, Sale.id == SaleDetail.sale_id)
            .where(Sale.sale_date == day)
        ).scalar()
        return DailySalesSummary(
            day=day,
            sale_count=sale_count or 0,
            revenue=as_decimal(revenue),
            units_sold=as_decimal(units),
        )

    # Lots

    def available_lots(
        self,
        warehouse_id: UUID | None = None,
        variant_id: UUID | None = None,
    ) -> list[LotView]:
        """Active lots with stock, earliest expiry first (lots without expiry last)."""
        stmt = select(Lot).where(Lot.is_active.is_(True), Lot.current_quantity > 0)
        if warehouse_id is not None:
            stmt = stmt.where(Lot.warehouse_id == warehouse_id)
        if variant_id is not None:
            stmt = stmt.where(Lot.variant_id == variant_id)
        stmt = stmt.order_by(
            Lot.expiry_date.is_(None),
            Lot.expiry_date,
            Lot.received_date,
            Lot.created_at,
        )
        return [lot.to_dto() for lot in self.session.execute(stmt).scalars()]

    def expiring_lots(self, before: date) -> list[LotView]:
        """Active lots with stock whose expiry date is on or before ``before``."""
        stmt = (
            select(Lot)
            .where(
                Lot.is_active.is_(True),
                Lot.current_quantity > 0,
                Lot.expiry_date.is_not(None),
                Lot.expiry_date <= before,
            )
            .order_by(Lot.expiry_date, Lot.created_at)
        )
        return [lot.to_dto() for lot in self.session.execute(stmt).scalars()]

    def low_stock_variants(
        self,
        threshold: Decimal,
        warehouse_id: UUID | None = None,
    ) -> list[LowStockVariant]:
        """
        Active variants with less than ``threshold`` units on hand.

        Stock is the sum over active lots (optionally in one warehouse), so
        a variant with no lots at all reports zero.  Lowest stock first.
        """
        limit = require_non_negative("threshold", threshold)
        lot_join = and_(Lot.variant_id == ProductVariant.id, Lot.is_active.is_(True))
        if warehouse_id is not None:
            lot_join = and_(lot_join, Lot.warehouse_id == warehouse_id)
        stock = func.coalesce(func.sum(Lot.current_quantity), 0)

        stmt = (
            select(ProductVariant, stock)
            .outerjoin(Lot, lot_join)
            .where(ProductVariant.is_active.is_(True))
            .group_by(ProductVariant.id)
            .having(stock < limit)
            .order_by(stock, ProductVariant.product_id, ProductVariant.id)
        )
        return [
            LowStockVariant(
                variant_id=variant.id,
                product_id=variant.product_id,
                brand=variant.brand,
                unit_of_measure=variant.unit_of_measure,
                stock=as_decimal(on_hand),
            )
            for variant, on_hand in self.session.execute(stmt)
        ]
