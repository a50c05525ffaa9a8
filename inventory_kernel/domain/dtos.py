"""
Data transfer objects for the inventory kernel.

Frozen dataclasses used as posting requests (lines, filters) and as the
detached read results returned by selectors and ``Model.to_dto()``.
Nothing here touches the database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from inventory_kernel.domain.consumption import ConsumptionStatus


# =========================================================================
# Posting requests
# =========================================================================


@dataclass(frozen=True)
class DonationLine:
    """One received product line of a donation; becomes exactly one lot."""

    variant_id: UUID
    warehouse_id: UUID
    quantity: Decimal
    unit_cost: Decimal
    expiry_date: date | None = None
    lot_number: str | None = None


@dataclass(frozen=True)
class SaleLine:
    """One bazaar sale line; posts one exit movement against ``lot_id``."""

    lot_id: UUID
    variant_id: UUID
    quantity: Decimal
    unit_price: Decimal


@dataclass(frozen=True)
class MovementFilter:
    """Optional filters for listing ledger movements.  None means 'any'."""

    variant_id: UUID | None = None
    lot_id: UUID | None = None
    warehouse_id: UUID | None = None
    movement_type_key: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


# =========================================================================
# Read results
# =========================================================================


@dataclass(frozen=True)
class PeriodSummary:
    """Entries and exits over a period, both reported as positive magnitudes."""

    entries: Decimal
    exits: Decimal

    @property
    def net(self) -> Decimal:
        return self.entries - self.exits


@dataclass(frozen=True)
class MovementView:
    movement_id: UUID
    seq: int
    lot_id: UUID
    variant_id: UUID
    movement_type_id: UUID
    movement_type_key: str
    factor: int
    quantity: Decimal
    occurred_at: datetime
    actor_id: str
    reference: str | None
    is_opening: bool

    @property
    def signed_quantity(self) -> Decimal:
        return self.quantity * self.factor


@dataclass(frozen=True)
class LotView:
    lot_id: UUID
    variant_id: UUID
    warehouse_id: UUID
    donation_id: UUID | None
    lot_number: str | None
    unit_cost: Decimal
    original_quantity: Decimal
    current_quantity: Decimal
    received_date: date
    expiry_date: date | None
    is_active: bool


@dataclass(frozen=True)
class StockMismatch:
    """One lot whose cached quantity disagrees with its ledger fold."""

    lot_id: UUID
    cached: Decimal
    derived: Decimal


@dataclass(frozen=True)
class DonationDetailRecord:
    detail_id: UUID
    lot_id: UUID
    variant_id: UUID
    quantity: Decimal
    unit_price: Decimal


@dataclass(frozen=True)
class DonationRecord:
    donation_id: UUID
    donor_id: UUID | None
    donation_date: date
    total: Decimal
    notes: str | None
    actor_id: str
    details: tuple[DonationDetailRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SaleDetailRecord:
    detail_id: UUID
    lot_id: UUID
    variant_id: UUID
    quantity: Decimal
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class SaleRecord:
    sale_id: UUID
    sale_date: date
    warehouse_id: UUID
    total: Decimal
    actor_id: str
    details: tuple[SaleDetailRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ConsumptionRecord:
    consumption_id: UUID
    lot_id: UUID
    variant_id: UUID
    quantity: Decimal
    consumption_date: date
    responsible_id: str
    approver_id: str | None
    signature_text: str | None
    approved_at: datetime | None
    movement_id: UUID

    @property
    def status(self) -> ConsumptionStatus:
        if self.approver_id is None:
            return ConsumptionStatus.PENDING
        return ConsumptionStatus.APPROVED


@dataclass(frozen=True)
class DailySalesSummary:
    day: date
    sale_count: int
    revenue: Decimal
    units_sold: Decimal


@dataclass(frozen=True)
class LowStockVariant:
    """An active variant whose stock across active lots is under the alert threshold."""

    variant_id: UUID
    product_id: str
    brand: str | None
    unit_of_measure: str
    stock: Decimal


@dataclass(frozen=True)
class WarehouseView:
    warehouse_id: UUID
    name: str
    is_active: bool


@dataclass(frozen=True)
class VariantView:
    variant_id: UUID
    product_id: str
    brand: str | None
    presentation: str | None
    barcode: str | None
    unit_of_measure: str
    reference_unit_price: Decimal | None
    is_active: bool


@dataclass(frozen=True)
class DonorView:
    donor_id: UUID
    name: str
    donor_type: str | None
    contact_person: str | None
    email: str | None
    phone: str | None
    is_active: bool
