"""
inventory_services.ledger -- public facade of the inventory ledger.

Responsibility:
    The surface UI/API collaborators call.  Every method opens its own
    ``session_scope()`` (commit on success, rollback and re-raise on
    failure), runs one kernel operation through a fresh
    InventoryOrchestrator and returns frozen DTOs, never ORM rows.

Architecture position:
    Services layer, above the kernel and configuration.

Collaborators (all injected):
    - session factory (a SQLAlchemy ``sessionmaker``)
    - Clock and IdGenerator
    - ``can_approve(actor_id) -> bool``; the facade never decides who may
      approve.  ``from_config`` falls back to the configured approver list
      only when the host application injects nothing.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from inventory_config import (
    LedgerConfiguration,
    StockAlertSettings,
    get_active_config,
    movement_type_definitions,
)
from inventory_kernel.db.engine import build_engine, create_tables, session_scope
from inventory_kernel.db.immutability import register_immutability_listeners
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.consumption import DEFAULT_SIGNATURE_TEXT
from inventory_kernel.domain.dtos import (
    ConsumptionRecord,
    DailySalesSummary,
    DonationLine,
    DonationRecord,
    DonorView,
    LotView,
    LowStockVariant,
    MovementFilter,
    MovementView,
    PeriodSummary,
    SaleLine,
    SaleRecord,
    StockMismatch,
    VariantView,
    WarehouseView,
)
from inventory_kernel.domain.identifiers import IdGenerator, UUIDGenerator
from inventory_kernel.domain.movement_types import (
    DEFAULT_MOVEMENT_TYPES,
    AdjustmentDirection,
    MovementTypeDefinition,
)
from inventory_kernel.logging_config import configure_logging, get_logger
from inventory_kernel.services.consumption_approval import CapabilityCheck
from inventory_services.orchestrator import InventoryOrchestrator

logger = get_logger("services.ledger")


def approver_allowlist(approver_ids: Iterable[str]) -> CapabilityCheck:
    """Capability check backed by a fixed list of approver ids."""
    allowed = frozenset(approver_ids)

    def can_approve(actor_id: str) -> bool:
        return actor_id in allowed

    return can_approve


class InventoryLedger:

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
        id_generator: IdGenerator | None = None,
        can_approve: CapabilityCheck | None = None,
        default_signature: str = DEFAULT_SIGNATURE_TEXT,
        stock_alerts: StockAlertSettings | None = None,
    ):
        self._session_factory = session_factory
        self._stock_alerts = stock_alerts or StockAlertSettings()
        self._clock = clock or SystemClock()
        self._ids = id_generator or UUIDGenerator()
        self._can_approve = can_approve
        self._default_signature = default_signature

    @classmethod
    def from_config(
        cls,
        config: LedgerConfiguration | None = None,
        clock: Clock | None = None,
        id_generator: IdGenerator | None = None,
        can_approve: CapabilityCheck | None = None,
        create_schema: bool = True,
    ) -> InventoryLedger:
        """
        Build a ready-to-use ledger from configuration.

        Configures logging, creates the engine (and, with
        ``create_schema``, the tables), then seeds the configured movement
        types.
        """
        config = config or get_active_config()
        configure_logging(level=config.logging.level)

        engine = build_engine(
            config.database.url,
            echo=config.database.echo,
            **config.database.pool_options(),
        )
        if create_schema:
            create_tables(engine)

        ledger = cls(
            sessionmaker(bind=engine, expire_on_commit=False),
            clock=clock,
            id_generator=id_generator,
            can_approve=can_approve or approver_allowlist(config.approval.approver_ids),
            default_signature=config.approval.default_signature_text,
            stock_alerts=config.stock_alerts,
        )
        ledger.bootstrap(movement_type_definitions(config))
        return ledger

    def bootstrap(
        self,
        movement_types: Sequence[MovementTypeDefinition] = DEFAULT_MOVEMENT_TYPES,
    ) -> None:
        """Register immutability listeners and seed movement types and sequences."""
        register_immutability_listeners()
        with self._orchestrator() as orchestrator:
            orchestrator.registry.ensure_types(movement_types)
            orchestrator.sequence_service.initialize_sequences()
        logger.info("inventory_ledger_bootstrapped", extra={"type_count": len(movement_types)})

    @contextmanager
    def _orchestrator(self) -> Iterator[InventoryOrchestrator]:
        with session_scope(self._session_factory) as session:
            yield InventoryOrchestrator(
                session,
                clock=self._clock,
                id_generator=self._ids,
                can_approve=self._can_approve,
                default_signature=self._default_signature,
                auto_commit=False,
            )

    # =========================================================================
    # Postings
    # =========================================================================

    def post_donation(
        self,
        donor_id: UUID | None,
        donation_date: date,
        actor_id: str,
        lines: Sequence[DonationLine],
        notes: str | None = None,
    ) -> DonationRecord:
        with self._orchestrator() as o:
            return o.coordinator.post_donation(
                donor_id, donation_date, actor_id, lines, notes=notes,
            ).to_dto()

    def post_sale(
        self,
        warehouse_id: UUID,
        actor_id: str,
        lines: Sequence[SaleLine],
        sale_date: date | None = None,
    ) -> SaleRecord:
        with self._orchestrator() as o:
            return o.coordinator.post_sale(
                warehouse_id, actor_id, lines, sale_date=sale_date,
            ).to_dto()

    def post_kitchen_consumption(
        self,
        lot_id: UUID,
        variant_id: UUID,
        quantity: Decimal,
        actor_id: str,
        consumption_date: date | None = None,
    ) -> ConsumptionRecord:
        with self._orchestrator() as o:
            return o.coordinator.post_kitchen_consumption(
                lot_id, variant_id, quantity, actor_id, consumption_date,
            ).to_dto()

    def approve_consumption(
        self,
        consumption_id: UUID,
        approver_id: str,
        signature_text: str | None = None,
    ) -> ConsumptionRecord:
        with self._orchestrator() as o:
            return o.coordinator.approve_consumption(
                consumption_id, approver_id, signature_text,
            ).to_dto()

    def post_adjustment(
        self,
        lot_id: UUID,
        direction: AdjustmentDirection | str,
        quantity: Decimal,
        actor_id: str,
        reference: str,
    ) -> MovementView:
        with self._orchestrator() as o:
            return o.coordinator.post_adjustment(
                lot_id, direction, quantity, actor_id, reference,
            ).to_dto()

    def deactivate_lot(self, lot_id: UUID, actor_id: str) -> LotView:
        with self._orchestrator() as o:
            return o.lot_store.deactivate_lot(lot_id, actor_id).to_dto()

    # =========================================================================
    # Stock reads
    # =========================================================================

    def get_lot(self, lot_id: UUID) -> LotView:
        with self._orchestrator() as o:
            return o.lot_store.get_lot(lot_id, include_inactive=True).to_dto()

    def stock_of_lot(self, lot_id: UUID) -> Decimal:
        with self._orchestrator() as o:
            return o.stock_selector.stock_of_lot(lot_id)

    def stock_of_variant(self, variant_id: UUID) -> Decimal:
        with self._orchestrator() as o:
            return o.stock_selector.stock_of_variant(variant_id)

    def stock_of_variant_in_warehouse(self, variant_id: UUID, warehouse_id: UUID) -> Decimal:
        with self._orchestrator() as o:
            return o.stock_selector.stock_of_variant_in_warehouse(variant_id, warehouse_id)

    def period_summary(self, date_from: datetime, date_to: datetime) -> PeriodSummary:
        with self._orchestrator() as o:
            return o.stock_selector.period_summary(date_from, date_to)

    def verify_all_lots(self) -> list[StockMismatch]:
        with self._orchestrator() as o:
            return o.stock_selector.verify_all_lots()

    def list_movements(self, filters: MovementFilter | None = None) -> list[MovementView]:
        with self._orchestrator() as o:
            return o.movement_selector.list_movements(filters)

    # =========================================================================
    # Activity reads
    # =========================================================================

    def pending_consumptions(self) -> list[ConsumptionRecord]:
        with self._orchestrator() as o:
            return o.activity_selector.pending_consumptions()

    def consumptions_by_responsible(self, responsible_id: str) -> list[ConsumptionRecord]:
        with self._orchestrator() as o:
            return o.activity_selector.consumptions_by_responsible(responsible_id)

    def consumptions_on(self, day: date) -> list[ConsumptionRecord]:
        with self._orchestrator() as o:
            return o.activity_selector.consumptions_on(day)

    def approved_consumption_total(self, variant_id: UUID, date_from: date, date_to: date) -> Decimal:
        with self._orchestrator() as o:
            return o.activity_selector.approved_consumption_total(variant_id, date_from, date_to)

    def daily_sales_summary(self, day: date) -> DailySalesSummary:
        with self._orchestrator() as o:
            return o.activity_selector.daily_sales_summary(day)

    def available_lots(
        self,
        warehouse_id: UUID | None = None,
        variant_id: UUID | None = None,
    ) -> list[LotView]:
        with self._orchestrator() as o:
            return o.activity_selector.available_lots(warehouse_id, variant_id)

    def expiring_lots(self, before: date | None = None) -> list[LotView]:
        """Lots expiring on or before ``before``; defaults to the configured warning window."""
        if before is None:
            before = self._clock.today() + timedelta(days=self._stock_alerts.expiry_warning_days)
        with self._orchestrator() as o:
            return o.activity_selector.expiring_lots(before)

    def low_stock_variants(
        self,
        threshold: Decimal | None = None,
        warehouse_id: UUID | None = None,
    ) -> list[LowStockVariant]:
        if threshold is None:
            threshold = self._stock_alerts.low_stock_threshold
        with self._orchestrator() as o:
            return o.activity_selector.low_stock_variants(threshold, warehouse_id)

    # =========================================================================
    # Reference data
    # =========================================================================

    def create_warehouse(self, name: str) -> WarehouseView:
        with self._orchestrator() as o:
            return o.reference_data.create_warehouse(name).to_dto()

    def create_variant(
        self,
        product_id: str,
        unit_of_measure: str = "UNIT",
        brand: str | None = None,
        presentation: str | None = None,
        barcode: str | None = None,
        reference_unit_price: Decimal | None = None,
    ) -> VariantView:
        with self._orchestrator() as o:
            return o.reference_data.create_variant(
                product_id,
                unit_of_measure=unit_of_measure,
                brand=brand,
                presentation=presentation,
                barcode=barcode,
                reference_unit_price=reference_unit_price,
            ).to_dto()

    def register_donor(self, name: str, **contact: str | None) -> DonorView:
        with self._orchestrator() as o:
            return o.reference_data.register_donor(name, **contact).to_dto()

    def deactivate_warehouse(self, warehouse_id: UUID, actor_id: str) -> WarehouseView:
        with self._orchestrator() as o:
            return o.reference_data.deactivate_warehouse(warehouse_id, actor_id).to_dto()

    def deactivate_variant(self, variant_id: UUID, actor_id: str) -> VariantView:
        with self._orchestrator() as o:
            return o.reference_data.deactivate_variant(variant_id, actor_id).to_dto()

    def deactivate_donor(self, donor_id: UUID, actor_id: str) -> DonorView:
        with self._orchestrator() as o:
            return o.reference_data.deactivate_donor(donor_id, actor_id).to_dto()
