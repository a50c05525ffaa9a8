"""
PostingCoordinator -- all-or-nothing postings against the stock ledger.

Responsibility:
    Turn a business event (donation received, bazaar sale, kitchen
    consumption, stock adjustment) into its header/detail records, lots and
    ledger movements, and keep every touched lot's cached quantity equal to
    its ledger fold.  Also hosts the kitchen consumption sign-off.

Architecture position:
    Kernel > Services.  The only caller of MovementLedger.append() and
    LotStore.adjust_current_quantity().  Wired by
    inventory_services.orchestrator.InventoryOrchestrator.

Posting protocol (every mutating method):
    1. Validate input (ValidationError before any write).
    2. Open a SAVEPOINT and mark the session as being inside a posting.
    3. Lock the lots to debit, in ascending id order (SELECT ... FOR UPDATE),
       and check business rules against the locked rows.
    4. Write header, movements, lot quantities and details.
    5. Re-fold every touched lot from the ledger (assert_consistent).
    6. Release the SAVEPOINT; commit when ``auto_commit`` is set.

Invariants enforced:
    - A failure at any step leaves nothing from the posting in the session
      or the database.
    - current_quantity never goes negative; an exit larger than the stock is
      rejected whole (InsufficientStockError), never clipped.
    - Stock check and decrement run under the same row lock, so two
      concurrent sales cannot both pass the check for the last units.
    - Movement types are resolved by semantic key, never by factor.

Failure modes:
    - ValidationError / NotFoundError / BusinessRuleError: propagated as is.
    - InvariantViolation: logged at ERROR and propagated.
    - Any SQLAlchemyError: rolled back and re-raised as PersistenceError.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable, Sequence
from datetime import date
from decimal import Decimal
from typing import TypeVar
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_kernel.db.immutability import posting_scope
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import DonationLine, SaleLine
from inventory_kernel.domain.identifiers import IdGenerator, UUIDGenerator
from inventory_kernel.domain.movement_types import AdjustmentDirection, MovementTypeKey
from inventory_kernel.domain.validation import (
    require_positive,
    validate_donation_lines,
    validate_sale_lines,
)
from inventory_kernel.exceptions import (
    AdjustmentExceedsOriginalError,
    InactiveReferenceError,
    InsufficientStockError,
    InvariantViolation,
    InventoryKernelError,
    LotVariantMismatchError,
    LotWarehouseMismatchError,
    PersistenceError,
    ValidationError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.donation import Donation, DonationDetail
from inventory_kernel.models.kitchen_consumption import KitchenConsumption
from inventory_kernel.models.lot import Lot
from inventory_kernel.models.movement import Movement
from inventory_kernel.models.sale import Sale, SaleDetail
from inventory_kernel.selectors.stock_selector import StockSelector
from inventory_kernel.services.consumption_approval import (
    CapabilityCheck,
    ConsumptionApprovalService,
)
from inventory_kernel.services.lot_store import LotStore
from inventory_kernel.services.movement_ledger import MovementLedger
from inventory_kernel.services.movement_type_registry import MovementTypeRegistry
from inventory_kernel.services.reference_data_service import ReferenceDataService

logger = get_logger("services.posting_coordinator")

T = TypeVar("T")


def donation_reference(donation_id: UUID) -> str:
    return f"donation:{donation_id}"


def sale_reference(sale_id: UUID) -> str:
    return f"sale:{sale_id}"


def kitchen_reference(consumption_id: UUID) -> str:
    return f"kitchen:{consumption_id}"


class PostingCoordinator:
    """
    Orchestrates multi-row ledger postings inside one atomic unit.

    Contract:
        With ``auto_commit=True`` (default) each successful posting is
        committed and each failed one rolled back.  With ``auto_commit=False``
        the posting is flushed inside a savepoint and the caller commits;
        a failed posting still leaves the caller's transaction clean.

    Collaborators default to fresh instances bound to ``session``; the
    orchestrator injects shared ones.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        id_generator: IdGenerator | None = None,
        can_approve: CapabilityCheck | None = None,
        auto_commit: bool = True,
        registry: MovementTypeRegistry | None = None,
        lot_store: LotStore | None = None,
        ledger: MovementLedger | None = None,
        reference_data: ReferenceDataService | None = None,
        stock_selector: StockSelector | None = None,
        approval_service: ConsumptionApprovalService | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._ids = id_generator or UUIDGenerator()
        self._auto_commit = auto_commit
        self._registry = registry or MovementTypeRegistry(session, self._ids)
        self._lots = lot_store or LotStore(session, self._clock, self._ids)
        self._ledger = ledger or MovementLedger(session, self._clock, self._ids)
        self._reference_data = reference_data or ReferenceDataService(
            session, self._clock, self._ids,
        )
        self._stock = stock_selector or StockSelector(session)
        self._approvals = approval_service or ConsumptionApprovalService(
            session, self._clock, can_approve,
        )

    @property
    def session(self) -> Session:
        return self._session

    # =========================================================================
    # Transaction envelope
    # =========================================================================

    def _run(
        self,
        operation: str,
        actor_id: str,
        work: Callable[[], tuple[T, Sequence[UUID]]],
        **log_fields,
    ) -> T:
        """
        Execute ``work`` as one posting.

        ``work`` returns the result and the ids of the lots it touched; each
        of those lots is re-folded from the ledger before the savepoint is
        released.
        """
        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=actor_id,
            operation=operation,
        ):
            logger.info(f"{operation}_started", extra=log_fields)
            t0 = time.monotonic()
            try:
                with posting_scope(self._session), self._session.begin_nested():
                    result, touched_lots = work()
                    self._session.flush()
                    for lot_id in touched_lots:
                        self._stock.assert_consistent(lot_id)

                if self._auto_commit:
                    self._session.commit()

            except InvariantViolation:
                self._rollback()
                logger.error(
                    f"{operation}_invariant_violation",
                    extra={"duration_ms": _elapsed_ms(t0)},
                    exc_info=True,
                )
                raise
            except InventoryKernelError as exc:
                self._rollback()
                logger.warning(
                    f"{operation}_rejected",
                    extra={"error_code": exc.code, "duration_ms": _elapsed_ms(t0)},
                )
                raise
            except SQLAlchemyError as exc:
                self._rollback()
                logger.error(
                    f"{operation}_persistence_failed",
                    extra={"duration_ms": _elapsed_ms(t0)},
                    exc_info=True,
                )
                raise PersistenceError(operation, str(exc.__class__.__name__)) from exc

            logger.info(
                f"{operation}_posted",
                extra={"duration_ms": _elapsed_ms(t0), "lot_count": len(touched_lots)},
            )
            return result

    def _rollback(self) -> None:
        if self._auto_commit:
            self._session.rollback()

    # =========================================================================
    # Donations
    # =========================================================================

    def post_donation(
        self,
        donor_id: UUID | None,
        donation_date: date,
        actor_id: str,
        lines: Sequence[DonationLine],
        notes: str | None = None,
    ) -> Donation:
        """
        Record a donation: 1 header, and per line 1 lot + 1 opening entry
        movement + 1 detail.

        Postconditions:
            Each new lot has ``current_quantity == original_quantity`` and
            exactly one movement, of type ``donation_entry``, referencing
            ``donation:<donation id>``.
        """

        def work() -> tuple[Donation, list[UUID]]:
            validated = validate_donation_lines(lines)
            if donor_id is not None:
                self._reference_data.require_active_donor(donor_id)
            for line in validated:
                self._reference_data.require_active_variant(line.variant_id)
                self._reference_data.require_active_warehouse(line.warehouse_id)

            entry_type = self._registry.by_key(MovementTypeKey.DONATION_ENTRY)
            donation = Donation(
                id=self._ids.new_id(),
                donor_id=donor_id,
                donation_date=donation_date,
                total=sum((line.quantity * line.unit_cost for line in validated), Decimal("0")),
                notes=notes,
                created_at=self._clock.now(),
                created_by=actor_id,
            )
            self._session.add(donation)
            self._session.flush()

            lot_ids: list[UUID] = []
            for line_number, line in enumerate(validated, start=1):
                lot = self._lots.create_lot(
                    variant_id=line.variant_id,
                    warehouse_id=line.warehouse_id,
                    original_quantity=line.quantity,
                    unit_cost=line.unit_cost,
                    actor_id=actor_id,
                    received_date=donation_date,
                    donation_id=donation.id,
                    lot_number=line.lot_number,
                    expiry_date=line.expiry_date,
                )
                self._ledger.append(
                    lot_id=lot.id,
                    variant_id=line.variant_id,
                    movement_type_id=entry_type.id,
                    quantity=line.quantity,
                    actor_id=actor_id,
                    reference=donation_reference(donation.id),
                    is_opening=True,
                )
                donation.details.append(
                    DonationDetail(
                        id=self._ids.new_id(),
                        donation_id=donation.id,
                        line_number=line_number,
                        lot_id=lot.id,
                        variant_id=line.variant_id,
                        quantity=line.quantity,
                        unit_price=line.unit_cost,
                    )
                )
                self._session.flush()
                lot_ids.append(lot.id)

            logger.info(
                "donation_posted",
                extra={
                    "donation_id": str(donation.id),
                    "donor_id": str(donor_id) if donor_id else None,
                    "line_count": len(validated),
                    "total": str(donation.total),
                },
            )
            return donation, lot_ids

        return self._run(
            "post_donation", actor_id, work,
            line_count=len(lines) if lines else 0,
        )

    # =========================================================================
    # Bazaar sales
    # =========================================================================

    def post_sale(
        self,
        warehouse_id: UUID,
        actor_id: str,
        lines: Sequence[SaleLine],
        sale_date: date | None = None,
    ) -> Sale:
        """
        Record a bazaar sale: 1 header, and per line 1 exit movement + 1 detail.

        A lot named on several lines is checked against the SUM of its
        lines, so splitting a request cannot oversell.
        """

        def work() -> tuple[Sale, list[UUID]]:
            validated = validate_sale_lines(lines)
            self._reference_data.require_active_warehouse(warehouse_id)

            requested: OrderedDict[UUID, Decimal] = OrderedDict()
            for line in validated:
                requested[line.lot_id] = requested.get(line.lot_id, Decimal("0")) + line.quantity

            locked = self._lots.lock_lots(requested)
            for line in validated:
                lot = locked[line.lot_id]
                self._require_active_lot(lot)
                if lot.warehouse_id != warehouse_id:
                    raise LotWarehouseMismatchError(
                        str(lot.id), str(lot.warehouse_id), str(warehouse_id),
                    )
                if lot.variant_id != line.variant_id:
                    raise LotVariantMismatchError(
                        str(lot.id), str(lot.variant_id), str(line.variant_id),
                    )
            for lot_id, quantity in requested.items():
                self._require_stock(locked[lot_id], quantity, "sale")

            exit_type = self._registry.by_key(MovementTypeKey.SALE_EXIT)
            sale = Sale(
                id=self._ids.new_id(),
                sale_date=sale_date or self._clock.today(),
                warehouse_id=warehouse_id,
                total=sum((line.quantity * line.unit_price for line in validated), Decimal("0")),
                created_at=self._clock.now(),
                created_by=actor_id,
            )
            self._session.add(sale)
            self._session.flush()

            for line_number, line in enumerate(validated, start=1):
                self._ledger.append(
                    lot_id=line.lot_id,
                    variant_id=line.variant_id,
                    movement_type_id=exit_type.id,
                    quantity=line.quantity,
                    actor_id=actor_id,
                    reference=sale_reference(sale.id),
                )
                self._lots.adjust_current_quantity(line.lot_id, -line.quantity)
                sale.details.append(
                    SaleDetail(
                        id=self._ids.new_id(),
                        sale_id=sale.id,
                        line_number=line_number,
                        lot_id=line.lot_id,
                        variant_id=line.variant_id,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                    )
                )
                self._session.flush()

            logger.info(
                "sale_posted",
                extra={
                    "sale_id": str(sale.id),
                    "warehouse_id": str(warehouse_id),
                    "line_count": len(validated),
                    "total": str(sale.total),
                },
            )
            return sale, list(requested)

        return self._run(
            "post_sale", actor_id, work,
            warehouse_id=str(warehouse_id),
            line_count=len(lines) if lines else 0,
        )

    # =========================================================================
    # Kitchen consumption
    # =========================================================================

    def post_kitchen_consumption(
        self,
        lot_id: UUID,
        variant_id: UUID,
        quantity: Decimal,
        actor_id: str,
        consumption_date: date | None = None,
    ) -> KitchenConsumption:
        """Debit a lot for kitchen use; the record starts PENDING approval."""

        def work() -> tuple[KitchenConsumption, list[UUID]]:
            amount = require_positive("quantity", quantity)
            lot = self._lots.lock_lot(lot_id)
            self._require_active_lot(lot)
            if lot.variant_id != variant_id:
                raise LotVariantMismatchError(str(lot.id), str(lot.variant_id), str(variant_id))
            self._require_stock(lot, amount, "kitchen_consumption")

            consumption_id = self._ids.new_id()
            exit_type = self._registry.by_key(MovementTypeKey.KITCHEN_CONSUMPTION_EXIT)
            movement = self._ledger.append(
                lot_id=lot.id,
                variant_id=variant_id,
                movement_type_id=exit_type.id,
                quantity=amount,
                actor_id=actor_id,
                reference=kitchen_reference(consumption_id),
            )
            self._lots.adjust_current_quantity(lot.id, -amount)

            consumption = KitchenConsumption(
                id=consumption_id,
                lot_id=lot.id,
                variant_id=variant_id,
                quantity=amount,
                consumption_date=consumption_date or self._clock.today(),
                responsible_id=actor_id,
                movement_id=movement.id,
                created_at=self._clock.now(),
            )
            self._session.add(consumption)
            self._session.flush()

            logger.info(
                "kitchen_consumption_posted",
                extra={
                    "consumption_id": str(consumption.id),
                    "lot_id": str(lot.id),
                    "quantity": str(amount),
                },
            )
            return consumption, [lot.id]

        return self._run(
            "post_kitchen_consumption", actor_id, work,
            lot_id=str(lot_id),
        )

    def approve_consumption(
        self,
        consumption_id: UUID,
        approver_id: str,
        signature_text: str | None = None,
    ) -> KitchenConsumption:
        """Sign off a pending consumption.  No ledger mutation."""

        def work() -> tuple[KitchenConsumption, list[UUID]]:
            consumption = self._approvals.approve(consumption_id, approver_id, signature_text)
            return consumption, []

        return self._run(
            "approve_consumption", approver_id, work,
            consumption_id=str(consumption_id),
        )

    # =========================================================================
    # Adjustments
    # =========================================================================

    def post_adjustment(
        self,
        lot_id: UUID,
        direction: AdjustmentDirection | str,
        quantity: Decimal,
        actor_id: str,
        reference: str,
    ) -> Movement:
        """
        Post a compensating movement against one lot.

        Movements are never edited; a physical count that differs from the
        books is corrected here.  An entry may only restore stock up to the
        lot's original quantity.
        """

        def work() -> tuple[Movement, list[UUID]]:
            try:
                resolved = AdjustmentDirection(direction)
            except ValueError:
                choices = ", ".join(d.value for d in AdjustmentDirection)
                raise ValidationError(
                    f"direction must be one of {choices}, got {direction!r}"
                ) from None
            amount = require_positive("quantity", quantity)
            if not reference or not reference.strip():
                raise ValidationError("reference is required for an adjustment")

            lot = self._lots.lock_lot(lot_id)
            self._require_active_lot(lot)
            if resolved is AdjustmentDirection.EXIT:
                self._require_stock(lot, amount, "adjustment")
                delta = -amount
            else:
                headroom = lot.original_quantity - lot.current_quantity
                if amount > headroom:
                    raise AdjustmentExceedsOriginalError(str(lot.id), amount, headroom)
                delta = amount

            adjustment_type = self._registry.by_key(resolved.movement_type_key)
            movement = self._ledger.append(
                lot_id=lot.id,
                variant_id=lot.variant_id,
                movement_type_id=adjustment_type.id,
                quantity=amount,
                actor_id=actor_id,
                reference=reference.strip(),
            )
            self._lots.adjust_current_quantity(lot.id, delta)

            logger.info(
                "adjustment_posted",
                extra={
                    "movement_id": str(movement.id),
                    "lot_id": str(lot.id),
                    "direction": resolved.value,
                    "quantity": str(amount),
                },
            )
            return movement, [lot.id]

        return self._run(
            "post_adjustment", actor_id, work,
            lot_id=str(lot_id),
        )

    # =========================================================================
    # Rule checks
    # =========================================================================

    @staticmethod
    def _require_active_lot(lot: Lot) -> None:
        if not lot.is_active:
            raise InactiveReferenceError("Lot", str(lot.id))

    @staticmethod
    def _require_stock(lot: Lot, requested: Decimal, posting: str) -> None:
        if lot.current_quantity < requested:
            logger.warning(
                f"{posting}_rejected_insufficient_stock",
                extra={
                    "lot_id": str(lot.id),
                    "requested": str(requested),
                    "available": str(lot.current_quantity),
                    "posting": posting,
                },
            )
            raise InsufficientStockError(str(lot.id), requested, lot.current_quantity)


def _elapsed_ms(t0: float) -> float:
    return round((time.monotonic() - t0) * 1000, 2)
