"""
LotStore -- write-side access to lots.

Responsibility:
    Create lots, read them, lock them for update and move their cached
    ``current_quantity``.  The cached quantity is a projection of the
    ledger; LotStore never changes it except on behalf of the
    PostingCoordinator, in the same transaction as the matching movement.

Architecture position:
    Kernel > Services.  Used by PostingCoordinator.

Invariants enforced:
    - original_quantity > 0 and unit_cost >= 0 at creation.
    - 0 <= current_quantity <= original_quantity after every adjustment
      (NegativeStockError otherwise; the database check constraint is the
      last line behind it).
    - Row locks are taken with SELECT ... FOR UPDATE and always refresh the
      identity map (populate_existing) so decisions use committed state.
    - Several lots are locked in ascending id order.

Failure modes:
    - LotNotFoundError for unknown (or, on get_lot, inactive) lots.
    - LotStillStockedError when deactivating a lot that holds stock.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.identifiers import IdGenerator, UUIDGenerator
from inventory_kernel.domain.validation import require_non_negative, require_positive, to_decimal
from inventory_kernel.exceptions import LotNotFoundError, LotStillStockedError, NegativeStockError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.lot import Lot
from inventory_kernel.services.base import BaseService

logger = get_logger("services.lot_store")


class LotStore(BaseService[Lot]):

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        id_generator: IdGenerator | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._ids = id_generator or UUIDGenerator()

    def create_lot(
        self,
        variant_id: UUID,
        warehouse_id: UUID,
        original_quantity: Decimal,
        unit_cost: Decimal,
        actor_id: str,
        received_date: date | None = None,
        donation_id: UUID | None = None,
        lot_number: str | None = None,
        expiry_date: date | None = None,
        notes: str | None = None,
    ) -> Lot:
        """
        Create a lot with ``current_quantity == original_quantity``.

        The caller posts the matching opening movement in the same
        transaction.
        """
        quantity = require_positive("original_quantity", original_quantity)
        cost = require_non_negative("unit_cost", unit_cost)

        lot = Lot(
            id=self._ids.new_id(),
            variant_id=variant_id,
            warehouse_id=warehouse_id,
            donation_id=donation_id,
            lot_number=lot_number,
            unit_cost=cost,
            original_quantity=quantity,
            current_quantity=quantity,
            received_date=received_date or self._clock.today(),
            expiry_date=expiry_date,
            notes=notes,
            is_active=True,
            created_at=self._clock.now(),
            created_by=actor_id,
        )
        self.session.add(lot)
        self.session.flush()

        logger.debug(
            "lot_created",
            extra={
                "lot_id": str(lot.id),
                "variant_id": str(variant_id),
                "warehouse_id": str(warehouse_id),
                "original_quantity": str(quantity),
            },
        )
        return lot

    def get_lot(self, lot_id: UUID, include_inactive: bool = False) -> Lot:
        lot = self.session.get(Lot, lot_id)
        if lot is None or (not lot.is_active and not include_inactive):
            raise LotNotFoundError(str(lot_id))
        return lot

    def lock_lot(self, lot_id: UUID) -> Lot:
        """
        SELECT ... FOR UPDATE on one lot, refreshing any cached instance.

        Inactive lots are returned; the caller decides what inactivity means
        for its operation.
        """
        lot = self.session.execute(
            select(Lot)
            .where(Lot.id == lot_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if lot is None:
            raise LotNotFoundError(str(lot_id))
        return lot

    def lock_lots(self, lot_ids: Iterable[UUID]) -> dict[UUID, Lot]:
        """Lock several lots in ascending id order so concurrent postings never deadlock."""
        return {lot_id: self.lock_lot(lot_id) for lot_id in sorted(set(lot_ids), key=str)}

    def adjust_current_quantity(self, lot_id: UUID, delta: Decimal) -> Lot:
        """
        Apply a signed delta to the cached quantity.

        Only the PostingCoordinator calls this, after locking the lot and
        appending the movement that justifies the delta.
        """
        lot = self.get_lot(lot_id, include_inactive=True)
        amount = to_decimal("delta", delta)
        new_quantity = lot.current_quantity + amount

        if new_quantity < 0 or new_quantity > lot.original_quantity:
            logger.error(
                "lot_quantity_out_of_bounds",
                extra={
                    "lot_id": str(lot.id),
                    "current_quantity": str(lot.current_quantity),
                    "delta": str(amount),
                    "original_quantity": str(lot.original_quantity),
                },
            )
            raise NegativeStockError(str(lot.id), lot.current_quantity, amount)

        lot.current_quantity = new_quantity
        self.session.flush()
        return lot

    def deactivate_lot(self, lot_id: UUID, actor_id: str) -> Lot:
        """Soft-delete an empty lot.  Lots with stock must be drained by a posting first."""
        lot = self.lock_lot(lot_id)
        if lot.current_quantity != 0:
            raise LotStillStockedError(str(lot.id), lot.current_quantity)

        if lot.is_active:
            lot.is_active = False
            self.session.flush()
            logger.info(
                "lot_deactivated",
                extra={"lot_id": str(lot.id), "actor_id": actor_id},
            )
        return lot
