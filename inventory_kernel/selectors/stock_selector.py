"""
Module: inventory_kernel.selectors.stock_selector
Responsibility: Stock projection reads: per-lot ledger folds, consistency
    checks, variant totals and period summaries.
Architecture position: Kernel > Selectors.  The arithmetic lives in
    domain/projection.py; this module only loads rows for it.

Invariants enforced:
    - stock_of_lot() is derived from the ledger, never read from the cache.
    - assert_consistent() compares the cache with the ledger and raises
      StockMismatchError on any difference.  It never repairs data.
    - Variant totals sum current_quantity over ACTIVE lots only.

Failure modes:
    - LotNotFoundError for an unknown lot.
    - StockMismatchError (an InvariantViolation) on a cache/ledger mismatch,
      logged at ERROR as ``stock_invariant_violation``.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.domain.dtos import PeriodSummary, StockMismatch
from inventory_kernel.domain.projection import fold_lot_stock, fold_period
from inventory_kernel.exceptions import LotNotFoundError, StockMismatchError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.lot import Lot
from inventory_kernel.models.movement import Movement
from inventory_kernel.models.movement_type import MovementType
from inventory_kernel.selectors.base import BaseSelector, as_decimal

logger = get_logger("selectors.stock")


class StockSelector(BaseSelector[Lot]):

    def factor_map(self) -> dict[UUID, int]:
        rows = self.session.execute(select(MovementType.id, MovementType.factor)).all()
        return {row.id: row.factor for row in rows}

    def _lot(self, lot_id: UUID) -> Lot:
        lot = self.session.get(Lot, lot_id)
        if lot is None:
            raise LotNotFoundError(str(lot_id))
        return lot

    def stock_of_lot(self, lot_id: UUID) -> Decimal:
        """``original_quantity + Σ quantity × factor`` over the lot's non-opening movements."""
        lot = self._lot(lot_id)
        movements = self.session.execute(
            select(Movement).where(Movement.lot_id == lot_id)
        ).scalars()
        return fold_lot_stock(lot.original_quantity, movements, self.factor_map())

    def assert_consistent(self, lot_id: UUID) -> Decimal:
        """Raise StockMismatchError unless the cached quantity equals the ledger fold."""
        lot = self._lot(lot_id)
        derived = self.stock_of_lot(lot_id)
        cached = as_decimal(lot.current_quantity)
        if cached != derived:
            logger.error(
                "stock_invariant_violation",
                extra={
                    "lot_id": str(lot_id),
                    "cached_quantity": str(cached),
                    "derived_quantity": str(derived),
                },
            )
            raise StockMismatchError(str(lot_id), cached, derived)
        return derived

    def stock_of_variant_in_warehouse(self, variant_id: UUID, warehouse_id: UUID) -> Decimal:
        total = self.session.execute(
            select(func.sum(Lot.current_quantity)).where(
                Lot.variant_id == variant_id,
                Lot.warehouse_id == warehouse_id,
                Lot.is_active.is_(True),
            )
        ).scalar()
        return as_decimal(total)

    def stock_of_variant(self, variant_id: UUID) -> Decimal:
        total = self.session.execute(
            select(func.sum(Lot.current_quantity)).where(
                Lot.variant_id == variant_id,
                Lot.is_active.is_(True),
            )
        ).scalar()
        return as_decimal(total)

    def period_summary(self, date_from: datetime, date_to: datetime) -> PeriodSummary:
        """Entry and exit totals for movements with ``date_from <= occurred_at <= date_to``."""
        movements = self.session.execute(
            select(Movement).where(
                Movement.occurred_at >= date_from,
                Movement.occurred_at <= date_to,
            )
        ).scalars()
        return fold_period(movements, self.factor_map())

    def verify_all_lots(self) -> list[StockMismatch]:
        """
        Reconciliation sweep: every lot whose cache disagrees with its ledger.

        Read-only.  Mismatches are logged and returned; nothing is repaired.
        """
        factors = self.factor_map()
        by_lot: dict[UUID, list[Movement]] = defaultdict(list)
        for movement in self.session.execute(select(Movement)).scalars():
            by_lot[movement.lot_id].append(movement)

        mismatches: list[StockMismatch] = []
        lots = self.session.execute(select(Lot).order_by(Lot.created_at, Lot.id)).scalars()
        for lot in lots:
            derived = fold_lot_stock(lot.original_quantity, by_lot.get(lot.id, ()), factors)
            cached = as_decimal(lot.current_quantity)
            if cached != derived:
                mismatches.append(StockMismatch(lot_id=lot.id, cached=cached, derived=derived))

        if mismatches:
            logger.error(
                "stock_reconciliation_failed",
                extra={"mismatch_count": len(mismatches)},
            )
        else:
            logger.info("stock_reconciliation_passed")
        return mismatches
