"""
Module: inventory_kernel.selectors.movement_selector
Responsibility: Read-only listings of ledger movements for audit display
    and reporting.
Architecture position: Kernel > Selectors.

Invariants enforced:
    Every listing is ordered newest first: occurred_at DESC, then seq DESC,
    so movements sharing a timestamp come out in reverse insertion order
    and repeated calls return the same order.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, select

from inventory_kernel.domain.dtos import MovementFilter, MovementView
from inventory_kernel.models.lot import Lot
from inventory_kernel.models.movement import Movement
from inventory_kernel.models.movement_type import MovementType
from inventory_kernel.selectors.base import BaseSelector


class MovementSelector(BaseSelector[Movement]):

    def _ordered(self, stmt: Select) -> list[MovementView]:
        stmt = stmt.order_by(Movement.occurred_at.desc(), Movement.seq.desc())
        return [movement.to_dto() for movement in self.session.execute(stmt).scalars()]

    def list_by_lot(self, lot_id: UUID) -> list[MovementView]:
        return self._ordered(select(Movement).where(Movement.lot_id == lot_id))

    def list_by_variant(self, variant_id: UUID) -> list[MovementView]:
        return self._ordered(select(Movement).where(Movement.variant_id == variant_id))

    def list_by_date_range(self, date_from: datetime, date_to: datetime) -> list[MovementView]:
        """Movements with ``date_from <= occurred_at <= date_to``."""
        return self._ordered(
            select(Movement).where(
                Movement.occurred_at >= date_from,
                Movement.occurred_at <= date_to,
            )
        )

    def list_movements(self, filters: MovementFilter | None = None) -> list[MovementView]:
        filters = filters or MovementFilter()
        stmt = select(Movement)

        if filters.variant_id is not None:
            stmt = stmt.where(Movement.variant_id == filters.variant_id)
        if filters.lot_id is not None:
            stmt = stmt.where(Movement.lot_id == filters.lot_id)
        if filters.warehouse_id is not None:
            stmt = stmt.join(Lot, Lot.id == Movement.lot_id).where(
                Lot.warehouse_id == filters.warehouse_id
            )
        if filters.movement_type_key is not None:
            stmt = stmt.where(
                Movement.movement_type_id.in_(
                    select(MovementType.id).where(MovementType.key == filters.movement_type_key)
                )
            )
        if filters.date_from is not None:
            stmt = stmt.where(Movement.occurred_at >= filters.date_from)
        if filters.date_to is not None:
            stmt = stmt.where(Movement.occurred_at <= filters.date_to)

        return self._ordered(stmt)

    def list_by_reference(self, reference: str) -> list[MovementView]:
        """All movements written by one posting (e.g. ``sale:<id>``)."""
        return self._ordered(select(Movement).where(Movement.reference == reference))
