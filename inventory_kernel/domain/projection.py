"""
Stock projection -- pure ledger folds.

Responsibility:
    Derive quantities from movements.  Callers load movements and the
    movement-type factor map; these functions only compute.

Architecture position:
    Kernel > Domain.  Zero I/O.  Used by StockSelector (reads) and by the
    PostingCoordinator's post-write consistency check.

Invariants enforced:
    - A lot's stock is ``original_quantity + Σ quantity × factor`` over its
      non-opening movements.  The opening movement records
      ``original_quantity`` itself, so counting it again would double the
      receipt.
    - Period totals: entries and exits are positive magnitudes and
      ``net == entries - exits``.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from inventory_kernel.domain.dtos import PeriodSummary
from inventory_kernel.exceptions import MovementTypeNotFoundError

ZERO = Decimal("0")


class LedgerRow(Protocol):
    """The attributes a fold needs; satisfied by Movement and MovementView."""

    quantity: Decimal
    movement_type_id: UUID
    is_opening: bool


def factor_of(movement_type_id: UUID, factors: Mapping[UUID, int]) -> int:
    try:
        return factors[movement_type_id]
    except KeyError:
        raise MovementTypeNotFoundError(str(movement_type_id)) from None


def signed_quantity(row: LedgerRow, factors: Mapping[UUID, int]) -> Decimal:
    return Decimal(row.quantity) * factor_of(row.movement_type_id, factors)


def fold_lot_stock(
    original_quantity: Decimal,
    movements: Iterable[LedgerRow],
    factors: Mapping[UUID, int],
) -> Decimal:
    """Stock of one lot derived from its ledger."""
    total = Decimal(original_quantity)
    for row in movements:
        if row.is_opening:
            continue
        total += signed_quantity(row, factors)
    return total


def fold_from_zero(movements: Iterable[LedgerRow], factors: Mapping[UUID, int]) -> Decimal:
    """Signed sum of every movement, opening entries included."""
    return sum((signed_quantity(row, factors) for row in movements), ZERO)


def fold_period(movements: Iterable[LedgerRow], factors: Mapping[UUID, int]) -> PeriodSummary:
    """Split movements into entry and exit totals by the sign of their factor."""
    entries = ZERO
    exits = ZERO
    for row in movements:
        factor = factor_of(row.movement_type_id, factors)
        if factor > 0:
            entries += Decimal(row.quantity)
        elif factor < 0:
            exits += abs(Decimal(row.quantity) * factor)
    return PeriodSummary(entries=entries, exits=exits)
