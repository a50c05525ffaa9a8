"""
Tests for the pure stock projection folds.

Covers:
- fold_lot_stock(): opening movements excluded, entries and exits signed
- fold_from_zero(): equals fold_lot_stock when the opening entry is present
- fold_period(): entries/exits as positive magnitudes, net
- factor_of(): unknown movement type
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

import pytest

from inventory_kernel.domain.dtos import PeriodSummary
from inventory_kernel.domain.projection import (
    factor_of,
    fold_from_zero,
    fold_lot_stock,
    fold_period,
    signed_quantity,
)
from inventory_kernel.exceptions import MovementTypeNotFoundError

ENTRY = UUID(int=1)
EXIT = UUID(int=2)
FACTORS = {ENTRY: 1, EXIT: -1}


@dataclass(frozen=True)
class Row:
    quantity: Decimal
    movement_type_id: UUID
    is_opening: bool = False


class TestFoldLotStock:

    def test_opening_movement_is_not_counted_twice(self):
        rows = [Row(Decimal("10"), ENTRY, is_opening=True)]
        assert fold_lot_stock(Decimal("10"), rows, FACTORS) == Decimal("10")

    def test_exits_reduce_and_entries_restore(self):
        rows = [
            Row(Decimal("10"), ENTRY, is_opening=True),
            Row(Decimal("4"), EXIT),
            Row(Decimal("3"), EXIT),
            Row(Decimal("1"), ENTRY),
        ]
        assert fold_lot_stock(Decimal("10"), rows, FACTORS) == Decimal("4")

    def test_fold_from_zero_agrees_when_opening_present(self):
        rows = [
            Row(Decimal("10"), ENTRY, is_opening=True),
            Row(Decimal("4"), EXIT),
        ]
        assert fold_from_zero(rows, FACTORS) == fold_lot_stock(Decimal("10"), rows, FACTORS)

    def test_fractional_quantities(self):
        rows = [Row(Decimal("2.5"), EXIT), Row(Decimal("0.25"), EXIT)]
        assert fold_lot_stock(Decimal("5"), rows, FACTORS) == Decimal("2.25")


class TestFoldPeriod:

    def test_entries_and_exits_are_positive_magnitudes(self):
        rows = [
            Row(Decimal("10"), ENTRY, is_opening=True),
            Row(Decimal("4"), EXIT),
            Row(Decimal("3"), EXIT),
        ]
        summary = fold_period(rows, FACTORS)
        assert summary == PeriodSummary(entries=Decimal("10"), exits=Decimal("7"))
        assert summary.net == Decimal("3")

    def test_empty_period(self):
        summary = fold_period([], FACTORS)
        assert summary.entries == 0
        assert summary.exits == 0
        assert summary.net == 0


class TestFactorLookup:

    def test_signed_quantity(self):
        assert signed_quantity(Row(Decimal("4"), EXIT), FACTORS) == Decimal("-4")

    def test_unknown_type_raises(self):
        with pytest.raises(MovementTypeNotFoundError):
            factor_of(UUID(int=99), FACTORS)
