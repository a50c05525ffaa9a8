"""Tests for pre-write input validation."""

from decimal import Decimal
from uuid import UUID

import pytest

from inventory_kernel.domain.dtos import DonationLine, SaleLine
from inventory_kernel.domain.validation import (
    require_non_negative,
    require_positive,
    to_decimal,
    validate_donation_lines,
    validate_sale_lines,
)
from inventory_kernel.exceptions import (
    EmptyPostingError,
    NegativeAmountError,
    NonPositiveQuantityError,
    ValidationError,
)

V = UUID(int=1)
W = UUID(int=2)
L = UUID(int=3)


class TestToDecimal:

    def test_float_goes_through_str(self):
        assert to_decimal("q", 2.1) == Decimal("2.1")

    def test_int_and_str(self):
        assert to_decimal("q", 7) == Decimal("7")
        assert to_decimal("q", "7.50") == Decimal("7.50")

    @pytest.mark.parametrize("bad", [True, "abc", None, Decimal("NaN"), float("inf")])
    def test_rejects_non_numbers(self, bad):
        with pytest.raises(ValidationError):
            to_decimal("q", bad)

    @pytest.mark.parametrize("value", [Decimal("0.0000000001"), "1.1234567891", 0.1 + 0.2])
    def test_rejects_more_places_than_stored(self, value):
        with pytest.raises(ValidationError, match="more than 9 decimal places"):
            to_decimal("quantity", value)

    def test_nine_places_and_trailing_zeros_accepted(self):
        assert to_decimal("q", "0.000000001") == Decimal("0.000000001")
        assert to_decimal("q", Decimal("2.500000000000")) == Decimal("2.5")


class TestRequire:

    @pytest.mark.parametrize("value", [0, -1, Decimal("-0.01")])
    def test_require_positive(self, value):
        with pytest.raises(NonPositiveQuantityError) as exc_info:
            require_positive("quantity", value)
        assert exc_info.value.field == "quantity"

    def test_require_non_negative_accepts_zero(self):
        assert require_non_negative("unit_cost", 0) == 0

    def test_require_non_negative_rejects_negative(self):
        with pytest.raises(NegativeAmountError):
            require_non_negative("unit_cost", Decimal("-1"))


class TestDonationLines:

    def test_empty_lines_rejected(self):
        with pytest.raises(EmptyPostingError):
            validate_donation_lines([])

    def test_lines_normalized_to_decimal(self):
        (line,) = validate_donation_lines([DonationLine(V, W, 10, 2.0)])
        assert line.quantity == Decimal("10")
        assert line.unit_cost == Decimal("2.0")

    def test_zero_quantity_rejected(self):
        with pytest.raises(NonPositiveQuantityError) as exc_info:
            validate_donation_lines([DonationLine(V, W, Decimal("5"), 1), DonationLine(V, W, 0, 1)])
        assert exc_info.value.field == "lines[1].quantity"

    def test_negative_cost_rejected(self):
        with pytest.raises(NegativeAmountError):
            validate_donation_lines([DonationLine(V, W, 1, Decimal("-2"))])


class TestSaleLines:

    def test_empty_lines_rejected(self):
        with pytest.raises(EmptyPostingError):
            validate_sale_lines(())

    def test_negative_quantity_rejected(self):
        with pytest.raises(NonPositiveQuantityError):
            validate_sale_lines([SaleLine(L, V, Decimal("-4"), Decimal("3"))])
