"""
Posting request validation.

Runs before any write.  Every check raises a ``ValidationError`` subclass
and returns normalized values (quantities and amounts as ``Decimal``).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from decimal import Decimal, InvalidOperation

from inventory_kernel.domain.dtos import DonationLine, SaleLine
from inventory_kernel.exceptions import (
    EmptyPostingError,
    NegativeAmountError,
    NonPositiveQuantityError,
    ValidationError,
)

# Quantity and money columns are Numeric(38, 9); finer values would be
# rounded on write.
DECIMAL_SCALE = 9


def to_decimal(field: str, value: Decimal | int | float | str) -> Decimal:
    """Coerce a numeric input to Decimal; floats go through ``str`` to avoid binary noise."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValidationError(f"{field} must be a number, got {value!r}")
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number, got {value!r}") from None
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise ValidationError(f"{field} must be a number, got {value!r}")

    if not result.is_finite():
        raise ValidationError(f"{field} must be finite, got {value!r}")
    # Trailing zeros beyond the scale (1.0000000000) are harmless.
    if result.normalize().as_tuple().exponent < -DECIMAL_SCALE:
        raise ValidationError(
            f"{field} has more than {DECIMAL_SCALE} decimal places, got {value!r}"
        )
    return result


def require_positive(field: str, value: Decimal | int | float | str) -> Decimal:
    amount = to_decimal(field, value)
    if amount <= 0:
        raise NonPositiveQuantityError(field, amount)
    return amount


def require_non_negative(field: str, value: Decimal | int | float | str) -> Decimal:
    amount = to_decimal(field, value)
    if amount < 0:
        raise NegativeAmountError(field, amount)
    return amount


def validate_donation_lines(lines: Sequence[DonationLine]) -> tuple[DonationLine, ...]:
    if not lines:
        raise EmptyPostingError("post_donation")
    normalized = []
    for index, line in enumerate(lines):
        normalized.append(
            replace(
                line,
                quantity=require_positive(f"lines[{index}].quantity", line.quantity),
                unit_cost=require_non_negative(f"lines[{index}].unit_cost", line.unit_cost),
            )
        )
    return tuple(normalized)


def validate_sale_lines(lines: Sequence[SaleLine]) -> tuple[SaleLine, ...]:
    if not lines:
        raise EmptyPostingError("post_sale")
    normalized = []
    for index, line in enumerate(lines):
        normalized.append(
            replace(
                line,
                quantity=require_positive(f"lines[{index}].quantity", line.quantity),
                unit_price=require_non_negative(f"lines[{index}].unit_price", line.unit_price),
            )
        )
    return tuple(normalized)
