"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (UI handlers, API bindings, batch jobs) must be able to tell a
correctable input problem from a corrupted ledger without parsing message
text.  Every error therefore has:

  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (requested, available, lot_id, ...)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- ValidationError                 malformed input, caught before any write
    |   +-- EmptyPostingError
    |   +-- NonPositiveQuantityError
    |   +-- NegativeAmountError
    |
    +-- NotFoundError
    |   +-- LotNotFoundError
    |   +-- MovementTypeNotFoundError
    |   +-- WarehouseNotFoundError
    |   +-- VariantNotFoundError
    |   +-- DonorNotFoundError
    |   +-- ConsumptionNotFoundError
    |
    +-- BusinessRuleError               user-actionable rule violations
    |   +-- InsufficientStockError
    |   +-- LotWarehouseMismatchError
    |   +-- LotVariantMismatchError
    |   +-- InactiveReferenceError
    |   +-- LotStillStockedError
    |   +-- AdjustmentExceedsOriginalError
    |   +-- AlreadyApprovedError
    |   +-- ApproverNotAuthorizedError
    |
    +-- InvariantViolation              ledger corruption, never expected
    |   +-- StockMismatchError
    |   +-- NegativeStockError
    |   +-- ImmutabilityViolationError
    |   +-- MovementTypeConflictError
    |
    +-- PersistenceError                transaction / commit failure

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|---------------------------------------
Validation      | EMPTY_POSTING                 | Posting request with no lines
                | NON_POSITIVE_QUANTITY         | Quantity <= 0 on lot, line or movement
                | NEGATIVE_AMOUNT               | Unit cost / unit price < 0
----------------|-------------------------------|---------------------------------------
Not found       | LOT_NOT_FOUND                 | Lot absent or inactive
                | MOVEMENT_TYPE_NOT_FOUND       | Unknown movement type id or key
                | WAREHOUSE_NOT_FOUND           | Unknown warehouse id
                | VARIANT_NOT_FOUND             | Unknown product variant id
                | DONOR_NOT_FOUND               | Unknown donor id
                | CONSUMPTION_NOT_FOUND         | Unknown kitchen consumption id
----------------|-------------------------------|---------------------------------------
Business rule   | INSUFFICIENT_STOCK            | Exit larger than the lot's stock
                | LOT_WAREHOUSE_MISMATCH        | Sale line lot not in sale warehouse
                | LOT_VARIANT_MISMATCH          | Line variant differs from lot variant
                | INACTIVE_REFERENCE            | Posting against inactive warehouse/variant/donor
                | LOT_STILL_STOCKED             | Deactivating a lot that holds stock
                | ADJUSTMENT_EXCEEDS_ORIGINAL   | Entry adjustment above original quantity
                | ALREADY_APPROVED              | Second approval of a consumption
                | APPROVER_NOT_AUTHORIZED       | Capability check refused the approver
----------------|-------------------------------|---------------------------------------
Invariant       | STOCK_MISMATCH                | Cached quantity != ledger fold
                | NEGATIVE_STOCK                | Adjustment would drive a lot negative
                | IMMUTABILITY_VIOLATION        | UPDATE/DELETE of append-only data
                | MOVEMENT_TYPE_CONFLICT        | Stored factor differs from configuration
----------------|-------------------------------|---------------------------------------
Persistence     | PERSISTENCE_ERROR             | Flush/commit failed, posting rolled back

===============================================================================
USER-VISIBLE MESSAGES
===============================================================================

``user_message`` is what an outer layer shows to a person.  Validation,
not-found and business-rule errors carry a specific, actionable message
("insufficient stock: requested 12, available 7").  InvariantViolation and
PersistenceError show a generic text with ``diagnostic_code`` so support
can find the matching structured log line.
"""

from decimal import Decimal
from uuid import uuid4


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"

    @property
    def user_message(self) -> str:
        return str(self)


# Validation


class ValidationError(InventoryKernelError):
    """Malformed input caught before any write."""

    code: str = "VALIDATION_ERROR"


class EmptyPostingError(ValidationError):
    """A posting request carried no lines."""

    code: str = "EMPTY_POSTING"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"{operation} requires at least one line")


class NonPositiveQuantityError(ValidationError):
    """Quantity must be strictly positive; sign lives in the movement type."""

    code: str = "NON_POSITIVE_QUANTITY"

    def __init__(self, field: str, value: Decimal | int | float):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be greater than zero, got {value}")


class NegativeAmountError(ValidationError):
    """Unit cost or unit price below zero."""

    code: str = "NEGATIVE_AMOUNT"

    def __init__(self, field: str, value: Decimal | int | float):
        self.field = field
        self.value = value
        super().__init__(f"{field} must not be negative, got {value}")


# Not found


class NotFoundError(InventoryKernelError):
    """Referenced record does not exist (or is not visible)."""

    code: str = "NOT_FOUND"


class LotNotFoundError(NotFoundError):
    """Lot is absent or inactive."""

    code: str = "LOT_NOT_FOUND"

    def __init__(self, lot_id: str):
        self.lot_id = lot_id
        super().__init__(f"Lot not found: {lot_id}")


class MovementTypeNotFoundError(NotFoundError):
    """Movement type id or semantic key is unknown."""

    code: str = "MOVEMENT_TYPE_NOT_FOUND"

    def __init__(self, movement_type: str):
        self.movement_type = movement_type
        super().__init__(f"Movement type not found: {movement_type}")


class WarehouseNotFoundError(NotFoundError):
    code: str = "WAREHOUSE_NOT_FOUND"

    def __init__(self, warehouse_id: str):
        self.warehouse_id = warehouse_id
        super().__init__(f"Warehouse not found: {warehouse_id}")


class VariantNotFoundError(NotFoundError):
    code: str = "VARIANT_NOT_FOUND"

    def __init__(self, variant_id: str):
        self.variant_id = variant_id
        super().__init__(f"Product variant not found: {variant_id}")


class DonorNotFoundError(NotFoundError):
    code: str = "DONOR_NOT_FOUND"

    def __init__(self, donor_id: str):
        self.donor_id = donor_id
        super().__init__(f"Donor not found: {donor_id}")


class ConsumptionNotFoundError(NotFoundError):
    code: str = "CONSUMPTION_NOT_FOUND"

    def __init__(self, consumption_id: str):
        self.consumption_id = consumption_id
        super().__init__(f"Kitchen consumption not found: {consumption_id}")


# Business rules


class BusinessRuleError(InventoryKernelError):
    """Recoverable, user-actionable rule violation."""

    code: str = "BUSINESS_RULE_VIOLATION"


class InsufficientStockError(BusinessRuleError):
    """
    Requested exit is larger than the lot's current stock.

    The posting is rejected entirely; the request is never clipped.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, lot_id: str, requested: Decimal, available: Decimal):
        self.lot_id = lot_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"insufficient stock: requested {_fmt(requested)}, "
            f"available {_fmt(available)}"
        )


class LotWarehouseMismatchError(BusinessRuleError):
    code: str = "LOT_WAREHOUSE_MISMATCH"

    def __init__(self, lot_id: str, lot_warehouse_id: str, expected_warehouse_id: str):
        self.lot_id = lot_id
        self.lot_warehouse_id = lot_warehouse_id
        self.expected_warehouse_id = expected_warehouse_id
        super().__init__(
            f"Lot {lot_id} is stored in warehouse {lot_warehouse_id}, "
            f"not {expected_warehouse_id}"
        )


class LotVariantMismatchError(BusinessRuleError):
    code: str = "LOT_VARIANT_MISMATCH"

    def __init__(self, lot_id: str, lot_variant_id: str, requested_variant_id: str):
        self.lot_id = lot_id
        self.lot_variant_id = lot_variant_id
        self.requested_variant_id = requested_variant_id
        super().__init__(
            f"Lot {lot_id} holds variant {lot_variant_id}, "
            f"not {requested_variant_id}"
        )


class InactiveReferenceError(BusinessRuleError):
    """Posting against a deactivated warehouse, variant or donor."""

    code: str = "INACTIVE_REFERENCE"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} is inactive")


class LotStillStockedError(BusinessRuleError):
    code: str = "LOT_STILL_STOCKED"

    def __init__(self, lot_id: str, current_quantity: Decimal):
        self.lot_id = lot_id
        self.current_quantity = current_quantity
        super().__init__(
            f"Lot {lot_id} still holds {_fmt(current_quantity)} units "
            f"and cannot be deactivated"
        )


class AdjustmentExceedsOriginalError(BusinessRuleError):
    code: str = "ADJUSTMENT_EXCEEDS_ORIGINAL"

    def __init__(self, lot_id: str, requested: Decimal, headroom: Decimal):
        self.lot_id = lot_id
        self.requested = requested
        self.headroom = headroom
        super().__init__(
            f"adjustment of {_fmt(requested)} on lot {lot_id} exceeds its "
            f"original quantity (at most {_fmt(headroom)} can be restored)"
        )


class AlreadyApprovedError(BusinessRuleError):
    """Kitchen consumption was already signed off."""

    code: str = "ALREADY_APPROVED"

    def __init__(self, consumption_id: str, approver_id: str):
        self.consumption_id = consumption_id
        self.approver_id = approver_id
        super().__init__(
            f"Kitchen consumption {consumption_id} was already approved by {approver_id}"
        )


class ApproverNotAuthorizedError(BusinessRuleError):
    code: str = "APPROVER_NOT_AUTHORIZED"

    def __init__(self, approver_id: str):
        self.approver_id = approver_id
        super().__init__(f"Actor {approver_id} is not allowed to approve consumptions")


# Invariant violations


class InvariantViolation(InventoryKernelError):
    """
    Ledger data disagrees with itself.

    Never expected in normal operation.  Logged at ERROR and surfaced as a
    hard failure; the kernel never patches the data silently.
    """

    code: str = "INVARIANT_VIOLATION"

    def __init__(self, message: str):
        self.diagnostic_code = f"{self.code}-{uuid4().hex[:12]}"
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return f"Internal inventory error (diagnostic code {self.diagnostic_code})"


class StockMismatchError(InvariantViolation):
    """Cached lot quantity differs from the quantity folded from the ledger."""

    code: str = "STOCK_MISMATCH"

    def __init__(self, lot_id: str, cached: Decimal, derived: Decimal):
        self.lot_id = lot_id
        self.cached = cached
        self.derived = derived
        super().__init__(
            f"Lot {lot_id}: cached current_quantity={_fmt(cached)} but "
            f"ledger derives {_fmt(derived)}"
        )


class NegativeStockError(InvariantViolation):
    code: str = "NEGATIVE_STOCK"

    def __init__(self, lot_id: str, current: Decimal, delta: Decimal):
        self.lot_id = lot_id
        self.current = current
        self.delta = delta
        super().__init__(
            f"Lot {lot_id}: applying {_fmt(delta)} to {_fmt(current)} "
            f"would leave the lot outside [0, original_quantity]"
        )


class ImmutabilityViolationError(InvariantViolation):
    """Attempt to modify or delete append-only ledger data."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify immutable {entity_type} {entity_id}: {reason}"
        )


class MovementTypeConflictError(InvariantViolation):
    code: str = "MOVEMENT_TYPE_CONFLICT"

    def __init__(self, key: str, stored_factor: int, configured_factor: int):
        self.key = key
        self.stored_factor = stored_factor
        self.configured_factor = configured_factor
        super().__init__(
            f"Movement type {key} is stored with factor {stored_factor} "
            f"but configured with factor {configured_factor}"
        )


# Persistence


class PersistenceError(InventoryKernelError):
    """
    The atomic write failed and was rolled back.

    No partial state from the posting is visible.  Retrying is the caller's
    decision.
    """

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, cause: str):
        self.operation = operation
        self.cause = cause
        self.diagnostic_code = f"{self.code}-{uuid4().hex[:12]}"
        super().__init__(f"{operation} could not be persisted: {cause}")

    @property
    def user_message(self) -> str:
        return f"The operation could not be saved (diagnostic code {self.diagnostic_code})"


def _fmt(value: Decimal | int | float) -> str:
    """Render a quantity without trailing zeros (12.000000000 -> 12)."""
    if isinstance(value, Decimal):
        normalized = value.normalize()
        if normalized == normalized.to_integral():
            return str(normalized.quantize(Decimal(1)))
        return format(normalized, "f")
    return str(value)
