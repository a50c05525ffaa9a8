"""
Ledger Invariants Contract.

These invariants are structural law.  They are enforced at the posting
boundary, in ORM listeners and in table check constraints.  No
configuration value may switch them off.

This module only declares them.  Enforcement lives in PostingCoordinator,
LotStore, MovementLedger, StockSelector and db/immutability.py.
"""

from enum import Enum, unique


@unique
class LedgerInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    LEDGER_CONSISTENCY = "ledger_consistency"
    """lot.current_quantity == original_quantity + signed sum of the lot's
    non-opening movements.  Re-validated after every posting by
    StockSelector.assert_consistent()."""

    NON_NEGATIVE_STOCK = "non_negative_stock"
    """0 <= current_quantity <= original_quantity.  Checked by
    LotStore.adjust_current_quantity() and by table check constraints."""

    APPEND_ONLY_LEDGER = "append_only_ledger"
    """Movements are never updated or deleted.  Corrections are new,
    compensating movements.  Enforced by db/immutability.py."""

    ATOMIC_POSTING = "atomic_posting"
    """A posting writes all of its rows or none.  Enforced by the
    PostingCoordinator savepoint."""

    SERIALIZED_LOT_UPDATES = "serialized_lot_updates"
    """Stock check and decrement happen under the same row lock
    (SELECT ... FOR UPDATE), lots locked in ascending id order."""

    SINGLE_APPROVAL = "single_approval"
    """A kitchen consumption moves PENDING -> APPROVED exactly once;
    approver fields are write-once."""

    SEMANTIC_TYPE_LOOKUP = "semantic_type_lookup"
    """Postings resolve movement types by semantic key, never by factor."""


ALL_LEDGER_INVARIANTS: frozenset[LedgerInvariant] = frozenset(LedgerInvariant)

# The kernel package may not import from these packages.
# Enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "inventory_services",
    "inventory_config",
)
