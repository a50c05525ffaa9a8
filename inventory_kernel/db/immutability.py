"""
ORM-level immutability enforcement for the stock ledger.

===============================================================================
HOW IT WORKS
===============================================================================

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  The listeners below inspect attribute history and raise
ImmutabilityViolationError when a protected column would change:

    session.flush()
         |
         v
    [before_update] --> _check_*() --> ImmutabilityViolationError
    [before_delete] --> _check_*() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                 | Rule
-----------------------|-----------------------------------------------------
Movement               | ALWAYS immutable, never deleted (append-only ledger)
MovementType           | key and factor immutable, never deleted
Lot                    | identity/cost/original_quantity immutable; never
                       | deleted; current_quantity only inside a posting
Donation, Sale         | header columns immutable, never deleted
DonationDetail,        | ALWAYS immutable, never deleted
SaleDetail             |
KitchenConsumption     | core columns immutable; approver fields write-once;
                       | never deleted

The posting scope is a flag in ``Session.info`` that the PostingCoordinator
sets around its writes (see ``posting_scope``).  A Lot whose
``current_quantity`` changes while the flag is absent is rejected, so the
cached projection can only move together with a ledger movement.

Listeners are registered once at startup:

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

``unregister_immutability_listeners()`` exists for tests that need to
corrupt data on purpose (e.g. to exercise the reconciliation sweep).
"""

from contextlib import contextmanager

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session, object_session

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

POSTING_SCOPE_KEY = "inventory_posting_scope"

LOT_IMMUTABLE_FIELDS = frozenset({
    "variant_id",
    "warehouse_id",
    "donation_id",
    "unit_cost",
    "original_quantity",
    "received_date",
    "created_at",
    "created_by",
})

CONSUMPTION_IMMUTABLE_FIELDS = frozenset({
    "lot_id",
    "variant_id",
    "quantity",
    "consumption_date",
    "responsible_id",
    "movement_id",
    "created_at",
})

CONSUMPTION_WRITE_ONCE_FIELDS = frozenset({
    "approver_id",
    "signature_text",
    "approved_at",
})


@contextmanager
def posting_scope(session: Session):
    """
    Mark ``session`` as running a ledger posting.

    Nested scopes are counted so an inner posting does not clear the flag
    of an outer one.
    """
    depth = session.info.get(POSTING_SCOPE_KEY, 0)
    session.info[POSTING_SCOPE_KEY] = depth + 1
    try:
        yield session
    finally:
        if depth:
            session.info[POSTING_SCOPE_KEY] = depth
        else:
            session.info.pop(POSTING_SCOPE_KEY, None)


def in_posting_scope(session: Session | None) -> bool:
    if session is None:
        return False
    return session.info.get(POSTING_SCOPE_KEY, 0) > 0


def _changed_columns(target) -> list[str]:
    """Column attributes with pending changes (relationship churn is ignored)."""
    state = inspect(target)
    changed = []
    for attr in state.mapper.column_attrs:
        if state.attrs[attr.key].history.has_changes():
            changed.append(attr.key)
    return changed


def _reject(entity_type: str, target, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


# Movement (append-only)


def _check_movement_immutability(mapper, connection, target):
    changed = _changed_columns(target)
    if changed:
        _reject(
            "Movement", target, "UPDATE",
            f"ledger movements are append-only (field '{changed[0]}')",
            field=changed[0],
        )


def _check_movement_delete(mapper, connection, target):
    _reject("Movement", target, "DELETE", "ledger movements cannot be deleted")


# MovementType


def _check_movement_type_immutability(mapper, connection, target):
    for key in _changed_columns(target):
        if key in ("key", "factor"):
            _reject(
                "MovementType", target, "UPDATE",
                f"Cannot modify field '{key}' of a movement type",
                field=key,
            )


def _check_movement_type_delete(mapper, connection, target):
    _reject("MovementType", target, "DELETE", "movement types cannot be deleted")


# Lot


def _check_lot_immutability(mapper, connection, target):
    for key in _changed_columns(target):
        if key in LOT_IMMUTABLE_FIELDS:
            _reject(
                "Lot", target, "UPDATE",
                f"Cannot modify field '{key}' of a lot",
                field=key,
            )
        if key == "current_quantity" and not in_posting_scope(object_session(target)):
            _reject(
                "Lot", target, "UPDATE",
                "current_quantity can only change through a ledger posting",
                field=key,
            )


def _check_lot_delete(mapper, connection, target):
    _reject("Lot", target, "DELETE", "lots are deactivated, never deleted")


# Document headers and details


def _check_document_header_immutability(mapper, connection, target):
    changed = _changed_columns(target)
    if changed:
        _reject(
            type(target).__name__, target, "UPDATE",
            f"Cannot modify field '{changed[0]}' of a posted document",
            field=changed[0],
        )


def _check_document_delete(mapper, connection, target):
    _reject(
        type(target).__name__, target, "DELETE",
        "posted documents cannot be deleted",
    )


# KitchenConsumption


def _check_consumption_immutability(mapper, connection, target):
    state = inspect(target)
    for key in _changed_columns(target):
        if key in CONSUMPTION_IMMUTABLE_FIELDS:
            _reject(
                "KitchenConsumption", target, "UPDATE",
                f"Cannot modify field '{key}' of a kitchen consumption",
                field=key,
            )
        if key in CONSUMPTION_WRITE_ONCE_FIELDS:
            previous = state.attrs[key].history.deleted
            if previous and previous[0] is not None:
                _reject(
                    "KitchenConsumption", target, "UPDATE",
                    f"Approval field '{key}' is already set",
                    field=key,
                )


def _check_consumption_delete(mapper, connection, target):
    _reject(
        "KitchenConsumption", target, "DELETE",
        "kitchen consumptions cannot be deleted",
    )


def _listener_table():
    from inventory_kernel.models.donation import Donation, DonationDetail
    from inventory_kernel.models.kitchen_consumption import KitchenConsumption
    from inventory_kernel.models.lot import Lot
    from inventory_kernel.models.movement import Movement
    from inventory_kernel.models.movement_type import MovementType
    from inventory_kernel.models.sale import Sale, SaleDetail

    return [
        (Movement, "before_update", _check_movement_immutability),
        (Movement, "before_delete", _check_movement_delete),
        (MovementType, "before_update", _check_movement_type_immutability),
        (MovementType, "before_delete", _check_movement_type_delete),
        (Lot, "before_update", _check_lot_immutability),
        (Lot, "before_delete", _check_lot_delete),
        (Donation, "before_update", _check_document_header_immutability),
        (Donation, "before_delete", _check_document_delete),
        (DonationDetail, "before_update", _check_document_header_immutability),
        (DonationDetail, "before_delete", _check_document_delete),
        (Sale, "before_update", _check_document_header_immutability),
        (Sale, "before_delete", _check_document_delete),
        (SaleDetail, "before_update", _check_document_header_immutability),
        (SaleDetail, "before_delete", _check_document_delete),
        (KitchenConsumption, "before_update", _check_consumption_immutability),
        (KitchenConsumption, "before_delete", _check_consumption_delete),
    ]


def register_immutability_listeners():
    """
    Register all immutability enforcement listeners.

    Idempotent: a listener that is already registered is not added twice.
    Call after the models are importable and before any posting.
    """
    for target, event_name, listener_fn in _listener_table():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if it was never registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement listeners.

    WARNING: Only use this in tests that intentionally corrupt ledger data.
    """
    for target, event_name, listener_fn in _listener_table():
        _safe_remove_listener(target, event_name, listener_fn)
