"""
Kitchen consumption lifecycle.

Responsibility
--------------
Pure state machine for the kitchen consumption sign-off.  A consumption is
created PENDING when its exit movement is posted and becomes APPROVED once
an authorized approver signs it.  APPROVED is terminal.

Approval is a sign-off, not a stock event: no transition in this table
touches the ledger.
"""

from __future__ import annotations

from enum import Enum


class ConsumptionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"


CONSUMPTION_TRANSITIONS: dict[ConsumptionStatus, frozenset[ConsumptionStatus]] = {
    ConsumptionStatus.PENDING: frozenset({ConsumptionStatus.APPROVED}),
    ConsumptionStatus.APPROVED: frozenset(),
}

DEFAULT_SIGNATURE_TEXT = "Aprobado"


def status_from_approver(approver_id: str | None) -> ConsumptionStatus:
    """The status is fully determined by whether an approver is recorded."""
    if approver_id is None:
        return ConsumptionStatus.PENDING
    return ConsumptionStatus.APPROVED


def can_transition(current: ConsumptionStatus, target: ConsumptionStatus) -> bool:
    return target in CONSUMPTION_TRANSITIONS[current]


def normalize_signature(signature_text: str | None, default: str = DEFAULT_SIGNATURE_TEXT) -> str:
    """Blank signatures fall back to the default sign-off text."""
    if signature_text is None or not signature_text.strip():
        return default
    return signature_text.strip()
