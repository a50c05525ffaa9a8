"""
ConsumptionApprovalService -- sign-off of kitchen consumptions.

Responsibility:
    Move a kitchen consumption from PENDING to APPROVED exactly once,
    recording approver, signature text and approval time.

Architecture position:
    Kernel > Services.  Called by PostingCoordinator.approve_consumption(),
    which owns the transaction.  The transition table lives in
    domain/consumption.py.

Invariants enforced:
    - The injected ``can_approve`` capability check runs before anything is
      read or written.  Without one, nobody may approve.
    - APPROVED is terminal.  A second approval raises AlreadyApprovedError
      and leaves the recorded approver and signature untouched.
    - Approval never touches the ledger; stock was debited when the
      consumption was posted.

Failure modes:
    - ApproverNotAuthorizedError, ConsumptionNotFoundError,
      AlreadyApprovedError.
"""

from collections.abc import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.consumption import (
    DEFAULT_SIGNATURE_TEXT,
    ConsumptionStatus,
    can_transition,
    normalize_signature,
)
from inventory_kernel.exceptions import (
    AlreadyApprovedError,
    ApproverNotAuthorizedError,
    ConsumptionNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.kitchen_consumption import KitchenConsumption
from inventory_kernel.services.base import BaseService

logger = get_logger("services.consumption_approval")

CapabilityCheck = Callable[[str], bool]


def deny_all(actor_id: str) -> bool:
    return False


class ConsumptionApprovalService(BaseService[KitchenConsumption]):

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        can_approve: CapabilityCheck | None = None,
        default_signature: str = DEFAULT_SIGNATURE_TEXT,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._can_approve = can_approve or deny_all
        self._default_signature = default_signature

    def _lock(self, consumption_id: UUID) -> KitchenConsumption:
        consumption = self.session.execute(
            select(KitchenConsumption)
            .where(KitchenConsumption.id == consumption_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if consumption is None:
            raise ConsumptionNotFoundError(str(consumption_id))
        return consumption

    def approve(
        self,
        consumption_id: UUID,
        approver_id: str,
        signature_text: str | None = None,
    ) -> KitchenConsumption:
        if not approver_id or not self._can_approve(approver_id):
            logger.warning(
                "consumption_approval_denied",
                extra={"consumption_id": str(consumption_id), "approver_id": approver_id},
            )
            raise ApproverNotAuthorizedError(approver_id)

        consumption = self._lock(consumption_id)

        if not can_transition(consumption.status, ConsumptionStatus.APPROVED):
            logger.warning(
                "consumption_already_approved",
                extra={
                    "consumption_id": str(consumption_id),
                    "approver_id": consumption.approver_id,
                    "attempted_by": approver_id,
                },
            )
            raise AlreadyApprovedError(str(consumption_id), consumption.approver_id)

        consumption.approver_id = approver_id
        consumption.signature_text = normalize_signature(signature_text, self._default_signature)
        consumption.approved_at = self._clock.now()
        self.session.flush()

        logger.info(
            "consumption_approved",
            extra={
                "consumption_id": str(consumption_id),
                "approver_id": approver_id,
                "lot_id": str(consumption.lot_id),
            },
        )
        return consumption
