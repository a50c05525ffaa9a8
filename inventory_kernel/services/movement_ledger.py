"""
MovementLedger -- the append-only write path for stock movements.

Responsibility:
    Create Movement rows.  Nothing else in the kernel inserts movements,
    and nothing at all updates or deletes them (db/immutability.py).

Architecture position:
    Kernel > Services.  Called only by the PostingCoordinator, inside its
    posting transaction.  Reads live in selectors/movement_selector.py.

Invariants enforced:
    - quantity > 0; the sign comes from the movement type.
    - seq comes from SequenceService, occurred_at from the injected clock.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.identifiers import IdGenerator, UUIDGenerator
from inventory_kernel.domain.validation import require_positive
from inventory_kernel.exceptions import MovementTypeNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.movement import Movement
from inventory_kernel.models.movement_type import MovementType
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.sequence_service import SequenceService

logger = get_logger("services.movement_ledger")


class MovementLedger(BaseService[Movement]):

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        id_generator: IdGenerator | None = None,
        sequence_service: SequenceService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._ids = id_generator or UUIDGenerator()
        self._sequences = sequence_service or SequenceService(session)

    def append(
        self,
        lot_id: UUID,
        variant_id: UUID,
        movement_type_id: UUID,
        quantity: Decimal,
        actor_id: str,
        reference: str | None = None,
        is_opening: bool = False,
    ) -> Movement:
        amount = require_positive("quantity", quantity)

        movement_type = self.session.get(MovementType, movement_type_id)
        if movement_type is None:
            raise MovementTypeNotFoundError(str(movement_type_id))

        movement = Movement(
            id=self._ids.new_id(),
            seq=self._sequences.next_value(SequenceService.MOVEMENT),
            lot_id=lot_id,
            variant_id=variant_id,
            movement_type_id=movement_type.id,
            movement_type=movement_type,
            quantity=amount,
            occurred_at=self._clock.now(),
            actor_id=actor_id,
            reference=reference,
            is_opening=is_opening,
        )
        self.session.add(movement)
        self.session.flush()

        logger.debug(
            "movement_appended",
            extra={
                "movement_id": str(movement.id),
                "seq": movement.seq,
                "lot_id": str(lot_id),
                "movement_type_key": movement_type.key,
                "quantity": str(amount),
                "factor": movement_type.factor,
            },
        )
        return movement
