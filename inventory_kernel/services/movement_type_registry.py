"""
MovementTypeRegistry -- the sign table of the stock ledger.

Responsibility:
    Resolve movement types by id or by stable semantic key, expose the
    ``{type_id: factor}`` map used by projections, and seed the table from
    configuration.

Architecture position:
    Kernel > Services.  Read by the PostingCoordinator (by key) and by the
    StockSelector (factor map).

Invariants enforced:
    - Postings find their movement type by semantic key.  There is
      deliberately no "first type with factor +1" lookup: two entry types
      would make that ambiguous.
    - A stored factor never changes.  Seeding a key whose stored factor
      differs from the configured one raises MovementTypeConflictError.

Failure modes:
    - MovementTypeNotFoundError for an unknown id or key.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.identifiers import IdGenerator, UUIDGenerator
from inventory_kernel.domain.movement_types import MovementTypeDefinition, MovementTypeKey
from inventory_kernel.exceptions import MovementTypeConflictError, MovementTypeNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.movement_type import MovementType
from inventory_kernel.services.base import BaseService

logger = get_logger("services.movement_type_registry")


class MovementTypeRegistry(BaseService[MovementType]):

    def __init__(self, session: Session, id_generator: IdGenerator | None = None):
        super().__init__(session)
        self._ids = id_generator or UUIDGenerator()

    def get(self, movement_type_id: UUID) -> MovementType:
        movement_type = self.session.get(MovementType, movement_type_id)
        if movement_type is None:
            raise MovementTypeNotFoundError(str(movement_type_id))
        return movement_type

    def factor_for(self, movement_type_id: UUID) -> int:
        return self.get(movement_type_id).factor

    def by_key(self, key: MovementTypeKey | str) -> MovementType:
        key_value = key.value if isinstance(key, MovementTypeKey) else key
        movement_type = self.session.execute(
            select(MovementType).where(MovementType.key == key_value)
        ).scalar_one_or_none()
        if movement_type is None:
            raise MovementTypeNotFoundError(key_value)
        return movement_type

    def factor_map(self) -> dict[UUID, int]:
        rows = self.session.execute(select(MovementType.id, MovementType.factor)).all()
        return {row.id: row.factor for row in rows}

    def all_types(self) -> list[MovementType]:
        return list(
            self.session.execute(select(MovementType).order_by(MovementType.key)).scalars()
        )

    def ensure_types(self, definitions: Iterable[MovementTypeDefinition]) -> list[MovementType]:
        """
        Idempotently seed movement types.

        Missing keys are inserted.  Existing keys keep their row; a differing
        name is left alone, a differing factor is a hard failure.
        """
        ensured: list[MovementType] = []
        created = 0
        for definition in definitions:
            existing = self.session.execute(
                select(MovementType).where(MovementType.key == definition.key)
            ).scalar_one_or_none()

            if existing is not None:
                if existing.factor != definition.factor:
                    logger.error(
                        "movement_type_factor_conflict",
                        extra={
                            "movement_type_key": definition.key,
                            "stored_factor": existing.factor,
                            "configured_factor": definition.factor,
                        },
                    )
                    raise MovementTypeConflictError(
                        key=definition.key,
                        stored_factor=existing.factor,
                        configured_factor=definition.factor,
                    )
                ensured.append(existing)
                continue

            movement_type = MovementType(
                id=self._ids.new_id(),
                key=definition.key,
                name=definition.name,
                factor=definition.factor,
            )
            self.session.add(movement_type)
            ensured.append(movement_type)
            created += 1

        self.session.flush()
        logger.info(
            "movement_types_ensured",
            extra={"type_count": len(ensured), "created_count": created},
        )
        return ensured
