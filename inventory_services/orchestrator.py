"""
inventory_services.orchestrator -- DI container for kernel services.

Responsibility:
    Create every kernel service exactly once per session and wire them
    together.  No kernel service constructs its collaborators when an
    orchestrator is in use; the wiring is all visible in ``__init__``.

Architecture position:
    Services layer.  The only place kernel services are composed.

Invariants enforced:
    - One SequenceService per session, shared by the ledger, so movement
      sequence allocation goes through a single counter lock path.
    - The PostingCoordinator receives the same LotStore, MovementLedger and
      StockSelector instances that callers can inspect.

Usage:
    orchestrator = InventoryOrchestrator(session, clock=clock, can_approve=check)
    orchestrator.coordinator.post_sale(...)
    orchestrator.stock_selector.stock_of_variant(variant_id)
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.consumption import DEFAULT_SIGNATURE_TEXT
from inventory_kernel.domain.identifiers import IdGenerator, UUIDGenerator
from inventory_kernel.selectors.activity_selector import ActivitySelector
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.selectors.stock_selector import StockSelector
from inventory_kernel.services.consumption_approval import (
    CapabilityCheck,
    ConsumptionApprovalService,
)
from inventory_kernel.services.lot_store import LotStore
from inventory_kernel.services.movement_ledger import MovementLedger
from inventory_kernel.services.movement_type_registry import MovementTypeRegistry
from inventory_kernel.services.posting_coordinator import PostingCoordinator
from inventory_kernel.services.reference_data_service import ReferenceDataService
from inventory_kernel.services.sequence_service import SequenceService


class InventoryOrchestrator:
    """
    Central factory for one session's kernel services.

    All services are public attributes.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        id_generator: IdGenerator | None = None,
        can_approve: CapabilityCheck | None = None,
        default_signature: str = DEFAULT_SIGNATURE_TEXT,
        auto_commit: bool = True,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._ids = id_generator or UUIDGenerator()

        # Reads
        self.stock_selector = StockSelector(session)
        self.movement_selector = MovementSelector(session)
        self.activity_selector = ActivitySelector(session)

        # Infrastructure
        self.sequence_service = SequenceService(session)
        self.registry = MovementTypeRegistry(session, self._ids)
        self.reference_data = ReferenceDataService(session, self._clock, self._ids)

        # Stock write path
        self.lot_store = LotStore(session, self._clock, self._ids)
        self.ledger = MovementLedger(
            session, self._clock, self._ids, sequence_service=self.sequence_service,
        )
        self.approval_service = ConsumptionApprovalService(
            session, self._clock, can_approve, default_signature=default_signature,
        )

        self.coordinator = PostingCoordinator(
            session,
            clock=self._clock,
            id_generator=self._ids,
            auto_commit=auto_commit,
            registry=self.registry,
            lot_store=self.lot_store,
            ledger=self.ledger,
            reference_data=self.reference_data,
            stock_selector=self.stock_selector,
            approval_service=self.approval_service,
        )

    @property
    def session(self) -> Session:
        return self._session

    @property
    def clock(self) -> Clock:
        return self._clock
