"""Write-side kernel services.  Services flush; callers own commit and rollback."""

from inventory_kernel.services.consumption_approval import ConsumptionApprovalService
from inventory_kernel.services.lot_store import LotStore
from inventory_kernel.services.movement_ledger import MovementLedger
from inventory_kernel.services.movement_type_registry import MovementTypeRegistry
from inventory_kernel.services.posting_coordinator import PostingCoordinator
from inventory_kernel.services.reference_data_service import ReferenceDataService
from inventory_kernel.services.sequence_service import SequenceService

__all__ = [
    "ConsumptionApprovalService",
    "LotStore",
    "MovementLedger",
    "MovementTypeRegistry",
    "PostingCoordinator",
    "ReferenceDataService",
    "SequenceService",
]
