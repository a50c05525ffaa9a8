"""
inventory_services -- package init and public API.

Responsibility:
    Dependency wiring (InventoryOrchestrator) and the transaction-scoped
    public facade (InventoryLedger) over the inventory kernel.

Dependency direction (enforced by tests/architecture/test_kernel_boundary.py):
    inventory_services/ -> inventory_kernel/  (allowed)
    inventory_services/ -> inventory_config/  (allowed)
    inventory_kernel/   -> inventory_services/ (FORBIDDEN)
"""

from inventory_services.ledger import InventoryLedger, approver_allowlist
from inventory_services.orchestrator import InventoryOrchestrator

__all__ = ["InventoryLedger", "InventoryOrchestrator", "approver_allowlist"]
