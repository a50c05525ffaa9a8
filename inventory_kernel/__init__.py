"""
Inventory Kernel - stock ledger core.

An append-only, signed-quantity movement ledger with:
- Lots as the unit of stock tracking
- Atomic multi-row postings (donations, bazaar sales, kitchen consumption)
- Stock derived by folding the ledger, cached on the lot and re-validated
- Pending -> approved sign-off for kitchen consumption
"""

__version__ = "0.1.0"
