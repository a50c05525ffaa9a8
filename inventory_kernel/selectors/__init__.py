"""Read-only query selectors.  Selectors return frozen DTOs, never ORM rows."""

from inventory_kernel.selectors.activity_selector import ActivitySelector
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.selectors.stock_selector import StockSelector

__all__ = ["ActivitySelector", "MovementSelector", "StockSelector"]
