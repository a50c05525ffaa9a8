"""ORM models.  Importing this package registers every table on Base.metadata."""

from inventory_kernel.models.donation import Donation, DonationDetail
from inventory_kernel.models.donor import Donor
from inventory_kernel.models.kitchen_consumption import KitchenConsumption
from inventory_kernel.models.lot import Lot
from inventory_kernel.models.movement import Movement
from inventory_kernel.models.movement_type import MovementType
from inventory_kernel.models.product_variant import ProductVariant
from inventory_kernel.models.sale import Sale, SaleDetail
from inventory_kernel.models.sequence_counter import SequenceCounter
from inventory_kernel.models.warehouse import Warehouse

__all__ = [
    "Donation",
    "DonationDetail",
    "Donor",
    "KitchenConsumption",
    "Lot",
    "Movement",
    "MovementType",
    "ProductVariant",
    "Sale",
    "SaleDetail",
    "SequenceCounter",
    "Warehouse",
]
