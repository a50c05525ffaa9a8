"""
ReferenceDataService -- warehouses, product variants and donors.

Responsibility:
    Create, read and soft-delete the reference data that postings point at,
    and answer "does this id exist and is it active?" for the
    PostingCoordinator's pre-write validation.

Architecture position:
    Kernel > Services.

Invariants enforced:
    - Reference rows are never deleted; deactivation keeps history
      resolvable.
    - Inactive references are rejected for new postings
      (InactiveReferenceError) but remain readable.

Failure modes:
    - WarehouseNotFoundError / VariantNotFoundError / DonorNotFoundError.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.identifiers import IdGenerator, UUIDGenerator
from inventory_kernel.domain.validation import require_non_negative
from inventory_kernel.exceptions import (
    DonorNotFoundError,
    InactiveReferenceError,
    ValidationError,
    VariantNotFoundError,
    WarehouseNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.donor import Donor
from inventory_kernel.models.product_variant import ProductVariant
from inventory_kernel.models.warehouse import Warehouse
from inventory_kernel.services.base import BaseService

logger = get_logger("services.reference_data")


def _require_text(field: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


class ReferenceDataService(BaseService[Warehouse]):

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        id_generator: IdGenerator | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._ids = id_generator or UUIDGenerator()

    # Warehouses

    def create_warehouse(self, name: str) -> Warehouse:
        warehouse = Warehouse(
            id=self._ids.new_id(),
            name=_require_text("name", name),
            is_active=True,
            created_at=self._clock.now(),
        )
        self.session.add(warehouse)
        self.session.flush()
        logger.info(
            "warehouse_created",
            extra={"warehouse_id": str(warehouse.id), "warehouse_name": warehouse.name},
        )
        return warehouse

    def get_warehouse(self, warehouse_id: UUID) -> Warehouse:
        warehouse = self.session.get(Warehouse, warehouse_id)
        if warehouse is None:
            raise WarehouseNotFoundError(str(warehouse_id))
        return warehouse

    def require_active_warehouse(self, warehouse_id: UUID) -> Warehouse:
        warehouse = self.get_warehouse(warehouse_id)
        if not warehouse.is_active:
            raise InactiveReferenceError("Warehouse", str(warehouse_id))
        return warehouse

    def deactivate_warehouse(self, warehouse_id: UUID, actor_id: str) -> Warehouse:
        warehouse = self.get_warehouse(warehouse_id)
        return self._deactivate(warehouse, "Warehouse", actor_id)

    # Product variants

    def create_variant(
        self,
        product_id: str,
        unit_of_measure: str = "UNIT",
        brand: str | None = None,
        presentation: str | None = None,
        barcode: str | None = None,
        reference_unit_price: Decimal | None = None,
    ) -> ProductVariant:
        price = None
        if reference_unit_price is not None:
            price = require_non_negative("reference_unit_price", reference_unit_price)

        variant = ProductVariant(
            id=self._ids.new_id(),
            product_id=_require_text("product_id", product_id),
            brand=brand,
            presentation=presentation,
            barcode=barcode,
            unit_of_measure=_require_text("unit_of_measure", unit_of_measure),
            reference_unit_price=price,
            is_active=True,
            created_at=self._clock.now(),
        )
        self.session.add(variant)
        self.session.flush()
        logger.info(
            "variant_created",
            extra={"variant_id": str(variant.id), "product_id": variant.product_id},
        )
        return variant

    def get_variant(self, variant_id: UUID) -> ProductVariant:
        variant = self.session.get(ProductVariant, variant_id)
        if variant is None:
            raise VariantNotFoundError(str(variant_id))
        return variant

    def require_active_variant(self, variant_id: UUID) -> ProductVariant:
        variant = self.get_variant(variant_id)
        if not variant.is_active:
            raise InactiveReferenceError("ProductVariant", str(variant_id))
        return variant

    def deactivate_variant(self, variant_id: UUID, actor_id: str) -> ProductVariant:
        variant = self.get_variant(variant_id)
        return self._deactivate(variant, "ProductVariant", actor_id)

    # Donors

    def register_donor(
        self,
        name: str,
        donor_type: str | None = None,
        contact_person: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        address: str | None = None,
    ) -> Donor:
        donor = Donor(
            id=self._ids.new_id(),
            name=_require_text("name", name),
            donor_type=donor_type,
            contact_person=contact_person,
            email=email,
            phone=phone,
            address=address,
            is_active=True,
            registered_at=self._clock.now(),
        )
        self.session.add(donor)
        self.session.flush()
        logger.info("donor_registered", extra={"donor_id": str(donor.id)})
        return donor

    def get_donor(self, donor_id: UUID) -> Donor:
        donor = self.session.get(Donor, donor_id)
        if donor is None:
            raise DonorNotFoundError(str(donor_id))
        return donor

    def require_active_donor(self, donor_id: UUID) -> Donor:
        donor = self.get_donor(donor_id)
        if not donor.is_active:
            raise InactiveReferenceError("Donor", str(donor_id))
        return donor

    def deactivate_donor(self, donor_id: UUID, actor_id: str) -> Donor:
        donor = self.get_donor(donor_id)
        return self._deactivate(donor, "Donor", actor_id)

    def _deactivate(self, entity, entity_type: str, actor_id: str):
        if entity.is_active:
            entity.is_active = False
            self.session.flush()
            logger.info(
                "reference_deactivated",
                extra={
                    "entity_type": entity_type,
                    "entity_id": str(entity.id),
                    "actor_id": actor_id,
                },
            )
        return entity
