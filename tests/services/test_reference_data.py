"""Tests for warehouses, product variants and donors."""

from decimal import Decimal

import pytest

from inventory_kernel.exceptions import (
    DonorNotFoundError,
    InactiveReferenceError,
    NegativeAmountError,
    ValidationError,
    VariantNotFoundError,
)

ACTOR = "actor-test"


class TestWarehouses:

    def test_create_and_deactivate(self, orchestrator):
        service = orchestrator.reference_data
        created = service.create_warehouse("  Bodega Norte ")
        assert created.name == "Bodega Norte"

        service.deactivate_warehouse(created.id, ACTOR)
        with pytest.raises(InactiveReferenceError):
            service.require_active_warehouse(created.id)
        assert created.to_dto().is_active is False

    def test_blank_name_rejected(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.reference_data.create_warehouse(" ")


class TestVariants:

    def test_variant_fields(self, variant):
        view = variant.to_dto()
        assert view.product_id == "arroz"
        assert view.unit_of_measure == "KG"
        assert view.brand == "Verde Valle"
        assert view.reference_unit_price == Decimal("2.00")

    def test_negative_reference_price_rejected(self, orchestrator):
        with pytest.raises(NegativeAmountError):
            orchestrator.reference_data.create_variant("aceite", reference_unit_price=Decimal("-1"))

    def test_unknown_variant(self, orchestrator, id_generator):
        with pytest.raises(VariantNotFoundError):
            orchestrator.reference_data.get_variant(id_generator.new_id())


class TestDonors:

    def test_register_and_deactivate(self, orchestrator, donor):
        assert donor.to_dto().name == "Fundacion Esperanza"
        orchestrator.reference_data.deactivate_donor(donor.id, ACTOR)
        with pytest.raises(InactiveReferenceError):
            orchestrator.reference_data.require_active_donor(donor.id)

    def test_unknown_donor(self, orchestrator, id_generator):
        with pytest.raises(DonorNotFoundError):
            orchestrator.reference_data.get_donor(id_generator.new_id())
