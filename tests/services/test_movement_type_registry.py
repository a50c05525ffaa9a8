"""Tests for the movement type catalog."""

from uuid import uuid4

import pytest

from inventory_kernel.domain.movement_types import (
    DEFAULT_MOVEMENT_TYPES,
    ENTRY_FACTOR,
    EXIT_FACTOR,
    MovementTypeDefinition,
    MovementTypeKey,
)
from inventory_kernel.exceptions import MovementTypeConflictError, MovementTypeNotFoundError


class TestEnsureTypes:

    def test_defaults_seeded(self, orchestrator):
        keys = {movement_type.key for movement_type in orchestrator.registry.all_types()}
        assert keys == {key.value for key in MovementTypeKey}

    def test_ensure_is_idempotent(self, orchestrator):
        before = {t.key: t.id for t in orchestrator.registry.all_types()}
        orchestrator.registry.ensure_types(DEFAULT_MOVEMENT_TYPES)
        after = {t.key: t.id for t in orchestrator.registry.all_types()}
        assert before == after

    def test_factor_conflict_raises(self, orchestrator):
        flipped = MovementTypeDefinition(
            MovementTypeKey.SALE_EXIT.value, "Venta", ENTRY_FACTOR,
        )
        with pytest.raises(MovementTypeConflictError):
            orchestrator.registry.ensure_types([flipped])

    def test_factors_by_key(self, orchestrator):
        registry = orchestrator.registry
        assert registry.by_key(MovementTypeKey.DONATION_ENTRY).factor == ENTRY_FACTOR
        assert registry.by_key("sale_exit").factor == EXIT_FACTOR
        assert registry.by_key(MovementTypeKey.KITCHEN_CONSUMPTION_EXIT).factor == EXIT_FACTOR
        assert registry.by_key(MovementTypeKey.ADJUSTMENT_ENTRY).factor == ENTRY_FACTOR
        assert registry.by_key(MovementTypeKey.ADJUSTMENT_EXIT).factor == EXIT_FACTOR

    def test_factor_map_covers_every_type(self, orchestrator):
        factor_map = orchestrator.registry.factor_map()
        assert len(factor_map) == len(DEFAULT_MOVEMENT_TYPES)
        assert set(factor_map.values()) == {ENTRY_FACTOR, EXIT_FACTOR}


class TestLookupFailures:

    def test_unknown_key(self, orchestrator):
        with pytest.raises(MovementTypeNotFoundError):
            orchestrator.registry.by_key("transfer_in")

    def test_unknown_id_has_no_factor(self, orchestrator):
        with pytest.raises(MovementTypeNotFoundError):
            orchestrator.registry.factor_for(uuid4())


def test_factor_for_matches_catalog(orchestrator):
    sale = orchestrator.registry.by_key(MovementTypeKey.SALE_EXIT)
    donation = orchestrator.registry.by_key(MovementTypeKey.DONATION_ENTRY)
    assert orchestrator.registry.factor_for(sale.id) == EXIT_FACTOR
    assert orchestrator.registry.factor_for(donation.id) == ENTRY_FACTOR
