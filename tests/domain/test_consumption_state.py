"""Tests for the kitchen consumption state machine and movement type keys."""

import pytest

from inventory_kernel.domain.consumption import (
    CONSUMPTION_TRANSITIONS,
    DEFAULT_SIGNATURE_TEXT,
    ConsumptionStatus,
    can_transition,
    normalize_signature,
    status_from_approver,
)
from inventory_kernel.domain.movement_types import (
    DEFAULT_MOVEMENT_TYPES,
    AdjustmentDirection,
    MovementTypeDefinition,
    MovementTypeKey,
)


class TestConsumptionTransitions:

    def test_pending_can_be_approved(self):
        assert can_transition(ConsumptionStatus.PENDING, ConsumptionStatus.APPROVED)

    def test_approved_is_terminal(self):
        assert CONSUMPTION_TRANSITIONS[ConsumptionStatus.APPROVED] == frozenset()
        assert not can_transition(ConsumptionStatus.APPROVED, ConsumptionStatus.APPROVED)
        assert not can_transition(ConsumptionStatus.APPROVED, ConsumptionStatus.PENDING)

    def test_status_derived_from_approver(self):
        assert status_from_approver(None) is ConsumptionStatus.PENDING
        assert status_from_approver("chef-1") is ConsumptionStatus.APPROVED

    @pytest.mark.parametrize("blank", [None, "", "   "])
    def test_blank_signature_defaults(self, blank):
        assert normalize_signature(blank) == DEFAULT_SIGNATURE_TEXT

    def test_signature_is_trimmed(self):
        assert normalize_signature("  ok ") == "ok"


class TestMovementTypeDefinitions:

    def test_every_key_has_a_default_definition(self):
        keys = {definition.key for definition in DEFAULT_MOVEMENT_TYPES}
        assert keys == {key.value for key in MovementTypeKey}

    def test_invalid_factor_rejected(self):
        with pytest.raises(ValueError):
            MovementTypeDefinition("weird", "Weird", 2)

    def test_adjustment_direction_maps_to_key(self):
        assert AdjustmentDirection.ENTRY.movement_type_key is MovementTypeKey.ADJUSTMENT_ENTRY
        assert AdjustmentDirection("exit").movement_type_key is MovementTypeKey.ADJUSTMENT_EXIT
