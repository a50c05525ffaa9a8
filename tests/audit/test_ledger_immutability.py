"""
Audit tests for append-only ledger data.

Verifies the ORM listeners block:
- Any UPDATE or DELETE of a movement
- Changes to a lot's identity, cost or original quantity, its deletion,
  and any current_quantity change made outside a posting
- Changes to posted donation and sale documents
- Re-signing an approved kitchen consumption
- Changing the factor of a movement type
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from inventory_kernel.db.immutability import posting_scope
from inventory_kernel.domain.dtos import SaleLine
from inventory_kernel.domain.movement_types import MovementTypeKey
from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.models.donation import Donation, DonationDetail
from inventory_kernel.models.kitchen_consumption import KitchenConsumption
from inventory_kernel.models.lot import Lot
from inventory_kernel.models.movement import Movement
from inventory_kernel.models.sale import Sale

ACTOR = "actor-test"
APPROVER = "approver-test"


def _opening_movement(session, lot_id) -> Movement:
    return session.execute(
        select(Movement).where(Movement.lot_id == lot_id, Movement.is_opening.is_(True))
    ).scalar_one()


def _assert_flush_blocked(session):
    with pytest.raises(ImmutabilityViolationError):
        session.flush()
    session.rollback()


class TestMovementImmutability:

    def test_quantity_update_blocked(self, session, stocked_lot):
        movement = _opening_movement(session, stocked_lot)
        movement.quantity = Decimal("999")
        _assert_flush_blocked(session)

    def test_reference_update_blocked(self, session, stocked_lot):
        movement = _opening_movement(session, stocked_lot)
        movement.reference = "rewritten"
        _assert_flush_blocked(session)

    def test_update_blocked_even_inside_posting(self, session, stocked_lot):
        movement = _opening_movement(session, stocked_lot)
        with posting_scope(session):
            movement.actor_id = "someone-else"
            _assert_flush_blocked(session)

    def test_delete_blocked(self, session, stocked_lot):
        session.delete(_opening_movement(session, stocked_lot))
        _assert_flush_blocked(session)

    def test_movement_survives_blocked_update(self, session, stocked_lot):
        movement = _opening_movement(session, stocked_lot)
        movement.quantity = Decimal("1")
        _assert_flush_blocked(session)
        assert _opening_movement(session, stocked_lot).quantity == Decimal("10")


class TestLotImmutability:

    @pytest.mark.parametrize(
        "field, value",
        [
            ("original_quantity", Decimal("50")),
            ("unit_cost", Decimal("0.01")),
        ],
    )
    def test_protected_field_blocked(self, session, stocked_lot, field, value):
        lot = session.get(Lot, stocked_lot)
        setattr(lot, field, value)
        _assert_flush_blocked(session)

    def test_current_quantity_outside_posting_blocked(self, session, stocked_lot, captured_logs):
        lot = session.get(Lot, stocked_lot)
        lot.current_quantity = Decimal("3")
        _assert_flush_blocked(session)
        assert any(
            record["message"] == "immutability_violation_blocked"
            and record["field"] == "current_quantity"
            for record in captured_logs()
        )

    def test_lot_delete_blocked(self, session, stocked_lot):
        session.delete(session.get(Lot, stocked_lot))
        _assert_flush_blocked(session)

    def test_lot_notes_editable(self, session, stocked_lot):
        lot = session.get(Lot, stocked_lot)
        lot.notes = "estante 3"
        session.flush()
        assert session.get(Lot, stocked_lot).notes == "estante 3"


class TestDocumentImmutability:

    def test_donation_total_blocked(self, session, stocked_lot):
        donation = session.get(Lot, stocked_lot).donation_id
        header = session.get(Donation, donation)
        header.total = Decimal("0")
        _assert_flush_blocked(session)

    def test_donation_detail_delete_blocked(self, session, stocked_lot):
        detail = session.execute(
            select(DonationDetail).where(DonationDetail.lot_id == stocked_lot)
        ).scalar_one()
        session.delete(detail)
        _assert_flush_blocked(session)

    def test_sale_delete_blocked(self, session, coordinator, warehouse, variant, stocked_lot):
        sale = coordinator.post_sale(
            warehouse.id, ACTOR, [SaleLine(stocked_lot, variant.id, Decimal("1"), Decimal("1"))],
        )
        session.delete(session.get(Sale, sale.id))
        _assert_flush_blocked(session)


class TestConsumptionImmutability:

    def test_resign_after_approval_blocked(self, session, coordinator, variant, stocked_lot):
        consumption = coordinator.post_kitchen_consumption(stocked_lot, variant.id, Decimal("1"), ACTOR)
        coordinator.approve_consumption(consumption.id, APPROVER, "Chef Ana")

        record = session.get(KitchenConsumption, consumption.id)
        record.signature_text = "Otra firma"
        _assert_flush_blocked(session)

    def test_quantity_change_blocked(self, session, coordinator, variant, stocked_lot):
        consumption = coordinator.post_kitchen_consumption(stocked_lot, variant.id, Decimal("1"), ACTOR)
        record = session.get(KitchenConsumption, consumption.id)
        record.quantity = Decimal("0.5")
        _assert_flush_blocked(session)


class TestMovementTypeImmutability:

    def test_factor_flip_blocked(self, session, orchestrator):
        sale_exit = orchestrator.registry.by_key(MovementTypeKey.SALE_EXIT)
        sale_exit.factor = 1
        _assert_flush_blocked(session)

    def test_delete_blocked(self, session, orchestrator):
        session.delete(orchestrator.registry.by_key(MovementTypeKey.ADJUSTMENT_EXIT))
        _assert_flush_blocked(session)
