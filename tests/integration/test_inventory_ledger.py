"""
Integration tests for the InventoryLedger facade.

Covers:
- bootstrap() seeds movement types and the movement sequence
- Every facade call runs in its own session and returns frozen DTOs
- Failed postings roll back their session and leave stock unchanged
- The full donation -> sale -> consumption -> approval flow
- from_config() against a file-backed SQLite database
"""

import dataclasses
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from inventory_config import StockAlertSettings, get_active_config
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.consumption import ConsumptionStatus
from inventory_kernel.domain.dtos import (
    DonationLine,
    LotView,
    MovementFilter,
    SaleLine,
)
from inventory_kernel.domain.identifiers import SequentialIdGenerator
from inventory_kernel.domain.movement_types import MovementTypeKey
from inventory_kernel.exceptions import (
    AlreadyApprovedError,
    ApproverNotAuthorizedError,
    InsufficientStockError,
)
from inventory_services.ledger import InventoryLedger, approver_allowlist

ACTOR = "actor-test"
APPROVER = "approver-test"
START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def ledger(session_factory, deterministic_clock):
    facade = InventoryLedger(
        session_factory,
        clock=deterministic_clock,
        id_generator=SequentialIdGenerator(start=5000),
        can_approve=approver_allowlist([APPROVER]),
    )
    facade.bootstrap()
    return facade


@pytest.fixture
def catalog(ledger):
    warehouse = ledger.create_warehouse("Almacen Central")
    variant = ledger.create_variant("leche", unit_of_measure="LT", presentation="caja 1L")
    donor = ledger.register_donor("Supermercados del Norte", donor_type="empresa", email="dona@norte.mx")
    return warehouse, variant, donor


def _donate(ledger, catalog, quantity="10"):
    warehouse, variant, donor = catalog
    record = ledger.post_donation(
        donor.donor_id,
        date(2024, 1, 1),
        ACTOR,
        [DonationLine(variant.variant_id, warehouse.warehouse_id, Decimal(quantity), Decimal("1.20"))],
    )
    return record.details[0].lot_id


class TestBootstrap:

    def test_bootstrap_is_idempotent(self, ledger):
        ledger.bootstrap()
        assert ledger.list_movements() == []

    def test_reference_data_views(self, catalog):
        warehouse, variant, donor = catalog
        assert warehouse.is_active
        assert variant.presentation == "caja 1L"
        assert donor.email == "dona@norte.mx"


class TestFacadeFlow:

    def test_end_to_end(self, ledger, catalog):
        warehouse, variant, _ = catalog
        lot_id = _donate(ledger, catalog)

        lot = ledger.get_lot(lot_id)
        assert isinstance(lot, LotView)
        assert lot.current_quantity == lot.original_quantity == Decimal("10")
        assert ledger.stock_of_variant(variant.variant_id) == Decimal("10")

        sale = ledger.post_sale(
            warehouse.warehouse_id, ACTOR,
            [SaleLine(lot_id, variant.variant_id, Decimal("4"), Decimal("2.50"))],
        )
        assert sale.total == Decimal("10.00")
        assert sale.details[0].line_total == Decimal("10.00")
        assert ledger.stock_of_lot(lot_id) == Decimal("6")

        with pytest.raises(InsufficientStockError):
            ledger.post_sale(
                warehouse.warehouse_id, ACTOR,
                [SaleLine(lot_id, variant.variant_id, Decimal("10"), Decimal("2.50"))],
            )
        assert ledger.get_lot(lot_id).current_quantity == Decimal("6")

        consumption = ledger.post_kitchen_consumption(lot_id, variant.variant_id, Decimal("3"), ACTOR)
        assert consumption.status is ConsumptionStatus.PENDING
        assert [c.consumption_id for c in ledger.pending_consumptions()] == [consumption.consumption_id]

        with pytest.raises(ApproverNotAuthorizedError):
            ledger.approve_consumption(consumption.consumption_id, ACTOR)

        approved = ledger.approve_consumption(consumption.consumption_id, APPROVER)
        assert approved.status is ConsumptionStatus.APPROVED
        assert approved.signature_text == "Aprobado"
        assert ledger.stock_of_lot(lot_id) == Decimal("3")
        assert ledger.pending_consumptions() == []

        with pytest.raises(AlreadyApprovedError):
            ledger.approve_consumption(consumption.consumption_id, APPROVER, "otra")

        assert ledger.verify_all_lots() == []
        summary = ledger.period_summary(START, START)
        assert (summary.entries, summary.exits, summary.net) == (
            Decimal("10"), Decimal("7"), Decimal("3"),
        )

    def test_results_are_frozen(self, ledger, catalog):
        lot_id = _donate(ledger, catalog)
        view = ledger.get_lot(lot_id)
        with pytest.raises(dataclasses.FrozenInstanceError):
            view.current_quantity = Decimal("0")

    def test_adjustment_and_deactivation(self, ledger, catalog):
        _, variant, _ = catalog
        lot_id = _donate(ledger, catalog, "2")

        movement = ledger.post_adjustment(lot_id, "exit", Decimal("2"), ACTOR, "producto danado")
        assert movement.movement_type_key == MovementTypeKey.ADJUSTMENT_EXIT.value
        assert movement.signed_quantity == Decimal("-2")

        deactivated = ledger.deactivate_lot(lot_id, ACTOR)
        assert deactivated.is_active is False
        assert ledger.available_lots(variant_id=variant.variant_id) == []

    def test_list_movements_filtered(self, ledger, catalog):
        _, variant, _ = catalog
        lot_id = _donate(ledger, catalog)
        ledger.post_kitchen_consumption(lot_id, variant.variant_id, Decimal("1"), ACTOR)

        exits = ledger.list_movements(
            MovementFilter(movement_type_key=MovementTypeKey.KITCHEN_CONSUMPTION_EXIT.value)
        )
        assert len(exits) == 1
        assert exits[0].reference.startswith("kitchen:")

    def test_daily_sales(self, ledger, catalog):
        warehouse, variant, _ = catalog
        lot_id = _donate(ledger, catalog)
        ledger.post_sale(
            warehouse.warehouse_id, ACTOR,
            [SaleLine(lot_id, variant.variant_id, Decimal("3"), Decimal("2"))],
        )
        summary = ledger.daily_sales_summary(date(2024, 1, 1))
        assert summary.sale_count == 1
        assert summary.units_sold == Decimal("3")


class TestStockAlerts:

    def _donate_expiring(self, ledger, catalog, quantity, expiry_date):
        warehouse, variant, donor = catalog
        record = ledger.post_donation(
            donor.donor_id, date(2024, 1, 1), ACTOR,
            [DonationLine(
                variant.variant_id, warehouse.warehouse_id, Decimal(quantity), Decimal("1"),
                expiry_date=expiry_date,
            )],
        )
        return record.details[0].lot_id

    def test_default_window_and_threshold(self, ledger, catalog):
        _, variant, _ = catalog
        soon = self._donate_expiring(ledger, catalog, "4", date(2024, 1, 31))
        self._donate_expiring(ledger, catalog, "4", date(2024, 2, 1))

        assert [lot.lot_id for lot in ledger.expiring_lots()] == [soon]
        [low] = ledger.low_stock_variants()
        assert (low.variant_id, low.stock) == (variant.variant_id, Decimal("8"))

    def test_configured_settings(self, session_factory, deterministic_clock, catalog):
        custom = InventoryLedger(
            session_factory,
            clock=deterministic_clock,
            stock_alerts=StockAlertSettings(low_stock_threshold=Decimal("5"), expiry_warning_days=7),
        )
        self._donate_expiring(custom, catalog, "6", date(2024, 1, 20))

        assert custom.expiring_lots() == []
        assert len(custom.expiring_lots(date(2024, 1, 20))) == 1
        assert custom.low_stock_variants() == []
        assert len(custom.low_stock_variants(Decimal("7"))) == 1


class TestFromConfig:

    def test_file_backed_ledger(self, tmp_path):
        config = get_active_config()
        config = dataclasses.replace(
            config,
            database=dataclasses.replace(config.database, url=f"sqlite:///{tmp_path / 'ledger.db'}"),
        )

        ledger = InventoryLedger.from_config(config, clock=DeterministicClock())
        warehouse = ledger.create_warehouse("Bodega")
        variant = ledger.create_variant("pasta")
        record = ledger.post_donation(
            None, date(2024, 1, 1), ACTOR,
            [DonationLine(variant.variant_id, warehouse.warehouse_id, Decimal("5"), Decimal("1"))],
        )

        assert ledger.stock_of_variant(variant.variant_id) == Decimal("5")
        assert record.donor_id is None

    def test_configured_approvers_used_when_none_injected(self, tmp_path):
        config_path = tmp_path / "ledger.yaml"
        data = yaml.safe_load(Path(get_active_config().source_path).read_text())
        data["database"]["url"] = f"sqlite:///{tmp_path / 'approvals.db'}"
        data["approval"]["approver_ids"] = ["chef-ana"]
        data["approval"]["default_signature_text"] = "Visto bueno"
        config_path.write_text(yaml.safe_dump(data))

        ledger = InventoryLedger.from_config(get_active_config(config_path))
        warehouse = ledger.create_warehouse("Cocina")
        variant = ledger.create_variant("frijol")
        lot_id = ledger.post_donation(
            None, date(2024, 1, 1), ACTOR,
            [DonationLine(variant.variant_id, warehouse.warehouse_id, Decimal("5"), Decimal("1"))],
        ).details[0].lot_id
        consumption = ledger.post_kitchen_consumption(lot_id, variant.variant_id, Decimal("1"), ACTOR)

        approved = ledger.approve_consumption(consumption.consumption_id, "chef-ana")
        assert approved.signature_text == "Visto bueno"
