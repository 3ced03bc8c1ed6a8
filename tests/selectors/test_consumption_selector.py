"""
Tests for historical consumption totals
(stock_kernel/selectors/consumption_selector.py).
"""

from datetime import date
from decimal import Decimal

import pytest

from stock_kernel.domain.transaction_types import TransactionType
from stock_kernel.selectors.consumption_selector import ConsumptionSelector

START = date(2024, 5, 16)
END = date(2024, 6, 15)


@pytest.fixture
def selector(session):
    return ConsumptionSelector(session)


@pytest.fixture
def stocked(ledger, catalog, warehouse, tenant_id, test_actor_id):
    component = catalog.component()
    ledger.record_initial(
        tenant_id, component.id, warehouse.id, Decimal("1000"),
        actor_id=test_actor_id, transaction_date=date(2024, 1, 1),
    )
    return component


class TestGetConsumption:

    def test_counts_negative_deltas_as_magnitude(
        self, selector, ledger, stocked, warehouse, tenant_id, test_actor_id
    ):
        ledger.record_outbound(tenant_id, stocked.id, warehouse.id, Decimal("30"), actor_id=test_actor_id)
        ledger.record_outbound(tenant_id, stocked.id, warehouse.id, Decimal("12"), actor_id=test_actor_id)
        ledger.record_receipt(tenant_id, stocked.id, warehouse.id, Decimal("500"), actor_id=test_actor_id)

        result = selector.get_consumption([stocked.id], tenant_id, START, END)

        assert result == {stocked.id: Decimal("42")}

    def test_window_bounds_are_inclusive(
        self, selector, ledger, stocked, warehouse, tenant_id, test_actor_id
    ):
        for day, qty in ((date(2024, 5, 15), "1"), (START, "2"), (END, "4")):
            ledger.record_outbound(
                tenant_id, stocked.id, warehouse.id, Decimal(qty),
                actor_id=test_actor_id, transaction_date=day,
            )

        assert selector.get_consumption([stocked.id], tenant_id, START, END)[stocked.id] == Decimal("6")

    def test_excluded_types_ignored(self, selector, ledger, stocked, warehouse, tenant_id, test_actor_id):
        ledger.record_adjustment(
            tenant_id, stocked.id, warehouse.id, Decimal("-50"), "damaged", actor_id=test_actor_id
        )
        ledger.record_outbound(tenant_id, stocked.id, warehouse.id, Decimal("5"), actor_id=test_actor_id)

        included = selector.get_consumption([stocked.id], tenant_id, START, END)
        excluded = selector.get_consumption(
            [stocked.id], tenant_id, START, END, excluded_types=[TransactionType.ADJUSTMENT]
        )

        assert included[stocked.id] == Decimal("55")
        assert excluded[stocked.id] == Decimal("5")

    def test_outbound_cannot_be_excluded(self, selector, stocked, tenant_id):
        with pytest.raises(ValueError):
            selector.get_consumption(
                [stocked.id], tenant_id, START, END, excluded_types=[TransactionType.OUTBOUND]
            )

    def test_transfers_count_at_source_location_only(
        self, selector, ledger, catalog, stocked, warehouse, tenant_id, test_actor_id
    ):
        store = catalog.location("Store")
        ledger.record_transfer(
            tenant_id, stocked.id, warehouse.id, store.id, Decimal("25"), actor_id=test_actor_id
        )

        at_source = selector.get_consumption([stocked.id], tenant_id, START, END, location_id=warehouse.id)
        at_destination = selector.get_consumption([stocked.id], tenant_id, START, END, location_id=store.id)

        assert at_source[stocked.id] == Decimal("25")
        assert at_destination[stocked.id] == Decimal("0")

    def test_global_transfer_exclusion(self, selector, ledger, catalog, stocked, warehouse, tenant_id, test_actor_id):
        store = catalog.location("Store")
        ledger.record_transfer(
            tenant_id, stocked.id, warehouse.id, store.id, Decimal("25"), actor_id=test_actor_id
        )

        result = selector.get_consumption(
            [stocked.id], tenant_id, START, END, excluded_types=[TransactionType.TRANSFER]
        )

        assert result[stocked.id] == Decimal("0")

    def test_unconsumed_component_is_zero(self, selector, catalog, tenant_id):
        idle = catalog.component()
        assert selector.get_consumption([idle.id], tenant_id, START, END) == {idle.id: Decimal("0")}
