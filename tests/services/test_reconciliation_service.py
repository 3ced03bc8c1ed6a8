"""
Balance index reconciliation tests.

The index is a cache of the ledger; these tests corrupt it directly and
verify that ReconciliationService finds and repairs the damage.
"""

from decimal import Decimal

import pytest
from sqlalchemy import delete, select, update

from stock_kernel.domain.transaction_types import EntityKind
from stock_kernel.models.balance import InventoryBalance
from stock_kernel.services.reconciliation_service import ReconciliationService


@pytest.fixture
def reconciler(session, deterministic_clock):
    return ReconciliationService(session, deterministic_clock)


@pytest.fixture
def stocked(ledger, catalog, warehouse, tenant_id, test_actor_id):
    store = catalog.location("Store")
    component = catalog.component()
    ledger.record_receipt(tenant_id, component.id, warehouse.id, Decimal("100"), actor_id=test_actor_id)
    ledger.record_transfer(
        tenant_id, component.id, warehouse.id, store.id, Decimal("40"), actor_id=test_actor_id
    )
    ledger.record_outbound(tenant_id, component.id, store.id, Decimal("15"), actor_id=test_actor_id)
    return component, store


def _index_quantity(session, component_id, location_id):
    session.expire_all()
    return session.execute(
        select(InventoryBalance.quantity).where(
            InventoryBalance.entity_id == component_id,
            InventoryBalance.location_id == location_id,
        )
    ).scalar_one_or_none()


class TestFindDiscrepancies:

    def test_index_consistent_after_writes(self, reconciler, stocked, tenant_id):
        assert reconciler.find_discrepancies(tenant_id) == []

    def test_tampered_quantity_detected(self, session, reconciler, stocked, warehouse, tenant_id):
        component, _ = stocked
        session.execute(
            update(InventoryBalance)
            .where(
                InventoryBalance.entity_id == component.id,
                InventoryBalance.location_id == warehouse.id,
            )
            .values(quantity=Decimal("999"))
        )
        session.commit()

        [discrepancy] = reconciler.find_discrepancies(tenant_id)

        assert discrepancy.entity_kind == EntityKind.COMPONENT
        assert discrepancy.location_id == warehouse.id
        assert discrepancy.indexed_quantity == Decimal("999")
        assert discrepancy.ledger_quantity == Decimal("60")

    def test_missing_row_detected(self, session, reconciler, stocked, tenant_id):
        component, store = stocked
        session.execute(
            delete(InventoryBalance).where(
                InventoryBalance.entity_id == component.id,
                InventoryBalance.location_id == store.id,
            )
        )
        session.commit()

        [discrepancy] = reconciler.find_discrepancies(tenant_id)

        assert discrepancy.indexed_quantity is None
        assert discrepancy.ledger_quantity == Decimal("25")

    def test_scoped_to_tenant(self, session, reconciler, stocked, other_tenant_id):
        session.execute(update(InventoryBalance).values(quantity=Decimal("1")))
        session.commit()

        assert reconciler.find_discrepancies(other_tenant_id) == []


class TestRebuild:

    def test_rebuild_restores_ledger_totals(
        self, session, reconciler, stocked, warehouse, tenant_id
    ):
        component, store = stocked
        session.execute(update(InventoryBalance).values(quantity=Decimal("0")))
        session.execute(
            delete(InventoryBalance).where(InventoryBalance.location_id == store.id)
        )
        session.commit()

        fixed = reconciler.rebuild(tenant_id)

        assert len(fixed) == 2
        assert _index_quantity(session, component.id, warehouse.id) == Decimal("60")
        assert _index_quantity(session, component.id, store.id) == Decimal("25")
        assert reconciler.find_discrepancies(tenant_id) == []

    def test_rebuild_on_clean_index_is_noop(self, reconciler, stocked, tenant_id, captured_logs):
        assert reconciler.rebuild(tenant_id) == []

        completed = [r for r in captured_logs() if r["message"] == "balance_index_rebuild_completed"]
        assert completed and completed[0]["fixed_count"] == 0
