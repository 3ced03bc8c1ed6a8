"""
Tests for LotService (stock_kernel/services/lot_service.py).

Covers lot listing, expiring-lot discovery, and draw application.
"""

from datetime import date
from decimal import Decimal

import pytest

from stock_kernel.exceptions import InsufficientInventoryError
from stock_kernel.services.lot_service import LotService


@pytest.fixture
def lots(session, deterministic_clock):
    return LotService(session, deterministic_clock)


@pytest.fixture
def tracked(catalog, ledger, warehouse, tenant_id, test_actor_id):
    """Lot-tracked component with an expired, a soon-expiring and an undated lot."""
    component = catalog.component("Yeast", is_lot_tracked=True)
    for code, qty, expiry in (
        ("EXPIRED", "3", date(2024, 6, 1)),
        ("SOON", "4", date(2024, 7, 1)),
        ("LATER", "5", date(2025, 1, 1)),
        ("UNDATED", "6", None),
    ):
        ledger.record_receipt(
            tenant_id, component.id, warehouse.id, Decimal(qty),
            actor_id=test_actor_id, lot_code=code, expiry_date=expiry,
        )
    return component


class TestGetLots:

    def test_lots_in_fefo_order(self, lots, tracked, tenant_id):
        codes = [lot.lot_code for lot in lots.get_lots(tenant_id, tracked.id)]
        assert codes == ["EXPIRED", "SOON", "LATER", "UNDATED"]

    def test_empty_lots_hidden_by_default(
        self, lots, ledger, tracked, warehouse, tenant_id, test_actor_id
    ):
        ledger.record_outbound(tenant_id, tracked.id, warehouse.id, Decimal("3"), actor_id=test_actor_id)

        assert "EXPIRED" not in [lot.lot_code for lot in lots.get_lots(tenant_id, tracked.id)]
        all_lots = lots.get_lots(tenant_id, tracked.id, include_empty=True)
        assert [lot.remaining_quantity for lot in all_lots][0] == Decimal("0")

    def test_other_tenant_sees_nothing(self, lots, tracked, other_tenant_id):
        assert lots.get_lots(other_tenant_id, tracked.id) == []


class TestFindExpiringLots:

    def test_within_warning_window(self, lots, tracked, tenant_id):
        codes = [lot.lot_code for lot in lots.find_expiring_lots(tenant_id, warning_days=30)]
        assert codes == ["EXPIRED", "SOON"]

    def test_exclude_already_expired(self, lots, tracked, tenant_id):
        codes = [
            lot.lot_code
            for lot in lots.find_expiring_lots(tenant_id, warning_days=30, include_expired=False)
        ]
        assert codes == ["SOON"]

    def test_window_defaults_to_service_setting(self, session, deterministic_clock, tracked, tenant_id):
        wide = LotService(session, deterministic_clock, expiry_warning_days=365)

        codes = [lot.lot_code for lot in wide.find_expiring_lots(tenant_id)]
        assert codes == ["EXPIRED", "SOON", "LATER"]


class TestDraws:

    def test_plan_then_apply(self, session, lots, tracked, warehouse):
        available = lots.available_lots(tracked.id, warehouse.id)
        draw = lots.plan_draw(available, Decimal("5"), tracked.id)
        lots.apply_draw(draw)

        remaining = {lot.lot_code: lot.remaining_quantity for lot in available}
        assert remaining["EXPIRED"] == Decimal("0")
        assert remaining["SOON"] == Decimal("2")

    def test_plan_can_skip_expired(self, lots, tracked, warehouse):
        available = lots.available_lots(tracked.id, warehouse.id)
        draw = lots.plan_draw(available, Decimal("5"), tracked.id, exclude_expired=True)
        assert [a.lot_code for a in draw.allocations] == ["SOON", "LATER"]

    def test_plan_larger_than_lots_raises(self, lots, tracked, warehouse):
        available = lots.available_lots(tracked.id, warehouse.id)
        with pytest.raises(InsufficientInventoryError):
            lots.plan_draw(available, Decimal("100"), tracked.id)
