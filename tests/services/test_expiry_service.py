"""Tests for ExpiryService (stock_services/expiry_service.py)."""

from datetime import date
from decimal import Decimal

import pytest

from stock_config.schema import TenantConfig
from stock_services.expiry_service import ExpiryService


@pytest.fixture
def dated_lots(catalog, ledger, warehouse, tenant_id, test_actor_id):
    """Lots expiring 14 days ago, in 16 days and in 77 days (today is 2024-06-15)."""
    component = catalog.component("Resin", is_lot_tracked=True)
    for code, expiry in (
        ("PAST", date(2024, 6, 1)),
        ("JULY", date(2024, 7, 1)),
        ("AUGUST", date(2024, 8, 31)),
    ):
        ledger.record_receipt(
            tenant_id, component.id, warehouse.id, Decimal("2"),
            actor_id=test_actor_id, lot_code=code, expiry_date=expiry,
        )
    return component


def _codes(lots):
    return [lot.lot_code for lot in lots]


class TestExpiryService:

    def test_default_window_is_thirty_days(self, session, deterministic_clock, dated_lots, tenant_id):
        service = ExpiryService(session, clock=deterministic_clock)
        assert _codes(service.find_expiring_lots(tenant_id)) == ["PAST", "JULY"]

    def test_tenant_window_is_used(self, session, deterministic_clock, dated_lots, tenant_id):
        service = ExpiryService(session, TenantConfig(expiry_warning_days=90), deterministic_clock)
        assert _codes(service.find_expiring_lots(tenant_id)) == ["PAST", "JULY", "AUGUST"]

    def test_zero_window_reports_only_expired(self, session, deterministic_clock, dated_lots, tenant_id):
        service = ExpiryService(session, TenantConfig(expiry_warning_days=0), deterministic_clock)
        assert _codes(service.find_expiring_lots(tenant_id)) == ["PAST"]

    def test_exclude_expired(self, session, deterministic_clock, dated_lots, tenant_id):
        service = ExpiryService(session, TenantConfig(expiry_warning_days=90), deterministic_clock)
        assert _codes(service.find_expiring_lots(tenant_id, include_expired=False)) == ["JULY", "AUGUST"]

    def test_logs_window(self, session, deterministic_clock, dated_lots, tenant_id, captured_logs):
        ExpiryService(session, TenantConfig(expiry_warning_days=45), deterministic_clock).find_expiring_lots(tenant_id)

        record = next(r for r in captured_logs() if r["message"] == "expiring_lots_found")
        assert record["warning_days"] == 45
        assert record["lot_count"] == 2
