"""Tests for BuildabilityService (stock_services/buildability_service.py)."""

from decimal import Decimal
from uuid import uuid4

import pytest

from stock_config.schema import TenantConfig
from stock_kernel.exceptions import AccessDeniedError, SkuNotFoundError
from stock_kernel.selectors.balance_selector import BalanceSelector
from stock_services.buildability_service import BuildabilityService


@pytest.fixture
def service(session):
    return BuildabilityService(session)


@pytest.fixture
def receive(ledger, warehouse, tenant_id, test_actor_id):
    def _receive(component, quantity, location=None):
        ledger.record_receipt(
            tenant_id, component.id, (location or warehouse).id, Decimal(quantity),
            actor_id=test_actor_id,
        )

    return _receive


@pytest.fixture
def kit(catalog, receive):
    """SKU needing 2 A, 1 B and 3 C with 100 A, 30 B and 200 C on hand."""
    a = catalog.component("A")
    b = catalog.component("B")
    c = catalog.component("C")
    receive(a, "100")
    receive(b, "30")
    receive(c, "200")
    sku = catalog.sku("Kit")
    catalog.bom(sku, [(a, "2"), (b, "1"), (c, "3")])
    return sku, a, b, c


class TestComputeBuildability:

    def test_bottleneck_component_limits(self, service, kit, tenant_id):
        sku, a, b, c = kit

        result = service.compute_buildability(tenant_id, sku.id)

        assert result.max_buildable == 30
        assert result.limiting_components == (b.id,)
        per_component = {row.component_id: row.component_max_buildable for row in result.components}
        assert per_component == {a.id: 50, b.id: 30, c.id: 66}

    def test_tied_components_all_limiting(self, service, catalog, receive, tenant_id):
        x = catalog.component()
        y = catalog.component()
        receive(x, "10")
        receive(y, "20")
        sku = catalog.sku()
        catalog.bom(sku, [(x, "1"), (y, "2")])

        result = service.compute_buildability(tenant_id, sku.id)

        assert result.max_buildable == 10
        assert set(result.limiting_components) == {x.id, y.id}

    def test_component_without_stock_gives_zero(self, service, catalog, tenant_id):
        sku = catalog.sku()
        catalog.bom(sku, [(catalog.component(), "1")])
        assert service.compute_buildability(tenant_id, sku.id).max_buildable == 0

    def test_sku_without_bom_is_none(self, service, catalog, tenant_id):
        result = service.compute_buildability(tenant_id, catalog.sku().id)
        assert result.max_buildable is None
        assert result.has_bom is False
        assert result.limiting_components == ()

    def test_location_scope(self, service, catalog, receive, kit, tenant_id):
        sku, a, b, c = kit
        store = catalog.location("Store")
        receive(a, "4", store)
        receive(b, "4", store)
        receive(c, "3", store)

        assert service.compute_buildability(tenant_id, sku.id, location_id=store.id).max_buildable == 1
        assert service.compute_buildability(tenant_id, sku.id).max_buildable == 34

    def test_unknown_sku_raises(self, service, tenant_id):
        with pytest.raises(SkuNotFoundError):
            service.compute_buildability(tenant_id, uuid4())

    def test_other_tenant_sku_denied(self, service, other_catalog, tenant_id):
        with pytest.raises(AccessDeniedError):
            service.compute_buildability(tenant_id, other_catalog.sku().id)


class TestBatch:

    def test_results_follow_input_order(self, service, catalog, kit, tenant_id):
        sku, *_ = kit
        bare = catalog.sku()

        results = service.compute_buildability(tenant_id, [bare.id, sku.id])

        assert [r.sku_id for r in results] == [bare.id, sku.id]
        assert [r.max_buildable for r in results] == [None, 30]

    def test_single_balance_query_for_batch(self, service, catalog, receive, kit, tenant_id, monkeypatch):
        sku, *_ = kit
        others = []
        for _ in range(3):
            component = catalog.component()
            receive(component, "5")
            other = catalog.sku()
            catalog.bom(other, [(component, "1")])
            others.append(other.id)

        calls = []
        original = BalanceSelector.get_quantities

        def spy(self, *args, **kwargs):
            calls.append(args)
            return original(self, *args, **kwargs)

        monkeypatch.setattr(BalanceSelector, "get_quantities", spy)

        results = service.compute_buildability(tenant_id, [sku.id, *others])

        assert len(calls) == 1
        assert [r.max_buildable for r in results] == [30, 5, 5, 5]

    def test_empty_batch(self, service, tenant_id):
        assert service.compute_buildability(tenant_id, []) == []


class TestPaging:

    @pytest.fixture
    def skus(self, catalog):
        return [catalog.sku(name) for name in ("Delta", "Alpha", "Charlie", "Bravo", "Echo")]

    def test_pages_ordered_by_name(self, service, skus, tenant_id):
        first = service.compute_buildability_page(tenant_id, page=1, page_size=2)
        third = service.compute_buildability_page(tenant_id, page=3, page_size=2)

        by_name = {sku.id: sku.name for sku in skus}
        assert first.total == 5
        assert [by_name[item.sku_id] for item in first.items] == ["Alpha", "Bravo"]
        assert [by_name[item.sku_id] for item in third.items] == ["Echo"]

    def test_page_size_capped_by_config(self, session, skus, tenant_id):
        service = BuildabilityService(session, TenantConfig(max_page_size=3))

        page = service.compute_buildability_page(tenant_id, page_size=50)

        assert page.page_size == 3
        assert len(page.items) == 3

    def test_inactive_skus_excluded(self, service, catalog, skus, tenant_id):
        catalog.sku("Retired", is_active=False)
        assert service.compute_buildability_page(tenant_id).total == 5

    def test_invalid_page_rejected(self, service, tenant_id):
        with pytest.raises(ValueError):
            service.compute_buildability_page(tenant_id, page=0)
