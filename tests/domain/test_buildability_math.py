"""
Tests for the bottleneck calculation (stock_kernel/domain/buildability.py).
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from stock_kernel.domain.buildability import compute_sku_buildability, floor_units
from stock_kernel.domain.dtos import BomRequirement, ResolvedBom

SKU_ID = uuid4()


def _bom(*lines: tuple[str, str]) -> tuple[ResolvedBom, dict]:
    requirements = tuple(
        BomRequirement(component_id=uuid4(), component_name=name, quantity_per_unit=Decimal(qpu))
        for name, qpu in lines
    )
    bom = ResolvedBom(
        sku_id=SKU_ID, bom_version_id=uuid4(), version_name="v1", lines=requirements
    )
    by_name = {r.component_name: r.component_id for r in requirements}
    return bom, by_name


class TestFloorUnits:

    def test_floors_fractional_result(self):
        assert floor_units(Decimal("7"), Decimal("2")) == 3

    def test_fractional_quantity_per_unit(self):
        assert floor_units(Decimal("1"), Decimal("0.3")) == 3

    def test_negative_on_hand_is_not_clamped(self):
        assert floor_units(Decimal("-3"), Decimal("2")) == -2

    def test_zero_quantity_per_unit_rejected(self):
        with pytest.raises(ValueError):
            floor_units(Decimal("10"), Decimal("0"))


class TestComputeSkuBuildability:

    def test_single_bottleneck(self):
        """A: 2/unit, 100 on hand; B: 1/unit, 30; C: 3/unit, 200 -> 30, B binds."""
        bom, ids = _bom(("A", "2"), ("B", "1"), ("C", "3"))
        on_hand = {ids["A"]: Decimal("100"), ids["B"]: Decimal("30"), ids["C"]: Decimal("200")}

        result = compute_sku_buildability(SKU_ID, bom, on_hand)

        assert result.max_buildable == 30
        assert result.limiting_components == (ids["B"],)
        per_component = {c.component_id: c.component_max_buildable for c in result.components}
        assert per_component == {ids["A"]: 50, ids["B"]: 30, ids["C"]: 66}

    def test_ties_list_every_binding_component_in_bom_order(self):
        bom, ids = _bom(("A", "2"), ("B", "1"), ("C", "1"))
        on_hand = {ids["A"]: Decimal("60"), ids["B"]: Decimal("30"), ids["C"]: Decimal("500")}

        result = compute_sku_buildability(SKU_ID, bom, on_hand)

        assert result.max_buildable == 30
        assert result.limiting_components == (ids["A"], ids["B"])

    def test_missing_on_hand_counts_as_zero(self):
        bom, ids = _bom(("A", "1"), ("B", "1"))
        result = compute_sku_buildability(SKU_ID, bom, {ids["A"]: Decimal("10")})
        assert result.max_buildable == 0
        assert result.limiting_components == (ids["B"],)

    def test_no_bom_returns_none(self):
        result = compute_sku_buildability(SKU_ID, None, {})
        assert result.max_buildable is None
        assert result.bom_version_id is None
        assert not result.has_bom

    def test_bom_without_lines_returns_none(self):
        bom = ResolvedBom(sku_id=SKU_ID, bom_version_id=uuid4(), version_name="v1", lines=())
        result = compute_sku_buildability(SKU_ID, bom, {})
        assert result.max_buildable is None
        assert result.bom_version_id == bom.bom_version_id

    def test_overdrawn_component_yields_negative(self):
        bom, ids = _bom(("A", "1"))
        result = compute_sku_buildability(SKU_ID, bom, {ids["A"]: Decimal("-4")})
        assert result.max_buildable == -4
