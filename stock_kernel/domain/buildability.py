"""
Buildability bottleneck computation -- pure functions.

Responsibility:
    Given a resolved BOM and a map of on-hand quantities, compute how many
    whole units of the SKU can be built and which components bind.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Balances are fetched in one batch
    by stock_services.buildability_service and passed in.

Rules:
    component_max_buildable = floor(on_hand / quantity_per_unit)
    max_buildable           = min over all BOM lines
    limiting_components     = every component whose value equals the minimum,
                              in BOM line order (ties are all reported)

    On-hand below zero yields a negative component figure.  It is not
    clamped: a negative buildable count reports how far stock is behind.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal
from typing import Mapping
from uuid import UUID

from stock_kernel.domain.dtos import ComponentBuildability, ResolvedBom, SkuBuildability


def floor_units(on_hand: Decimal, quantity_per_unit: Decimal) -> int:
    """Whole units coverable by ``on_hand`` at ``quantity_per_unit`` each.

    Raises:
        ValueError: quantity_per_unit <= 0.
    """
    if quantity_per_unit <= 0:
        raise ValueError(
            f"quantity_per_unit must be positive, got {quantity_per_unit}"
        )
    return int((on_hand / quantity_per_unit).to_integral_value(rounding=ROUND_FLOOR))


def no_bom_result(sku_id: UUID, bom_version_id: UUID | None = None) -> SkuBuildability:
    return SkuBuildability(sku_id=sku_id, bom_version_id=bom_version_id, max_buildable=None)


def compute_sku_buildability(
    sku_id: UUID,
    bom: ResolvedBom | None,
    on_hand: Mapping[UUID, Decimal],
) -> SkuBuildability:
    """
    Compute buildable units for one SKU from a shared on-hand map.

    Preconditions:
        - ``on_hand`` has an entry for every BOM component (missing entries
          count as zero).
    Postconditions:
        - No active BOM, or one without lines, returns max_buildable=None.
        - Otherwise every component entry carries is_binding and
          limiting_components lists all binding components in BOM order.
    """
    if bom is None:
        return no_bom_result(sku_id)
    if not bom.lines:
        return no_bom_result(sku_id, bom.bom_version_id)

    per_component = [
        (line, on_hand.get(line.component_id, Decimal("0")))
        for line in bom.lines
    ]
    maxima = [floor_units(qty, line.quantity_per_unit) for line, qty in per_component]
    max_buildable = min(maxima)

    components = tuple(
        ComponentBuildability(
            component_id=line.component_id,
            component_name=line.component_name,
            quantity_per_unit=line.quantity_per_unit,
            on_hand=qty,
            component_max_buildable=component_max,
            is_binding=component_max == max_buildable,
        )
        for (line, qty), component_max in zip(per_component, maxima)
    )

    return SkuBuildability(
        sku_id=sku_id,
        bom_version_id=bom.bom_version_id,
        max_buildable=max_buildable,
        limiting_components=tuple(c.component_id for c in components if c.is_binding),
        components=components,
    )
