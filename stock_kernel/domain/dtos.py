"""
Domain DTOs -- frozen value objects that cross layer boundaries.

Responsibility:
    Immutable result and instruction types shared by the ledger writer,
    selectors and computation services.  Selectors and services return
    these rather than ORM instances.

Architecture position:
    Kernel > Domain -- pure, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from stock_kernel.domain.transaction_types import EntityKind


@dataclass(frozen=True)
class LineSpec:
    """Instruction to post one ledger line."""

    entity_kind: EntityKind
    entity_id: UUID
    quantity_delta: Decimal
    location_id: UUID
    cost_per_unit: Decimal | None = None
    lot_id: UUID | None = None


@dataclass(frozen=True)
class LocationQuantity:
    """Net quantity of one entity at one location."""

    location_id: UUID
    location_name: str
    location_type: str
    quantity: Decimal


@dataclass(frozen=True)
class ComponentBuildability:
    """One BOM line's contribution to a SKU's buildable units."""

    component_id: UUID
    component_name: str
    quantity_per_unit: Decimal
    on_hand: Decimal
    component_max_buildable: int
    is_binding: bool


@dataclass(frozen=True)
class SkuBuildability:
    """
    Buildable units of a SKU.

    max_buildable is None when the SKU has no usable active BOM; in that
    case limiting_components and components are empty.
    """

    sku_id: UUID
    bom_version_id: UUID | None
    max_buildable: int | None
    limiting_components: tuple[UUID, ...] = ()
    components: tuple[ComponentBuildability, ...] = ()

    @property
    def has_bom(self) -> bool:
        return self.max_buildable is not None


@dataclass(frozen=True)
class BuildabilityPage:
    items: tuple[SkuBuildability, ...]
    total: int
    page: int
    page_size: int


class ReorderStatus(str, Enum):
    """Stock level relative to the component's reorder point."""

    CRITICAL = "critical"
    WARNING = "warning"
    OK = "ok"


@dataclass(frozen=True)
class ForecastAssumptions:
    """The parameters a forecast row was computed with."""

    lookback_days: int
    safety_days: int
    lead_time_days: int
    excluded_transaction_types: tuple[str, ...]


@dataclass(frozen=True)
class ComponentForecast:
    """
    Consumption forecast for one component.

    runout_date, days_until_runout and recommended_reorder_date are all
    None when there was no qualifying consumption in the lookback window.
    recommended_reorder_date may lie in the past (reorder overdue).
    """

    component_id: UUID
    component_name: str
    sku_code: str
    current_on_hand: Decimal
    total_consumed: Decimal
    average_daily_consumption: Decimal
    days_until_runout: int | None
    runout_date: date | None
    recommended_reorder_date: date | None
    recommended_reorder_qty: Decimal
    reorder_point: Decimal
    reorder_status: ReorderStatus
    assumptions: ForecastAssumptions

    @property
    def is_at_risk(self) -> bool:
        return self.recommended_reorder_date is not None


@dataclass(frozen=True)
class ForecastPage:
    items: tuple[ComponentForecast, ...]
    total: int
    page: int
    page_size: int


@dataclass(frozen=True)
class LotAllocation:
    """Quantity drawn from one lot by a FEFO walk."""

    lot_id: UUID
    lot_code: str
    quantity: Decimal
    expiry_date: date | None = None


@dataclass(frozen=True)
class LotDraw:
    """
    Outcome of a FEFO walk over a set of lots.

    ``unallocated`` is the part of the requested quantity the lots could
    not cover; it is only non-zero when partial draws were allowed.
    """

    allocations: tuple[LotAllocation, ...] = field(default_factory=tuple)
    unallocated: Decimal = Decimal("0")

    @property
    def allocated(self) -> Decimal:
        return sum((a.quantity for a in self.allocations), Decimal("0"))


@dataclass(frozen=True)
class BalanceDiscrepancy:
    """A balance index row that disagrees with the ledger."""

    tenant_id: UUID
    entity_kind: EntityKind
    entity_id: UUID
    location_id: UUID
    indexed_quantity: Decimal | None
    ledger_quantity: Decimal

    @property
    def difference(self) -> Decimal:
        return self.ledger_quantity - (self.indexed_quantity or Decimal("0"))


@dataclass(frozen=True)
class BomRequirement:
    """One line of a resolved BOM: a component and its quantity per unit."""

    component_id: UUID
    component_name: str
    quantity_per_unit: Decimal
    unit_cost: Decimal = Decimal("0")
    is_lot_tracked: bool = False


@dataclass(frozen=True)
class ResolvedBom:
    """The active BOM version of a SKU with its lines in BOM order."""

    sku_id: UUID
    bom_version_id: UUID
    version_name: str
    lines: tuple[BomRequirement, ...]

    @property
    def component_ids(self) -> tuple[UUID, ...]:
        return tuple(line.component_id for line in self.lines)

    @property
    def unit_cost(self) -> Decimal:
        return sum(
            (line.quantity_per_unit * line.unit_cost for line in self.lines),
            Decimal("0"),
        )


@dataclass(frozen=True)
class LotInfo:
    """Read-only view of a lot."""

    lot_id: UUID
    component_id: UUID
    location_id: UUID
    lot_code: str
    expiry_date: date | None
    received_date: date
    remaining_quantity: Decimal
