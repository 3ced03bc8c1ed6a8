"""
stock_services.buildability_service -- how many units of each SKU can be built.

Responsibility:
    Resolves the active BOM of each requested SKU, fetches the on-hand
    quantity of every component involved in ONE batched balance query, and
    applies the bottleneck calculation (domain/buildability.py).

Architecture position:
    Services -- read-only orchestration over kernel selectors + domain.
    Never writes; the session is used for reads only.

Invariants enforced:
    - A batch of N SKUs issues exactly one balance query regardless of N.
    - Results come back in input order.
    - A SKU without an active BOM (or with an empty one) is a steady state:
      max_buildable is None, no error.
    - Negative on-hand yields negative buildability (not clamped) so an
      overdrawn component shows up as a deficit.

Failure modes:
    - SkuNotFoundError / AccessDeniedError for unknown or foreign SKU ids.
    - LocationNotFoundError / AccessDeniedError for a bad location scope.

Usage:
    service = BuildabilityService(session, config)
    result = service.compute_buildability(tenant_id, sku_id)
    results = service.compute_buildability(tenant_id, [sku_a, sku_b])
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stock_config.schema import TenantConfig
from stock_kernel.domain.buildability import compute_sku_buildability
from stock_kernel.domain.dtos import BuildabilityPage, SkuBuildability
from stock_kernel.logging_config import get_logger
from stock_kernel.models.catalog import Sku
from stock_kernel.selectors.balance_selector import BalanceSelector
from stock_kernel.selectors.bom_selector import BomSelector

logger = get_logger("services.buildability")


class BuildabilityService:
    """
    Buildable-unit calculator.

    Contract:
        Receives a Session and an explicit TenantConfig via constructor
        injection.  Returns frozen SkuBuildability DTOs.
    Non-goals:
        - Does not reserve stock or account for in-flight orders.
        - Does not recurse into sub-assemblies; BOMs are one level deep.
    """

    def __init__(self, session: Session, config: TenantConfig | None = None):
        self._session = session
        self._config = config or TenantConfig()
        self._balances = BalanceSelector(session)
        self._boms = BomSelector(session)

    def compute_buildability(
        self,
        tenant_id: UUID,
        sku_ids: UUID | Sequence[UUID],
        location_id: UUID | None = None,
    ) -> SkuBuildability | list[SkuBuildability]:
        """
        Buildable units for one SKU or a batch of SKUs.

        Args:
            tenant_id: Caller's tenant.
            sku_ids: A single SKU id (returns one result) or a sequence of
                ids (returns a list in the same order).
            location_id: Count only stock at this location; None for all.
        """
        if isinstance(sku_ids, UUID):
            return self._compute_batch(tenant_id, [sku_ids], location_id)[0]
        return self._compute_batch(tenant_id, list(sku_ids), location_id)

    def _compute_batch(
        self,
        tenant_id: UUID,
        sku_ids: list[UUID],
        location_id: UUID | None,
    ) -> list[SkuBuildability]:
        if not sku_ids:
            return []

        t0 = time.monotonic()
        boms = self._boms.get_active_boms(sku_ids, tenant_id)

        component_ids = list(
            dict.fromkeys(
                component_id
                for bom in boms.values()
                if bom is not None
                for component_id in bom.component_ids
            )
        )
        on_hand = self._balances.get_quantities(component_ids, tenant_id, location_id)

        results = [compute_sku_buildability(sku_id, boms[sku_id], on_hand) for sku_id in sku_ids]

        logger.info(
            "buildability_computed",
            extra={
                "tenant_id": str(tenant_id),
                "sku_count": len(sku_ids),
                "component_count": len(component_ids),
                "location_id": str(location_id) if location_id else None,
                "without_bom": sum(1 for r in results if not r.has_bom),
                "duration_ms": round((time.monotonic() - t0) * 1000, 2),
            },
        )
        return results

    def compute_buildability_page(
        self,
        tenant_id: UUID,
        page: int = 1,
        page_size: int | None = None,
        location_id: UUID | None = None,
    ) -> BuildabilityPage:
        """
        Buildability of the tenant's active SKUs, ordered by name.

        page_size defaults to and is capped at the tenant's max_page_size.
        """
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        size = min(page_size or self._config.max_page_size, self._config.max_page_size)
        if size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")

        filters = (Sku.tenant_id == tenant_id, Sku.is_active.is_(True))
        total = self._session.execute(select(func.count()).select_from(Sku).where(*filters)).scalar_one()
        sku_ids = list(
            self._session.execute(
                select(Sku.id)
                .where(*filters)
                .order_by(Sku.name, Sku.id)
                .offset((page - 1) * size)
                .limit(size)
            ).scalars()
        )
        items = self._compute_batch(tenant_id, sku_ids, location_id)
        return BuildabilityPage(items=tuple(items), total=total, page=page, page_size=size)
