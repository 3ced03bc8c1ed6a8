"""
Module: stock_kernel.selectors.bom_selector
Responsibility: Resolves the single active BOM version of a SKU (or of many
    SKUs at once) into a frozen ResolvedBom with component details.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - At most one active version per SKU is guaranteed by the schema; the
      resolver returns it or None.  None is a steady state (the SKU simply
      has no recipe yet), not an error.
    - Lines are returned in BOM position order.
    - SKU ids are verified against the caller's tenant.

Failure modes:
    - SkuNotFoundError for unknown SKU ids.
    - AccessDeniedError for SKUs of another tenant.
    - BomVersionNotFoundError from get_bom_version for unknown version ids.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select

from stock_kernel.domain.dtos import BomRequirement, ResolvedBom
from stock_kernel.exceptions import AccessDeniedError, BomVersionNotFoundError, SkuNotFoundError
from stock_kernel.models.bom import BomVersion
from stock_kernel.models.catalog import Component, Sku
from stock_kernel.selectors.base import BaseSelector


class BomSelector(BaseSelector[BomVersion]):
    """Read access to bills of materials."""

    def verify_skus(self, sku_ids: Iterable[UUID], tenant_id: UUID) -> list[UUID]:
        ids = list(dict.fromkeys(sku_ids))
        owners = self._owners(Sku, ids)
        for sku_id in ids:
            if sku_id not in owners:
                raise SkuNotFoundError(str(sku_id))
            if owners[sku_id] != tenant_id:
                raise AccessDeniedError("sku", str(sku_id), str(tenant_id))
        return ids

    def _resolve(self, versions: list[BomVersion]) -> dict[UUID, ResolvedBom]:
        component_ids = {line.component_id for v in versions for line in v.lines}
        components = {}
        if component_ids:
            components = {
                c.id: c
                for c in self.session.execute(
                    select(Component).where(Component.id.in_(component_ids))
                ).scalars()
            }

        resolved = {}
        for version in versions:
            lines = []
            for line in version.lines:
                component = components[line.component_id]
                lines.append(
                    BomRequirement(
                        component_id=line.component_id,
                        component_name=component.name,
                        quantity_per_unit=line.quantity_per_unit,
                        unit_cost=component.unit_cost,
                        is_lot_tracked=component.is_lot_tracked,
                    )
                )
            resolved[version.id] = ResolvedBom(
                sku_id=version.sku_id,
                bom_version_id=version.id,
                version_name=version.version_name,
                lines=tuple(lines),
            )
        return resolved

    def get_active_bom(self, sku_id: UUID, tenant_id: UUID) -> ResolvedBom | None:
        """The active BOM of one SKU, or None when it has none."""
        return self.get_active_boms([sku_id], tenant_id)[sku_id]

    def get_active_boms(
        self, sku_ids: Iterable[UUID], tenant_id: UUID
    ) -> dict[UUID, ResolvedBom | None]:
        """
        Active BOMs for many SKUs with a single version query.

        Postconditions:
            - Every requested SKU id is a key; SKUs without an active
              version map to None.
        """
        ids = self.verify_skus(sku_ids, tenant_id)
        if not ids:
            return {}

        versions = list(
            self.session.execute(
                select(BomVersion).where(
                    BomVersion.sku_id.in_(ids),
                    BomVersion.tenant_id == tenant_id,
                    BomVersion.is_active.is_(True),
                )
            ).scalars()
        )
        by_sku = {bom.sku_id: bom for bom in self._resolve(versions).values()}
        return {sku_id: by_sku.get(sku_id) for sku_id in ids}

    def get_bom_version(self, bom_version_id: UUID, tenant_id: UUID) -> ResolvedBom:
        """Any BOM version (active or not) by id."""
        version = self.session.get(BomVersion, bom_version_id)
        if version is None:
            raise BomVersionNotFoundError(str(bom_version_id))
        if version.tenant_id != tenant_id:
            raise AccessDeniedError("bom_version", str(bom_version_id), str(tenant_id))
        return self._resolve([version])[version.id]
