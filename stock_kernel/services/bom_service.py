"""
BomService -- administration of bill-of-materials versions.

Responsibility:
    Creates BOM versions with validated lines, activates a version (which
    deactivates every sibling of the same SKU), clones a version as the
    starting point for a revision, and prices a version at current
    component costs.

Architecture position:
    Kernel > Services -- imperative shell, owns its unit of work.

Invariants enforced:
    - quantity_per_unit > 0 and each component at most once per version
      (InvalidBOMLineError before any write; CHECK/UNIQUE constraints as
      backstop).
    - At most one active version per SKU.  Siblings are deactivated and
      flushed before the new version is marked active so the partial
      unique index never sees two active rows.
    - Every referenced SKU and component belongs to the caller's tenant.
"""

from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock
from stock_kernel.exceptions import (
    AccessDeniedError,
    BomVersionNotFoundError,
    ComponentNotFoundError,
    InvalidBOMLineError,
    SkuNotFoundError,
)
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.models.bom import BomLine, BomVersion
from stock_kernel.models.catalog import Component, Sku
from stock_kernel.selectors.bom_selector import BomSelector
from stock_kernel.services.base import OwningService

logger = get_logger("services.bom")


def _validate_lines(lines: Sequence[tuple[UUID, Decimal]]) -> list[tuple[UUID, Decimal]]:
    seen: set[UUID] = set()
    validated = []
    for component_id, quantity_per_unit in lines:
        quantity_per_unit = Decimal(quantity_per_unit)
        if quantity_per_unit <= 0:
            raise InvalidBOMLineError(
                str(component_id), f"quantity_per_unit must be positive, got {quantity_per_unit}"
            )
        if component_id in seen:
            raise InvalidBOMLineError(str(component_id), "component listed more than once")
        seen.add(component_id)
        validated.append((component_id, quantity_per_unit))
    return validated


class BomService(OwningService):
    """Versioned BOM administration."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
    ):
        super().__init__(session, clock, auto_commit)
        self._selector = BomSelector(session)

    def _version(self, tenant_id: UUID, bom_version_id: UUID) -> BomVersion:
        version = self._session.get(BomVersion, bom_version_id)
        if version is None:
            raise BomVersionNotFoundError(str(bom_version_id))
        if version.tenant_id != tenant_id:
            raise AccessDeniedError("bom_version", str(bom_version_id), str(tenant_id))
        return version

    def _verify_components(self, tenant_id: UUID, component_ids: list[UUID]) -> None:
        if not component_ids:
            return
        owners = {
            row.id: row.tenant_id
            for row in self._session.execute(
                select(Component.id, Component.tenant_id).where(Component.id.in_(component_ids))
            )
        }
        for component_id in component_ids:
            if component_id not in owners:
                raise ComponentNotFoundError(str(component_id))
            if owners[component_id] != tenant_id:
                raise AccessDeniedError("component", str(component_id), str(tenant_id))

    def _activate(self, version: BomVersion, actor_id: UUID) -> None:
        today = self._clock.today()
        siblings = self._session.execute(
            select(BomVersion).where(
                BomVersion.sku_id == version.sku_id,
                BomVersion.is_active.is_(True),
                BomVersion.id != version.id,
            )
        ).scalars()
        for sibling in siblings:
            sibling.is_active = False
            sibling.effective_end_date = today
            sibling.updated_by_id = actor_id
        self._session.flush()

        version.is_active = True
        version.effective_start_date = today
        version.effective_end_date = None
        version.updated_by_id = actor_id
        self._session.flush()

    def create_bom_version(
        self,
        tenant_id: UUID,
        sku_id: UUID,
        version_name: str,
        lines: Sequence[tuple[UUID, Decimal]],
        *,
        actor_id: UUID,
        activate: bool = False,
        notes: str | None = None,
    ) -> UUID:
        """
        Create a BOM version for a SKU.

        ``lines`` is a sequence of (component_id, quantity_per_unit) in
        the order they should be listed.

        Raises:
            InvalidBOMLineError: non-positive quantity or repeated component.
            SkuNotFoundError / ComponentNotFoundError / AccessDeniedError.
        """
        validated = _validate_lines(lines)

        with LogContext.bind(tenant_id=tenant_id, actor_id=actor_id), self._unit_of_work(
            "bom_version_creation",
            sku_id=str(sku_id),
            version_name=version_name,
            line_count=len(validated),
            activate=activate,
        ) as result:
            sku = self._session.get(Sku, sku_id)
            if sku is None:
                raise SkuNotFoundError(str(sku_id))
            if sku.tenant_id != tenant_id:
                raise AccessDeniedError("sku", str(sku_id), str(tenant_id))
            self._verify_components(tenant_id, [component_id for component_id, _ in validated])

            version = BomVersion(
                tenant_id=tenant_id,
                sku_id=sku.id,
                version_name=version_name,
                is_active=False,
                notes=notes,
                created_by_id=actor_id,
            )
            for position, (component_id, quantity_per_unit) in enumerate(validated):
                version.lines.append(
                    BomLine(
                        component_id=component_id,
                        quantity_per_unit=quantity_per_unit,
                        position=position,
                    )
                )
            self._session.add(version)
            self._session.flush()

            if activate:
                self._activate(version, actor_id)
            result["bom_version_id"] = str(version.id)
        return version.id

    def activate_bom_version(self, tenant_id: UUID, bom_version_id: UUID, *, actor_id: UUID) -> None:
        """Make a version the SKU's only active BOM."""
        with LogContext.bind(tenant_id=tenant_id, actor_id=actor_id), self._unit_of_work(
            "bom_version_activation",
            bom_version_id=str(bom_version_id),
        ):
            version = self._version(tenant_id, bom_version_id)
            if not version.is_active:
                self._activate(version, actor_id)

    def clone_bom_version(
        self,
        tenant_id: UUID,
        bom_version_id: UUID,
        version_name: str,
        *,
        actor_id: UUID,
    ) -> UUID:
        """Copy a version's lines into a new inactive version of the same SKU."""
        with LogContext.bind(tenant_id=tenant_id, actor_id=actor_id), self._unit_of_work(
            "bom_version_clone",
            source_bom_version_id=str(bom_version_id),
            version_name=version_name,
        ) as result:
            source = self._version(tenant_id, bom_version_id)
            clone = BomVersion(
                tenant_id=tenant_id,
                sku_id=source.sku_id,
                version_name=version_name,
                is_active=False,
                notes=source.notes,
                created_by_id=actor_id,
            )
            for line in source.lines:
                clone.lines.append(
                    BomLine(
                        component_id=line.component_id,
                        quantity_per_unit=line.quantity_per_unit,
                        position=line.position,
                        notes=line.notes,
                    )
                )
            self._session.add(clone)
            self._session.flush()
            result["bom_version_id"] = str(clone.id)
        return clone.id

    def calculate_unit_cost(self, tenant_id: UUID, bom_version_id: UUID) -> Decimal:
        """Sum of quantity_per_unit x current component unit cost."""
        return self._selector.get_bom_version(bom_version_id, tenant_id).unit_cost
