"""
Module: stock_kernel.selectors.balance_selector
Responsibility: Read-only stock balance queries derived from ledger lines.
    Net quantity per component or SKU, globally or at one location, single
    or batched, plus a per-location breakdown.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.  MUST NOT import from services/.

Invariants enforced:
    - Balances are computed from TransactionLine rows, never from the
      balance index.  balance(entity, scope) == sum of line deltas whose
      effective location matches scope.
    - Effective location of a line (see effective_location_expr):
        * non-transfer types: the line's own location
        * transfer, negative line: the header's from_location_id
        * transfer, positive line: the header's to_location_id
      Global balances need no special case: transfer lines sum to zero.
    - get_quantities returns an entry for every requested id (0 default)
      and issues no query for empty input.
    - Cross-tenant references raise AccessDeniedError; unknown ids raise
      EntityNotFoundError.  Nothing silently reads as zero.

Failure modes:
    - EntityNotFoundError, AccessDeniedError, LocationNotFoundError.
"""

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy import and_, case, func, select
from sqlalchemy.sql.elements import ColumnElement

from stock_kernel.domain.dtos import LocationQuantity
from stock_kernel.domain.transaction_types import (
    EntityKind,
    LocationRule,
    TransactionType,
    location_rule,
)
from stock_kernel.exceptions import AccessDeniedError, EntityNotFoundError
from stock_kernel.logging_config import get_logger
from stock_kernel.models.catalog import Component, Location, Sku
from stock_kernel.models.ledger import InventoryTransaction, TransactionLine
from stock_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.balance")

ZERO = Decimal("0")


def effective_location_expr() -> ColumnElement:
    """
    SQL expression for the location a ledger line counts at.

    Built from LOCATION_RULES so every transaction type is handled by
    its declared rule.  Requires TransactionLine joined to
    InventoryTransaction.
    """
    directional = [t for t in TransactionType if location_rule(t) is LocationRule.DIRECTIONAL]
    if not directional:
        return TransactionLine.location_id
    is_directional = InventoryTransaction.transaction_type.in_(directional)
    return case(
        (
            and_(is_directional, TransactionLine.quantity_delta < 0),
            InventoryTransaction.from_location_id,
        ),
        (is_directional, InventoryTransaction.to_location_id),
        else_=TransactionLine.location_id,
    )


class BalanceSelector(BaseSelector[TransactionLine]):
    """
    Ledger-derived stock balances.

    Contract:
        Every method takes the caller's tenant_id and verifies ownership of
        the referenced entities and location before summing.
    """

    def entity_kinds(
        self, entity_ids: Iterable[UUID], tenant_id: UUID
    ) -> dict[UUID, EntityKind]:
        """
        Resolve ids to component or SKU, enforcing tenant ownership.

        Raises:
            EntityNotFoundError: an id is neither a component nor a SKU.
            AccessDeniedError: an id belongs to another tenant.
        """
        ids = list(dict.fromkeys(entity_ids))
        owners: dict[UUID, tuple[EntityKind, UUID]] = {}
        for kind, model in ((EntityKind.COMPONENT, Component), (EntityKind.SKU, Sku)):
            for entity_id, owner in self._owners(model, ids).items():
                owners[entity_id] = (kind, owner)

        result: dict[UUID, EntityKind] = {}
        for entity_id in ids:
            if entity_id not in owners:
                raise EntityNotFoundError(str(entity_id))
            kind, owner = owners[entity_id]
            if owner != tenant_id:
                logger.warning(
                    "cross_tenant_balance_access_denied",
                    extra={"entity_id": str(entity_id), "tenant_id": str(tenant_id)},
                )
                raise AccessDeniedError(kind.value, str(entity_id), str(tenant_id))
            result[entity_id] = kind
        return result

    def _sum_query(self, tenant_id: UUID, location_id: UUID | None):
        stmt = (
            select(
                TransactionLine.entity_id,
                func.coalesce(func.sum(TransactionLine.quantity_delta), ZERO).label("total"),
            )
            .join(InventoryTransaction, TransactionLine.transaction_id == InventoryTransaction.id)
            .where(InventoryTransaction.tenant_id == tenant_id)
        )
        if location_id is not None:
            stmt = stmt.where(effective_location_expr() == location_id)
        return stmt

    def get_quantity(
        self,
        entity_id: UUID,
        tenant_id: UUID,
        location_id: UUID | None = None,
    ) -> Decimal:
        """
        Net quantity of one component or SKU.

        Args:
            entity_id: Component or SKU id.
            tenant_id: Caller's tenant.
            location_id: Restrict to one location; None for all locations.

        Returns:
            Signed total (negative when stock has been overdrawn).
        """
        return self.get_quantities([entity_id], tenant_id, location_id)[entity_id]

    def get_quantities(
        self,
        entity_ids: Iterable[UUID],
        tenant_id: UUID,
        location_id: UUID | None = None,
    ) -> dict[UUID, Decimal]:
        """
        Net quantities for many entities in one grouped query.

        Postconditions:
            - Every requested id is a key; ids without lines map to 0.
            - Empty input returns {} without touching the database.
        """
        ids = list(dict.fromkeys(entity_ids))
        if not ids:
            return {}

        self.entity_kinds(ids, tenant_id)
        if location_id is not None:
            self.verify_location(location_id, tenant_id)

        stmt = (
            self._sum_query(tenant_id, location_id)
            .where(TransactionLine.entity_id.in_(ids))
            .group_by(TransactionLine.entity_id)
        )
        totals = {row.entity_id: row.total for row in self.session.execute(stmt)}
        return {entity_id: totals.get(entity_id, ZERO) for entity_id in ids}

    def get_inventory_summary_by_location(
        self,
        entity_id: UUID,
        tenant_id: UUID,
    ) -> list[LocationQuantity]:
        """
        Per-location quantities of one entity.

        Locations where the entity nets to zero are omitted.  Rows are
        ordered by location name.
        """
        self.entity_kinds([entity_id], tenant_id)

        location_col = effective_location_expr().label("effective_location_id")
        lines = (
            select(location_col, TransactionLine.quantity_delta)
            .join(InventoryTransaction, TransactionLine.transaction_id == InventoryTransaction.id)
            .where(
                InventoryTransaction.tenant_id == tenant_id,
                TransactionLine.entity_id == entity_id,
            )
            .subquery()
        )
        stmt = select(
            lines.c.effective_location_id,
            func.sum(lines.c.quantity_delta).label("total"),
        ).group_by(lines.c.effective_location_id)
        totals = {
            row.effective_location_id: row.total
            for row in self.session.execute(stmt)
            if row.total != 0
        }
        if not totals:
            return []

        locations = self.session.execute(
            select(Location).where(Location.id.in_(list(totals)))
        ).scalars()
        summary = [
            LocationQuantity(
                location_id=loc.id,
                location_name=loc.name,
                location_type=loc.location_type,
                quantity=totals[loc.id],
            )
            for loc in locations
        ]
        summary.sort(key=lambda row: (row.location_name, str(row.location_id)))
        return summary
