"""
ReconciliationService -- verifies and rebuilds the balance index.

Responsibility:
    Recomputes every (tenant, entity, location) balance from the ledger
    lines, compares it with the materialized inventory_balances rows, and
    optionally rewrites the rows that disagree.

Architecture position:
    Kernel > Services -- imperative shell, owns its unit of work.
    Used by stock_kernel/cli/reconcile_balances.py and by audit tests.

Invariants enforced:
    - The ledger is authoritative; only the index is ever rewritten.
    - Ledger totals are grouped by the same effective-location rule the
      BalanceSelector uses, so the two views can never disagree on where a
      transfer line counts.
    - An index row with no ledger lines behind it must hold zero.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from stock_kernel.domain.dtos import BalanceDiscrepancy
from stock_kernel.domain.transaction_types import EntityKind
from stock_kernel.logging_config import get_logger
from stock_kernel.models.balance import InventoryBalance
from stock_kernel.models.ledger import InventoryTransaction, TransactionLine
from stock_kernel.selectors.balance_selector import effective_location_expr
from stock_kernel.services.base import OwningService

logger = get_logger("services.reconciliation")

ZERO = Decimal("0")

BalanceKey = tuple[UUID, EntityKind, UUID, UUID]


class ReconciliationService(OwningService):
    """Ledger versus balance-index consistency checks."""

    def _ledger_totals(self, tenant_id: UUID | None) -> dict[BalanceKey, Decimal]:
        inner = select(
            InventoryTransaction.tenant_id,
            TransactionLine.entity_kind,
            TransactionLine.entity_id,
            effective_location_expr().label("effective_location_id"),
            TransactionLine.quantity_delta,
        ).join(InventoryTransaction, TransactionLine.transaction_id == InventoryTransaction.id)
        if tenant_id is not None:
            inner = inner.where(InventoryTransaction.tenant_id == tenant_id)
        lines = inner.subquery()

        stmt = select(
            lines.c.tenant_id,
            lines.c.entity_kind,
            lines.c.entity_id,
            lines.c.effective_location_id,
            func.sum(lines.c.quantity_delta).label("total"),
        ).group_by(
            lines.c.tenant_id,
            lines.c.entity_kind,
            lines.c.entity_id,
            lines.c.effective_location_id,
        )
        return {
            (row.tenant_id, row.entity_kind, row.entity_id, row.effective_location_id): row.total
            for row in self._session.execute(stmt)
        }

    def _index_rows(self, tenant_id: UUID | None) -> dict[BalanceKey, InventoryBalance]:
        stmt = select(InventoryBalance)
        if tenant_id is not None:
            stmt = stmt.where(InventoryBalance.tenant_id == tenant_id)
        return {
            (row.tenant_id, row.entity_kind, row.entity_id, row.location_id): row
            for row in self._session.execute(stmt).scalars()
        }

    def find_discrepancies(self, tenant_id: UUID | None = None) -> list[BalanceDiscrepancy]:
        """
        Index rows that disagree with the ledger, including missing rows.

        Read-only.  Results are ordered by tenant, entity and location.
        """
        ledger = self._ledger_totals(tenant_id)
        index = self._index_rows(tenant_id)

        discrepancies = []
        for key in set(ledger) | set(index):
            ledger_qty = ledger.get(key, ZERO)
            row = index.get(key)
            indexed_qty = row.quantity if row is not None else None
            if row is None and ledger_qty == 0:
                continue
            if indexed_qty == ledger_qty:
                continue
            tenant, kind, entity_id, location_id = key
            discrepancies.append(
                BalanceDiscrepancy(
                    tenant_id=tenant,
                    entity_kind=kind,
                    entity_id=entity_id,
                    location_id=location_id,
                    indexed_quantity=indexed_qty,
                    ledger_quantity=ledger_qty,
                )
            )

        discrepancies.sort(key=lambda d: (str(d.tenant_id), str(d.entity_id), str(d.location_id)))
        if discrepancies:
            logger.warning(
                "balance_index_discrepancies_found",
                extra={
                    "tenant_id": str(tenant_id) if tenant_id else None,
                    "discrepancy_count": len(discrepancies),
                },
            )
        return discrepancies

    def rebuild(self, tenant_id: UUID | None = None) -> list[BalanceDiscrepancy]:
        """
        Rewrite every disagreeing index row from the ledger.

        Returns the discrepancies that were fixed.
        """
        with self._unit_of_work(
            "balance_index_rebuild",
            tenant_id=str(tenant_id) if tenant_id else None,
        ) as result:
            discrepancies = self.find_discrepancies(tenant_id)
            rows = self._index_rows(tenant_id)
            now = self._clock.now()
            for d in discrepancies:
                row = rows.get((d.tenant_id, d.entity_kind, d.entity_id, d.location_id))
                if row is None:
                    row = InventoryBalance(
                        tenant_id=d.tenant_id,
                        entity_kind=d.entity_kind,
                        entity_id=d.entity_id,
                        location_id=d.location_id,
                    )
                    self._session.add(row)
                row.quantity = d.ledger_quantity
                row.updated_at = now
            result["fixed_count"] = len(discrepancies)
        return discrepancies
