"""
Module: stock_kernel.selectors.consumption_selector
Responsibility: Aggregates historical consumption (negative ledger deltas)
    per component over a date window, for the consumption forecaster.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Only negative line deltas count; the result is a non-negative magnitude.
    - Lines of excluded transaction types are ignored.  Only types declared
      excludable in domain/transaction_types.py may be excluded.
    - Location scope uses the same effective-location rule as balances, so
      at a location consumption is: non-transfer lines at that location plus
      transfer lines leaving it.
    - One grouped query for any number of components; every requested id
      appears in the result (0 default).
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from stock_kernel.domain.transaction_types import EntityKind, TransactionType, is_excludable
from stock_kernel.models.ledger import InventoryTransaction, TransactionLine
from stock_kernel.selectors.balance_selector import effective_location_expr
from stock_kernel.selectors.base import BaseSelector

ZERO = Decimal("0")


class ConsumptionSelector(BaseSelector[TransactionLine]):
    """Historical consumption totals."""

    def get_consumption(
        self,
        component_ids: Iterable[UUID],
        tenant_id: UUID,
        start_date: date,
        end_date: date,
        excluded_types: Iterable[TransactionType] = (),
        location_id: UUID | None = None,
    ) -> dict[UUID, Decimal]:
        """
        Total consumed per component with transaction_date in
        [start_date, end_date].

        Preconditions:
            - component_ids already verified against tenant_id by the caller.
        Raises:
            ValueError: an excluded type is not excludable.
        """
        ids = list(dict.fromkeys(component_ids))
        if not ids:
            return {}

        excluded = sorted(set(excluded_types), key=lambda t: t.value)
        for tx_type in excluded:
            if not is_excludable(tx_type):
                raise ValueError(
                    f"Transaction type {tx_type.value!r} cannot be excluded from consumption"
                )

        stmt = (
            select(
                TransactionLine.entity_id,
                func.sum(TransactionLine.quantity_delta).label("total"),
            )
            .join(InventoryTransaction, TransactionLine.transaction_id == InventoryTransaction.id)
            .where(
                InventoryTransaction.tenant_id == tenant_id,
                InventoryTransaction.transaction_date >= start_date,
                InventoryTransaction.transaction_date <= end_date,
                TransactionLine.entity_kind == EntityKind.COMPONENT,
                TransactionLine.entity_id.in_(ids),
                TransactionLine.quantity_delta < 0,
            )
            .group_by(TransactionLine.entity_id)
        )
        if excluded:
            stmt = stmt.where(InventoryTransaction.transaction_type.not_in(excluded))
        if location_id is not None:
            stmt = stmt.where(effective_location_expr() == location_id)

        totals = {row.entity_id: -row.total for row in self.session.execute(stmt)}
        return {component_id: totals.get(component_id, ZERO) for component_id in ids}
