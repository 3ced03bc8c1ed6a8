"""
Module: stock_kernel.models.balance
Responsibility: ORM model for the materialized balance index.
Architecture position: Kernel > Models.  Inherits from Base.

Invariants enforced:
    - One row per (tenant, entity_kind, entity_id, location).
    - The index is NEVER authoritative.  It is updated inside the same unit
      of work as the ledger lines it summarizes and can be rebuilt from the
      ledger at any time (services/reconciliation_service.py).  Reads that
      must be correct (BalanceSelector) go to the ledger, not here.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import Base
from stock_kernel.domain.transaction_types import EntityKind


class InventoryBalance(Base):
    """Cached net quantity of one entity at one location."""

    __tablename__ = "inventory_balances"

    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "entity_kind",
            "entity_id",
            "location_id",
            name="uq_inventory_balance_key",
        ),
    )

    tenant_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    entity_kind: Mapped[EntityKind] = mapped_column(
        Enum(
            EntityKind,
            name="balance_entity_kind",
            values_callable=lambda e: [m.value for m in e],
            native_enum=False,
            length=20,
        ),
        nullable=False,
    )
    entity_id: Mapped[UUID] = mapped_column(nullable=False)
    location_id: Mapped[UUID] = mapped_column(
        ForeignKey("locations.id"), nullable=False
    )
    quantity: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    last_transaction_id: Mapped[UUID | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return (
            f"<InventoryBalance {self.entity_kind.value}:{self.entity_id} "
            f"@ {self.location_id} = {self.quantity}>"
        )
