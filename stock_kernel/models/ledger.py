"""
Module: stock_kernel.models.ledger
Responsibility: ORM models for the append-only inventory ledger --
    InventoryTransaction (header) and TransactionLine (signed quantity deltas).
Architecture position: Kernel > Models.  Inherits from Base / TrackedBase.
    MUST NOT import from services/, selectors/, or outer layers.

Invariants enforced:
    - Transactions and lines are never updated or deleted
      (db/immutability.py ORM listeners).
    - Transfer transactions carry from/to locations and no header location;
      every other type carries a header location.
    - A line counts exactly one entity: component or SKU (entity_kind).
    - quantity_delta is non-zero (CHECK constraint).
    - For a transfer, the lines sum to exactly zero (enforced by the ledger
      writer before flush; see services/ledger_service.py).

Audit relevance:
    The sum of quantity_delta over lines IS the stock level.  Every other
    stock figure in the system (balance index, buildability, forecasts) is
    derived from these rows.
"""

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import Base, TrackedBase
from stock_kernel.domain.transaction_types import EntityKind, TransactionType

if TYPE_CHECKING:
    from stock_kernel.models.lot import Lot


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class InventoryTransaction(TrackedBase):
    """
    Immutable header for one inventory-affecting event.

    created_by_id (from TrackedBase) is the creator of the event.
    Build transactions additionally record the SKU, the BOM version
    resolved at build time, the units built and the per-unit BOM cost.
    """

    __tablename__ = "inventory_transactions"

    __table_args__ = (
        Index("idx_inv_tx_tenant_date", "tenant_id", "transaction_date"),
        Index("idx_inv_tx_type", "transaction_type"),
        CheckConstraint(
            "(transaction_type = 'transfer' AND location_id IS NULL "
            "AND from_location_id IS NOT NULL AND to_location_id IS NOT NULL "
            "AND from_location_id <> to_location_id) OR "
            "(transaction_type <> 'transfer' AND location_id IS NOT NULL "
            "AND from_location_id IS NULL AND to_location_id IS NULL)",
            name="ck_inv_tx_locations",
        ),
    )

    tenant_id: Mapped[UUID] = mapped_column(nullable=False)
    transaction_type: Mapped[TransactionType] = mapped_column(
        Enum(
            TransactionType,
            name="inventory_transaction_type",
            values_callable=_enum_values,
            native_enum=False,
            length=20,
        ),
        nullable=False,
    )
    transaction_date: Mapped[date] = mapped_column(nullable=False)

    source: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reason: Mapped[str | None] = mapped_column(String(200), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    channel: Mapped[str | None] = mapped_column(String(100), nullable=True)

    location_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("locations.id"), nullable=True
    )
    from_location_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("locations.id"), nullable=True
    )
    to_location_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("locations.id"), nullable=True
    )

    # Build metadata
    sku_id: Mapped[UUID | None] = mapped_column(ForeignKey("skus.id"), nullable=True)
    bom_version_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("bom_versions.id"), nullable=True
    )
    units_built: Mapped[Decimal | None] = mapped_column(nullable=True)
    unit_bom_cost: Mapped[Decimal | None] = mapped_column(nullable=True)

    lines: Mapped[list["TransactionLine"]] = relationship(
        back_populates="transaction",
        order_by="TransactionLine.line_no",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<InventoryTransaction {self.id} {self.transaction_type.value} "
            f"{self.transaction_date}>"
        )


class TransactionLine(Base):
    """One signed quantity movement of a single entity at a single location."""

    __tablename__ = "transaction_lines"

    __table_args__ = (
        Index("idx_tx_line_entity", "entity_kind", "entity_id"),
        Index("idx_tx_line_transaction", "transaction_id"),
        Index("idx_tx_line_lot", "lot_id"),
        CheckConstraint("quantity_delta <> 0", name="ck_tx_line_nonzero"),
    )

    transaction_id: Mapped[UUID] = mapped_column(
        ForeignKey("inventory_transactions.id"), nullable=False
    )
    line_no: Mapped[int] = mapped_column(nullable=False)
    entity_kind: Mapped[EntityKind] = mapped_column(
        Enum(
            EntityKind,
            name="ledger_entity_kind",
            values_callable=_enum_values,
            native_enum=False,
            length=20,
        ),
        nullable=False,
    )
    entity_id: Mapped[UUID] = mapped_column(nullable=False)
    quantity_delta: Mapped[Decimal] = mapped_column(nullable=False)
    location_id: Mapped[UUID] = mapped_column(
        ForeignKey("locations.id"), nullable=False
    )
    cost_per_unit: Mapped[Decimal | None] = mapped_column(nullable=True)
    lot_id: Mapped[UUID | None] = mapped_column(ForeignKey("lots.id"), nullable=True)

    transaction: Mapped["InventoryTransaction"] = relationship(back_populates="lines")
    lot: Mapped["Lot | None"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<TransactionLine {self.entity_kind.value}:{self.entity_id} "
            f"{self.quantity_delta:+} @ {self.location_id}>"
        )
