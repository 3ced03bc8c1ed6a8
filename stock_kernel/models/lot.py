"""
Module: stock_kernel.models.lot
Responsibility: ORM model for inventory lots of lot-tracked components.
Architecture position: Kernel > Models.  Inherits from TrackedBase.

Invariants enforced:
    - remaining_quantity >= 0 (CHECK constraint).  Lot consumption is
      computed in full before any lot is decremented, so a failed draw
      never leaves a lot partially consumed.
    - (component_id, location_id, lot_code) is unique: a receipt of an
      existing lot code at the same location tops the lot up.
    - A lot's remaining_quantity moves only together with a ledger line
      carrying its lot_id, inside the same unit of work.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import TrackedBase


class Lot(TrackedBase):
    """A received batch of a component, consumed first-expiry-first-out."""

    __tablename__ = "lots"

    __table_args__ = (
        UniqueConstraint(
            "component_id", "location_id", "lot_code", name="uq_lot_component_location_code"
        ),
        CheckConstraint("remaining_quantity >= 0", name="ck_lot_remaining_non_negative"),
        Index("idx_lot_expiry", "tenant_id", "expiry_date"),
    )

    tenant_id: Mapped[UUID] = mapped_column(nullable=False)
    component_id: Mapped[UUID] = mapped_column(
        ForeignKey("components.id"), nullable=False, index=True
    )
    location_id: Mapped[UUID] = mapped_column(
        ForeignKey("locations.id"), nullable=False
    )
    lot_code: Mapped[str] = mapped_column(String(100), nullable=False)
    expiry_date: Mapped[date | None] = mapped_column(nullable=True)
    received_date: Mapped[date] = mapped_column(nullable=False)
    remaining_quantity: Mapped[Decimal] = mapped_column(default=Decimal("0"))

    def __repr__(self) -> str:
        return (
            f"<Lot {self.lot_code} component={self.component_id} "
            f"remaining={self.remaining_quantity} expiry={self.expiry_date}>"
        )
