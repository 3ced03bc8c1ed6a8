"""
Module: stock_kernel.models.bom
Responsibility: ORM models for bills of materials -- BomVersion (versioned
    recipe for one SKU) and BomLine (component + quantity per unit).
Architecture position: Kernel > Models.  Inherits from TrackedBase / Base.

Invariants enforced:
    - At most one active version per SKU: partial unique index on sku_id
      WHERE is_active.  Activation deactivates siblings first in the same
      unit of work (services/bom_service.py).
    - quantity_per_unit > 0 (CHECK constraint).
    - A component appears at most once per version.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import Base, TrackedBase


class BomVersion(TrackedBase):
    """A versioned recipe for building one unit of a SKU."""

    __tablename__ = "bom_versions"

    __table_args__ = (
        UniqueConstraint("sku_id", "version_name", name="uq_bom_version_sku_name"),
        Index(
            "uq_bom_version_one_active",
            "sku_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    tenant_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    sku_id: Mapped[UUID] = mapped_column(ForeignKey("skus.id"), nullable=False)
    version_name: Mapped[str] = mapped_column(String(50), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    effective_start_date: Mapped[date | None] = mapped_column(nullable=True)
    effective_end_date: Mapped[date | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    lines: Mapped[list["BomLine"]] = relationship(
        back_populates="bom_version",
        order_by="BomLine.position",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        state = "active" if self.is_active else "inactive"
        return f"<BomVersion {self.version_name} sku={self.sku_id} {state}>"


class BomLine(Base):
    """One component requirement of a BOM version."""

    __tablename__ = "bom_lines"

    __table_args__ = (
        UniqueConstraint("bom_version_id", "component_id", name="uq_bom_line_component"),
        CheckConstraint("quantity_per_unit > 0", name="ck_bom_line_qty_positive"),
    )

    bom_version_id: Mapped[UUID] = mapped_column(
        ForeignKey("bom_versions.id"), nullable=False, index=True
    )
    component_id: Mapped[UUID] = mapped_column(
        ForeignKey("components.id"), nullable=False
    )
    quantity_per_unit: Mapped[Decimal] = mapped_column(nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    bom_version: Mapped["BomVersion"] = relationship(back_populates="lines")

    def __repr__(self) -> str:
        return f"<BomLine component={self.component_id} qpu={self.quantity_per_unit}>"
