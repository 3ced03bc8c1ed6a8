"""
Module: stock_kernel.models.catalog
Responsibility: ORM models for the tenant-owned catalog the ledger counts:
    stocking locations, raw-material components, and finished SKUs.
Architecture position: Kernel > Models.  Inherits from TrackedBase.
    MUST NOT import from services/, selectors/, or outer layers.

Invariants enforced:
    - Every catalog row carries tenant_id; every read through the kernel is
      filtered or verified against it.
    - Component.unit_cost, reorder_point are Decimal (Numeric(38,9)).
    - At most one default location per tenant (partial unique index).
    - Catalog rows hold no stock figures: quantities live only in the ledger.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import TrackedBase


class Location(TrackedBase):
    """A warehouse, shelf, or 3PL site stock can sit at."""

    __tablename__ = "locations"

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_location_tenant_name"),
        Index(
            "uq_location_tenant_default",
            "tenant_id",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default = 1"),
        ),
    )

    tenant_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    location_type: Mapped[str] = mapped_column(String(50), default="warehouse")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<Location {self.name} ({self.location_type})>"


class Component(TrackedBase):
    """
    A raw material consumed by builds.

    lead_time_days is nullable: when unset, the tenant's default lead time
    applies during forecasting.
    """

    __tablename__ = "components"

    __table_args__ = (
        UniqueConstraint("tenant_id", "sku_code", name="uq_component_tenant_sku_code"),
        CheckConstraint("reorder_point >= 0", name="ck_component_reorder_point"),
        CheckConstraint("unit_cost >= 0", name="ck_component_unit_cost"),
    )

    tenant_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    sku_code: Mapped[str] = mapped_column(String(100), nullable=False)
    unit_of_measure: Mapped[str] = mapped_column(String(20), default="each")
    unit_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    reorder_point: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    lead_time_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_lot_tracked: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<Component {self.sku_code} {self.name}>"


class Sku(TrackedBase):
    """A finished product assembled from components via its active BOM."""

    __tablename__ = "skus"

    __table_args__ = (
        UniqueConstraint("tenant_id", "internal_code", name="uq_sku_tenant_code"),
    )

    tenant_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    internal_code: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<Sku {self.internal_code} {self.name}>"
