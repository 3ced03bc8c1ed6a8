"""
Declarative base shared by every stock kernel model.

Column conventions come from the annotation map, so models declare plain
``Mapped[Decimal]`` / ``Mapped[UUID]`` attributes:

    Decimal   -> Numeric(38, 9)   quantities and unit costs, never float
    UUID      -> String(36)       portable across SQLite and PostgreSQL
    datetime  -> timezone-aware DateTime
    date      -> Date

Nothing here may import models, selectors or services.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID kept as its 36-character text form."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        date: Date,
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Rows that record who created them and when.

    ``created_at`` is filled by the database; ``updated_at`` is refreshed on
    every UPDATE.  Append-only tables block updates in db.immutability, so
    for them the two columns stay equal.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())
    created_by_id: Mapped[UUID]
    updated_by_id: Mapped[UUID | None]
