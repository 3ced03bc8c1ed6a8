"""
Module: stock_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/, models/
    and domain/.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: Selectors accept a Session from the caller but MUST NOT
      call session.add(), session.delete(), session.commit(), or session.flush().
    - DTO return convention: Selectors return frozen dataclasses or plain
      values, NOT ORM model instances.
    - Tenant scoping: every public query verifies that the ids it is given
      belong to the caller's tenant (AccessDeniedError otherwise).
"""

from abc import ABC
from typing import Generic, Iterable, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.db.base import Base
from stock_kernel.exceptions import AccessDeniedError, LocationNotFoundError
from stock_kernel.models.catalog import Location

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Guarantees:
        - session is stored as a public attribute for subclass query use.
        - No commit, flush, add, or delete operations are performed.
    """

    def __init__(self, session: Session):
        self.session = session

    def _owners(self, model, ids: Iterable[UUID]) -> dict[UUID, UUID]:
        """Map each existing id of ``model`` to its tenant_id."""
        ids = list(ids)
        if not ids:
            return {}
        rows = self.session.execute(
            select(model.id, model.tenant_id).where(model.id.in_(ids))
        ).all()
        return {row.id: row.tenant_id for row in rows}

    def verify_location(self, location_id: UUID, tenant_id: UUID) -> None:
        """
        Raises:
            LocationNotFoundError: unknown location id.
            AccessDeniedError: location belongs to another tenant.
        """
        owner = self._owners(Location, [location_id]).get(location_id)
        if owner is None:
            raise LocationNotFoundError(str(location_id))
        if owner != tenant_id:
            raise AccessDeniedError("Location", str(location_id), str(tenant_id))
