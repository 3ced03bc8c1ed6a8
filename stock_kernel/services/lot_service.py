"""
LotService -- lot bookkeeping for lot-tracked components.

Responsibility:
    Loads and locks the lots of a component at a location, plans FEFO draws
    (domain/fefo.py), applies them, tops up lots on receipt, and reports
    lots approaching expiry.

Architecture position:
    Kernel > Services -- flush-only helper.  Runs inside the ledger
    writer's unit of work; every lot quantity change made here is paired
    with a ledger line carrying the lot id.

Invariants enforced:
    - Draws are planned completely before any lot is decremented, so an
      InsufficientInventoryError leaves every lot untouched.
    - remaining_quantity never goes below zero (also a CHECK constraint).
    - Lots are read SELECT ... FOR UPDATE so concurrent draws serialize on
      the lot rows (no-op on SQLite).

Failure modes:
    - InsufficientInventoryError when lots cannot cover a strict draw or an
      adjustment would push a lot below zero.
    - LotNotFoundError / LotTrackingError for inconsistent lot references.
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock
from stock_kernel.domain.dtos import LotDraw, LotInfo
from stock_kernel.domain.fefo import allocate_fefo, fefo_sort_key, order_lots_fefo
from stock_kernel.exceptions import (
    AccessDeniedError,
    InsufficientInventoryError,
    LotNotFoundError,
    LotTrackingError,
    Shortage,
)
from stock_kernel.logging_config import get_logger
from stock_kernel.models.lot import Lot
from stock_kernel.services.base import BaseService

logger = get_logger("services.lot")

DEFAULT_EXPIRY_WARNING_DAYS = 30


def _to_info(lot: Lot) -> LotInfo:
    return LotInfo(
        lot_id=lot.id,
        component_id=lot.component_id,
        location_id=lot.location_id,
        lot_code=lot.lot_code,
        expiry_date=lot.expiry_date,
        received_date=lot.received_date,
        remaining_quantity=lot.remaining_quantity,
    )


class LotService(BaseService[Lot]):
    """FEFO lot selection and lot quantity bookkeeping."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        expiry_warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS,
    ):
        super().__init__(session, clock)
        self.expiry_warning_days = expiry_warning_days

    def available_lots(
        self,
        component_id: UUID,
        location_id: UUID,
        *,
        for_update: bool = False,
    ) -> list[Lot]:
        """Lots with positive remaining quantity, in FEFO order."""
        stmt = select(Lot).where(
            Lot.component_id == component_id,
            Lot.location_id == location_id,
            Lot.remaining_quantity > 0,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return order_lots_fefo(self.session.execute(stmt).scalars())

    def plan_draw(
        self,
        lots: list[Lot],
        quantity: Decimal,
        component_id: UUID,
        *,
        allow_partial: bool = False,
        exclude_expired: bool = False,
    ) -> LotDraw:
        """FEFO allocation over already-loaded lots.  Does not modify them."""
        return allocate_fefo(
            lots,
            quantity,
            component_id=component_id,
            allow_partial=allow_partial,
            today=self.clock.today(),
            exclude_expired=exclude_expired,
        )

    def apply_draw(self, draw: LotDraw) -> None:
        """Decrement every lot in ``draw`` by its allocated quantity."""
        for allocation in draw.allocations:
            lot = self.session.get(Lot, allocation.lot_id)
            if lot is None:
                raise LotNotFoundError(str(allocation.lot_id))
            if lot.remaining_quantity < allocation.quantity:
                raise InsufficientInventoryError(
                    [
                        Shortage(
                            entity_id=str(lot.component_id),
                            required=allocation.quantity,
                            available=lot.remaining_quantity,
                        )
                    ],
                    location_id=str(lot.location_id),
                )
            lot.remaining_quantity = lot.remaining_quantity - allocation.quantity
            logger.debug(
                "lot_drawn",
                extra={
                    "lot_id": str(lot.id),
                    "lot_code": lot.lot_code,
                    "quantity": str(allocation.quantity),
                    "remaining": str(lot.remaining_quantity),
                },
            )

    def receive(
        self,
        *,
        tenant_id: UUID,
        component_id: UUID,
        location_id: UUID,
        lot_code: str,
        quantity: Decimal,
        expiry_date: date | None,
        received_date: date,
        actor_id: UUID,
    ) -> Lot:
        """
        Add ``quantity`` to the lot ``lot_code`` at a location, creating it
        if needed.

        A lot code names one batch of a component wherever it is stored, so
        every dated lot sharing the code must carry the same expiry.  An
        undated lot takes the expiry of the first dated receipt.

        Raises:
            LotTrackingError: a lot with this code already has a different
                expiry date, at this or any other location.
        """
        same_code = list(
            self.session.execute(
                select(Lot)
                .where(Lot.component_id == component_id, Lot.lot_code == lot_code)
                .with_for_update()
            ).scalars()
        )

        if expiry_date is not None:
            for other in same_code:
                if other.expiry_date is not None and other.expiry_date != expiry_date:
                    raise LotTrackingError(
                        str(component_id),
                        f"lot {lot_code} already exists with expiry {other.expiry_date}",
                    )

        lot = next((candidate for candidate in same_code if candidate.location_id == location_id), None)
        if lot is None:
            # Stock landing in a new location inherits a known batch expiry.
            known = next((other.expiry_date for other in same_code if other.expiry_date is not None), None)
            lot = Lot(
                tenant_id=tenant_id,
                component_id=component_id,
                location_id=location_id,
                lot_code=lot_code,
                expiry_date=expiry_date or known,
                received_date=received_date,
                remaining_quantity=quantity,
                created_by_id=actor_id,
            )
            self.session.add(lot)
            self.session.flush()
            logger.info(
                "lot_created",
                extra={
                    "lot_id": str(lot.id),
                    "lot_code": lot_code,
                    "component_id": str(component_id),
                    "expiry_date": lot.expiry_date,
                },
            )
            return lot

        if lot.expiry_date is None and expiry_date is not None:
            lot.expiry_date = expiry_date
        lot.remaining_quantity = lot.remaining_quantity + quantity
        lot.updated_by_id = actor_id
        return lot

    def adjust(
        self,
        lot_id: UUID,
        *,
        tenant_id: UUID,
        component_id: UUID,
        location_id: UUID,
        delta: Decimal,
    ) -> Lot:
        """
        Apply a signed correction to one lot.

        Raises:
            LotNotFoundError, AccessDeniedError, LotTrackingError,
            InsufficientInventoryError (lot would go below zero).
        """
        lot = self.session.execute(
            select(Lot).where(Lot.id == lot_id).with_for_update()
        ).scalar_one_or_none()
        if lot is None:
            raise LotNotFoundError(str(lot_id))
        if lot.tenant_id != tenant_id:
            raise AccessDeniedError("lot", str(lot_id), str(tenant_id))
        if lot.component_id != component_id or lot.location_id != location_id:
            raise LotTrackingError(
                str(component_id),
                f"lot {lot.lot_code} does not hold this component at this location",
            )
        if lot.remaining_quantity + delta < 0:
            raise InsufficientInventoryError(
                [
                    Shortage(
                        entity_id=str(component_id),
                        required=-delta,
                        available=lot.remaining_quantity,
                    )
                ],
                location_id=str(location_id),
            )
        lot.remaining_quantity = lot.remaining_quantity + delta
        return lot

    def get_lots(
        self,
        tenant_id: UUID,
        component_id: UUID,
        location_id: UUID | None = None,
        include_empty: bool = False,
    ) -> list[LotInfo]:
        """Lots of a component in FEFO order."""
        stmt = select(Lot).where(Lot.tenant_id == tenant_id, Lot.component_id == component_id)
        if location_id is not None:
            stmt = stmt.where(Lot.location_id == location_id)
        if not include_empty:
            stmt = stmt.where(Lot.remaining_quantity > 0)
        lots = sorted(self.session.execute(stmt).scalars(), key=fefo_sort_key)
        return [_to_info(lot) for lot in lots]

    def find_expiring_lots(
        self,
        tenant_id: UUID,
        warning_days: int | None = None,
        include_expired: bool = True,
    ) -> list[LotInfo]:
        """
        Lots with stock whose expiry falls on or before today + warning_days.

        warning_days defaults to the window this service was built with.
        Already-expired lots are included unless include_expired is False.
        """
        if warning_days is None:
            warning_days = self.expiry_warning_days
        today = self.clock.today()
        horizon = today + timedelta(days=warning_days)
        stmt = select(Lot).where(
            Lot.tenant_id == tenant_id,
            Lot.remaining_quantity > 0,
            Lot.expiry_date.is_not(None),
            Lot.expiry_date <= horizon,
        )
        if not include_expired:
            stmt = stmt.where(Lot.expiry_date >= today)
        lots = sorted(self.session.execute(stmt).scalars(), key=fefo_sort_key)
        return [_to_info(lot) for lot in lots]
