"""
FEFO lot ordering and allocation -- pure functions.

Responsibility:
    Orders lots first-expiry-first-out and walks them to cover a requested
    quantity.  Works on any object exposing ``id``, ``lot_code``,
    ``expiry_date``, ``received_date`` and ``remaining_quantity`` so the
    same code serves ORM rows and plain test fixtures.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  services/lot_service.py loads and
    locks the lots, calls ``allocate_fefo`` and applies the result.

Ordering:
    1. expiry_date ascending; lots without an expiry sort after all dated lots
    2. received_date ascending (oldest stock first)
    3. lot_code ascending, then lot id (deterministic final tie-break)
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Protocol, Sequence
from uuid import UUID

from stock_kernel.domain.dtos import LotAllocation, LotDraw
from stock_kernel.exceptions import InsufficientInventoryError, Shortage


class LotLike(Protocol):
    id: UUID
    lot_code: str
    expiry_date: date | None
    received_date: date
    remaining_quantity: Decimal


def fefo_sort_key(lot: LotLike) -> tuple:
    return (
        lot.expiry_date is None,
        lot.expiry_date or date.max,
        lot.received_date,
        lot.lot_code,
        str(lot.id),
    )


def order_lots_fefo(lots: Iterable[LotLike]) -> list[LotLike]:
    """Return lots with positive remaining quantity in FEFO order."""
    return sorted(
        (lot for lot in lots if lot.remaining_quantity > 0),
        key=fefo_sort_key,
    )


def is_lot_expired(lot: LotLike, today: date) -> bool:
    """A lot is expired once its expiry date is strictly before today."""
    return lot.expiry_date is not None and lot.expiry_date < today


def allocate_fefo(
    lots: Sequence[LotLike],
    quantity: Decimal,
    *,
    component_id: UUID,
    allow_partial: bool = False,
    today: date | None = None,
    exclude_expired: bool = False,
) -> LotDraw:
    """
    Walk lots in FEFO order consuming ``min(remaining, still_needed)`` each.

    Preconditions:
        - quantity > 0.
    Postconditions:
        - Input lots are not modified; the caller applies the allocations.
        - Sum of allocations + unallocated == quantity.

    Raises:
        InsufficientInventoryError: total available < quantity and
            allow_partial is False.  Carries the shortfall.
        ValueError: quantity <= 0, or exclude_expired without today.
    """
    if quantity <= 0:
        raise ValueError(f"Quantity to allocate must be positive, got {quantity}")
    if exclude_expired and today is None:
        raise ValueError("exclude_expired requires today")

    candidates = order_lots_fefo(lots)
    if exclude_expired:
        candidates = [lot for lot in candidates if not is_lot_expired(lot, today)]

    available = sum((lot.remaining_quantity for lot in candidates), Decimal("0"))
    if available < quantity and not allow_partial:
        raise InsufficientInventoryError(
            [Shortage(entity_id=str(component_id), required=quantity, available=available)]
        )

    still_needed = quantity
    allocations: list[LotAllocation] = []
    for lot in candidates:
        if still_needed <= 0:
            break
        take = min(lot.remaining_quantity, still_needed)
        allocations.append(
            LotAllocation(
                lot_id=lot.id,
                lot_code=lot.lot_code,
                quantity=take,
                expiry_date=lot.expiry_date,
            )
        )
        still_needed -= take

    return LotDraw(allocations=tuple(allocations), unallocated=still_needed)
