"""
InventoryLedgerService -- the writer side of the inventory ledger.

Responsibility:
    Records every inventory-affecting event: receipts, opening balances,
    builds, adjustments, transfers and outbound shipments.  Each public
    method validates its input, resolves and tenant-checks every referenced
    record, computes the ledger lines (drawing lots FEFO where the component
    is lot-tracked), and writes the transaction header, its lines, lot
    changes and balance index updates as ONE unit of work.

Architecture position:
    Kernel > Services -- imperative shell.  Called by order sync,
    receiving, and production workflows (all external).  Reads balances
    through BalanceSelector and BOMs through BomSelector.

Invariants enforced:
    - Validation (non-positive quantity, zero adjustment, same-location
      transfer, missing BOM) happens before any write.
    - Transactions and lines are created together and never modified
      (db/immutability.py).
    - Transfer lines sum to exactly zero (UnbalancedTransactionError
      otherwise, checked before flush).
    - Builds, outbound shipments and transfers never drive a balance
      negative unless the caller passes an explicit override
      (builds/outbound only).
    - The balance index is updated inside the same unit of work as the
      lines it summarizes.
    - On any exception the session is rolled back and the exception
      re-raised: callers never observe a partially applied transaction.

Failure modes:
    - NonPositiveQuantityError, ZeroAdjustmentError, SameLocationTransferError,
      MissingBOMError, LotTrackingError, InactiveEntityError.
    - InsufficientInventoryError carrying every shortage and the shortfall.
    - AccessDeniedError for cross-tenant references; *NotFoundError for
      unknown ids.
    - Storage errors (IntegrityError, OperationalError) propagate after
      rollback.

Usage::

    ledger = InventoryLedgerService(session, clock)
    tx_id = ledger.record_receipt(
        tenant_id, component_id, location_id, Decimal("100"),
        actor_id=user_id, source="PO-1042",
    )
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock
from stock_kernel.domain.dtos import LineSpec, LotDraw
from stock_kernel.domain.transaction_types import EntityKind, TransactionType, requires_zero_sum
from stock_kernel.exceptions import (
    AccessDeniedError,
    ComponentNotFoundError,
    InactiveEntityError,
    InsufficientInventoryError,
    LocationNotFoundError,
    LotTrackingError,
    MissingBOMError,
    NonPositiveQuantityError,
    SameLocationTransferError,
    Shortage,
    SkuNotFoundError,
    UnbalancedTransactionError,
    ZeroAdjustmentError,
)
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.models.balance import InventoryBalance
from stock_kernel.models.catalog import Component, Location, Sku
from stock_kernel.models.ledger import InventoryTransaction, TransactionLine
from stock_kernel.models.lot import Lot
from stock_kernel.selectors.balance_selector import BalanceSelector
from stock_kernel.selectors.bom_selector import BomSelector
from stock_kernel.services.base import OwningService
from stock_kernel.services.lot_service import LotService

logger = get_logger("services.ledger")

ZERO = Decimal("0")


def _require_positive(operation: str, quantity: Decimal) -> Decimal:
    quantity = Decimal(quantity)
    if quantity <= 0:
        raise NonPositiveQuantityError(operation, quantity)
    return quantity


class InventoryLedgerService(OwningService):
    """
    Append-only writer for inventory transactions.

    Contract:
        Every record_* method returns the id of the InventoryTransaction it
        wrote.  Each call is one unit of work: commit on success, rollback
        on failure (or flush only when constructed with auto_commit=False).

    Non-goals:
        - Does not compute buildability or forecasts (stock_services).
        - Does not edit or delete ledger rows; corrections are adjustments.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
    ):
        super().__init__(session, clock, auto_commit)
        self._balances = BalanceSelector(session)
        self._boms = BomSelector(session)
        self._lots = LotService(session, self._clock)

    # =========================================================================
    # Record resolution (tenant-checked)
    # =========================================================================

    def _component(self, tenant_id: UUID, component_id: UUID) -> Component:
        component = self._session.get(Component, component_id)
        if component is None:
            raise ComponentNotFoundError(str(component_id))
        if component.tenant_id != tenant_id:
            raise AccessDeniedError("component", str(component_id), str(tenant_id))
        if not component.is_active:
            raise InactiveEntityError("component", str(component_id))
        return component

    def _sku(self, tenant_id: UUID, sku_id: UUID) -> Sku:
        sku = self._session.get(Sku, sku_id)
        if sku is None:
            raise SkuNotFoundError(str(sku_id))
        if sku.tenant_id != tenant_id:
            raise AccessDeniedError("sku", str(sku_id), str(tenant_id))
        if not sku.is_active:
            raise InactiveEntityError("sku", str(sku_id))
        return sku

    def _location(self, tenant_id: UUID, location_id: UUID | None) -> Location:
        """Resolve a location, falling back to the tenant's default."""
        if location_id is None:
            location = self._session.execute(
                select(Location).where(
                    Location.tenant_id == tenant_id,
                    Location.is_default.is_(True),
                )
            ).scalar_one_or_none()
            if location is None:
                raise LocationNotFoundError("default")
        else:
            location = self._session.get(Location, location_id)
            if location is None:
                raise LocationNotFoundError(str(location_id))
            if location.tenant_id != tenant_id:
                raise AccessDeniedError("location", str(location_id), str(tenant_id))
        if not location.is_active:
            raise InactiveEntityError("location", str(location.id))
        return location

    def _entity(self, tenant_id: UUID, entity_id: UUID) -> tuple[EntityKind, Component | Sku]:
        kind = self._balances.entity_kinds([entity_id], tenant_id)[entity_id]
        if kind is EntityKind.COMPONENT:
            return kind, self._component(tenant_id, entity_id)
        return kind, self._sku(tenant_id, entity_id)

    # =========================================================================
    # Posting
    # =========================================================================

    def _post(
        self,
        *,
        tenant_id: UUID,
        tx_type: TransactionType,
        lines: list[LineSpec],
        actor_id: UUID,
        transaction_date: date | None = None,
        **header,
    ) -> InventoryTransaction:
        if requires_zero_sum(tx_type):
            total = sum((line.quantity_delta for line in lines), ZERO)
            if total != 0:
                raise UnbalancedTransactionError(tx_type.value, total)

        tx = InventoryTransaction(
            id=uuid4(),
            tenant_id=tenant_id,
            transaction_type=tx_type,
            transaction_date=transaction_date or self._clock.today(),
            created_by_id=actor_id,
            **header,
        )
        self._session.add(tx)
        for line_no, spec in enumerate(lines, start=1):
            self._session.add(
                TransactionLine(
                    transaction_id=tx.id,
                    line_no=line_no,
                    entity_kind=spec.entity_kind,
                    entity_id=spec.entity_id,
                    quantity_delta=spec.quantity_delta,
                    location_id=spec.location_id,
                    cost_per_unit=spec.cost_per_unit,
                    lot_id=spec.lot_id,
                )
            )
        self._session.flush()
        self._apply_to_index(tenant_id, tx.id, lines)
        self._session.flush()
        return tx

    def _apply_to_index(self, tenant_id: UUID, transaction_id: UUID, lines: list[LineSpec]) -> None:
        deltas: dict[tuple[EntityKind, UUID, UUID], Decimal] = defaultdict(lambda: ZERO)
        for spec in lines:
            deltas[(spec.entity_kind, spec.entity_id, spec.location_id)] += spec.quantity_delta

        now = self._clock.now()
        for (kind, entity_id, location_id), delta in deltas.items():
            row = self._session.execute(
                select(InventoryBalance)
                .where(
                    InventoryBalance.tenant_id == tenant_id,
                    InventoryBalance.entity_kind == kind,
                    InventoryBalance.entity_id == entity_id,
                    InventoryBalance.location_id == location_id,
                )
                .with_for_update()
            ).scalar_one_or_none()
            if row is None:
                row = InventoryBalance(
                    tenant_id=tenant_id,
                    entity_kind=kind,
                    entity_id=entity_id,
                    location_id=location_id,
                    quantity=ZERO,
                )
                self._session.add(row)
            row.quantity = row.quantity + delta
            row.last_transaction_id = transaction_id
            row.updated_at = now

    def _draw_lines(
        self,
        component: Component,
        location_id: UUID,
        quantity: Decimal,
        allow_insufficient: bool,
    ) -> tuple[list[LineSpec], LotDraw | None]:
        """
        Consumption lines for ``quantity`` of a component at a location.

        Lot-tracked components with stocked lots draw FEFO, one line per
        lot.  Components without lots post a single pooled line.  When the
        caller allows insufficient stock, any part the lots cannot cover
        is posted as a pooled line.
        """
        cost = component.unit_cost
        pooled = LineSpec(EntityKind.COMPONENT, component.id, -quantity, location_id, cost)
        if not component.is_lot_tracked:
            return [pooled], None

        lots = self._lots.available_lots(component.id, location_id, for_update=True)
        if not lots:
            return [pooled], None

        draw = self._lots.plan_draw(
            lots, quantity, component.id, allow_partial=allow_insufficient
        )
        lines = [
            LineSpec(
                EntityKind.COMPONENT,
                component.id,
                -allocation.quantity,
                location_id,
                cost,
                lot_id=allocation.lot_id,
            )
            for allocation in draw.allocations
        ]
        if draw.unallocated > 0:
            lines.append(
                LineSpec(EntityKind.COMPONENT, component.id, -draw.unallocated, location_id, cost)
            )
        return lines, draw

    # =========================================================================
    # Receipts
    # =========================================================================

    def _receive(
        self,
        tx_type: TransactionType,
        tenant_id: UUID,
        component_id: UUID,
        location_id: UUID | None,
        quantity: Decimal,
        *,
        actor_id: UUID,
        source: str | None,
        cost_per_unit: Decimal | None,
        lot_code: str | None,
        expiry_date: date | None,
        update_component_cost: bool,
        notes: str | None,
        transaction_date: date | None,
    ) -> UUID:
        operation = tx_type.value
        quantity = _require_positive(operation, quantity)

        with LogContext.bind(tenant_id=tenant_id, actor_id=actor_id), self._unit_of_work(
            f"{operation}_recording",
            component_id=str(component_id),
            quantity=str(quantity),
        ) as result:
            component = self._component(tenant_id, component_id)
            location = self._location(tenant_id, location_id)
            cost = cost_per_unit if cost_per_unit is not None else component.unit_cost

            lot: Lot | None = None
            if lot_code:
                if not component.is_lot_tracked:
                    raise LotTrackingError(str(component_id), "component is not lot-tracked")
                lot = self._lots.receive(
                    tenant_id=tenant_id,
                    component_id=component.id,
                    location_id=location.id,
                    lot_code=lot_code,
                    quantity=quantity,
                    expiry_date=expiry_date,
                    received_date=transaction_date or self._clock.today(),
                    actor_id=actor_id,
                )
            elif expiry_date is not None:
                raise LotTrackingError(str(component_id), "expiry date given without a lot code")

            if update_component_cost and cost_per_unit is not None:
                component.unit_cost = cost_per_unit
                component.updated_by_id = actor_id

            tx = self._post(
                tenant_id=tenant_id,
                tx_type=tx_type,
                lines=[
                    LineSpec(
                        EntityKind.COMPONENT,
                        component.id,
                        quantity,
                        location.id,
                        cost,
                        lot_id=lot.id if lot else None,
                    )
                ],
                actor_id=actor_id,
                transaction_date=transaction_date,
                location_id=location.id,
                source=source,
                notes=notes,
            )
            result["transaction_id"] = str(tx.id)
            result["lot_id"] = str(lot.id) if lot else None
        return tx.id

    def record_receipt(
        self,
        tenant_id: UUID,
        component_id: UUID,
        location_id: UUID | None,
        quantity: Decimal,
        *,
        actor_id: UUID,
        source: str | None = None,
        cost_per_unit: Decimal | None = None,
        lot_code: str | None = None,
        expiry_date: date | None = None,
        update_component_cost: bool = False,
        notes: str | None = None,
        transaction_date: date | None = None,
    ) -> UUID:
        """
        Receive stock of a component.

        Preconditions:
            - quantity > 0.
            - lot_code only for lot-tracked components.
        Postconditions:
            - One receipt transaction with a single +quantity line.
            - cost_per_unit defaults to the component's unit cost.
            - With lot_code, the lot at this location is created or topped up.
            - With update_component_cost, the component's unit cost is set
              to cost_per_unit.
        Raises:
            LotTrackingError: lot_code already carries a different expiry
                date at any location.
        """
        return self._receive(
            TransactionType.RECEIPT,
            tenant_id,
            component_id,
            location_id,
            quantity,
            actor_id=actor_id,
            source=source,
            cost_per_unit=cost_per_unit,
            lot_code=lot_code,
            expiry_date=expiry_date,
            update_component_cost=update_component_cost,
            notes=notes,
            transaction_date=transaction_date,
        )

    def record_initial(
        self,
        tenant_id: UUID,
        component_id: UUID,
        location_id: UUID | None,
        quantity: Decimal,
        *,
        actor_id: UUID,
        cost_per_unit: Decimal | None = None,
        lot_code: str | None = None,
        expiry_date: date | None = None,
        notes: str | None = None,
        transaction_date: date | None = None,
    ) -> UUID:
        """
        Post an opening balance.

        Same shape as a receipt but typed ``initial`` so forecasts can
        leave it out of consumption analysis.
        """
        return self._receive(
            TransactionType.INITIAL,
            tenant_id,
            component_id,
            location_id,
            quantity,
            actor_id=actor_id,
            source="initial",
            cost_per_unit=cost_per_unit,
            lot_code=lot_code,
            expiry_date=expiry_date,
            update_component_cost=False,
            notes=notes,
            transaction_date=transaction_date,
        )

    # =========================================================================
    # Builds
    # =========================================================================

    def record_build(
        self,
        tenant_id: UUID,
        sku_id: UUID,
        location_id: UUID | None,
        quantity: Decimal,
        *,
        actor_id: UUID,
        allow_insufficient: bool = False,
        output_location_id: UUID | None = None,
        notes: str | None = None,
        transaction_date: date | None = None,
    ) -> UUID:
        """
        Build units of a SKU from its active BOM.

        Consumes quantity x quantity_per_unit of every BOM component at
        ``location_id`` and produces ``quantity`` units of the SKU at
        ``output_location_id`` (defaults to the build location).

        Raises:
            NonPositiveQuantityError: quantity <= 0.
            MissingBOMError: the SKU has no active BOM with lines.
            InsufficientInventoryError: components are short (or a
                lot-tracked component's lots are short) and
                allow_insufficient is False.  Carries every shortage.
        """
        quantity = _require_positive("build", quantity)

        with LogContext.bind(tenant_id=tenant_id, actor_id=actor_id), self._unit_of_work(
            "build_recording",
            sku_id=str(sku_id),
            quantity=str(quantity),
            allow_insufficient=allow_insufficient,
        ) as result:
            sku = self._sku(tenant_id, sku_id)
            location = self._location(tenant_id, location_id)
            output_location = (
                self._location(tenant_id, output_location_id)
                if output_location_id is not None
                else location
            )

            bom = self._boms.get_active_bom(sku.id, tenant_id)
            if bom is None or not bom.lines:
                raise MissingBOMError(str(sku.id))

            required = {
                line.component_id: line.quantity_per_unit * quantity for line in bom.lines
            }
            available = self._balances.get_quantities(required, tenant_id, location.id)
            shortages = [
                Shortage(
                    entity_id=str(component_id),
                    required=needed,
                    available=available[component_id],
                )
                for component_id, needed in required.items()
                if available[component_id] < needed
            ]
            if shortages:
                logger.warning(
                    "build_component_shortage",
                    extra={
                        "sku_id": str(sku.id),
                        "shortage_count": len(shortages),
                        "allow_insufficient": allow_insufficient,
                    },
                )
                if not allow_insufficient:
                    raise InsufficientInventoryError(shortages, location_id=str(location.id))

            lines: list[LineSpec] = []
            draws: list[LotDraw] = []
            for bom_line in bom.lines:
                component = self._component(tenant_id, bom_line.component_id)
                component_lines, draw = self._draw_lines(
                    component,
                    location.id,
                    required[bom_line.component_id],
                    allow_insufficient,
                )
                lines.extend(component_lines)
                if draw is not None:
                    draws.append(draw)

            # Every draw is planned before any lot is decremented.
            for draw in draws:
                self._lots.apply_draw(draw)

            unit_cost = bom.unit_cost
            lines.append(
                LineSpec(EntityKind.SKU, sku.id, quantity, output_location.id, unit_cost)
            )

            tx = self._post(
                tenant_id=tenant_id,
                tx_type=TransactionType.BUILD,
                lines=lines,
                actor_id=actor_id,
                transaction_date=transaction_date,
                location_id=location.id,
                sku_id=sku.id,
                bom_version_id=bom.bom_version_id,
                units_built=quantity,
                unit_bom_cost=unit_cost,
                notes=notes,
            )
            result["transaction_id"] = str(tx.id)
            result["line_count"] = len(lines)
            result["unit_bom_cost"] = str(unit_cost)
        return tx.id

    # =========================================================================
    # Adjustments
    # =========================================================================

    def record_adjustment(
        self,
        tenant_id: UUID,
        entity_id: UUID,
        location_id: UUID | None,
        quantity: Decimal,
        reason: str,
        *,
        actor_id: UUID,
        lot_id: UUID | None = None,
        notes: str | None = None,
        transaction_date: date | None = None,
    ) -> UUID:
        """
        Post a signed correction for a component or SKU.

        Adjustments may take a balance negative (they record what was
        physically counted); a lot, however, never goes below zero.

        Raises:
            ZeroAdjustmentError: quantity == 0.
        """
        quantity = Decimal(quantity)
        if quantity == 0:
            raise ZeroAdjustmentError(str(entity_id))

        with LogContext.bind(tenant_id=tenant_id, actor_id=actor_id), self._unit_of_work(
            "adjustment_recording",
            entity_id=str(entity_id),
            quantity=str(quantity),
            reason=reason,
        ) as result:
            kind, entity = self._entity(tenant_id, entity_id)
            location = self._location(tenant_id, location_id)

            if lot_id is not None:
                if kind is not EntityKind.COMPONENT:
                    raise LotTrackingError(str(entity_id), "only components carry lots")
                self._lots.adjust(
                    lot_id,
                    tenant_id=tenant_id,
                    component_id=entity.id,
                    location_id=location.id,
                    delta=quantity,
                )

            cost = entity.unit_cost if kind is EntityKind.COMPONENT else None
            tx = self._post(
                tenant_id=tenant_id,
                tx_type=TransactionType.ADJUSTMENT,
                lines=[LineSpec(kind, entity.id, quantity, location.id, cost, lot_id=lot_id)],
                actor_id=actor_id,
                transaction_date=transaction_date,
                location_id=location.id,
                reason=reason,
                notes=notes,
            )
            result["transaction_id"] = str(tx.id)
        return tx.id

    # =========================================================================
    # Transfers
    # =========================================================================

    def record_transfer(
        self,
        tenant_id: UUID,
        entity_id: UUID,
        from_location_id: UUID,
        to_location_id: UUID,
        quantity: Decimal,
        *,
        actor_id: UUID,
        notes: str | None = None,
        transaction_date: date | None = None,
    ) -> UUID:
        """
        Move stock between two locations.

        Posts a negative line at the source and a positive line at the
        destination; the lines sum to zero.  Lot-tracked components move
        lot by lot (FEFO) into same-coded lots at the destination.

        Raises:
            NonPositiveQuantityError, SameLocationTransferError: before any
                database access.
            InsufficientInventoryError: source balance < quantity.
        """
        quantity = _require_positive("transfer", quantity)
        if from_location_id == to_location_id:
            raise SameLocationTransferError(str(from_location_id))

        with LogContext.bind(tenant_id=tenant_id, actor_id=actor_id), self._unit_of_work(
            "transfer_recording",
            entity_id=str(entity_id),
            from_location_id=str(from_location_id),
            to_location_id=str(to_location_id),
            quantity=str(quantity),
        ) as result:
            kind, entity = self._entity(tenant_id, entity_id)
            source = self._location(tenant_id, from_location_id)
            destination = self._location(tenant_id, to_location_id)

            available = self._balances.get_quantity(entity.id, tenant_id, source.id)
            if available < quantity:
                raise InsufficientInventoryError(
                    [Shortage(str(entity.id), quantity, available)],
                    location_id=str(source.id),
                )

            if kind is EntityKind.COMPONENT:
                lines = self._transfer_component_lines(
                    tenant_id, entity, source.id, destination.id, quantity, actor_id
                )
            else:
                lines = [
                    LineSpec(kind, entity.id, -quantity, source.id),
                    LineSpec(kind, entity.id, quantity, destination.id),
                ]

            tx = self._post(
                tenant_id=tenant_id,
                tx_type=TransactionType.TRANSFER,
                lines=lines,
                actor_id=actor_id,
                transaction_date=transaction_date,
                from_location_id=source.id,
                to_location_id=destination.id,
                notes=notes,
            )
            result["transaction_id"] = str(tx.id)
        return tx.id

    def _transfer_component_lines(
        self,
        tenant_id: UUID,
        component: Component,
        source_id: UUID,
        destination_id: UUID,
        quantity: Decimal,
        actor_id: UUID,
    ) -> list[LineSpec]:
        cost = component.unit_cost
        outgoing, draw = self._draw_lines(component, source_id, quantity, allow_insufficient=True)
        if draw is None:
            return [
                outgoing[0],
                LineSpec(EntityKind.COMPONENT, component.id, quantity, destination_id, cost),
            ]

        source_lots = {lot.id: lot for lot in self._lots.available_lots(component.id, source_id)}
        self._lots.apply_draw(draw)

        lines: list[LineSpec] = []
        for allocation in draw.allocations:
            origin = source_lots[allocation.lot_id]
            arrived = self._lots.receive(
                tenant_id=tenant_id,
                component_id=component.id,
                location_id=destination_id,
                lot_code=origin.lot_code,
                quantity=allocation.quantity,
                expiry_date=origin.expiry_date,
                received_date=origin.received_date,
                actor_id=actor_id,
            )
            lines.append(
                LineSpec(
                    EntityKind.COMPONENT, component.id, -allocation.quantity, source_id,
                    cost, lot_id=origin.id,
                )
            )
            lines.append(
                LineSpec(
                    EntityKind.COMPONENT, component.id, allocation.quantity, destination_id,
                    cost, lot_id=arrived.id,
                )
            )
        if draw.unallocated > 0:
            lines.append(
                LineSpec(EntityKind.COMPONENT, component.id, -draw.unallocated, source_id, cost)
            )
            lines.append(
                LineSpec(EntityKind.COMPONENT, component.id, draw.unallocated, destination_id, cost)
            )
        return lines

    # =========================================================================
    # Outbound
    # =========================================================================

    def record_outbound(
        self,
        tenant_id: UUID,
        entity_id: UUID,
        location_id: UUID | None,
        quantity: Decimal,
        *,
        actor_id: UUID,
        channel: str | None = None,
        source: str | None = None,
        allow_insufficient: bool = False,
        notes: str | None = None,
        transaction_date: date | None = None,
    ) -> UUID:
        """
        Ship stock out (marketplace order, wholesale, sample).

        Raises:
            NonPositiveQuantityError: quantity <= 0.
            InsufficientInventoryError: balance (or lots) < quantity and
                allow_insufficient is False.
        """
        quantity = _require_positive("outbound", quantity)

        with LogContext.bind(tenant_id=tenant_id, actor_id=actor_id), self._unit_of_work(
            "outbound_recording",
            entity_id=str(entity_id),
            quantity=str(quantity),
            channel=channel,
        ) as result:
            kind, entity = self._entity(tenant_id, entity_id)
            location = self._location(tenant_id, location_id)

            available = self._balances.get_quantity(entity.id, tenant_id, location.id)
            if available < quantity and not allow_insufficient:
                raise InsufficientInventoryError(
                    [Shortage(str(entity.id), quantity, available)],
                    location_id=str(location.id),
                )

            if kind is EntityKind.COMPONENT:
                lines, draw = self._draw_lines(entity, location.id, quantity, allow_insufficient)
                if draw is not None:
                    self._lots.apply_draw(draw)
            else:
                lines = [LineSpec(kind, entity.id, -quantity, location.id)]

            tx = self._post(
                tenant_id=tenant_id,
                tx_type=TransactionType.OUTBOUND,
                lines=lines,
                actor_id=actor_id,
                transaction_date=transaction_date,
                location_id=location.id,
                channel=channel,
                source=source,
                notes=notes,
            )
            result["transaction_id"] = str(tx.id)
        return tx.id
