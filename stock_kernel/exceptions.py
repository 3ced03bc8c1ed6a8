"""
Typed Exception Hierarchy for the Stock Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (receiving UI, order sync, build screens) need to react to specific
failures: an insufficient-inventory error is offered an explicit override, a
cross-tenant reference is a security event, a validation error is shown to
the user.  Parsing message strings for that is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        ledger.record_build(tenant_id, sku_id, location_id, Decimal("10"))
    except InsufficientInventoryError as e:
        for shortage in e.shortages:
            warn(shortage.entity_id, shortage.shortfall)
        ask_user_for_override()

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    StockKernelError (base)
    |
    +-- ValidationError
    |   +-- NonPositiveQuantityError
    |   +-- ZeroAdjustmentError
    |   +-- SameLocationTransferError
    |   +-- InactiveEntityError
    |   +-- MissingBOMError
    |   +-- InvalidBOMLineError
    |   +-- LotTrackingError
    |   +-- UnbalancedTransactionError
    |
    +-- InventoryError
    |   +-- InsufficientInventoryError
    |
    +-- AccessDeniedError
    |
    +-- NotFoundError
    |   +-- EntityNotFoundError
    |   |   +-- ComponentNotFoundError
    |   |   +-- SkuNotFoundError
    |   +-- LocationNotFoundError
    |   +-- BomVersionNotFoundError
    |   +-- LotNotFoundError
    |
    +-- ImmutabilityViolationError
    |
    +-- ConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                      | When Raised
--------------|---------------------------|---------------------------------------
Validation    | NON_POSITIVE_QUANTITY     | Receipt/build/transfer/outbound qty <= 0
              | ZERO_ADJUSTMENT           | Adjustment with signed qty == 0
              | SAME_LOCATION_TRANSFER    | Transfer source == destination
              | INACTIVE_ENTITY           | Posting against a deactivated record
              | MISSING_BOM               | Build for a SKU without an active BOM
              | INVALID_BOM_LINE          | BOM line qty <= 0 or duplicate component
              | LOT_TRACKING              | Lot data inconsistent with the component
              | UNBALANCED_TRANSACTION    | Transfer lines do not sum to zero
--------------|---------------------------|---------------------------------------
Inventory     | INSUFFICIENT_INVENTORY    | Operation would drive stock negative
--------------|---------------------------|---------------------------------------
Access        | ACCESS_DENIED             | Entity belongs to another tenant
--------------|---------------------------|---------------------------------------
Not found     | ENTITY_NOT_FOUND          | Component/SKU id does not exist
              | COMPONENT_NOT_FOUND       | Component id unknown or inactive
              | SKU_NOT_FOUND             | SKU id does not exist
              | LOCATION_NOT_FOUND        | Location id does not exist
              | BOM_VERSION_NOT_FOUND     | BOM version id does not exist
              | LOT_NOT_FOUND             | Lot id does not exist
--------------|---------------------------|---------------------------------------
Immutability  | IMMUTABILITY_VIOLATION    | Update/delete of a ledger record
--------------|---------------------------|---------------------------------------
Config        | CONFIG_ERROR              | Tenant configuration out of range

===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence


class StockKernelError(Exception):
    """
    Base exception for all stock kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STOCK_KERNEL_ERROR"


# Validation exceptions


class ValidationError(StockKernelError):
    """Input rejected before any write was attempted."""

    code: str = "VALIDATION_ERROR"


class NonPositiveQuantityError(ValidationError):
    """A quantity that must be strictly positive was zero or negative."""

    code: str = "NON_POSITIVE_QUANTITY"

    def __init__(self, operation: str, quantity: Decimal):
        self.operation = operation
        self.quantity = quantity
        super().__init__(
            f"{operation} requires a positive quantity, got {quantity}"
        )


class ZeroAdjustmentError(ValidationError):
    """An adjustment carried a zero signed quantity."""

    code: str = "ZERO_ADJUSTMENT"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"Adjustment for {entity_id} must be non-zero")


class SameLocationTransferError(ValidationError):
    """Transfer source and destination are the same location."""

    code: str = "SAME_LOCATION_TRANSFER"

    def __init__(self, location_id: str):
        self.location_id = location_id
        super().__init__(
            f"Cannot transfer to the same location: {location_id}"
        )


class InactiveEntityError(ValidationError):
    """Posting against a deactivated location, component or SKU."""

    code: str = "INACTIVE_ENTITY"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} is not active")


class MissingBOMError(ValidationError):
    """A build was requested for a SKU with no active BOM version."""

    code: str = "MISSING_BOM"

    def __init__(self, sku_id: str):
        self.sku_id = sku_id
        super().__init__(f"No active BOM found for SKU {sku_id}")


class InvalidBOMLineError(ValidationError):
    """A BOM line has a non-positive quantity or repeats a component."""

    code: str = "INVALID_BOM_LINE"

    def __init__(self, component_id: str, reason: str):
        self.component_id = component_id
        self.reason = reason
        super().__init__(f"Invalid BOM line for component {component_id}: {reason}")


class LotTrackingError(ValidationError):
    """Lot data does not match the component or location it is used with."""

    code: str = "LOT_TRACKING"

    def __init__(self, component_id: str, reason: str):
        self.component_id = component_id
        self.reason = reason
        super().__init__(f"Lot tracking error for component {component_id}: {reason}")


class UnbalancedTransactionError(ValidationError):
    """Lines of a zero-sum transaction (transfer) do not net to zero."""

    code: str = "UNBALANCED_TRANSACTION"

    def __init__(self, transaction_type: str, total: Decimal):
        self.transaction_type = transaction_type
        self.total = total
        super().__init__(
            f"{transaction_type} lines must sum to zero, got {total}"
        )


# Inventory exceptions


class InventoryError(StockKernelError):
    """Base exception for stock level errors."""

    code: str = "INVENTORY_ERROR"


@dataclass(frozen=True)
class Shortage:
    """One entity that cannot cover its requested quantity."""

    entity_id: str
    required: Decimal
    available: Decimal

    @property
    def shortfall(self) -> Decimal:
        return self.required - self.available


class InsufficientInventoryError(InventoryError):
    """
    Operation would drive a balance or lot below zero.

    Carries every short entity so callers can present the full picture
    and retry with an explicit override.
    """

    code: str = "INSUFFICIENT_INVENTORY"

    def __init__(self, shortages: Sequence[Shortage], location_id: str | None = None):
        self.shortages = tuple(shortages)
        self.location_id = location_id
        self.shortfall = sum((s.shortfall for s in self.shortages), Decimal("0"))
        detail = ", ".join(
            f"{s.entity_id} (need {s.required}, have {s.available})"
            for s in self.shortages
        )
        super().__init__(
            f"Insufficient inventory, shortfall {self.shortfall}: {detail}"
        )


# Access exceptions


class AccessDeniedError(StockKernelError):
    """Entity exists but belongs to a different tenant."""

    code: str = "ACCESS_DENIED"

    def __init__(self, entity_type: str, entity_id: str, tenant_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.tenant_id = tenant_id
        super().__init__(
            f"{entity_type} {entity_id} not found or access denied"
        )


# Not-found exceptions


class NotFoundError(StockKernelError):
    """Base exception for unknown ids."""

    code: str = "NOT_FOUND"


class EntityNotFoundError(NotFoundError):
    """Component or SKU id does not exist."""

    code: str = "ENTITY_NOT_FOUND"
    entity_type: str = "Entity"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity_type} not found: {entity_id}")


class ComponentNotFoundError(EntityNotFoundError):
    """Component id does not exist or is not active."""

    code: str = "COMPONENT_NOT_FOUND"
    entity_type = "Component"


class SkuNotFoundError(EntityNotFoundError):
    """SKU id does not exist."""

    code: str = "SKU_NOT_FOUND"
    entity_type = "SKU"


class LocationNotFoundError(NotFoundError):
    """Location id does not exist."""

    code: str = "LOCATION_NOT_FOUND"

    def __init__(self, location_id: str):
        self.location_id = location_id
        super().__init__(f"Location not found: {location_id}")


class BomVersionNotFoundError(NotFoundError):
    """BOM version id does not exist."""

    code: str = "BOM_VERSION_NOT_FOUND"

    def __init__(self, bom_version_id: str):
        self.bom_version_id = bom_version_id
        super().__init__(f"BOM version not found: {bom_version_id}")


class LotNotFoundError(NotFoundError):
    """Lot id does not exist."""

    code: str = "LOT_NOT_FOUND"

    def __init__(self, lot_id: str):
        self.lot_id = lot_id
        super().__init__(f"Lot not found: {lot_id}")


# Immutability exceptions


class ImmutabilityViolationError(StockKernelError):
    """
    Attempted to modify or delete an immutable ledger record.

    Inventory transactions and their lines are append-only; corrections
    are new adjustment transactions.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Configuration exceptions


class ConfigError(StockKernelError):
    """Tenant configuration value is missing or out of range."""

    code: str = "CONFIG_ERROR"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid configuration {field}={value!r}: {reason}")
