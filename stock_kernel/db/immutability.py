"""
ORM-Level Immutability Enforcement for the inventory ledger.

===============================================================================
WHY THIS EXISTS
===============================================================================

Every stock level in the system is derived from inventory transactions and
their lines.  If a posted line could be edited, every balance, buildability
figure and forecast computed from it would silently change, and the balance
index could no longer be reconciled against its source.  Corrections are
therefore made by posting a new adjustment transaction, never by editing.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events:

    session.flush()
         |
         v
    [before_update event] --> _block_update() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _block_delete() --> ImmutabilityViolationError

If a check fails the flush is aborted and nothing is sent to the database.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                | When Immutable          | Why
----------------------|-------------------------|-----------------------------------
InventoryTransaction  | ALWAYS (from creation)  | Header of the append-only ledger
TransactionLine       | ALWAYS (from creation)  | Balances are sums of these rows

Lots and the balance index are mutable by design: they are running
positions maintained inside the same unit of work as the ledger lines.

===============================================================================
USAGE
===============================================================================

    from stock_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY - never in production):

    unregister_immutability_listeners()
"""

from sqlalchemy import event

from stock_kernel.exceptions import ImmutabilityViolationError
from stock_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_registered = False


def _reject(target, operation: str) -> None:
    entity_type = type(target).__name__
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    verb = "modified" if operation == "UPDATE" else "deleted"
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=f"Ledger records are append-only and cannot be {verb}",
    )


def _block_update(mapper, connection, target):
    """Prevent any updates to ledger records."""
    _reject(target, "UPDATE")


def _block_delete(mapper, connection, target):
    """Prevent deletion of ledger records."""
    _reject(target, "DELETE")


def _ledger_models():
    # Inline import: models import from db, db imports from models.
    from stock_kernel.models.ledger import InventoryTransaction, TransactionLine

    return (InventoryTransaction, TransactionLine)


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Idempotent.  Call this after all models are imported but before any
    database operations begin.
    """
    global _registered
    if _registered:
        return

    for model in _ledger_models():
        event.listen(model, "before_update", _block_update)
        event.listen(model, "before_delete", _block_delete)

    _registered = True
    logger.info("immutability_listeners_registered")


def unregister_immutability_listeners():
    """
    Remove all immutability enforcement event listeners.

    WARNING: Only use this for testing purposes.
    """
    global _registered
    if not _registered:
        return

    for model in _ledger_models():
        if event.contains(model, "before_update", _block_update):
            event.remove(model, "before_update", _block_update)
        if event.contains(model, "before_delete", _block_delete):
            event.remove(model, "before_delete", _block_delete)

    _registered = False
    logger.info("immutability_listeners_unregistered")
