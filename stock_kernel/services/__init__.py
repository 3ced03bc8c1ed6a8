"""Kernel services: the imperative shell that writes the ledger."""

from stock_kernel.services.base import BaseService, OwningService
from stock_kernel.services.bom_service import BomService
from stock_kernel.services.ledger_service import InventoryLedgerService
from stock_kernel.services.lot_service import LotService
from stock_kernel.services.reconciliation_service import ReconciliationService

__all__ = [
    "BaseService",
    "BomService",
    "InventoryLedgerService",
    "LotService",
    "OwningService",
    "ReconciliationService",
]
