"""ORM models.  Importing this package registers every table on Base.metadata."""

from stock_kernel.models.balance import InventoryBalance
from stock_kernel.models.bom import BomLine, BomVersion
from stock_kernel.models.catalog import Component, Location, Sku
from stock_kernel.models.ledger import InventoryTransaction, TransactionLine
from stock_kernel.models.lot import Lot

__all__ = [
    "BomLine",
    "BomVersion",
    "Component",
    "InventoryBalance",
    "InventoryTransaction",
    "Location",
    "Lot",
    "Sku",
    "TransactionLine",
]
