"""Read-only query selectors."""

from stock_kernel.selectors.balance_selector import BalanceSelector, effective_location_expr
from stock_kernel.selectors.bom_selector import BomSelector
from stock_kernel.selectors.consumption_selector import ConsumptionSelector

__all__ = [
    "BalanceSelector",
    "BomSelector",
    "ConsumptionSelector",
    "effective_location_expr",
]
