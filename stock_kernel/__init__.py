"""
Stock Kernel

An append-only inventory ledger with:
- Atomic multi-line stock movements
- Location-aware balances derived from ledger lines
- BOM-driven buildability
- Consumption forecasting
- FEFO lot consumption
"""

__version__ = "0.1.0"
