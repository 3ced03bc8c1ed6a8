"""
Transaction type discriminator and the rules keyed on it.

Responsibility:
    Defines the closed set of inventory transaction types and, for each
    one, how its lines are located and whether it may be excluded from
    consumption analysis.  Every site that branches on the type (ledger
    write, location scoping, forecast exclusion) reads these tables, and
    the tables are checked for exhaustiveness at import time so adding a
    type without deciding its rules fails immediately.

Architecture position:
    Kernel > Domain -- pure, zero I/O.
"""

from __future__ import annotations

from enum import Enum


class TransactionType(str, Enum):
    """Kind of inventory-affecting event recorded in the ledger."""

    RECEIPT = "receipt"
    BUILD = "build"
    ADJUSTMENT = "adjustment"
    TRANSFER = "transfer"
    OUTBOUND = "outbound"
    INITIAL = "initial"


class EntityKind(str, Enum):
    """What a ledger line counts: a raw component or a finished SKU."""

    COMPONENT = "component"
    SKU = "sku"


class LocationRule(str, Enum):
    """
    How the effective location of a line is determined.

    LINE:        the line's own location.
    DIRECTIONAL: negative lines sit at the header's source location and
                 positive lines at the header's destination location.
    """

    LINE = "line"
    DIRECTIONAL = "directional"


LOCATION_RULES: dict[TransactionType, LocationRule] = {
    TransactionType.RECEIPT: LocationRule.LINE,
    TransactionType.BUILD: LocationRule.LINE,
    TransactionType.ADJUSTMENT: LocationRule.LINE,
    TransactionType.TRANSFER: LocationRule.DIRECTIONAL,
    TransactionType.OUTBOUND: LocationRule.LINE,
    TransactionType.INITIAL: LocationRule.LINE,
}

# Types a tenant may drop from consumption analysis.  Builds and outbound
# shipments are what consumption means, so they can never be excluded.
CONSUMPTION_EXCLUDABLE: dict[TransactionType, bool] = {
    TransactionType.RECEIPT: True,
    TransactionType.BUILD: False,
    TransactionType.ADJUSTMENT: True,
    TransactionType.TRANSFER: True,
    TransactionType.OUTBOUND: False,
    TransactionType.INITIAL: True,
}

# Line lists of these types must sum to exactly zero.
ZERO_SUM: dict[TransactionType, bool] = {
    TransactionType.RECEIPT: False,
    TransactionType.BUILD: False,
    TransactionType.ADJUSTMENT: False,
    TransactionType.TRANSFER: True,
    TransactionType.OUTBOUND: False,
    TransactionType.INITIAL: False,
}

DEFAULT_EXCLUDED_TYPES: frozenset[TransactionType] = frozenset(
    {TransactionType.INITIAL, TransactionType.ADJUSTMENT}
)


def _assert_exhaustive(table: dict[TransactionType, object], name: str) -> None:
    missing = set(TransactionType) - set(table)
    if missing:
        raise RuntimeError(
            f"{name} has no entry for: {sorted(t.value for t in missing)}"
        )


for _name, _table in (
    ("LOCATION_RULES", LOCATION_RULES),
    ("CONSUMPTION_EXCLUDABLE", CONSUMPTION_EXCLUDABLE),
    ("ZERO_SUM", ZERO_SUM),
):
    _assert_exhaustive(_table, _name)


def location_rule(tx_type: TransactionType) -> LocationRule:
    return LOCATION_RULES[tx_type]


def is_excludable(tx_type: TransactionType) -> bool:
    return CONSUMPTION_EXCLUDABLE[tx_type]


def requires_zero_sum(tx_type: TransactionType) -> bool:
    return ZERO_SUM[tx_type]


def parse_transaction_type(value: str | TransactionType) -> TransactionType:
    """Parse a type name, raising ValueError for unknown names."""
    if isinstance(value, TransactionType):
        return value
    try:
        return TransactionType(value.strip().lower())
    except ValueError:
        valid = ", ".join(t.value for t in TransactionType)
        raise ValueError(
            f"Unknown transaction type {value!r}; expected one of: {valid}"
        ) from None
