"""
Tenant configuration schema.

Defines the typed, immutable settings that drive forecasting and catalog
pagination.  YAML files are parsed into these types by the loader;
services receive a ``TenantConfig`` explicitly and never read files or
environment variables themselves.

Invariants enforced:
    - Every TenantConfig is validated on construction (``ConfigError``).
    - Only transaction types declared excludable may be excluded from
      consumption analysis.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from stock_kernel.domain.transaction_types import (
    DEFAULT_EXCLUDED_TYPES,
    TransactionType,
    is_excludable,
    parse_transaction_type,
)
from stock_kernel.exceptions import ConfigError

LOOKBACK_RANGE = (7, 365)
SAFETY_RANGE = (0, 90)


def _in_range(name: str, value: int, bounds: tuple[int, int]) -> None:
    low, high = bounds
    if not low <= value <= high:
        raise ConfigError(name, value, f"must be between {low} and {high}")


def parse_excluded_types(values: Iterable[str | TransactionType]) -> frozenset[TransactionType]:
    """Parse and check a list of excluded transaction type names."""
    parsed = set()
    for value in values:
        try:
            tx_type = parse_transaction_type(value)
        except ValueError as exc:
            raise ConfigError("excluded_transaction_types", value, str(exc)) from exc
        if not is_excludable(tx_type):
            raise ConfigError(
                "excluded_transaction_types",
                tx_type.value,
                "only initial, adjustment, receipt and transfer can be excluded",
            )
        parsed.add(tx_type)
    return frozenset(parsed)


@dataclass(frozen=True)
class TenantConfig:
    """Forecasting and listing settings for one tenant."""

    lookback_days: int = 30
    safety_days: int = 7
    default_lead_time_days: int = 0
    reorder_warning_multiplier: Decimal = Decimal("1.5")
    excluded_transaction_types: frozenset[TransactionType] = field(
        default_factory=lambda: frozenset(DEFAULT_EXCLUDED_TYPES)
    )
    max_page_size: int = 200
    expiry_warning_days: int = 30

    def __post_init__(self) -> None:
        _in_range("lookback_days", self.lookback_days, LOOKBACK_RANGE)
        _in_range("safety_days", self.safety_days, SAFETY_RANGE)
        if self.default_lead_time_days < 0:
            raise ConfigError("default_lead_time_days", self.default_lead_time_days, "cannot be negative")
        if Decimal(self.reorder_warning_multiplier) < 1:
            raise ConfigError(
                "reorder_warning_multiplier", self.reorder_warning_multiplier, "must be at least 1"
            )
        if self.max_page_size < 1:
            raise ConfigError("max_page_size", self.max_page_size, "must be positive")
        if self.expiry_warning_days < 0:
            raise ConfigError("expiry_warning_days", self.expiry_warning_days, "cannot be negative")
        # Normalizes strings and lists given by callers into the frozen enum set.
        object.__setattr__(
            self,
            "excluded_transaction_types",
            parse_excluded_types(self.excluded_transaction_types),
        )
        object.__setattr__(
            self, "reorder_warning_multiplier", Decimal(self.reorder_warning_multiplier)
        )

    def with_overrides(self, overrides: ForecastOverrides | None) -> TenantConfig:
        """A validated copy with any non-None override applied."""
        if overrides is None:
            return self
        changes = {
            name: value
            for name, value in (
                ("lookback_days", overrides.lookback_days),
                ("safety_days", overrides.safety_days),
                ("default_lead_time_days", overrides.lead_time_days),
                ("excluded_transaction_types", overrides.excluded_transaction_types),
            )
            if value is not None
        }
        return replace(self, **changes) if changes else self


@dataclass(frozen=True)
class ForecastOverrides:
    """
    Per-call forecast parameter overrides.

    lead_time_days, when given, replaces both the tenant default and every
    component's own lead time.
    """

    lookback_days: int | None = None
    safety_days: int | None = None
    lead_time_days: int | None = None
    excluded_transaction_types: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ConfigurationSet:
    """Defaults plus per-tenant configurations loaded from one YAML file."""

    defaults: TenantConfig
    tenants: dict[UUID, TenantConfig] = field(default_factory=dict)
    checksum: str = ""

    def for_tenant(self, tenant_id: UUID) -> TenantConfig:
        return self.tenants.get(tenant_id, self.defaults)
