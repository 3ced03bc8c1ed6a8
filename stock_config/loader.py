"""
Configuration Loader (``stock_config.loader``).

Responsibility
--------------
Loads a tenant configuration YAML file and parses it into typed
``stock_config.schema`` instances.  Services never call this directly;
they are handed a ``TenantConfig`` by whoever constructs them.

File layout::

    defaults:
      lookback_days: 30
      safety_days: 7
      excluded_transaction_types: [initial, adjustment]
    tenants:
      "8c0e...-uuid":
        lookback_days: 60

Tenant blocks are applied on top of ``defaults``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or out-of-range values  -> ``ConfigError``.
* Tenant keys that are not UUIDs  -> ``ConfigError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from decimal import Decimal
from pathlib import Path
from typing import Any
from uuid import UUID

import yaml

from stock_config.schema import ConfigurationSet, TenantConfig
from stock_kernel.exceptions import ConfigError

_FIELD_NAMES = frozenset(f.name for f in fields(TenantConfig))


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (possibly empty if the YAML is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_tenant_config(data: dict[str, Any], base: TenantConfig | None = None) -> TenantConfig:
    """
    Build a TenantConfig from a mapping, layered over ``base``.

    Raises:
        ConfigError: unknown keys or invalid values.
    """
    unknown = sorted(set(data) - _FIELD_NAMES)
    if unknown:
        raise ConfigError(unknown[0], data[unknown[0]], "unknown configuration key")

    values: dict[str, Any] = dict(data)
    if "reorder_warning_multiplier" in values:
        # YAML floats go through str so 1.5 stays exactly Decimal("1.5").
        values["reorder_warning_multiplier"] = Decimal(str(values["reorder_warning_multiplier"]))
    if "excluded_transaction_types" in values:
        values["excluded_transaction_types"] = tuple(values["excluded_transaction_types"] or ())

    if base is None:
        return TenantConfig(**values)
    merged = {f: getattr(base, f) for f in _FIELD_NAMES}
    merged.update(values)
    return TenantConfig(**merged)


def load_configuration_set(path: Path) -> ConfigurationSet:
    """Parse a configuration YAML file into a ConfigurationSet."""
    raw = load_yaml_file(Path(path))
    defaults = parse_tenant_config(raw.get("defaults") or {})

    tenants: dict[UUID, TenantConfig] = {}
    for key, block in (raw.get("tenants") or {}).items():
        try:
            tenant_id = UUID(str(key))
        except ValueError as exc:
            raise ConfigError("tenants", key, "tenant keys must be UUIDs") from exc
        tenants[tenant_id] = parse_tenant_config(block or {}, base=defaults)

    return ConfigurationSet(defaults=defaults, tenants=tenants, checksum=compute_checksum(raw))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
