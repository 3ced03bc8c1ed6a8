"""
stock_config -- tenant configuration for forecasting and listings.

Responsibility:
    Provides ``get_tenant_config()``, the single way to obtain a tenant's
    ``TenantConfig`` from a configuration file.  Services accept the
    resulting object explicitly; none of them read files themselves.

Architecture position:
    Configuration -- sits above ``stock_kernel`` (uses its transaction
    types and ConfigError).  The kernel never imports from here.
"""

from __future__ import annotations

from pathlib import Path
from uuid import UUID

from stock_config.loader import load_configuration_set
from stock_config.schema import ConfigurationSet, ForecastOverrides, TenantConfig
from stock_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_FILE = Path(__file__).parent / "sets" / "default.yaml"

__all__ = [
    "ConfigurationSet",
    "ForecastOverrides",
    "TenantConfig",
    "get_tenant_config",
    "load_configuration_set",
]


def get_tenant_config(tenant_id: UUID, config_path: Path | None = None) -> TenantConfig:
    """
    Configuration for one tenant.

    Tenants without their own block get the file's defaults.

    Raises:
        FileNotFoundError: the configuration file does not exist.
        ConfigError: the file holds an invalid value.
    """
    path = config_path or _DEFAULT_CONFIG_FILE
    config_set = load_configuration_set(path)
    config = config_set.for_tenant(tenant_id)
    _logger.info(
        "tenant_config_loaded",
        extra={
            "tenant_id": str(tenant_id),
            "config_path": str(path),
            "checksum": config_set.checksum,
            "tenant_specific": tenant_id in config_set.tenants,
        },
    )
    return config
