"""
stock_services -- read-side orchestration over the stock kernel.

Responsibility:
    Services that compose kernel selectors, pure domain calculations and
    tenant configuration into the buildability, forecast and lot expiry views.

Architecture position:
    Services -- above stock_kernel and stock_config.

        stock_services/ -> stock_kernel/  (allowed)
        stock_services/ -> stock_config/  (allowed)
        stock_kernel/   -> stock_services/ (FORBIDDEN)
"""

from stock_services.buildability_service import BuildabilityService
from stock_services.expiry_service import ExpiryService
from stock_services.forecast_service import ForecastService, ForecastSort

__all__ = [
    "BuildabilityService",
    "ExpiryService",
    "ForecastService",
    "ForecastSort",
]
