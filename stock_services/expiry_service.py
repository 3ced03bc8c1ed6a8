"""
stock_services.expiry_service -- lots approaching their expiry date.

Reads the tenant's expiry warning window from TenantConfig and reports
every lot with stock that expires inside it, soonest first.  Read-only.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from stock_config.schema import TenantConfig
from stock_kernel.domain.clock import Clock
from stock_kernel.domain.dtos import LotInfo
from stock_kernel.logging_config import get_logger
from stock_kernel.services.lot_service import LotService

logger = get_logger("services.expiry")


class ExpiryService:
    """Expiry report over a tenant's lots."""

    def __init__(
        self,
        session: Session,
        config: TenantConfig | None = None,
        clock: Clock | None = None,
    ):
        self._config = config or TenantConfig()
        self._lots = LotService(session, clock, expiry_warning_days=self._config.expiry_warning_days)

    def find_expiring_lots(self, tenant_id: UUID, include_expired: bool = True) -> list[LotInfo]:
        lots = self._lots.find_expiring_lots(tenant_id, include_expired=include_expired)
        logger.info(
            "expiring_lots_found",
            extra={
                "tenant_id": str(tenant_id),
                "warning_days": self._config.expiry_warning_days,
                "lot_count": len(lots),
            },
        )
        return lots
