"""
stock_services.forecast_service -- consumption-based runout forecasting.

Responsibility:
    For each component: totals its consumption over the lookback window,
    reads its current on-hand quantity, and projects the runout date,
    recommended reorder date and quantity, and reorder status
    (domain/forecasting.py).  Batch listings sort and filter over the
    tenant's whole active catalog before paginating.

Architecture position:
    Services -- read-only orchestration over kernel selectors + domain.
    Configuration arrives as an explicit TenantConfig; "today" comes from
    the injected Clock.

Invariants enforced:
    - Zero consumption gives None for every date field, whatever on_hand is.
    - recommended_reorder_date is never clamped; a past date means the
      reorder is overdue.
    - A listing computes every row, then sorts, then filters, then pages,
      so page boundaries do not depend on page size.
    - A listing issues one balance query and one consumption query in
      total, not one per component.

Failure modes:
    - ComponentNotFoundError for unknown or inactive component ids.
    - AccessDeniedError for another tenant's component.
    - ConfigError when per-call overrides are out of range.
"""

from __future__ import annotations

import time
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Literal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_config.schema import ForecastOverrides, TenantConfig
from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.dtos import ComponentForecast, ForecastAssumptions, ForecastPage
from stock_kernel.domain.forecasting import project_runout, reorder_status
from stock_kernel.exceptions import AccessDeniedError, ComponentNotFoundError
from stock_kernel.logging_config import get_logger
from stock_kernel.models.catalog import Component
from stock_kernel.selectors.balance_selector import BalanceSelector
from stock_kernel.selectors.consumption_selector import ConsumptionSelector

logger = get_logger("services.forecast")


class ForecastSort(str, Enum):
    """Sort keys for forecast listings."""

    RUNOUT_DATE = "runout_date"
    CONSUMPTION = "consumption"
    NAME = "name"
    REORDER_QTY = "reorder_qty"


def _sort_key(sort: ForecastSort):
    # Every key ends with (name, id) so ordering is total and stable.
    if sort is ForecastSort.RUNOUT_DATE:
        return lambda f: (
            f.runout_date is None,
            f.runout_date or date.max,
            f.component_name,
            str(f.component_id),
        )
    if sort is ForecastSort.CONSUMPTION:
        return lambda f: (-f.average_daily_consumption, f.component_name, str(f.component_id))
    if sort is ForecastSort.REORDER_QTY:
        return lambda f: (-f.recommended_reorder_qty, f.component_name, str(f.component_id))
    return lambda f: (f.component_name, str(f.component_id))


class ForecastService:
    """
    Component runout forecaster.

    Contract:
        Receives Session, TenantConfig and Clock via constructor injection.
        Returns frozen ComponentForecast / ForecastPage DTOs.
    Non-goals:
        - No seasonality or trend modelling; the average is flat.
        - Does not send notifications; callers read is_at_risk.
    """

    def __init__(
        self,
        session: Session,
        config: TenantConfig | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._config = config or TenantConfig()
        self._clock = clock or SystemClock()
        self._balances = BalanceSelector(session)
        self._consumption = ConsumptionSelector(session)

    def compute_forecast(
        self,
        tenant_id: UUID,
        component_id: UUID | Literal["all"],
        overrides: ForecastOverrides | None = None,
        location_id: UUID | None = None,
        sort: ForecastSort = ForecastSort.RUNOUT_DATE,
        at_risk_only: bool = False,
        page: int = 1,
        page_size: int | None = None,
    ) -> ComponentForecast | ForecastPage:
        """
        Forecast one component, or list every active component with "all".

        The listing arguments (sort, at_risk_only, page, page_size) apply
        only to "all".
        """
        if component_id == "all":
            return self.list_forecasts(
                tenant_id,
                overrides=overrides,
                location_id=location_id,
                sort=sort,
                at_risk_only=at_risk_only,
                page=page,
                page_size=page_size,
            )
        return self.forecast_component(tenant_id, component_id, overrides, location_id)

    def forecast_component(
        self,
        tenant_id: UUID,
        component_id: UUID,
        overrides: ForecastOverrides | None = None,
        location_id: UUID | None = None,
    ) -> ComponentForecast:
        component = self._session.get(Component, component_id)
        if component is None:
            raise ComponentNotFoundError(str(component_id))
        if component.tenant_id != tenant_id:
            raise AccessDeniedError("component", str(component_id), str(tenant_id))
        if not component.is_active:
            raise ComponentNotFoundError(str(component_id))

        return self._forecast_rows(tenant_id, [component], overrides, location_id)[0]

    def list_forecasts(
        self,
        tenant_id: UUID,
        overrides: ForecastOverrides | None = None,
        location_id: UUID | None = None,
        sort: ForecastSort = ForecastSort.RUNOUT_DATE,
        at_risk_only: bool = False,
        page: int = 1,
        page_size: int | None = None,
    ) -> ForecastPage:
        """
        Forecasts for all of the tenant's active components.

        Rows are sorted and filtered over the full set, then paginated.
        page_size defaults to and is capped at the tenant's max_page_size.
        """
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        size = min(page_size or self._config.max_page_size, self._config.max_page_size)
        if size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")

        components = list(
            self._session.execute(
                select(Component).where(
                    Component.tenant_id == tenant_id,
                    Component.is_active.is_(True),
                )
            ).scalars()
        )
        rows = self._forecast_rows(tenant_id, components, overrides, location_id)
        rows.sort(key=_sort_key(ForecastSort(sort)))
        if at_risk_only:
            rows = [row for row in rows if row.is_at_risk]

        start = (page - 1) * size
        return ForecastPage(
            items=tuple(rows[start:start + size]),
            total=len(rows),
            page=page,
            page_size=size,
        )

    def _forecast_rows(
        self,
        tenant_id: UUID,
        components: list[Component],
        overrides: ForecastOverrides | None,
        location_id: UUID | None,
    ) -> list[ComponentForecast]:
        if not components:
            return []

        t0 = time.monotonic()
        config = self._config.with_overrides(overrides)
        today = self._clock.today()
        start = today - timedelta(days=config.lookback_days)
        excluded = tuple(sorted(t.value for t in config.excluded_transaction_types))
        ids = [c.id for c in components]

        on_hand = self._balances.get_quantities(ids, tenant_id, location_id)
        consumed = self._consumption.get_consumption(
            ids,
            tenant_id,
            start,
            today,
            excluded_types=config.excluded_transaction_types,
            location_id=location_id,
        )

        rows = []
        for component in components:
            if overrides is not None and overrides.lead_time_days is not None:
                lead_time = overrides.lead_time_days
            elif component.lead_time_days is not None:
                lead_time = component.lead_time_days
            else:
                lead_time = config.default_lead_time_days

            quantity = on_hand[component.id]
            projection = project_runout(
                on_hand=quantity,
                total_consumed=consumed[component.id],
                lookback_days=config.lookback_days,
                lead_time_days=lead_time,
                safety_days=config.safety_days,
                today=today,
            )
            reorder_point = component.reorder_point or Decimal("0")
            rows.append(
                ComponentForecast(
                    component_id=component.id,
                    component_name=component.name,
                    sku_code=component.sku_code,
                    current_on_hand=quantity,
                    total_consumed=consumed[component.id],
                    average_daily_consumption=projection.average_daily_consumption,
                    days_until_runout=projection.days_until_runout,
                    runout_date=projection.runout_date,
                    recommended_reorder_date=projection.recommended_reorder_date,
                    recommended_reorder_qty=projection.recommended_reorder_qty,
                    reorder_point=reorder_point,
                    reorder_status=reorder_status(
                        quantity, reorder_point, config.reorder_warning_multiplier
                    ),
                    assumptions=ForecastAssumptions(
                        lookback_days=config.lookback_days,
                        safety_days=config.safety_days,
                        lead_time_days=lead_time,
                        excluded_transaction_types=excluded,
                    ),
                )
            )

        logger.info(
            "forecast_computed",
            extra={
                "tenant_id": str(tenant_id),
                "component_count": len(rows),
                "at_risk_count": sum(1 for r in rows if r.is_at_risk),
                "lookback_days": config.lookback_days,
                "location_id": str(location_id) if location_id else None,
                "duration_ms": round((time.monotonic() - t0) * 1000, 2),
            },
        )
        return rows
