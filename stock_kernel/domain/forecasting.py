"""
Consumption forecast math -- pure functions.

Responsibility:
    Turns a consumption total over a lookback window plus the current
    on-hand quantity into runout and reorder recommendations.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Inputs are gathered in batch by
    stock_services.forecast_service.

Formulas:
    average_daily_consumption = total_consumed / lookback_days
    average == 0  ->  days_until_runout, runout_date, reorder_date are None
    on_hand <= 0  ->  days_until_runout = 0, runout_date = today
    otherwise     ->  days_until_runout = floor(on_hand * lookback / total_consumed)
    runout_date   = today + days_until_runout (capped at date.max)
    reorder_date  = runout_date - lead_time_days - safety_days
                    (never clamped: a past date means reorder is overdue)
    reorder_qty   = max(0, ceil(total_consumed * (lookback + lead + safety) / lookback)
                        - on_hand)

The day count and reorder quantity use the exact ratio; the rounded average
is reported for display only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from stock_kernel.domain.dtos import ReorderStatus

ZERO = Decimal("0")


@dataclass(frozen=True)
class RunoutProjection:
    average_daily_consumption: Decimal
    days_until_runout: int | None
    runout_date: date | None
    recommended_reorder_date: date | None
    recommended_reorder_qty: Decimal


def average_daily_consumption(total_consumed: Decimal, lookback_days: int) -> Decimal:
    """
    Fractional average daily consumption.

    Raises:
        ValueError: lookback_days <= 0 or total_consumed < 0.
    """
    if lookback_days <= 0:
        raise ValueError(f"lookback_days must be positive, got {lookback_days}")
    if total_consumed < 0:
        raise ValueError(
            f"total_consumed is a magnitude and cannot be negative, got {total_consumed}"
        )
    if total_consumed == 0:
        return ZERO
    return total_consumed / Decimal(lookback_days)


def days_until_runout(on_hand: Decimal, total_consumed: Decimal, lookback_days: int) -> int | None:
    """
    Whole days of average consumption that ``on_hand`` covers.

    Computed as floor(on_hand * lookback / total) so a non-terminating
    average never shifts the result by a day.
    """
    if total_consumed <= 0:
        return None
    if on_hand <= 0:
        return 0
    return int((on_hand * lookback_days) // total_consumed)


def recommended_reorder_qty(
    on_hand: Decimal,
    total_consumed: Decimal,
    lookback_days: int,
    lead_time_days: int,
    safety_days: int,
) -> Decimal:
    coverage_days = lookback_days + lead_time_days + safety_days
    whole, remainder = divmod(total_consumed * coverage_days, Decimal(lookback_days))
    target = whole + 1 if remainder else whole
    return max(ZERO, target - on_hand)


def project_runout(
    *,
    on_hand: Decimal,
    total_consumed: Decimal,
    lookback_days: int,
    lead_time_days: int,
    safety_days: int,
    today: date,
) -> RunoutProjection:
    """
    Project runout and reorder dates from historical consumption.

    Postconditions:
        - Zero consumption yields None for every date field, for any on_hand.
        - recommended_reorder_date is never clamped to today.
        - recommended_reorder_qty >= 0.
    """
    if lead_time_days < 0 or safety_days < 0:
        raise ValueError("lead_time_days and safety_days cannot be negative")

    average = average_daily_consumption(total_consumed, lookback_days)
    days = days_until_runout(on_hand, total_consumed, lookback_days)

    if days is None:
        runout = None
        reorder = None
    else:
        # Very slow movers would overflow the calendar.
        runout = today + timedelta(days=min(days, (date.max - today).days))
        reorder = runout - timedelta(days=lead_time_days + safety_days)

    return RunoutProjection(
        average_daily_consumption=average,
        days_until_runout=days,
        runout_date=runout,
        recommended_reorder_date=reorder,
        recommended_reorder_qty=recommended_reorder_qty(
            on_hand, total_consumed, lookback_days, lead_time_days, safety_days
        ),
    )


def reorder_status(
    on_hand: Decimal,
    reorder_point: Decimal,
    warning_multiplier: Decimal = Decimal("1.5"),
) -> ReorderStatus:
    """
    Classify stock against a reorder point.

    A reorder point of zero means the component is not monitored and is
    always OK.
    """
    if reorder_point <= 0:
        return ReorderStatus.OK
    if on_hand <= reorder_point:
        return ReorderStatus.CRITICAL
    if on_hand <= reorder_point * warning_multiplier:
        return ReorderStatus.WARNING
    return ReorderStatus.OK
