"""
Tests for runout projection math (stock_kernel/domain/forecasting.py).
"""

import math
from datetime import date, timedelta
from decimal import Decimal
from fractions import Fraction

import pytest

from stock_kernel.domain.dtos import ReorderStatus
from stock_kernel.domain.forecasting import (
    average_daily_consumption,
    days_until_runout,
    project_runout,
    recommended_reorder_qty,
    reorder_status,
)

TODAY = date(2024, 6, 15)


class TestAverageDailyConsumption:

    def test_fractional_average(self):
        assert average_daily_consumption(Decimal("10"), 30) == Decimal("10") / Decimal("30")

    def test_zero_consumption_is_exactly_zero(self):
        assert average_daily_consumption(Decimal("0"), 30) == Decimal("0")

    def test_non_positive_lookback_rejected(self):
        with pytest.raises(ValueError):
            average_daily_consumption(Decimal("10"), 0)


class TestDaysUntilRunout:

    def test_floor_of_ratio(self):
        # 300 over 30 days is 10/day; 55 on hand lasts 5 whole days
        assert days_until_runout(Decimal("55"), Decimal("300"), 30) == 5

    def test_no_consumption_is_none(self):
        assert days_until_runout(Decimal("55"), Decimal("0"), 30) is None

    def test_already_out_is_zero(self):
        assert days_until_runout(Decimal("-5"), Decimal("60"), 30) == 0

    def test_non_terminating_average_is_exact(self):
        # one unit a week covers exactly 7 days
        assert days_until_runout(Decimal("1"), Decimal("1"), 7) == 7
        assert days_until_runout(Decimal("2"), Decimal("3"), 30) == 20

    @pytest.mark.parametrize(
        "on_hand, total, lookback",
        [("1", "1", 7), ("13", "7", 90), ("199", "397", 365), ("0.5", "3", 30)],
    )
    def test_matches_fraction_floor(self, on_hand, total, lookback):
        expected = math.floor(Fraction(on_hand) * lookback / Fraction(total))
        assert days_until_runout(Decimal(on_hand), Decimal(total), lookback) == expected


class TestProjectRunout:

    def test_worked_example_reorder_is_overdue(self):
        """300 consumed over 30 days with 50 on hand runs out in 5 days."""
        projection = project_runout(
            on_hand=Decimal("50"),
            total_consumed=Decimal("300"),
            lookback_days=30,
            lead_time_days=7,
            safety_days=2,
            today=TODAY,
        )

        assert projection.average_daily_consumption == Decimal("10")
        assert projection.days_until_runout == 5
        assert projection.runout_date == TODAY + timedelta(days=5)
        assert projection.recommended_reorder_date == TODAY + timedelta(days=5) - timedelta(days=9)
        assert projection.recommended_reorder_date < TODAY

    @pytest.mark.parametrize("on_hand", ["0", "-10", "1000000"])
    def test_zero_consumption_has_no_dates(self, on_hand):
        projection = project_runout(
            on_hand=Decimal(on_hand),
            total_consumed=Decimal("0"),
            lookback_days=30,
            lead_time_days=7,
            safety_days=2,
            today=TODAY,
        )
        assert projection.days_until_runout is None
        assert projection.runout_date is None
        assert projection.recommended_reorder_date is None
        assert projection.recommended_reorder_qty == 0

    def test_one_unit_a_week_runs_out_in_seven_days(self):
        projection = project_runout(
            on_hand=Decimal("1"),
            total_consumed=Decimal("1"),
            lookback_days=7,
            lead_time_days=14,
            safety_days=7,
            today=TODAY,
        )

        assert projection.days_until_runout == 7
        assert projection.runout_date == date(2024, 6, 22)
        assert projection.recommended_reorder_date == date(2024, 6, 1)
        assert projection.recommended_reorder_qty == Decimal("3")

    def test_out_of_stock_runs_out_today(self):
        projection = project_runout(
            on_hand=Decimal("0"),
            total_consumed=Decimal("30"),
            lookback_days=30,
            lead_time_days=0,
            safety_days=0,
            today=TODAY,
        )
        assert projection.days_until_runout == 0
        assert projection.runout_date == TODAY


class TestRecommendedReorderQty:

    def test_ceiling_of_target_minus_on_hand(self):
        # 10/day over 30 + 7 + 2 days = 390 target
        assert recommended_reorder_qty(Decimal("50"), Decimal("300"), 30, 7, 2) == Decimal("340")

    def test_fractional_target_rounds_up(self):
        # 10 over 30 days across 40 coverage days is 13.33...
        assert recommended_reorder_qty(Decimal("0"), Decimal("10"), 30, 8, 2) == Decimal("14")

    def test_exact_target_is_not_rounded_up(self):
        # 1/7 per day over 7 + 14 + 7 = 28 days is exactly 4
        assert recommended_reorder_qty(Decimal("1"), Decimal("1"), 7, 14, 7) == Decimal("3")

    @pytest.mark.parametrize(
        "on_hand, total, lookback, lead, safety",
        [("0", "1", 30, 7, 2), ("5", "13", 90, 14, 7), ("2.5", "397", 365, 0, 0)],
    )
    def test_matches_fraction_ceiling(self, on_hand, total, lookback, lead, safety):
        target = math.ceil(Fraction(total) * (lookback + lead + safety) / lookback)
        expected = max(0, target - Fraction(on_hand))
        assert recommended_reorder_qty(Decimal(on_hand), Decimal(total), lookback, lead, safety) == expected

    def test_never_negative(self):
        assert recommended_reorder_qty(Decimal("10000"), Decimal("300"), 30, 7, 2) == 0


class TestReorderStatus:

    def test_at_or_below_reorder_point_is_critical(self):
        assert reorder_status(Decimal("10"), Decimal("10")) is ReorderStatus.CRITICAL

    def test_within_warning_band(self):
        assert reorder_status(Decimal("15"), Decimal("10")) is ReorderStatus.WARNING

    def test_above_warning_band_is_ok(self):
        assert reorder_status(Decimal("16"), Decimal("10")) is ReorderStatus.OK

    def test_custom_multiplier(self):
        assert reorder_status(Decimal("19"), Decimal("10"), Decimal("2")) is ReorderStatus.WARNING

    def test_zero_reorder_point_is_unmonitored(self):
        assert reorder_status(Decimal("-5"), Decimal("0")) is ReorderStatus.OK
