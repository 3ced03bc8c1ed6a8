"""Tests for the injectable clocks."""

from datetime import UTC, date, datetime, timedelta, timezone

from stock_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:

    def test_frozen_until_advanced(self):
        clock = DeterministicClock(datetime(2024, 6, 15, 9, 30, tzinfo=UTC))

        assert clock.now() == clock.now()
        clock.advance(days=1, seconds=30)
        assert clock.now() == datetime(2024, 6, 16, 9, 30, 30, tzinfo=UTC)

    def test_today_is_utc_date(self):
        # 01:00 in UTC+5 is still the previous day in UTC
        plus_five = timezone(timedelta(hours=5))
        clock = DeterministicClock(datetime(2024, 6, 15, 1, 0, tzinfo=plus_five))

        assert clock.today() == date(2024, 6, 14)


def test_system_clock_is_timezone_aware():
    assert SystemClock().now().tzinfo is not None
