"""
Injectable time source.

Nothing below the service layer reads the wall clock.  Services hold a
``Clock`` and pass ``clock.today()`` down, so forecast windows, expiry
checks and effective dates are reproducible in tests.
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, timedelta

DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


class Clock(ABC):

    @abstractmethod
    def now(self) -> datetime:
        """Timezone-aware current instant."""

    def today(self) -> date:
        """Calendar date of ``now()`` in UTC."""
        return self.now().astimezone(UTC).date()


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """Frozen clock.  Moves only when a test moves it."""

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or DEFAULT_TEST_TIME

    def now(self) -> datetime:
        return self._current

    def advance(self, *, days: int = 0, seconds: int = 0) -> None:
        self._current += timedelta(days=days, seconds=seconds)
