"""
Injectable time source.

Nothing in the engine calls ``datetime.now()`` itself: result stamps
(calculated_at, confirmed_at, paid_at), slip issue dates and batch job
timestamps all come from a Clock handed in by the caller.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

# 2025-01-10 09:00 UTC, a typical January run date for fiscal year 2024.
DEFAULT_TEST_TIME = datetime(2025, 1, 10, 9, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Timezone-aware current time."""


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Frozen time for tests; moves only when advanced or reset."""

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or DEFAULT_TEST_TIME

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)
