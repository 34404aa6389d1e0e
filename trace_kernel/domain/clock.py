"""
Injectable time source.

Lot codes take their year and month from the clock, lot and entry rows
take ``created_at`` from it and label expiry dates are counted from its
calendar date.  Nothing else in the kernel reads the wall clock, so a
``DeterministicClock`` makes codes, recency order and labels reproducible.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone, tzinfo

DEFAULT_TEST_TIME = datetime(2025, 10, 1, 12, 0, 0, tzinfo=timezone.utc)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class Clock(ABC):
    """``now()`` is timezone-aware; ``today()`` is its calendar date."""

    @abstractmethod
    def now(self) -> datetime: ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """
    Wall clock in the production floor's timezone.

    The date printed on a label is the local calendar date, so ``tz``
    defaults to the host's local zone rather than UTC.
    """

    def __init__(self, tz: tzinfo | None = None):
        self.tz = tz

    def now(self) -> datetime:
        if self.tz is None:
            return datetime.now().astimezone()
        return datetime.now(self.tz)


class DeterministicClock(Clock):
    """
    Frozen clock for tests; moves only when told to.

    Naive datetimes are taken as UTC.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._time = _aware(fixed_time or DEFAULT_TEST_TIME)

    def now(self) -> datetime:
        return self._time

    def set_time(self, time: datetime) -> None:
        self._time = _aware(time)

    def advance(self, seconds: int = 1) -> None:
        self._time += timedelta(seconds=seconds)

    def advance_days(self, days: int) -> None:
        """Move to the same time of day ``days`` later (expiry and rollover tests)."""
        self._time += timedelta(days=days)
