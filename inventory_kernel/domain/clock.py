"""
Injectable time source.

Services, selectors and postings ask a ``Clock`` for the current instant
instead of calling ``datetime.now()``.  Movement timestamps, approval
times and default sale / consumption dates therefore come from one place,
and tests can pin them.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

DEFAULT_TEST_INSTANT = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """A source of timezone-aware UTC instants."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        """Calendar date (UTC) of ``now()``; used for default business dates."""
        return self.now().date()


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Frozen clock for tests.

    ``now()`` keeps returning the same instant until the test moves it with
    ``advance()``, ``tick()`` or ``set_time()``.  Movements posted without
    moving the clock share a timestamp and are ordered by their sequence
    number.
    """

    def __init__(self, start: datetime | None = None):
        self._current = start or DEFAULT_TEST_INSTANT

    def now(self) -> datetime:
        return self._current

    def set_time(self, instant: datetime) -> None:
        self._current = instant

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Move forward one second and return the new instant."""
        self.advance()
        return self._current
