"""
Injectable time source.

Services take a ``Clock`` instead of calling ``datetime.now()`` so that
overdue checks, payment dates and error-log stamps are reproducible in
tests.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware."""

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Clock pinned to one instant until moved with ``advance``."""

    DEFAULT_INSTANT = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __init__(self, instant: datetime | None = None):
        self._instant = instant or self.DEFAULT_INSTANT

    def now(self) -> datetime:
        return self._instant

    def advance(self, delta: timedelta | None = None, *, days: int = 0) -> None:
        self._instant += (delta or timedelta()) + timedelta(days=days)
