"""
Clock -- injectable time source for deposit records.

Every ``createdAt`` / ``date`` / ``timestamp`` field the engine writes
comes from a ``Clock``, never from ``datetime.now()``.  All values are
timezone-aware UTC.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):

    @abstractmethod
    def now(self) -> datetime:
        ...

    def timestamp(self) -> str:
        """ISO-8601 form stored on deposit, history and log documents."""
        return self.now().isoformat()


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Frozen clock for tests; moves only when ``advance()`` is called."""

    DEFAULT_TIME = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or self.DEFAULT_TIME

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: int = 1) -> datetime:
        self._current += timedelta(seconds=seconds)
        return self._current
