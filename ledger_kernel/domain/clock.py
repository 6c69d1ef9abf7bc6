"""
Clock -- injectable time source and calendar helpers.

Responsibility:
    Services and reports never call ``datetime.now()`` or ``date.today()``
    directly; they receive a ``Clock``.  Default dates (invoice issue date,
    payment date, the end of a report window, the as-of date of a balance
    sheet) all come from ``Clock.today()``.

Architecture position:
    Kernel > Domain -- pure, zero I/O except ``SystemClock``.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """``now()`` is timezone-aware; ``today()`` is its calendar date."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Fixed clock for tests.

    Stays at the configured instant until moved with ``advance()``; report
    metadata generated against it is therefore reproducible.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._now = fixed_time or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    @classmethod
    def on(cls, day: date) -> "DeterministicClock":
        """A clock at noon UTC on ``day``."""
        return cls(datetime(day.year, day.month, day.day, 12, 0, 0, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._now

    def advance(self, days: int = 0, seconds: int = 0) -> datetime:
        self._now += timedelta(days=days, seconds=seconds)
        return self._now


def fiscal_year_start(on: date, start_month: int = 1) -> date:
    """
    First day of the fiscal year containing ``on``.

    The fiscal year starts on the first of ``start_month``; a year starting
    in July that contains 2024-03-15 began on 2023-07-01.
    """
    if not 1 <= start_month <= 12:
        raise ValueError(f"start_month must be 1-12, got {start_month}")
    year = on.year if on.month >= start_month else on.year - 1
    return date(year, start_month, 1)
