from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from src.trending.domain.exceptions import InvalidPeriod

# Smallest datetime step; keeps an impression stamped at the read instant inside the window.
CLOCK_TICK = timedelta(microseconds=1)


class TimePeriod(Enum):
    """
    Closed set of trending windows accepted on the public query surface.
    Values are the literals callers send (e.g. ?timePeriod=24%20hours).
    """
    ONE_HOUR = "1 hour"
    SIX_HOURS = "6 hours"
    ONE_DAY = "24 hours"
    ONE_WEEK = "7 days"
    ONE_MONTH = "30 days"

    @property
    def duration(self) -> timedelta:
        return _DURATIONS[self]

    @classmethod
    def default(cls) -> "TimePeriod":
        return cls.ONE_DAY

    @classmethod
    def shortest(cls) -> "TimePeriod":
        return min(cls, key=lambda p: p.duration)

    @classmethod
    def longest(cls) -> "TimePeriod":
        return max(cls, key=lambda p: p.duration)


_DURATIONS = {
    TimePeriod.ONE_HOUR: timedelta(hours=1),
    TimePeriod.SIX_HOURS: timedelta(hours=6),
    TimePeriod.ONE_DAY: timedelta(hours=24),
    TimePeriod.ONE_WEEK: timedelta(days=7),
    TimePeriod.ONE_MONTH: timedelta(days=30),
}


def parse_time_period(raw: Optional[str]) -> TimePeriod:
    """
    Maps a literal such as "24 hours" onto a TimePeriod.
    Free-form durations ("2h", "1 day") are rejected, not interpreted.
    """
    if raw is None:
        raise InvalidPeriod("time period is required")
    if isinstance(raw, TimePeriod):
        return raw
    if not isinstance(raw, str):
        raise InvalidPeriod(f"Unsupported time period: {raw!r}")
    try:
        return TimePeriod(raw.strip())
    except ValueError:
        raise InvalidPeriod(f"Unsupported time period: {raw!r}") from None


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval [start, end)."""
    start: datetime
    end: datetime

    @classmethod
    def ending_at(cls, now: datetime, period: TimePeriod) -> "TimeWindow":
        return cls(start=now - period.duration, end=now + CLOCK_TICK)

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end
