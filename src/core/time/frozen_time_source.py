from datetime import datetime, timedelta
from threading import Lock

from src.core.time.time_source import TimeSource


class FrozenTimeSource(TimeSource):
    """
    Manually driven clock for tests.
    Only moves when advance() or set() is called.
    """
    def __init__(self, start_time: datetime):
        if start_time.tzinfo is None:
            raise ValueError("FrozenTimeSource requires timezone-aware datetime")
        self._current_time = start_time
        self._lock = Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._current_time

    def advance(self, delta: timedelta) -> datetime:
        with self._lock:
            self._current_time += delta
            return self._current_time

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            raise ValueError("FrozenTimeSource requires timezone-aware datetime")
        with self._lock:
            self._current_time = instant
