from datetime import datetime, timedelta
from threading import Lock
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

from src.core.time.time_source import TimeSource

V = TypeVar("V")


class TrendingResultCache(Generic[V]):
    """
    Per-key TTL cache.
    Fresh reads take no lock. A miss takes that key's lock only, so one caller
    refills a key while others wait for it and unrelated keys proceed.
    Entries leave only by expiry.
    """

    def __init__(self, time_source: TimeSource, ttl_seconds: float):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self.time_source = time_source
        self.ttl = timedelta(seconds=ttl_seconds)
        self._entries: Dict[Hashable, Tuple[datetime, V]] = {}
        self._key_locks: Dict[Hashable, Lock] = {}
        self._locks_guard = Lock()

    def get(self, key: Hashable) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self.time_source.now() >= expires_at:
            return None
        return value

    def get_or_load(
        self,
        key: Hashable,
        loader: Callable[[], V],
    ) -> V:
        value = self.get(key)
        if value is not None:
            return value

        with self._lock_for(key):
            value = self.get(key)
            if value is not None:
                return value
            value = loader()
            if self.ttl > timedelta(0):
                self._entries[key] = (self.time_source.now() + self.ttl, value)
            self._evict_expired()
            return value

    def _lock_for(self, key: Hashable) -> Lock:
        with self._locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = Lock()
                self._key_locks[key] = lock
            return lock

    def _evict_expired(self) -> None:
        now = self.time_source.now()
        for key, entry in list(self._entries.items()):
            if now >= entry[0] and self._entries.get(key) is entry:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
