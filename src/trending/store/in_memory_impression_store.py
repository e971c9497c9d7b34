from datetime import datetime
from threading import Lock
from typing import Dict, Iterator, List, Tuple

from src.trending.domain.impression import Impression
from src.trending.interfaces.impression_store import ImpressionStore


class InMemoryImpressionStore(ImpressionStore):
    """
    Process-local impression log.
    Appends take a short lock; readers copy a snapshot under the lock and scan it outside.
    """

    def __init__(self):
        self._impressions: List[Impression] = []
        self._lock = Lock()

    def append(self, impression: Impression) -> None:
        with self._lock:
            self._impressions.append(impression)

    def _snapshot(self) -> List[Impression]:
        with self._lock:
            return list(self._impressions)

    def scan(self, start: datetime, end: datetime) -> List[Impression]:
        return [i for i in self._snapshot() if start <= i.observed_at < end]

    def iter_observations(self, start: datetime, end: datetime) -> Iterator[Tuple[str, datetime]]:
        for impression in self._snapshot():
            if start <= impression.observed_at < end:
                yield impression.entity_id, impression.observed_at

    def count_by_entity(self, start: datetime, end: datetime) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for impression in self._snapshot():
            if start <= impression.observed_at < end:
                counts[impression.entity_id] = counts.get(impression.entity_id, 0) + 1
        return counts

    def prune(self, before: datetime) -> int:
        with self._lock:
            kept = [i for i in self._impressions if i.observed_at >= before]
            removed = len(self._impressions) - len(kept)
            self._impressions = kept
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._impressions)
