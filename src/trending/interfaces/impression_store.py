from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterator, List, Tuple

from src.trending.domain.impression import Impression


class ImpressionStore(ABC):
    """
    Append-only storage for impressions.
    Writers call append(); only the window aggregator and the retention pruner read or delete.
    Implementations raise StoreUnavailable on persistence failures.
    """
    @abstractmethod
    def append(self, impression: Impression) -> None:
        pass

    @abstractmethod
    def scan(self, start: datetime, end: datetime) -> List[Impression]:
        """Impressions with start <= observed_at < end, as of call time."""
        pass

    @abstractmethod
    def iter_observations(self, start: datetime, end: datetime) -> Iterator[Tuple[str, datetime]]:
        """Streams (entity_id, observed_at) over [start, end) without materializing the window."""
        pass

    @abstractmethod
    def count_by_entity(self, start: datetime, end: datetime) -> Dict[str, int]:
        """Per-entity impression counts over [start, end)."""
        pass

    @abstractmethod
    def prune(self, before: datetime) -> int:
        """Deletes impressions with observed_at < before. Returns the number removed."""
        pass

    def close(self) -> None:
        return
