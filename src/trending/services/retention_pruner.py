import logging
import threading
from typing import Optional

from src.core.time.time_source import TimeSource
from src.observability.structured_logger import StructuredRuntimeLogger
from src.trending.domain.exceptions import StoreUnavailable
from src.trending.domain.retention_policy import ImpressionRetentionPolicy
from src.trending.interfaces.impression_store import ImpressionStore

logger = logging.getLogger(__name__)


class RetentionPruner:
    """
    Deletes impressions older than the retention horizon, on demand or on a daemon thread.
    """

    def __init__(
        self,
        store: ImpressionStore,
        time_source: TimeSource,
        policy: Optional[ImpressionRetentionPolicy] = None,
        structured_logger: Optional[StructuredRuntimeLogger] = None,
    ):
        self.store = store
        self.time_source = time_source
        self.policy = policy or ImpressionRetentionPolicy.default()
        self.structured_logger = structured_logger or StructuredRuntimeLogger()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self) -> int:
        cutoff = self.time_source.now() - self.policy.max_age
        removed = self.store.prune(cutoff)
        self.structured_logger.emit("IMPRESSIONS_PRUNED", cutoff=cutoff.isoformat(), removed=removed)
        return removed

    def run_forever(self) -> None:
        while True:
            try:
                self.run_once()
            except StoreUnavailable as e:
                # Next tick retries; the store stays readable meanwhile.
                logger.error(f"Retention prune failed: {e}")
            if self._stop_event.wait(self.policy.prune_interval_seconds):
                break

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run_forever, name="impression-pruner", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None
