from typing import Dict, Optional

from src.core.time.time_source import TimeSource
from src.trending.domain.exceptions import InvalidInput
from src.trending.domain.scores import AggregateScore, ScoringMode
from src.trending.domain.time_period import CLOCK_TICK, TimePeriod, TimeWindow
from src.trending.interfaces.impression_store import ImpressionStore
from src.trending.interfaces.score_decay import ScoreDecayStrategy


class WindowAggregator:
    """
    Turns the impression log into per-entity scores for one trending window.

    COUNT mode pushes the work to the store (store.count_by_entity).
    DECAY mode streams the window and sums decay.weight(now - observed_at)
    per entity, so a burst at the start of a window counts for less than one at its end.
    """

    def __init__(
        self,
        store: ImpressionStore,
        time_source: TimeSource,
        mode: ScoringMode = ScoringMode.COUNT,
        decay: Optional[ScoreDecayStrategy] = None,
    ):
        if mode == ScoringMode.DECAY and decay is None:
            raise InvalidInput("decay scoring requires a decay strategy")
        self.store = store
        self.time_source = time_source
        self.mode = mode
        self.decay = decay

    def window_for(self, period: TimePeriod) -> TimeWindow:
        return TimeWindow.ending_at(self.time_source.now(), period)

    def aggregate(self, period: TimePeriod) -> Dict[str, AggregateScore]:
        window = self.window_for(period)
        if self.mode == ScoringMode.COUNT:
            return self._count_scores(window)
        return self._decay_scores(window)

    def _count_scores(self, window: TimeWindow) -> Dict[str, AggregateScore]:
        counts = self.store.count_by_entity(window.start, window.end)
        return {
            entity_id: AggregateScore(entity_id=entity_id, count=count, score=float(count))
            for entity_id, count in counts.items()
            if count > 0
        }

    def _decay_scores(self, window: TimeWindow) -> Dict[str, AggregateScore]:
        # Ages are measured from the read instant, not the padded window end.
        now = window.end - CLOCK_TICK
        counts: Dict[str, int] = {}
        sums: Dict[str, float] = {}
        # Streamed so a long window is never held in memory as a whole
        for entity_id, observed_at in self.store.iter_observations(window.start, window.end):
            counts[entity_id] = counts.get(entity_id, 0) + 1
            sums[entity_id] = sums.get(entity_id, 0.0) + self.decay.weight(now - observed_at)
        return {
            entity_id: AggregateScore(entity_id=entity_id, count=counts[entity_id], score=sums[entity_id])
            for entity_id in counts
        }
