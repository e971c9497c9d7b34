from typing import List, Mapping

from src.trending.domain.scores import AggregateScore, RankedEntity


class TrendRanker:
    """
    Pure ordering: score descending, then entity_id ascending, truncated to limit.
    """

    def rank(self, scores: Mapping[str, AggregateScore], limit: int) -> List[RankedEntity]:
        if limit <= 0 or not scores:
            return []

        ordered = sorted(scores.values(), key=lambda s: (-s.score, s.entity_id))
        return [
            RankedEntity(entity_id=s.entity_id, rank=idx, score=s.score, count=s.count)
            for idx, s in enumerate(ordered[:limit], start=1)
        ]
