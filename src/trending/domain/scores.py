from dataclasses import dataclass
from enum import Enum


class ScoringMode(Enum):
    COUNT = "count"  # score = number of impressions in the window
    DECAY = "decay"  # score = sum(exp(-lambda * age)) over the window


@dataclass(frozen=True)
class AggregateScore:
    entity_id: str
    count: int
    score: float

    def __post_init__(self):
        if self.count < 0:
            raise ValueError("AggregateScore.count must be >= 0")


@dataclass(frozen=True)
class RankedEntity:
    entity_id: str
    rank: int  # 1-based
    score: float
    count: int
