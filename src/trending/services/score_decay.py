import math
from datetime import timedelta

from src.trending.interfaces.score_decay import ScoreDecayStrategy


class ExponentialScoreDecay(ScoreDecayStrategy):
    """
    weight = exp(-lambda * age_seconds).
    """

    def __init__(self, lambda_per_second: float):
        if lambda_per_second < 0:
            raise ValueError("decay lambda must be >= 0")
        self.lambda_per_second = lambda_per_second

    @classmethod
    def per_hour(cls, lambda_per_hour: float) -> "ExponentialScoreDecay":
        return cls(lambda_per_hour / 3600.0)

    @classmethod
    def from_half_life(cls, half_life: timedelta) -> "ExponentialScoreDecay":
        return cls(math.log(2) / half_life.total_seconds())

    def weight(self, age: timedelta) -> float:
        age_seconds = age.total_seconds()
        if age_seconds < 0:
            return 1.0
        return math.exp(-self.lambda_per_second * age_seconds)
