from dataclasses import dataclass
from datetime import timedelta

from src.trending.domain.time_period import TimePeriod


@dataclass(frozen=True)
class ImpressionRetentionPolicy:
    """
    How long impressions are kept before the pruner deletes them.
    The horizon must cover the longest trending window.
    """
    max_age_days: int = 30
    prune_interval_seconds: float = 3600.0

    def __post_init__(self):
        if self.max_age < TimePeriod.longest().duration:
            raise ValueError(
                f"retention of {self.max_age_days} days is shorter than the "
                f"'{TimePeriod.longest().value}' trending window"
            )

    @property
    def max_age(self) -> timedelta:
        return timedelta(days=self.max_age_days)

    @classmethod
    def default(cls) -> "ImpressionRetentionPolicy":
        return cls()
