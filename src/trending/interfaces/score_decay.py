from abc import ABC, abstractmethod
from datetime import timedelta


class ScoreDecayStrategy(ABC):
    """
    Weight of a single impression as a function of its age.
    Must be pure and deterministic.
    """
    @abstractmethod
    def weight(self, age: timedelta) -> float:
        """
        Returns a float in (0.0, 1.0]; 1.0 for an impression observed right now.
        """
        pass
