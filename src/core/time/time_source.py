from abc import ABC, abstractmethod
from datetime import datetime


class TimeSource(ABC):
    """
    Abstract clock.
    Impression timestamps and trending windows are read from here, never from datetime.now().
    """
    @abstractmethod
    def now(self) -> datetime:
        """Returns the current instant as a UTC-aware datetime."""
        pass
