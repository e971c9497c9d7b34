from abc import ABC, abstractmethod
from typing import Sequence

from src.trending.domain.token_metadata import MetadataBatch


class TokenMetadataSource(ABC):
    """
    Batch lookup of token display data.
    Must raise MetadataUnavailable when the source as a whole cannot answer;
    per-token problems are reported through MetadataBatch.failed instead.
    """
    @abstractmethod
    def fetch_many(self, token_addresses: Sequence[str]) -> MetadataBatch:
        pass

    def close(self) -> None:
        return
