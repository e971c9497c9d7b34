from threading import Lock
from typing import Dict, Iterable, Sequence

from src.trending.domain.token_metadata import MetadataBatch, TokenMetadata
from src.trending.interfaces.token_metadata_source import TokenMetadataSource


class InMemoryTokenMetadataSource(TokenMetadataSource):
    """
    Static metadata table, used by the dev runner and tests.
    """

    def __init__(self, entries: Iterable[TokenMetadata] = ()):
        self._entries: Dict[str, TokenMetadata] = {m.token_address: m for m in entries}
        self._lock = Lock()

    def put(self, metadata: TokenMetadata) -> None:
        with self._lock:
            self._entries[metadata.token_address] = metadata

    def fetch_many(self, token_addresses: Sequence[str]) -> MetadataBatch:
        with self._lock:
            found = {a: self._entries[a] for a in token_addresses if a in self._entries}
        return MetadataBatch(found=found)
