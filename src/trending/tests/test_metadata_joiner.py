import time
import pytest

from src.trending.adapters.in_memory_metadata_source import InMemoryTokenMetadataSource
from src.trending.domain.exceptions import MetadataUnavailable
from src.trending.domain.scores import RankedEntity
from src.trending.domain.token_metadata import MetadataBatch, TokenMetadata
from src.trending.interfaces.token_metadata_source import TokenMetadataSource
from src.trending.services.bounded_caller import BoundedCaller
from src.trending.services.metadata_joiner import MetadataJoiner


class _PartialSource(TokenMetadataSource):
    def __init__(self, failing):
        self.failing = set(failing)

    def fetch_many(self, token_addresses):
        found = {
            a: TokenMetadata(a, image_url=f"https://img/{a}.png")
            for a in token_addresses
            if a not in self.failing
        }
        return MetadataBatch(found=found, failed=self.failing & set(token_addresses))


class _DownSource(TokenMetadataSource):
    def fetch_many(self, token_addresses):
        raise ConnectionError("unreachable")


class _SlowSource(TokenMetadataSource):
    def fetch_many(self, token_addresses):
        time.sleep(0.5)
        return MetadataBatch()


def _ranked(*ids):
    return [RankedEntity(entity_id=e, rank=i, score=1.0, count=1) for i, e in enumerate(ids, start=1)]


def test_join_preserves_order_and_length():
    source = InMemoryTokenMetadataSource([TokenMetadata("b", image_url="https://img/b.png")])
    joined = MetadataJoiner(source).join(_ranked("a", "b", "c"))

    assert [j.ranked.entity_id for j in joined] == ["a", "b", "c"]
    assert joined[0].metadata is None
    assert joined[1].image_url == "https://img/b.png"


def test_per_entity_failure_keeps_entity():
    joined = MetadataJoiner(_PartialSource(failing={"token_A"})).join(_ranked("token_A", "token_B"))

    assert len(joined) == 2
    assert joined[0].ranked.entity_id == "token_A"
    assert joined[0].metadata is None
    assert joined[1].image_url == "https://img/token_B.png"


def test_total_outage_raises_metadata_unavailable():
    with pytest.raises(MetadataUnavailable):
        MetadataJoiner(_DownSource()).join(_ranked("a"))


def test_lookup_is_bounded_by_timeout():
    caller = BoundedCaller(max_workers=1)
    joiner = MetadataJoiner(_SlowSource(), caller=caller, timeout_seconds=0.05)
    try:
        with pytest.raises(MetadataUnavailable):
            joiner.join(_ranked("a"))
    finally:
        caller.shutdown()


def test_empty_ranking_skips_lookup():
    assert MetadataJoiner(_DownSource()).join([]) == []
