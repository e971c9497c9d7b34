import time
import pytest
from datetime import datetime, timezone

from src.core.time.frozen_time_source import FrozenTimeSource
from src.trending.domain.exceptions import InvalidInput, StoreTimeout, StoreUnavailable
from src.trending.services.bounded_caller import BoundedCaller
from src.trending.services.impression_ingestion import ImpressionIngestionService
from src.trending.store.in_memory_impression_store import InMemoryImpressionStore

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class _BrokenStore(InMemoryImpressionStore):
    def append(self, impression):
        raise StoreUnavailable("db down")


class _CrashingStore(InMemoryImpressionStore):
    def append(self, impression):
        raise RuntimeError("driver bug")


class _SlowStore(InMemoryImpressionStore):
    def append(self, impression):
        time.sleep(0.5)
        super().append(impression)


def _service(store=None, **kwargs):
    return ImpressionIngestionService(
        store=store if store is not None else InMemoryImpressionStore(),
        time_source=FrozenTimeSource(FIXED_NOW),
        **kwargs,
    )


def test_record_stamps_server_time_and_appends():
    store = InMemoryImpressionStore()
    service = _service(store)

    impression = service.record("token_A", "user-1")

    assert impression.entity_id == "token_A"
    assert impression.actor_id == "user-1"
    assert impression.observed_at == FIXED_NOW
    assert not impression.is_anonymous
    assert len(store) == 1


def test_missing_actor_is_anonymous():
    service = _service()
    assert service.record("token_A").is_anonymous
    assert service.record("token_A", "").is_anonymous
    assert service.record("token_A", "   ").actor_id is None


@pytest.mark.parametrize("entity_id", [None, "", "   ", 42])
def test_invalid_entity_id_is_rejected(entity_id):
    store = InMemoryImpressionStore()
    with pytest.raises(InvalidInput):
        _service(store).record(entity_id)
    assert len(store) == 0


def test_store_failure_propagates_without_retry():
    with pytest.raises(StoreUnavailable):
        _service(_BrokenStore()).record("token_A")


def test_unexpected_store_error_is_wrapped():
    with pytest.raises(StoreUnavailable) as exc:
        _service(_CrashingStore()).record("token_A")
    assert isinstance(exc.value.__cause__, RuntimeError)


def test_append_is_bounded_by_timeout():
    caller = BoundedCaller(max_workers=1)
    service = _service(_SlowStore(), caller=caller, timeout_seconds=0.05)
    try:
        with pytest.raises(StoreTimeout):
            service.record("token_A")
    finally:
        caller.shutdown()
