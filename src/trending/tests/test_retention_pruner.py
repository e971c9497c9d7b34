import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from src.core.time.frozen_time_source import FrozenTimeSource
from src.trending.domain.impression import Impression
from src.trending.domain.retention_policy import ImpressionRetentionPolicy
from src.trending.services.retention_pruner import RetentionPruner
from src.trending.store.in_memory_impression_store import InMemoryImpressionStore

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_run_once_drops_impressions_past_horizon():
    store = InMemoryImpressionStore()
    store.append(Impression(uuid4(), "old", FIXED_NOW - timedelta(days=45)))
    store.append(Impression(uuid4(), "recent", FIXED_NOW - timedelta(days=3)))

    pruner = RetentionPruner(store, FrozenTimeSource(FIXED_NOW), ImpressionRetentionPolicy(max_age_days=30))

    assert pruner.run_once() == 1
    assert [i.entity_id for i in store.scan(FIXED_NOW - timedelta(days=60), FIXED_NOW)] == ["recent"]


def test_retention_must_cover_longest_window():
    with pytest.raises(ValueError):
        ImpressionRetentionPolicy(max_age_days=7)


def test_start_and_stop_background_thread():
    store = InMemoryImpressionStore()
    store.append(Impression(uuid4(), "old", FIXED_NOW - timedelta(days=90)))
    pruner = RetentionPruner(
        store,
        FrozenTimeSource(FIXED_NOW),
        ImpressionRetentionPolicy(max_age_days=30, prune_interval_seconds=60),
    )

    pruner.start()
    pruner.stop()

    assert len(store) == 0
