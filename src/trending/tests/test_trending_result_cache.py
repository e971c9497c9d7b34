import threading
import time
from datetime import datetime, timedelta, timezone

from src.core.time.frozen_time_source import FrozenTimeSource
from src.trending.services.trending_result_cache import TrendingResultCache

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_entries_expire_after_ttl():
    clock = FrozenTimeSource(FIXED_NOW)
    cache = TrendingResultCache(clock, ttl_seconds=30)
    loads = []

    def loader():
        loads.append(clock.now())
        return len(loads)

    assert cache.get_or_load("k", loader) == 1
    clock.advance(timedelta(seconds=29))
    assert cache.get_or_load("k", loader) == 1
    clock.advance(timedelta(seconds=1))
    assert cache.get_or_load("k", loader) == 2


def test_zero_ttl_never_stores():
    cache = TrendingResultCache(FrozenTimeSource(FIXED_NOW), ttl_seconds=0)
    counter = iter(range(10))

    assert cache.get_or_load("k", lambda: next(counter)) == 0
    assert cache.get_or_load("k", lambda: next(counter)) == 1
    assert len(cache) == 0


def test_concurrent_misses_on_one_key_load_once():
    cache = TrendingResultCache(FrozenTimeSource(FIXED_NOW), ttl_seconds=30)
    calls = []
    calls_lock = threading.Lock()
    start = threading.Barrier(8)
    results = []

    def loader():
        with calls_lock:
            calls.append(1)
        time.sleep(0.05)
        return "ranked"

    def worker():
        start.wait()
        results.append(cache.get_or_load(("5", "24 hours"), loader))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert len(calls) == 1
    assert results == ["ranked"] * 8


def test_slow_refill_does_not_block_other_keys():
    cache = TrendingResultCache(FrozenTimeSource(FIXED_NOW), ttl_seconds=30)
    release_slow = threading.Event()
    slow_started = threading.Event()

    def slow_loader():
        slow_started.set()
        release_slow.wait(timeout=5)
        return "slow"

    slow = threading.Thread(target=lambda: cache.get_or_load("slow", slow_loader))
    slow.start()
    assert slow_started.wait(timeout=5)

    done = []
    fast = threading.Thread(target=lambda: done.append(cache.get_or_load("fast", lambda: "fast")))
    fast.start()
    fast.join(timeout=2)

    try:
        assert done == ["fast"]
        assert cache.get("slow") is None
    finally:
        release_slow.set()
        slow.join(timeout=5)

    assert cache.get("slow") == "slow"
