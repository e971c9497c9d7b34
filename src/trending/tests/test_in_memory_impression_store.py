import threading
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from src.trending.domain.impression import Impression
from src.trending.store.in_memory_impression_store import InMemoryImpressionStore

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
START = FIXED_NOW - timedelta(hours=1)
END = FIXED_NOW + timedelta(seconds=1)


def test_readers_see_consistent_snapshots_while_writers_append():
    store = InMemoryImpressionStore()
    writers, per_writer = 4, 500
    stop = threading.Event()
    errors = []
    observed_totals = []

    def write(entity_id):
        try:
            for _ in range(per_writer):
                store.append(Impression(uuid4(), entity_id, FIXED_NOW))
        except Exception as e:
            errors.append(e)

    def read():
        try:
            while not stop.is_set():
                counts = store.count_by_entity(START, END)
                scanned = store.scan(START, END)
                streamed = sum(1 for _ in store.iter_observations(START, END))
                assert all(START <= i.observed_at < END for i in scanned)
                observed_totals.append((sum(counts.values()), len(scanned), streamed))
        except Exception as e:
            errors.append(e)

    reader = threading.Thread(target=read)
    reader.start()
    threads = [threading.Thread(target=write, args=(f"token_{n}",)) for n in range(writers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    stop.set()
    reader.join(timeout=10)

    assert errors == []
    assert store.count_by_entity(START, END) == {f"token_{n}": per_writer for n in range(writers)}
    assert len(store.scan(START, END)) == writers * per_writer
    # Successive reads never go backwards
    counted = [c for c, _, _ in observed_totals]
    assert counted == sorted(counted)
    assert all(total <= writers * per_writer for total in counted)


def test_prune_while_appending_keeps_every_recent_impression():
    store = InMemoryImpressionStore()
    for _ in range(200):
        store.append(Impression(uuid4(), "old", FIXED_NOW - timedelta(days=40)))

    appender = threading.Thread(
        target=lambda: [store.append(Impression(uuid4(), "new", FIXED_NOW)) for _ in range(500)]
    )
    appender.start()
    removed = store.prune(FIXED_NOW - timedelta(days=30))
    appender.join(timeout=10)

    assert removed == 200
    assert store.count_by_entity(START, END) == {"new": 500}
