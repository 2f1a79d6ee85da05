from __future__ import annotations

import json
import threading

from engagesdk.event_store import EventStore


def test_read_returns_pushed_events_in_order(tmp_path):
    store = EventStore(tmp_path / "events.json", max_events=100)
    for i in range(5):
        assert store.push(f'{{"n":{i}}}')

    store.swap()
    assert store.read() == [f'{{"n":{i}}}' for i in range(5)]

    store.push('{"n":5}')
    assert '{"n":5}' not in store.read()
    assert store.active_count == 1
    assert store.drain_count == 5


def test_clear_only_discards_drain_buffer(tmp_path):
    store = EventStore(tmp_path / "events.json", max_events=100)
    store.push("e1")
    store.swap()
    store.push("e2")
    store.clear()

    assert store.read() == []
    assert store.count == 1
    store.swap()
    assert store.read() == ["e2"]


def test_undelivered_batch_stays_ahead_of_new_events(tmp_path):
    store = EventStore(tmp_path / "events.json", max_events=100)
    store.push("e1")
    store.push("e2")
    store.swap()
    store.push("e3")
    store.swap()
    assert store.read() == ["e1", "e2", "e3"]


def test_capacity_boundary(tmp_path):
    store = EventStore(tmp_path / "events.json", max_events=3)
    assert store.push("e1")
    assert store.push("e2")
    assert store.count == 2
    assert store.push("e3") is True
    assert store.count == 3
    assert store.push("e4") is False
    assert store.count == 3

    store.swap()
    assert store.push("e4") is False
    store.clear()
    assert store.push("e4") is True


def test_state_survives_reload(tmp_path):
    path = tmp_path / "events.json"
    store = EventStore(path, max_events=10)
    store.push("e1")
    store.swap()
    store.push("e2")
    assert store.durable is True

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk == {"active": ["e2"], "drain": ["e1"]}

    reopened = EventStore(path, max_events=10)
    assert reopened.read() == ["e1"]
    reopened.swap()
    assert reopened.read() == ["e1", "e2"]


def test_cleared_events_do_not_come_back_after_reload(tmp_path):
    path = tmp_path / "events.json"
    store = EventStore(path, max_events=10)
    store.push("e1")
    store.swap()
    store.clear()

    reopened = EventStore(path, max_events=10)
    reopened.swap()
    assert reopened.read() == []


def test_reset_starts_empty(tmp_path):
    path = tmp_path / "events.json"
    store = EventStore(path, max_events=10)
    store.push("e1")

    fresh = EventStore(path, max_events=10, reset=True)
    assert fresh.count == 0
    assert not path.exists()


def test_memory_only_without_path():
    store = EventStore(None, max_events=10)
    assert store.durable is False
    assert store.push("e1")
    store.swap()
    assert store.read() == ["e1"]


def test_unwritable_path_degrades_to_memory(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x", encoding="utf-8")
    store = EventStore(blocker / "events.json", max_events=10)

    assert store.push("e1") is True
    assert store.durable is False
    store.swap()
    assert store.read() == ["e1"]


def test_concurrent_pushes_across_swaps_are_never_lost_or_duplicated(tmp_path):
    store = EventStore(None, max_events=100000)
    total = 2000
    delivered: list[str] = []

    def producer() -> None:
        for i in range(total):
            store.push(str(i))

    t = threading.Thread(target=producer)
    t.start()
    while t.is_alive():
        store.swap()
        delivered.extend(store.read())
        store.clear()
    t.join()
    store.swap()
    delivered.extend(store.read())

    assert delivered == [str(i) for i in range(total)]
