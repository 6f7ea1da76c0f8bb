"""
Unit tests for the durable progress store.
"""

import json

import pytest

from trainlib.content.models import ModuleDescriptor
from trainlib.storage import PROGRESS_KEY, JsonFileStorage, MemoryStorage, ProgressStore


def _modules(*ids):
    return [ModuleDescriptor(id=mid, title=mid, content_file=f"{mid}.json", order=i) for i, mid in enumerate(ids)]


@pytest.fixture
def clock():
    return lambda: 1_700_000_000.5


class TestRecords:
    def test_mark_complete_persists_immediately(self, storage, clock):
        store = ProgressStore(storage, clock=clock)

        record = store.mark_complete("p1", "m1")

        assert record.completed is True
        assert record.last_visited == 1_700_000_000_500
        assert json.loads(storage.items[PROGRESS_KEY]) == {
            "p1": {"m1": {"completed": True, "lastVisited": 1_700_000_000_500}}
        }

    def test_mark_complete_is_idempotent(self, storage, clock):
        store = ProgressStore(storage, clock=clock)

        store.mark_complete("p1", "m1")
        store.mark_complete("p1", "m1")

        assert store.completed_count("p1") == 1

    def test_mark_incomplete_removes_record(self, storage):
        store = ProgressStore(storage)
        store.mark_complete("p1", "m1")

        assert store.mark_incomplete("p1", "m1") is True
        assert store.get_record("p1", "m1") is None
        assert store.is_complete("p1", "m1") is False
        assert store.mark_incomplete("p1", "m1") is False
        assert json.loads(storage.items[PROGRESS_KEY]) == {}

    def test_records_survive_reload(self, storage):
        ProgressStore(storage).mark_complete("p1", "m1")

        reloaded = ProgressStore(storage)

        assert reloaded.is_complete("p1", "m1")

    def test_corrupt_map_starts_empty(self):
        store = ProgressStore(MemoryStorage({PROGRESS_KEY: "{not json"}))
        assert store.snapshot() == {}

    @pytest.mark.parametrize("last_visited", ["yesterday", None, [1], {"at": 5}, True, "1e400"])
    def test_unreadable_last_visited_reads_as_zero(self, last_visited):
        raw = json.dumps({"p1": {"m1": {"completed": True, "lastVisited": last_visited}}})
        store = ProgressStore(MemoryStorage({PROGRESS_KEY: raw}))

        assert store.is_complete("p1", "m1")
        assert store.get_record("p1", "m1").last_visited == 0
        assert store.next_incomplete_index("p1", _modules("m1", "m2")) == 1

    def test_non_finite_last_visited_reads_as_zero(self):
        store = ProgressStore(MemoryStorage({PROGRESS_KEY: '{"p1": {"m1": {"completed": true, "lastVisited": Infinity}}}'}))
        assert store.get_record("p1", "m1").last_visited == 0

    def test_storage_failure_keeps_memory_authoritative(self):
        storage = MemoryStorage(fail_writes=True)
        store = ProgressStore(storage)

        store.mark_complete("p1", "m1")

        assert store.is_complete("p1", "m1")
        assert PROGRESS_KEY not in storage.items

    def test_reset_all(self, storage):
        store = ProgressStore(storage)
        store.mark_complete("p1", "m1")
        store.mark_complete("p2", "m1")

        store.reset_all()

        assert store.snapshot() == {}
        assert PROGRESS_KEY not in storage.items

    def test_file_backend(self, tmp_path):
        store = ProgressStore(JsonFileStorage(tmp_path / "storage"))
        store.mark_complete("p1", "m1")

        assert (tmp_path / "storage" / f"{PROGRESS_KEY}.json").exists()
        assert ProgressStore(JsonFileStorage(tmp_path / "storage")).is_complete("p1", "m1")


class TestStatistics:
    @pytest.mark.parametrize(
        "completed,total,expected",
        [
            (0, 3, 0),
            (1, 3, 33),
            (2, 3, 67),
            (1, 8, 13),  # 12.5 rounds half up
            (3, 3, 100),
            (0, 0, 0),
        ],
    )
    def test_program_progress_percentage(self, storage, completed, total, expected):
        store = ProgressStore(storage)
        for index in range(completed):
            store.mark_complete("p1", f"m{index}")

        summary = store.program_progress("p1", total)

        assert summary.completed == completed
        assert summary.total == total
        assert summary.percentage == expected

    def test_is_complete_requires_modules(self, storage):
        store = ProgressStore(storage)
        assert store.program_progress("p1", 0).is_complete is False

    def test_next_incomplete_index(self, storage):
        store = ProgressStore(storage)
        modules = _modules("m1", "m2", "m3")

        assert store.next_incomplete_index("p1", modules) == 0
        store.mark_complete("p1", "m1")
        assert store.next_incomplete_index("p1", modules) == 1
        store.mark_complete("p1", "m2")
        store.mark_complete("p1", "m3")
        assert store.next_incomplete_index("p1", modules) == 0
