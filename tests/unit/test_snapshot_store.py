"""
Unit tests for the session snapshot store and storage backends.
"""

import json

import pytest

from trainlib.errors import StorageUnavailable
from trainlib.state import NavigationState
from trainlib.storage import SNAPSHOT_KEY, JsonFileStorage, MemoryStorage, SessionSnapshotStore, create_storage


class TestSessionSnapshotStore:
    def test_absent_snapshot_is_dashboard(self, storage):
        assert SessionSnapshotStore(storage).load() == NavigationState.dashboard()

    def test_round_trip(self, storage):
        store = SessionSnapshotStore(storage)

        assert store.save("python-basics", 2) is True

        assert json.loads(storage.items[SNAPSHOT_KEY]) == {"programId": "python-basics", "pageIndex": 2}
        assert store.load() == NavigationState("python-basics", 2)

    def test_dashboard_snapshot(self, storage):
        store = SessionSnapshotStore(storage)
        store.save(None, 0)
        assert store.load().is_dashboard

    @pytest.mark.parametrize(
        "raw",
        [
            "{broken",
            "[1, 2]",
            json.dumps({"programId": 7, "pageIndex": 1}),
        ],
    )
    def test_unusable_snapshot_is_dashboard(self, raw):
        store = SessionSnapshotStore(MemoryStorage({SNAPSHOT_KEY: raw}))
        assert store.load().program_id is None

    def test_bad_page_index_defaults_to_zero(self):
        raw = json.dumps({"programId": "git-essentials", "pageIndex": -4})
        store = SessionSnapshotStore(MemoryStorage({SNAPSHOT_KEY: raw}))
        assert store.load() == NavigationState("git-essentials", 0)

    def test_write_failure_is_swallowed(self):
        store = SessionSnapshotStore(MemoryStorage(fail_writes=True))
        assert store.save("python-basics", 1) is False


class TestBackends:
    def test_file_storage_round_trip(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "data")

        assert storage.get_item("trainingAppState") is None
        storage.set_item("trainingAppState", '{"a": 1}')
        assert storage.get_item("trainingAppState") == '{"a": 1}'
        storage.remove_item("trainingAppState")
        assert storage.get_item("trainingAppState") is None

    def test_file_storage_rejects_path_keys(self, tmp_path):
        with pytest.raises(StorageUnavailable):
            JsonFileStorage(tmp_path).set_item("../escape", "x")

    def test_memory_storage_failure(self):
        with pytest.raises(StorageUnavailable):
            MemoryStorage(fail_writes=True).set_item("k", "v")

    def test_create_storage(self, tmp_path):
        assert isinstance(create_storage("memory", tmp_path), MemoryStorage)
        assert isinstance(create_storage("file", tmp_path), JsonFileStorage)
