"""
Durable storage: key-value backends, progress records and the session snapshot.
"""

from pathlib import Path

from .backends import JsonFileStorage, KeyValueStorage, MemoryStorage
from .progress import PROGRESS_KEY, ProgramProgress, ProgressRecord, ProgressStore
from .snapshot import SNAPSHOT_KEY, SessionSnapshotStore


def create_storage(backend: str, directory: Path) -> KeyValueStorage:
    """Build the configured backend ("file" or "memory")."""
    if backend == "memory":
        return MemoryStorage()
    return JsonFileStorage(directory)


__all__ = [
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "PROGRESS_KEY",
    "ProgramProgress",
    "ProgressRecord",
    "ProgressStore",
    "SNAPSHOT_KEY",
    "SessionSnapshotStore",
    "create_storage",
]
