"""
Durable key-value storage backends.

The stores above this layer only need localStorage semantics: string values
under string keys, absent keys read as None. Backends raise
StorageUnavailable on I/O failure; callers decide whether to swallow it.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path

from ..errors import StorageUnavailable

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStorage(ABC):
    """localStorage-shaped persistence."""

    @abstractmethod
    def get_item(self, key: str) -> str | None: ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None: ...

    @abstractmethod
    def remove_item(self, key: str) -> None: ...


class MemoryStorage(KeyValueStorage):
    """Process-local storage; fail_writes simulates a full or disabled store."""

    def __init__(self, initial: dict[str, str] | None = None, fail_writes: bool = False):
        self.items: dict[str, str] = dict(initial or {})
        self.fail_writes = fail_writes

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageUnavailable(f"Storage quota exceeded writing {key}")
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        if self.fail_writes:
            raise StorageUnavailable(f"Storage unavailable removing {key}")
        self.items.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """
    One file per key inside a directory.

    Files are named {key}.json; values are written verbatim, so a corrupted
    file surfaces as unparsable text to the store that owns the key.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageUnavailable(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageUnavailable(f"Could not read {path}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise StorageUnavailable(f"Could not write {path}: {e}") from e

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"Could not remove {path}: {e}") from e
