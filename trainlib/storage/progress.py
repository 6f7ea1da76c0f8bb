"""
Progress Store - Durable per-module completion records.

Stores completion separately from the navigation snapshot so that:
- Progress survives program switches and dashboard visits
- Manifests can change without losing completion history

Layout in storage (one key):
    {programId: {moduleId: {"completed": true, "lastVisited": <epoch ms>}}}

A record exists only while a module is complete. Every write persists
immediately; a refused write is logged and the in-memory map stays
authoritative for the rest of the session.
"""

from __future__ import annotations

import copy
import json
import math
import time
from dataclasses import dataclass
from typing import Callable, Sequence

from loguru import logger

from ..content.models import ModuleDescriptor
from ..errors import StorageUnavailable
from .backends import KeyValueStorage

PROGRESS_KEY = "trainingProgress"


def _epoch_ms(value: object) -> int:
    """Stored lastVisited as an int; anything unreadable counts as 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if not math.isfinite(value):
        return 0
    return int(value)


@dataclass(frozen=True)
class ProgressRecord:
    """Completion record for one module."""

    completed: bool
    last_visited: int  # epoch milliseconds

    def to_dict(self) -> dict:
        return {"completed": self.completed, "lastVisited": self.last_visited}


@dataclass(frozen=True)
class ProgramProgress:
    """Completion summary for one program."""

    completed: int
    total: int
    percentage: int

    @property
    def is_complete(self) -> bool:
        return self.total > 0 and self.completed >= self.total

    @property
    def has_progress(self) -> bool:
        return self.completed > 0

    def to_dict(self) -> dict[str, int]:
        return {"completed": self.completed, "total": self.total, "percentage": self.percentage}


class ProgressStore:
    """Track module completion in durable key-value storage."""

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = PROGRESS_KEY,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize progress store.

        Args:
            storage: Durable backend holding the progress map
            key: Storage key for the map
            clock: Seconds-since-epoch source for lastVisited timestamps
        """
        self.storage = storage
        self.key = key
        self.clock = clock
        self._progress: dict[str, dict[str, dict]] = self._load()

    def _load(self) -> dict[str, dict[str, dict]]:
        try:
            raw = self.storage.get_item(self.key)
        except StorageUnavailable as e:
            logger.warning(f"Progress unreadable, starting empty: {e}")
            return {}
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Progress map is corrupt, starting empty")
            return {}
        if not isinstance(data, dict):
            return {}
        return {
            str(program_id): dict(modules)
            for program_id, modules in data.items()
            if isinstance(modules, dict)
        }

    def _persist(self) -> bool:
        try:
            self.storage.set_item(self.key, json.dumps(self._progress))
        except StorageUnavailable as e:
            logger.warning(f"Progress not persisted: {e}")
            return False
        return True

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def get_record(self, program_id: str, module_id: str) -> ProgressRecord | None:
        entry = self._progress.get(program_id, {}).get(module_id)
        if not isinstance(entry, dict):
            return None
        return ProgressRecord(
            completed=bool(entry.get("completed", False)),
            last_visited=_epoch_ms(entry.get("lastVisited")),
        )

    def is_complete(self, program_id: str, module_id: str) -> bool:
        record = self.get_record(program_id, module_id)
        return record is not None and record.completed

    def mark_complete(self, program_id: str, module_id: str) -> ProgressRecord:
        """Create or refresh the record for a module. Idempotent."""
        record = ProgressRecord(completed=True, last_visited=int(self.clock() * 1000))
        self._progress.setdefault(program_id, {})[module_id] = record.to_dict()
        self._persist()
        return record

    def mark_incomplete(self, program_id: str, module_id: str) -> bool:
        """Remove a module's record. Returns whether one existed."""
        modules = self._progress.get(program_id)
        if not modules or module_id not in modules:
            return False
        del modules[module_id]
        if not modules:
            del self._progress[program_id]
        self._persist()
        return True

    def reset_all(self) -> None:
        """Forget every completion record."""
        self._progress = {}
        try:
            self.storage.remove_item(self.key)
        except StorageUnavailable as e:
            logger.warning(f"Progress not cleared in storage: {e}")

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def completed_count(self, program_id: str) -> int:
        modules = self._progress.get(program_id, {})
        return sum(1 for entry in modules.values() if isinstance(entry, dict) and entry.get("completed"))

    def program_progress(self, program_id: str, total_modules: int) -> ProgramProgress:
        """
        Completion summary for a program.

        Args:
            program_id: Program to summarize
            total_modules: Module count from the caller's manifest (0 if unknown)
        """
        completed = self.completed_count(program_id)
        if total_modules > 0:
            percentage = math.floor(completed / total_modules * 100 + 0.5)
        else:
            percentage = 0
        return ProgramProgress(completed=completed, total=max(total_modules, 0), percentage=percentage)

    def next_incomplete_index(self, program_id: str, modules: Sequence[ModuleDescriptor]) -> int:
        """Index of the first module not yet complete; 0 when all are (or none exist)."""
        for index, module in enumerate(modules):
            if not self.is_complete(program_id, module.id):
                return index
        return 0

    def snapshot(self) -> dict[str, dict[str, dict]]:
        return copy.deepcopy(self._progress)
