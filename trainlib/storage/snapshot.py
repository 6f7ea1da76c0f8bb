"""
Durable snapshot of the last navigation state.

Written after every successful navigation and read once at startup so that a
reload resumes on the same page. Reads tolerate absence and corruption;
writes are best-effort.
"""

from __future__ import annotations

import json

from loguru import logger

from ..errors import StorageUnavailable
from ..state import NavigationState
from .backends import KeyValueStorage

SNAPSHOT_KEY = "trainingAppState"


class SessionSnapshotStore:
    """Read and overwrite the {programId, pageIndex} snapshot."""

    def __init__(self, storage: KeyValueStorage, key: str = SNAPSHOT_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> NavigationState:
        """Return the stored state, or the dashboard state when absent or unreadable."""
        try:
            raw = self.storage.get_item(self.key)
        except StorageUnavailable as e:
            logger.warning(f"Session snapshot unreadable: {e}")
            return NavigationState.dashboard()
        if not raw:
            return NavigationState.dashboard()

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Session snapshot is corrupt; ignoring it")
            return NavigationState.dashboard()
        if not isinstance(data, dict):
            return NavigationState.dashboard()

        program_id = data.get("programId")
        page_index = data.get("pageIndex")
        if not isinstance(program_id, str) or not program_id:
            program_id = None
        if isinstance(page_index, bool) or not isinstance(page_index, int) or page_index < 0:
            page_index = 0
        return NavigationState(program_id, page_index)

    def save(self, program_id: str | None, page_index: int | None) -> bool:
        """Overwrite the snapshot. Returns False if storage refused the write."""
        state = NavigationState(program_id or None, page_index if isinstance(page_index, int) else 0)
        try:
            self.storage.set_item(self.key, json.dumps(state.to_dict()))
        except StorageUnavailable as e:
            logger.warning(f"Session snapshot not saved: {e}")
            return False
        return True
