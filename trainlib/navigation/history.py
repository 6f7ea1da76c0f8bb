"""
In-process model of the browser history stack.

Each entry pairs a URL hash with the structured payload the engine pushed
alongside it. Moving back or forward yields a PopStateEvent, which the
session hands to the reconciler exactly as a browser popstate would.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .urls import DASHBOARD_HASH, build_hash

HistoryPayload = dict[str, Any]


@dataclass(frozen=True)
class HistoryEntry:
    url: str
    state: HistoryPayload | None = None


@dataclass(frozen=True)
class PopStateEvent:
    """Fired when the current entry changes through back/forward."""

    state: HistoryPayload | None
    url: str


def page_payload(program_id: str, page_index: int) -> HistoryPayload:
    """0-based payload stored next to a 1-based page URL."""
    return {"programId": program_id, "page": page_index}


def dashboard_payload() -> HistoryPayload:
    return {"dashboard": True}


def entry_for(program_id: str | None, page_index: int) -> HistoryEntry:
    if program_id is None:
        return HistoryEntry(DASHBOARD_HASH, dashboard_payload())
    return HistoryEntry(build_hash(program_id, page_index), page_payload(program_id, page_index))


class BrowserHistory:
    """Linear history with a cursor, like window.history."""

    def __init__(self, initial_url: str = DASHBOARD_HASH):
        self._entries: list[HistoryEntry] = [HistoryEntry(initial_url or DASHBOARD_HASH, None)]
        self._index = 0

    @property
    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    @property
    def current(self) -> HistoryEntry:
        return self._entries[self._index]

    @property
    def location_hash(self) -> str:
        return self.current.url

    @property
    def length(self) -> int:
        return len(self._entries)

    @property
    def can_go_back(self) -> bool:
        return self._index > 0

    @property
    def can_go_forward(self) -> bool:
        return self._index < len(self._entries) - 1

    def push_state(self, state: HistoryPayload | None, url: str) -> None:
        """Add an entry after the cursor, discarding any forward entries."""
        del self._entries[self._index + 1:]
        self._entries.append(HistoryEntry(url, state))
        self._index += 1

    def replace_state(self, state: HistoryPayload | None, url: str) -> None:
        self._entries[self._index] = HistoryEntry(url, state)

    def go(self, delta: int) -> PopStateEvent | None:
        target = self._index + delta
        if delta == 0 or not 0 <= target < len(self._entries):
            return None
        self._index = target
        entry = self._entries[target]
        return PopStateEvent(state=entry.state, url=entry.url)

    def back(self) -> PopStateEvent | None:
        return self.go(-1)

    def forward(self) -> PopStateEvent | None:
        return self.go(1)
