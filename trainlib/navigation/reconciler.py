"""
State Reconciler - pick one navigation target from competing sources.

At startup the candidates are the URL hash, the durable session snapshot and
the dashboard default, in that priority. On back/forward the structured
history payload is trusted first and the hash is only parsed when no payload
exists (entries created by the user typing a URL, or by older builds).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from loguru import logger

from ..state import NavigationState
from .history import PopStateEvent
from .urls import parse_hash


class TargetSource(str, Enum):
    HASH = "hash"
    SNAPSHOT = "snapshot"
    DEFAULT = "default"


class HistoryAction(str, Enum):
    DASHBOARD = "dashboard"
    SWITCH_PROGRAM = "switch_program"
    GO_TO_PAGE = "go_to_page"


@dataclass(frozen=True)
class ReconciledTarget:
    """Startup target; program_id None means fall back to the dashboard."""

    program_id: str | None
    page_index: int
    source: TargetSource

    @property
    def is_dashboard(self) -> bool:
        return self.program_id is None


@dataclass(frozen=True)
class HistoryDecision:
    action: HistoryAction
    program_id: str | None = None
    page_index: int = 0


def _is_index(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class StateReconciler:
    """Resolve (program, page) targets against the set of known programs."""

    def __init__(self, known_program_ids: Iterable[str] | None = None):
        self.known_program_ids = set(known_program_ids) if known_program_ids is not None else None

    def is_known(self, program_id: str | None) -> bool:
        if not program_id:
            return False
        return self.known_program_ids is None or program_id in self.known_program_ids

    def resolve_startup(self, fragment: str | None, snapshot: NavigationState) -> ReconciledTarget:
        """
        Resolve the initial target.

        Priority:
        1. Program named by the hash (its page, else 0)
        2. Program from the snapshot (a legacy #page-N overrides its page)
        3. No program: caller shows the dashboard
        """
        hash_state = parse_hash(fragment)

        if self.is_known(hash_state.program_id):
            target = ReconciledTarget(hash_state.program_id, hash_state.page_index or 0, TargetSource.HASH)
        elif self.is_known(snapshot.program_id):
            page_index = snapshot.page_index
            if hash_state.legacy and hash_state.page_index is not None:
                page_index = hash_state.page_index
            target = ReconciledTarget(snapshot.program_id, page_index, TargetSource.SNAPSHOT)
        else:
            if hash_state.program_id:
                logger.warning(f"Ignoring unknown program in URL: {hash_state.program_id}")
            target = ReconciledTarget(None, hash_state.page_index or 0, TargetSource.DEFAULT)

        logger.debug(f"Startup target {target}")
        return target

    def resolve_history(self, event: PopStateEvent, current_program_id: str | None) -> HistoryDecision:
        """Decide what a back/forward event should do."""
        state = event.state
        if isinstance(state, dict):
            if state.get("dashboard"):
                return HistoryDecision(HistoryAction.DASHBOARD)
            program_id = state.get("programId")
            page_index = state.get("page")
            if isinstance(program_id, str) and program_id and _is_index(page_index):
                if program_id != current_program_id:
                    return HistoryDecision(HistoryAction.SWITCH_PROGRAM, program_id, page_index)
                return HistoryDecision(HistoryAction.GO_TO_PAGE, program_id, page_index)

        hash_state = parse_hash(event.url)

        if hash_state.program_id is None:
            # legacy #page-N means "page N of the program already open"
            if hash_state.legacy and hash_state.page_index is not None and current_program_id:
                return HistoryDecision(HistoryAction.GO_TO_PAGE, current_program_id, hash_state.page_index)
            return HistoryDecision(HistoryAction.DASHBOARD)

        if not self.is_known(hash_state.program_id):
            return HistoryDecision(HistoryAction.DASHBOARD)

        if hash_state.program_id != current_program_id:
            return HistoryDecision(HistoryAction.SWITCH_PROGRAM, hash_state.program_id, hash_state.page_index or 0)

        return HistoryDecision(HistoryAction.GO_TO_PAGE, hash_state.program_id, hash_state.page_index or 0)
