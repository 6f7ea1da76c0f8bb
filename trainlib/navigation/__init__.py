"""
Navigation: URL hash codec, history model, reconciler and state machine.
"""

from .history import BrowserHistory, HistoryEntry, PopStateEvent, dashboard_payload, page_payload
from .machine import (
    CompletionPolicy,
    NavigationResult,
    NavigationStateMachine,
    NavigationStatus,
    Phase,
    PublishMode,
)
from .reconciler import HistoryAction, HistoryDecision, ReconciledTarget, StateReconciler, TargetSource
from .urls import DASHBOARD_HASH, HashState, build_hash, parse_hash

__all__ = [
    "BrowserHistory",
    "CompletionPolicy",
    "DASHBOARD_HASH",
    "HashState",
    "HistoryAction",
    "HistoryDecision",
    "HistoryEntry",
    "NavigationResult",
    "NavigationStateMachine",
    "NavigationStatus",
    "Phase",
    "PopStateEvent",
    "PublishMode",
    "ReconciledTarget",
    "StateReconciler",
    "TargetSource",
    "build_hash",
    "dashboard_payload",
    "page_payload",
    "parse_hash",
]
