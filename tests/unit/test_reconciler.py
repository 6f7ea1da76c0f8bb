"""
Unit tests for startup and history reconciliation.
"""

import pytest

from trainlib.navigation.history import PopStateEvent
from trainlib.navigation.reconciler import HistoryAction, HistoryDecision, StateReconciler, TargetSource
from trainlib.navigation.urls import build_hash
from trainlib.state import NavigationState

KNOWN = {"p1", "p2"}


@pytest.fixture
def reconciler():
    return StateReconciler(KNOWN)


class TestResolveStartup:
    def test_hash_wins_over_snapshot(self, reconciler):
        target = reconciler.resolve_startup("#program=p2&page=3", NavigationState("p1", 1))

        assert (target.program_id, target.page_index, target.source) == ("p2", 2, TargetSource.HASH)

    def test_hash_program_without_page_starts_at_zero(self, reconciler):
        target = reconciler.resolve_startup("#program=p2", NavigationState("p1", 1))
        assert (target.program_id, target.page_index) == ("p2", 0)

    def test_snapshot_used_without_hash(self, reconciler):
        target = reconciler.resolve_startup("", NavigationState("p1", 3))

        assert (target.program_id, target.page_index, target.source) == ("p1", 3, TargetSource.SNAPSHOT)

    def test_legacy_hash_overrides_snapshot_page(self, reconciler):
        target = reconciler.resolve_startup("#page-2", NavigationState("p1", 3))
        assert (target.program_id, target.page_index) == ("p1", 1)

    def test_legacy_hash_without_snapshot(self, reconciler):
        target = reconciler.resolve_startup("#page-5", NavigationState.dashboard())

        assert target.is_dashboard
        assert target.page_index == 4
        assert target.source == TargetSource.DEFAULT

    def test_unknown_hash_program_falls_back_to_snapshot(self, reconciler):
        target = reconciler.resolve_startup("#program=ghost&page=2", NavigationState("p1", 0))
        assert (target.program_id, target.source) == ("p1", TargetSource.SNAPSHOT)

    def test_unknown_snapshot_program_is_dashboard(self, reconciler):
        target = reconciler.resolve_startup("#", NavigationState("retired", 2))
        assert target.is_dashboard

    def test_nothing_anywhere(self, reconciler):
        target = reconciler.resolve_startup(None, NavigationState.dashboard())
        assert (target.program_id, target.page_index) == (None, 0)

    def test_unrestricted_reconciler_trusts_any_program(self):
        target = StateReconciler().resolve_startup("#program=anything", NavigationState.dashboard())
        assert target.program_id == "anything"

    @pytest.mark.parametrize(
        "program_id,page_index",
        [
            ("p1", 0),
            ("p1", 2),
            ("python-basics", 11),
            ("c&d=e", 0),
            ("a b/c#?", 3),
            ("+100%", 1),
            ("ünï", 1),
        ],
    )
    def test_built_hash_resolves_to_same_location(self, program_id, page_index):
        reconciler = StateReconciler(KNOWN | {program_id})

        target = reconciler.resolve_startup(build_hash(program_id, page_index), NavigationState("p2", 5))

        assert (target.program_id, target.page_index, target.source) == (program_id, page_index, TargetSource.HASH)


class TestResolveHistory:
    def test_payload_for_other_program(self, reconciler):
        event = PopStateEvent({"programId": "p2", "page": 1}, "#program=p2&page=2")
        assert reconciler.resolve_history(event, "p1") == HistoryDecision(HistoryAction.SWITCH_PROGRAM, "p2", 1)

    def test_payload_for_current_program(self, reconciler):
        event = PopStateEvent({"programId": "p1", "page": 0}, "#program=p1&page=1")
        assert reconciler.resolve_history(event, "p1") == HistoryDecision(HistoryAction.GO_TO_PAGE, "p1", 0)

    def test_payload_trusted_over_hash(self, reconciler):
        event = PopStateEvent({"programId": "p2", "page": 0}, "#program=p1&page=4")
        assert reconciler.resolve_history(event, "p1").program_id == "p2"

    def test_dashboard_payload(self, reconciler):
        event = PopStateEvent({"dashboard": True}, "#")
        assert reconciler.resolve_history(event, "p1").action == HistoryAction.DASHBOARD

    def test_hash_fallback_switches_program(self, reconciler):
        event = PopStateEvent(None, "#program=p2&page=2")
        assert reconciler.resolve_history(event, "p1") == HistoryDecision(HistoryAction.SWITCH_PROGRAM, "p2", 1)

    def test_hash_fallback_same_program_without_page(self, reconciler):
        event = PopStateEvent(None, "#program=p1")
        assert reconciler.resolve_history(event, "p1") == HistoryDecision(HistoryAction.GO_TO_PAGE, "p1", 0)

    def test_legacy_hash_applies_to_current_program(self, reconciler):
        event = PopStateEvent(None, "#page-3")
        assert reconciler.resolve_history(event, "p1") == HistoryDecision(HistoryAction.GO_TO_PAGE, "p1", 2)

    def test_legacy_hash_without_program_is_dashboard(self, reconciler):
        event = PopStateEvent(None, "#page-3")
        assert reconciler.resolve_history(event, None).action == HistoryAction.DASHBOARD

    def test_unknown_program_is_dashboard(self, reconciler):
        event = PopStateEvent(None, "#program=ghost&page=1")
        assert reconciler.resolve_history(event, "p1").action == HistoryAction.DASHBOARD

    def test_malformed_payload_falls_back_to_hash(self, reconciler):
        event = PopStateEvent({"programId": "p2", "page": "two"}, "#program=p1&page=1")
        assert reconciler.resolve_history(event, None) == HistoryDecision(HistoryAction.SWITCH_PROGRAM, "p1", 0)

    def test_empty_hash_is_dashboard(self, reconciler):
        assert reconciler.resolve_history(PopStateEvent(None, "#"), "p1").action == HistoryAction.DASHBOARD
