"""
Training Session: the session-context object for one learner.

Owns every collaborator of the navigation engine (content client, cache,
loaders, stores, history, events) so nothing lives in module globals, and
adds the flows built on top of the state machine:
- Startup reconciliation (URL hash, durable snapshot, dashboard)
- Back/forward handling
- Dashboard summaries with per-program progress
- Resume at the first incomplete module
- Progress reset

Usage:
    async with TrainingSession.from_settings() as session:
        session.subscribe(SessionEvent.NAVIGATION_CHANGED, render)
        await session.start()
        await session.advance()
        await session.back()
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from loguru import logger

from .config import Settings, get_settings
from .content.cache import ContentCache
from .content.client import ContentClient
from .content.loader import CatalogLoader, JsonFetcher, ManifestLoader
from .content.models import Catalog, ProgramDescriptor
from .errors import ManifestUnavailable
from .events import EventEmitter, ProgressChanged, SessionEvent
from .navigation.history import BrowserHistory, PopStateEvent
from .navigation.machine import (
    CompletionPolicy,
    NavigationResult,
    NavigationStateMachine,
    NavigationStatus,
    PublishMode,
)
from .navigation.reconciler import HistoryAction, StateReconciler
from .state import NavigationState
from .storage import KeyValueStorage, ProgramProgress, ProgressStore, SessionSnapshotStore, create_storage


class ProgramAction(str, Enum):
    """What the dashboard offers for a program."""

    START = "start"
    RESUME = "resume"
    REVIEW = "review"


@dataclass(frozen=True)
class ProgramSummary:
    """Dashboard card for one program."""

    program: ProgramDescriptor
    progress: ProgramProgress

    @property
    def action(self) -> ProgramAction:
        if self.progress.is_complete:
            return ProgramAction.REVIEW
        if self.progress.total > 0 and self.progress.has_progress:
            return ProgramAction.RESUME
        return ProgramAction.START


class TrainingSession:
    """One learner's session: navigation engine plus dashboard and resume flows."""

    def __init__(
        self,
        client: JsonFetcher,
        storage: KeyValueStorage,
        history: BrowserHistory | None = None,
        events: EventEmitter | None = None,
        catalog_path: str = "programs.json",
        completion_policy: CompletionPolicy | str = CompletionPolicy.AUTO_ON_ADVANCE,
        share_inflight: bool = False,
    ):
        """
        Initialize session.

        Args:
            client: JSON fetcher for catalog, manifests and pages
            storage: Durable backend for the snapshot and progress map
            history: Browser history model (starts at "#" when omitted)
            events: Emitter shared with presentation collaborators
            catalog_path: Catalog location relative to the client's base
            completion_policy: auto_on_advance or explicit
            share_inflight: Deduplicate concurrent fetches of one page
        """
        self.client = client
        self.storage = storage
        self.history = history or BrowserHistory()
        self.events = events or EventEmitter()
        self.progress = ProgressStore(storage)
        self.snapshots = SessionSnapshotStore(storage)
        self.cache = ContentCache(client, share_inflight=share_inflight)
        self.manifests = ManifestLoader(client)
        self.navigator = NavigationStateMachine(
            catalog_loader=CatalogLoader(client, catalog_path),
            manifest_loader=self.manifests,
            cache=self.cache,
            progress=self.progress,
            snapshots=self.snapshots,
            history=self.history,
            events=self.events,
            completion_policy=CompletionPolicy(completion_policy),
        )
        self.reconciler: StateReconciler | None = None

    @classmethod
    def from_settings(cls, settings: Settings | None = None, initial_url: str = "#") -> "TrainingSession":
        """Build a session wired to the configured content location and storage."""
        settings = settings or get_settings()
        client = ContentClient.for_location(settings.content_url, timeout=settings.fetch_timeout_seconds)
        storage = create_storage(settings.storage_backend, settings.storage_dir)
        return cls(
            client,
            storage,
            history=BrowserHistory(initial_url),
            catalog_path=settings.catalog_path,
            completion_policy=settings.completion_policy,
            share_inflight=settings.share_inflight_fetches,
        )

    async def __aenter__(self) -> "TrainingSession":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def catalog(self) -> Catalog | None:
        return self.navigator.catalog

    @property
    def state(self) -> NavigationState:
        return self.navigator.state

    def subscribe(self, event: SessionEvent, handler: Callable[[Any], None]) -> str:
        return self.events.subscribe(event, handler)

    # -------------------------------------------------------------------------
    # Startup and history
    # -------------------------------------------------------------------------

    async def start(self) -> NavigationResult:
        """
        Load the catalog and open the reconciled startup target.

        A target whose manifest or page cannot be loaded falls back to the
        dashboard; the returned result still carries the failure.
        """
        result = await self.navigator.initialize()
        if not result.ok:
            return result

        self.reconciler = StateReconciler(self.navigator.catalog.program_ids)
        target = self.reconciler.resolve_startup(self.history.location_hash, self.snapshots.load())
        logger.info(f"Starting at {target.program_id or 'dashboard'} (from {target.source.value})")

        if target.is_dashboard:
            return await self.navigator.show_dashboard(publish=PublishMode.REPLACE)

        result = await self.navigator.switch_program(target.program_id, target.page_index, publish=PublishMode.REPLACE)
        if result.status == NavigationStatus.FAILED:
            await self.navigator.show_dashboard(publish=PublishMode.REPLACE)
            return NavigationResult(NavigationStatus.FAILED, self.state, error=result.error)
        return result

    async def handle_popstate(self, event: PopStateEvent) -> NavigationResult:
        """Apply a back/forward event; the entry already exists, so it is only rewritten."""
        if self.reconciler is None:
            return NavigationResult(NavigationStatus.IGNORED, self.state)

        decision = self.reconciler.resolve_history(event, self.state.program_id)
        logger.debug(f"History event {event.url} -> {decision.action.value}")

        if decision.action == HistoryAction.DASHBOARD:
            return await self.navigator.show_dashboard(publish=PublishMode.REPLACE)
        if decision.action == HistoryAction.SWITCH_PROGRAM:
            return await self.navigator.switch_program(
                decision.program_id, decision.page_index, publish=PublishMode.REPLACE
            )
        return await self.navigator.go_to_page(decision.page_index, publish=PublishMode.REPLACE)

    async def back(self) -> NavigationResult:
        event = self.history.back()
        if event is None:
            return NavigationResult(NavigationStatus.IGNORED, self.state)
        return await self.handle_popstate(event)

    async def forward(self) -> NavigationResult:
        event = self.history.forward()
        if event is None:
            return NavigationResult(NavigationStatus.IGNORED, self.state)
        return await self.handle_popstate(event)

    async def open_url(self, url: str) -> NavigationResult:
        """Follow a typed or shared link: a new entry without a payload, then reconcile it."""
        self.history.push_state(None, url)
        return await self.handle_popstate(PopStateEvent(state=None, url=url))

    # -------------------------------------------------------------------------
    # Navigation passthroughs
    # -------------------------------------------------------------------------

    async def switch_program(self, program_id: str, page_index: int = 0) -> NavigationResult:
        return await self.navigator.switch_program(program_id, page_index)

    async def go_to_page(self, index: int) -> NavigationResult:
        return await self.navigator.go_to_page(index)

    async def show_dashboard(self) -> NavigationResult:
        return await self.navigator.show_dashboard()

    async def advance(self) -> NavigationResult:
        return await self.navigator.advance()

    async def retreat(self) -> NavigationResult:
        return await self.navigator.retreat()

    async def toggle_complete(self) -> NavigationResult:
        return await self.navigator.toggle_complete()

    async def open_program(self, program_id: str) -> NavigationResult:
        """Open a program at its first incomplete module (the dashboard's resume)."""
        program = self.catalog.get(program_id) if self.catalog else None
        if program is None:
            return await self.navigator.switch_program(program_id)

        try:
            modules = await self.manifests.load_manifest(program.manifest_path)
        except ManifestUnavailable as e:
            logger.warning(f"Resume position unknown for {program_id}: {e}")
            index = 0
        else:
            index = self.progress.next_incomplete_index(program_id, modules)
        return await self.navigator.switch_program(program_id, index)

    # -------------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------------

    async def program_progress(self, program: ProgramDescriptor) -> ProgramProgress:
        """Progress against a freshly fetched manifest; 0/0 when it cannot be fetched."""
        try:
            modules = await self.manifests.load_manifest(program.manifest_path)
        except ManifestUnavailable as e:
            logger.warning(f"No progress for {program.id}: {e}")
            return ProgramProgress(completed=0, total=0, percentage=0)
        return self.progress.program_progress(program.id, len(modules))

    async def dashboard(self) -> list[tuple[str, list[ProgramSummary]]]:
        """Programs grouped by category with their progress and suggested action."""
        if self.catalog is None:
            return []

        programs = self.catalog.programs
        results = await asyncio.gather(*(self.program_progress(program) for program in programs))
        progress_by_id = {program.id: result for program, result in zip(programs, results)}

        return [
            (category, [ProgramSummary(program, progress_by_id[program.id]) for program in members])
            for category, members in self.catalog.by_category()
        ]

    async def reset_all_progress(self) -> NavigationResult:
        """Clear every completion record and return to the dashboard."""
        self.progress.reset_all()
        self.events.emit(
            SessionEvent.PROGRESS_CHANGED,
            ProgressChanged(program_id=None, module_id=None, completed=False),
        )
        return await self.navigator.show_dashboard()
