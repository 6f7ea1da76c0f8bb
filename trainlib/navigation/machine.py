"""
Navigation State Machine - the single owner of "where am I".

States:
    uninitialized -> dashboard <-> program_active
    uninitialized -> failed          (catalog unavailable, terminal)

Every operation is a coroutine whose only suspension points are the
catalog, manifest and content fetches. State is committed and published
(history entry + durable snapshot) synchronously after the triggering fetch
resolves; a failed fetch leaves the previous state untouched.

Overlapping switches are not cancelled: whichever navigation commits last
becomes the visible state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from loguru import logger

from ..content.cache import ContentCache
from ..content.loader import CatalogLoader, ManifestLoader
from ..content.models import Catalog, ModuleDescriptor, PageContent, ProgramDescriptor
from ..errors import CatalogUnavailable, ContentUnavailable, ManifestUnavailable, TrainlibError
from ..events import (
    EventEmitter,
    NavigationChanged,
    PageLoadFailed,
    ProgramCompleted,
    ProgressChanged,
    SessionEvent,
    SessionFailed,
)
from ..state import NavigationState
from ..storage.progress import ProgressStore
from ..storage.snapshot import SessionSnapshotStore
from .history import BrowserHistory, entry_for


class Phase(str, Enum):
    UNINITIALIZED = "uninitialized"
    DASHBOARD = "dashboard"
    PROGRAM_ACTIVE = "program_active"
    FAILED = "failed"


class PublishMode(str, Enum):
    PUSH = "push"  # user-initiated: new history entry
    REPLACE = "replace"  # URL/history-initiated: rewrite the current entry


class CompletionPolicy(str, Enum):
    AUTO_ON_ADVANCE = "auto_on_advance"
    EXPLICIT = "explicit"


class NavigationStatus(str, Enum):
    APPLIED = "applied"
    IGNORED = "ignored"
    FAILED = "failed"


@dataclass(frozen=True)
class NavigationResult:
    """Outcome of a public navigation operation."""

    status: NavigationStatus
    state: NavigationState
    error: TrainlibError | None = None
    page: PageContent | None = None

    @property
    def ok(self) -> bool:
        return self.status == NavigationStatus.APPLIED


class NavigationStateMachine:
    """Drive catalog/manifest/content loads and publish the resulting state."""

    def __init__(
        self,
        catalog_loader: CatalogLoader,
        manifest_loader: ManifestLoader,
        cache: ContentCache,
        progress: ProgressStore,
        snapshots: SessionSnapshotStore,
        history: BrowserHistory,
        events: EventEmitter,
        completion_policy: CompletionPolicy = CompletionPolicy.AUTO_ON_ADVANCE,
    ):
        self.catalog_loader = catalog_loader
        self.manifest_loader = manifest_loader
        self.cache = cache
        self.progress = progress
        self.snapshots = snapshots
        self.history = history
        self.events = events
        self.completion_policy = CompletionPolicy(completion_policy)

        self.phase = Phase.UNINITIALIZED
        self.catalog: Catalog | None = None
        self._fatal_error: CatalogUnavailable | None = None
        self._program: ProgramDescriptor | None = None
        self._modules: list[ModuleDescriptor] = []
        self._page_index = 0

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def state(self) -> NavigationState:
        if self._program is None:
            return NavigationState.dashboard()
        return NavigationState(self._program.id, self._page_index)

    @property
    def current_program(self) -> ProgramDescriptor | None:
        return self._program

    @property
    def modules(self) -> list[ModuleDescriptor]:
        return list(self._modules)

    @property
    def module_count(self) -> int:
        return len(self._modules)

    @property
    def current_module(self) -> ModuleDescriptor | None:
        if self._program is None or not 0 <= self._page_index < len(self._modules):
            return None
        return self._modules[self._page_index]

    @property
    def fatal_error(self) -> CatalogUnavailable | None:
        return self._fatal_error

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def initialize(self) -> NavigationResult:
        """Load the catalog once. Failure is terminal for the session."""
        if self.phase == Phase.FAILED:
            return self._result(NavigationStatus.FAILED, error=self._fatal_error)
        if self.phase != Phase.UNINITIALIZED:
            return self._result(NavigationStatus.IGNORED)

        try:
            self.catalog = await self.catalog_loader.load_catalog()
        except CatalogUnavailable as e:
            logger.error(f"Session cannot start: {e}")
            self.phase = Phase.FAILED
            self._fatal_error = e
            self.events.emit(SessionEvent.SESSION_FAILED, SessionFailed(kind=e.kind, message=e.message))
            return self._result(NavigationStatus.FAILED, error=e)

        self.phase = Phase.DASHBOARD
        return self._result(NavigationStatus.APPLIED)

    def _blocked(self) -> NavigationResult | None:
        if self.phase == Phase.FAILED:
            return self._result(NavigationStatus.FAILED, error=self._fatal_error)
        if self.phase == Phase.UNINITIALIZED or self.catalog is None:
            logger.warning("Navigation requested before the catalog was loaded")
            return self._result(NavigationStatus.IGNORED)
        return None

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    async def switch_program(
        self,
        program_id: str,
        page_index: int = 0,
        publish: PublishMode = PublishMode.PUSH,
    ) -> NavigationResult:
        """
        Load a program's manifest and open the requested page (clamped).

        Unknown program ids are ignored without touching state.
        """
        blocked = self._blocked()
        if blocked:
            return blocked

        program = self.catalog.get(program_id)
        if program is None:
            logger.warning(f"Ignoring switch to unknown program {program_id!r}")
            return self._result(NavigationStatus.IGNORED)

        try:
            modules = await self.manifest_loader.load_manifest(program.manifest_path)
        except ManifestUnavailable as e:
            return self._fail(e, program.id, page_index)

        if not modules:
            self._commit(program, modules, 0, None, publish)
            return self._result(NavigationStatus.APPLIED)

        clamped = min(max(page_index, 0), len(modules) - 1)
        if clamped != page_index:
            logger.debug(f"Clamped page {page_index} to {clamped} for {program.id}")
        return await self._open(program, modules, clamped, publish)

    async def go_to_page(self, index: int, publish: PublishMode = PublishMode.PUSH) -> NavigationResult:
        """Open a page of the current program; out-of-range indexes are ignored."""
        blocked = self._blocked()
        if blocked:
            return blocked
        if self.phase != Phase.PROGRAM_ACTIVE or self._program is None:
            return self._result(NavigationStatus.IGNORED)
        if not 0 <= index < len(self._modules):
            logger.debug(f"Ignoring out-of-range page {index} (have {len(self._modules)})")
            return self._result(NavigationStatus.IGNORED)
        return await self._open(self._program, list(self._modules), index, publish)

    async def show_dashboard(self, publish: PublishMode = PublishMode.PUSH) -> NavigationResult:
        blocked = self._blocked()
        if blocked:
            return blocked

        self._program = None
        self._modules = []
        self._page_index = 0
        self.phase = Phase.DASHBOARD
        self._publish(publish)
        self.events.emit(SessionEvent.NAVIGATION_CHANGED, NavigationChanged(program_id=None, page_index=0))
        return self._result(NavigationStatus.APPLIED)

    async def advance(self) -> NavigationResult:
        """Next page; under auto_on_advance the page being left is marked complete."""
        if self.phase != Phase.PROGRAM_ACTIVE or self._program is None:
            return self._result(NavigationStatus.IGNORED)
        target = self._page_index + 1
        if target >= len(self._modules):
            return self._result(NavigationStatus.IGNORED)

        if self.completion_policy == CompletionPolicy.AUTO_ON_ADVANCE:
            leaving = self._modules[self._page_index]
            self._mark(self._program.id, leaving.id, completed=True)
        return await self.go_to_page(target)

    async def retreat(self) -> NavigationResult:
        if self.phase != Phase.PROGRAM_ACTIVE:
            return self._result(NavigationStatus.IGNORED)
        return await self.go_to_page(self._page_index - 1)

    async def toggle_complete(self) -> NavigationResult:
        """
        Handle the renderer's complete/incomplete toggle for the current page.

        Completing moves on to the next page, or announces program completion
        on the last one. Un-completing re-renders the current page.
        """
        program, module = self._program, self.current_module
        if self.phase != Phase.PROGRAM_ACTIVE or program is None or module is None:
            return self._result(NavigationStatus.IGNORED)

        if self.progress.is_complete(program.id, module.id):
            self._mark(program.id, module.id, completed=False)
            page = self.cache.peek(program.id, module.id)
            self._emit_navigation(page)
            return self._result(NavigationStatus.APPLIED, page=page)

        self._mark(program.id, module.id, completed=True)
        if self._page_index >= len(self._modules) - 1:
            self.events.emit(
                SessionEvent.PROGRAM_COMPLETED,
                ProgramCompleted(program_id=program.id, title=program.title, module_count=len(self._modules)),
            )
            return self._result(NavigationStatus.APPLIED)
        return await self.go_to_page(self._page_index + 1)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _open(
        self,
        program: ProgramDescriptor,
        modules: list[ModuleDescriptor],
        index: int,
        publish: PublishMode,
    ) -> NavigationResult:
        module = modules[index]
        try:
            page = await self.cache.get_page(program, module)
        except ContentUnavailable as e:
            return self._fail(e, program.id, index)

        self._commit(program, modules, index, page, publish)
        return self._result(NavigationStatus.APPLIED, page=page)

    def _commit(
        self,
        program: ProgramDescriptor,
        modules: list[ModuleDescriptor],
        index: int,
        page: PageContent | None,
        publish: PublishMode,
    ) -> None:
        self._program = program
        self._modules = modules
        self._page_index = index
        self.phase = Phase.PROGRAM_ACTIVE
        self._publish(publish)
        logger.debug(f"Now at {program.id} page {index + 1}/{len(modules)}")
        self._emit_navigation(page)

    def _publish(self, mode: PublishMode) -> None:
        state = self.state
        entry = entry_for(state.program_id, state.page_index)
        if mode == PublishMode.PUSH:
            self.history.push_state(entry.state, entry.url)
        else:
            self.history.replace_state(entry.state, entry.url)
        self.snapshots.save(state.program_id, state.page_index)

    def _emit_navigation(self, page: PageContent | None) -> None:
        self.events.emit(
            SessionEvent.NAVIGATION_CHANGED,
            NavigationChanged(
                program_id=self._program.id if self._program else None,
                page_index=self._page_index,
                module_count=len(self._modules),
                program=self._program,
                module=self.current_module,
                page=page,
            ),
        )

    def _mark(self, program_id: str, module_id: str, completed: bool) -> None:
        if completed:
            self.progress.mark_complete(program_id, module_id)
        else:
            self.progress.mark_incomplete(program_id, module_id)
        summary = self.progress.program_progress(program_id, len(self._modules))
        self.events.emit(
            SessionEvent.PROGRESS_CHANGED,
            ProgressChanged(program_id=program_id, module_id=module_id, completed=completed, summary=summary.to_dict()),
        )

    def _fail(self, error: TrainlibError, program_id: str | None, page_index: int | None) -> NavigationResult:
        logger.error(f"Navigation to {program_id} page {page_index} failed: {error}")
        self.events.emit(
            SessionEvent.PAGE_LOAD_FAILED,
            PageLoadFailed(kind=error.kind, message=error.message, program_id=program_id, page_index=page_index),
        )
        return self._result(NavigationStatus.FAILED, error=error)

    def _result(
        self,
        status: NavigationStatus,
        error: TrainlibError | None = None,
        page: PageContent | None = None,
    ) -> NavigationResult:
        return NavigationResult(status=status, state=self.state, error=error, page=page)
