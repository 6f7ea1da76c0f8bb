"""
In-process event emitter between the navigation engine and its presentation
collaborator.

The engine emits; renderers, progress widgets and the CLI subscribe. Handlers
run synchronously in emission order, and a failing handler is logged without
interrupting navigation.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from loguru import logger


class SessionEvent(str, Enum):
    """Events exposed to presentation collaborators."""

    NAVIGATION_CHANGED = "navigation_changed"
    PAGE_LOAD_FAILED = "page_load_failed"
    PROGRESS_CHANGED = "progress_changed"
    PROGRAM_COMPLETED = "program_completed"
    SESSION_FAILED = "session_failed"


# =============================================================================
# Payloads
# =============================================================================


@dataclass
class NavigationChanged:
    """A new program/page (or the dashboard) is now current."""

    program_id: str | None
    page_index: int
    module_count: int = 0
    program: Any = None  # ProgramDescriptor
    module: Any = None  # ModuleDescriptor
    page: Any = None  # PageContent

    @property
    def is_dashboard(self) -> bool:
        return self.program_id is None


@dataclass
class PageLoadFailed:
    """A manifest or page fetch failed; the previous state is untouched."""

    kind: str
    message: str
    program_id: str | None = None
    page_index: int | None = None


@dataclass
class ProgressChanged:
    """A completion record was created or removed (program_id None: all progress reset)."""

    program_id: str | None
    module_id: str | None
    completed: bool
    summary: dict[str, int] = field(default_factory=dict)


@dataclass
class ProgramCompleted:
    """The learner marked the last module of a program complete."""

    program_id: str
    title: str
    module_count: int


@dataclass
class SessionFailed:
    """The catalog could not be loaded; nothing can be addressed."""

    kind: str
    message: str


Handler = Callable[[Any], None]


class EventEmitter:
    """Observer registry keyed by SessionEvent."""

    def __init__(self):
        self._subscribers: dict[str, tuple[SessionEvent, Handler]] = {}
        self._index: dict[SessionEvent, list[str]] = {}

    def subscribe(self, event: SessionEvent, handler: Handler) -> str:
        token = str(uuid.uuid4())
        self._subscribers[token] = (event, handler)
        self._index.setdefault(event, []).append(token)
        return token

    def unsubscribe(self, token: str) -> None:
        event, _ = self._subscribers.pop(token, (None, None))
        if event is not None and token in self._index.get(event, []):
            self._index[event].remove(token)
            if not self._index[event]:
                self._index.pop(event, None)

    def emit(self, event: SessionEvent, payload: Any) -> int:
        """Deliver payload to every handler; returns the number of handlers run."""
        handlers = [self._subscribers[token][1] for token in list(self._index.get(event, []))]
        for handler in handlers:
            try:
                handler(payload)
            except Exception as exc:
                logger.warning(f"Event handler for {event.value} failed: {exc}")
        return len(handlers)

    def subscriber_count(self, event: SessionEvent) -> int:
        return len(self._index.get(event, []))
