"""
Training Library - a navigation engine for multi-page training programs.

A catalog of programs, each with an ordered manifest of modules, each module
a JSON page of typed sections. The engine keeps the current (program, page)
in sync with a URL-style hash, a history stack, a durable snapshot and a
per-module progress map.
"""

from .config import Settings, get_settings
from .errors import (
    CatalogUnavailable,
    ContentUnavailable,
    FetchError,
    ManifestUnavailable,
    StorageUnavailable,
    TrainlibError,
)
from .events import EventEmitter, SessionEvent
from .session import ProgramAction, ProgramSummary, TrainingSession
from .state import NavigationState

__version__ = "1.0.0"

__all__ = [
    "CatalogUnavailable",
    "ContentUnavailable",
    "EventEmitter",
    "FetchError",
    "ManifestUnavailable",
    "NavigationState",
    "ProgramAction",
    "ProgramSummary",
    "SessionEvent",
    "Settings",
    "StorageUnavailable",
    "TrainingSession",
    "TrainlibError",
    "__version__",
    "get_settings",
]
