"""Navigation state shared by the state machine, reconciler and snapshot store."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NavigationState:
    """Where the learner is: a program and a zero-based page, or the dashboard."""

    program_id: str | None = None
    page_index: int = 0

    @property
    def is_dashboard(self) -> bool:
        return self.program_id is None

    def to_dict(self) -> dict:
        """Durable snapshot form."""
        return {"programId": self.program_id, "pageIndex": self.page_index}

    @classmethod
    def dashboard(cls) -> "NavigationState":
        return cls(None, 0)
