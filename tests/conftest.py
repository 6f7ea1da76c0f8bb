"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests:
a small content tree (catalog, manifests, pages), an in-memory fetcher with
failure injection and gates for ordering concurrent fetches, and a session
factory wired to in-memory storage.
"""
import asyncio
import copy
import json
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from trainlib.errors import FetchError  # noqa: E402
from trainlib.navigation.history import BrowserHistory  # noqa: E402
from trainlib.session import TrainingSession  # noqa: E402
from trainlib.storage import MemoryStorage  # noqa: E402

PYTHON_MANIFEST = "programs/python-basics/manifest.json"
GIT_MANIFEST = "programs/git/manifest.json"
EMPTY_MANIFEST = "programs/empty/manifest.json"


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (full session over a content tree)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# =============================================================================
# Content payloads
# =============================================================================


def _page(title: str) -> dict:
    return {
        "title": title,
        "sections": [
            {"type": "heading", "content": title},
            {"type": "paragraph", "content": f"About **{title}**."},
        ],
    }


@pytest.fixture
def catalog_payload():
    """Catalog with two populated programs and one without modules."""
    return {
        "title": "Engineering Academy",
        "programs": [
            {
                "id": "python-basics",
                "title": "Python Basics",
                "manifestPath": PYTHON_MANIFEST,
                "category": "Programming",
                "difficulty": "Beginner",
                "duration": "2 hours",
            },
            {
                "id": "git-essentials",
                "title": "Git Essentials",
                "manifestPath": GIT_MANIFEST,
                "category": "Tools",
            },
            {
                "id": "empty-program",
                "title": "Coming Soon",
                "manifestPath": EMPTY_MANIFEST,
            },
        ],
    }


@pytest.fixture
def content_payloads(catalog_payload):
    """Every fetchable document keyed by its path below the content root."""
    return {
        "programs.json": catalog_payload,
        # Deliberately out of order: the manifest lists m2 before m1
        PYTHON_MANIFEST: {
            "modules": [
                {"id": "m2", "title": "Variables", "contentFile": "m2.json", "order": 2},
                {"id": "m1", "title": "Introduction", "contentFile": "m1.json", "order": 1},
                {"id": "m3", "title": "Functions", "contentFile": "m3.json", "order": 3},
            ]
        },
        "programs/python-basics/m1.json": _page("Introduction"),
        "programs/python-basics/m2.json": _page("Variables"),
        "programs/python-basics/m3.json": _page("Functions"),
        GIT_MANIFEST: {
            "modules": [
                {"id": "g1", "title": "Commits", "file": "g1.json", "order": 1},
                {"id": "g2", "title": "Branches", "file": "g2.json", "order": 2},
            ]
        },
        "programs/git/g1.json": _page("Commits"),
        "programs/git/g2.json": _page("Branches"),
        EMPTY_MANIFEST: {"modules": []},
    }


class FakeFetcher:
    """In-memory JsonFetcher recording every requested path."""

    def __init__(self, payloads: dict):
        self.payloads = dict(payloads)
        self.calls: list[str] = []
        self.failing: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}

    def gate(self, path: str) -> asyncio.Event:
        """Hold fetches of path until the returned event is set."""
        event = asyncio.Event()
        self.gates[path] = event
        return event

    def count(self, path: str) -> int:
        return self.calls.count(path)

    async def get_json(self, path: str):
        self.calls.append(path)
        gate = self.gates.get(path)
        if gate is not None:
            await gate.wait()
        if path in self.failing or path not in self.payloads:
            raise FetchError(path, "HTTP 404", 404)
        return copy.deepcopy(self.payloads[path])


@pytest.fixture
def fetcher(content_payloads):
    return FakeFetcher(content_payloads)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def make_session(fetcher, storage):
    """Factory for sessions over the shared fetcher and storage."""

    def _make(initial_url: str = "#", **kwargs) -> TrainingSession:
        return TrainingSession(
            fetcher,
            kwargs.pop("storage", storage),
            history=BrowserHistory(initial_url),
            **kwargs,
        )

    return _make


@pytest.fixture
def content_dir(tmp_path, content_payloads):
    """The same content tree written to disk."""
    root = tmp_path / "content"
    for relative, payload in content_payloads.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
    return root
