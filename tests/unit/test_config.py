"""
Unit tests for settings loading.
"""

from pathlib import Path

from trainlib.config import Settings


def test_defaults(monkeypatch):
    for name in ("TRAINLIB_CONTENT_URL", "TRAINLIB_COMPLETION_POLICY", "TRAINLIB_FETCH_TIMEOUT_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.content_url == "content"
    assert settings.catalog_path == "programs.json"
    assert settings.fetch_timeout_seconds is None
    assert settings.completion_policy == "auto_on_advance"
    assert settings.share_inflight_fetches is False


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("TRAINLIB_CONTENT_URL", "https://training.example.com/content")
    monkeypatch.setenv("TRAINLIB_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TRAINLIB_COMPLETION_POLICY", "explicit")
    monkeypatch.setenv("TRAINLIB_FETCH_TIMEOUT_SECONDS", "2.5")

    settings = Settings(_env_file=None)

    assert settings.content_url == "https://training.example.com/content"
    assert settings.completion_policy == "explicit"
    assert settings.fetch_timeout_seconds == 2.5
    assert settings.storage_dir == Path(tmp_path) / "storage"
