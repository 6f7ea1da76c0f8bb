"""
Configuration settings for the training library.

Uses Pydantic Settings for environment variable management with .env file support.
Every field can be overridden with a TRAINLIB_-prefixed environment variable.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TRAINLIB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Content
    # ========================================
    content_url: str = Field(
        default="content",
        description="Base of the content tree: http(s) URL or local directory",
    )
    catalog_path: str = Field(
        default="programs.json",
        description="Catalog location relative to content_url",
    )
    fetch_timeout_seconds: float | None = Field(
        default=None,
        description="Per-request timeout (None waits indefinitely)",
    )
    share_inflight_fetches: bool = Field(
        default=False,
        description="Let concurrent requests for one page share a single fetch",
    )

    # ========================================
    # Durable storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".trainlib",
        description="Directory holding the session snapshot and progress map",
    )
    storage_backend: Literal["file", "memory"] = Field(
        default="file",
        description="Durable storage implementation",
    )

    # ========================================
    # Behaviour
    # ========================================
    completion_policy: Literal["auto_on_advance", "explicit"] = Field(
        default="auto_on_advance",
        description="Whether moving to the next page marks the page left as complete",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="WARNING",
        description="Level for the CLI log sink",
    )

    @property
    def storage_dir(self) -> Path:
        return self.data_dir / "storage"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
