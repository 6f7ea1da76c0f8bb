"""
Catalog and manifest loaders.

CatalogLoader fetches the program index once per session. ManifestLoader
re-fetches a program's manifest on every call so that content updates are
visible on the next program switch without a reload.
"""

from __future__ import annotations

from typing import Any, Protocol

from loguru import logger
from pydantic import ValidationError

from ..errors import CatalogUnavailable, FetchError, ManifestUnavailable
from .models import Catalog, Manifest, ModuleDescriptor


class JsonFetcher(Protocol):
    async def get_json(self, path: str) -> Any: ...


class CatalogLoader:
    """Load the top-level program catalog."""

    def __init__(self, client: JsonFetcher, path: str = "programs.json"):
        self.client = client
        self.path = path

    async def load_catalog(self) -> Catalog:
        """
        Fetch and validate the catalog.

        Raises:
            CatalogUnavailable: Fetch failed or the payload has no valid programs array
        """
        try:
            raw = await self.client.get_json(self.path)
        except FetchError as e:
            raise CatalogUnavailable(f"Program catalog unavailable: {e.reason}") from e

        if not isinstance(raw, dict) or not isinstance(raw.get("programs"), list):
            raise CatalogUnavailable("Program catalog is missing its programs array")

        try:
            catalog = Catalog.model_validate(raw)
        except ValidationError as e:
            raise CatalogUnavailable(f"Program catalog is malformed: {e.error_count()} error(s)") from e

        logger.debug(f"Loaded catalog '{catalog.title}' with {len(catalog.programs)} programs")
        return catalog


class ManifestLoader:
    """Load a program's module list, sorted by order. Not cached."""

    def __init__(self, client: JsonFetcher):
        self.client = client

    async def load_manifest(self, path: str) -> list[ModuleDescriptor]:
        """
        Fetch a manifest and return its modules in ascending order.

        Raises:
            ManifestUnavailable: Fetch failed or the payload is malformed
        """
        try:
            raw = await self.client.get_json(path)
        except FetchError as e:
            raise ManifestUnavailable(f"Manifest {path} unavailable: {e.reason}") from e

        if not isinstance(raw, dict) or not isinstance(raw.get("modules"), list):
            raise ManifestUnavailable(f"Manifest {path} is missing its modules array")

        try:
            manifest = Manifest.model_validate(raw)
        except ValidationError as e:
            raise ManifestUnavailable(f"Manifest {path} is malformed: {e.error_count()} error(s)") from e

        modules = manifest.sorted_modules()
        logger.debug(f"Loaded manifest {path} with {len(modules)} modules")
        return modules
