"""
Session-lifetime memo of page payloads keyed by (program, module).

Entries are written only after a successful fetch and never evicted; content
sets are small, so memory grows with the number of distinct pages visited.
"""

from __future__ import annotations

import asyncio

from loguru import logger
from pydantic import ValidationError

from ..errors import ContentUnavailable, FetchError
from .loader import JsonFetcher
from .models import ModuleDescriptor, PageContent, ProgramDescriptor, resolve_content_path


def cache_key(program_id: str, module_id: str) -> str:
    return f"{program_id}:{module_id}"


class ContentCache:
    """
    At-most-one successful fetch per page.

    By default concurrent misses for the same key each issue their own fetch
    (the last to resolve overwrites an identical entry). With
    share_inflight=True they await one shared task instead.
    """

    def __init__(self, client: JsonFetcher, share_inflight: bool = False):
        self.client = client
        self.share_inflight = share_inflight
        self._pages: dict[str, PageContent] = {}
        self._inflight: dict[str, asyncio.Task[PageContent]] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._pages

    def __len__(self) -> int:
        return len(self._pages)

    def peek(self, program_id: str, module_id: str) -> PageContent | None:
        return self._pages.get(cache_key(program_id, module_id))

    def clear(self) -> None:
        self._pages.clear()

    async def get_page(self, program: ProgramDescriptor, module: ModuleDescriptor) -> PageContent:
        """
        Return the cached page or fetch, validate and memoize it.

        Raises:
            ContentUnavailable: Fetch failed or the payload is malformed
        """
        key = cache_key(program.id, module.id)
        cached = self._pages.get(key)
        if cached is not None:
            return cached

        if not self.share_inflight:
            return await self._fetch(key, program, module)

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(key, program, module))
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        return await asyncio.shield(task)

    async def _fetch(self, key: str, program: ProgramDescriptor, module: ModuleDescriptor) -> PageContent:
        path = resolve_content_path(program.manifest_path, module.content_file)
        try:
            raw = await self.client.get_json(path)
        except FetchError as e:
            raise ContentUnavailable(f"Content for {module.id} unavailable: {e.reason}") from e

        try:
            page = PageContent.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Content {path} failed validation: {e.error_count()} error(s)")
            raise ContentUnavailable(f"Content for {module.id} is malformed") from e

        self._pages[key] = page
        logger.debug(f"Cached {key} from {path}")
        return page
