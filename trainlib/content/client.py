"""
HTTP client for fetching catalog, manifest and page JSON.

The client performs exactly one request per call: no retries (retry is always
user-initiated by navigating again) and, unless configured, no timeout.
Content trees on the local filesystem are served through
LocalContentTransport so the rest of the engine only ever speaks HTTP.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from urllib.parse import unquote

import httpx
from loguru import logger

from ..errors import FetchError

LOCAL_BASE_URL = "http://content.local/"


class LocalContentTransport(httpx.AsyncBaseTransport):
    """Answer GET requests from files below a root directory."""

    def __init__(self, root: Path | str):
        self.root = Path(root).resolve()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if request.method != "GET":
            return httpx.Response(405, request=request)

        relative = unquote(request.url.path).lstrip("/")
        target = (self.root / relative).resolve()
        if not target.is_relative_to(self.root) or not target.is_file():
            return httpx.Response(404, request=request)

        return httpx.Response(
            200,
            content=target.read_bytes(),
            headers={"Content-Type": "application/json"},
            request=request,
        )


class ContentClient:
    """Thin async JSON fetcher over one httpx.AsyncClient."""

    def __init__(
        self,
        base_url: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize content client.

        Args:
            base_url: Base URL every fetched path is resolved against
            timeout: Request timeout in seconds, None to wait indefinitely
            transport: Optional transport (local directory, mock in tests)
        """
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            follow_redirects=True,
        )

    @classmethod
    def for_location(cls, location: str, timeout: float | None = None) -> "ContentClient":
        """Build a client for an http(s) URL or a local content directory."""
        if location.startswith(("http://", "https://")):
            return cls(location, timeout=timeout)
        return cls(LOCAL_BASE_URL, timeout=timeout, transport=LocalContentTransport(location))

    async def __aenter__(self) -> "ContentClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def get_json(self, path: str) -> Any:
        """
        Fetch and decode one JSON document.

        Raises:
            FetchError: On non-2xx status, transport failure or undecodable body
        """
        try:
            response = await self.client.get(path.lstrip("/"))
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Fetch of {path} returned {e.response.status_code}")
            raise FetchError(path, f"HTTP {e.response.status_code}", e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error(f"Fetch of {path} failed: {e}")
            raise FetchError(path, str(e) or type(e).__name__) from e

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Fetch of {path} returned invalid JSON: {e}")
            raise FetchError(path, "invalid JSON", response.status_code) from e
