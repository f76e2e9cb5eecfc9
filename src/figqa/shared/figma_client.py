"""Figma REST client used to fetch the design document.

Only the file endpoint is needed: the pipeline reduces the whole document
tree itself.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

logger = logging.getLogger(__name__)

FIGMA_API_BASE = "https://api.figma.com"

_FILE_URL = re.compile(r"figma\.com/(?:file|design|board|proto|community/file)/([A-Za-z0-9_-]+)")
_KEY_SEGMENT = re.compile(r"(?:^|/)([A-Za-z0-9_-]{10,})(?=/|\?|#|$)")


class FigmaClientError(Exception):
    """Raised when a Figma API call fails."""


def extract_file_key(url: str) -> str:
    """Pull the file key out of a Figma share URL.

    Raises ValueError if no plausible key is present.
    """
    if m := _FILE_URL.search(url):
        return m.group(1)
    path = re.sub(r"^[a-z]+://[^/]+", "", url.strip())
    if m := _KEY_SEGMENT.search(path):
        return m.group(1)
    raise ValueError(f"Could not find a Figma file key in {url!r}")


class FigmaClient:
    """Async Figma REST API client (personal access token auth)."""

    def __init__(self, token: str, timeout: float = 60.0) -> None:
        if not token:
            raise FigmaClientError("Figma token not configured. Set FIGMA_TOKEN or pass token=.")
        self._token = token
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=FIGMA_API_BASE,
                headers={"X-Figma-Token": self._token},
                timeout=self._timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "FigmaClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def _get(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        client = await self._get_client()
        try:
            resp = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise FigmaClientError(f"Figma API timeout: {path}") from e
        except httpx.ConnectError as e:
            raise FigmaClientError(f"Figma API connection error: {path}") from e

        if resp.status_code == 403:
            raise FigmaClientError("Figma API returned 403 Forbidden. Check that the token is valid.")
        if resp.status_code == 404:
            raise FigmaClientError(f"Figma resource not found: {path}")
        if resp.status_code == 429:
            raise FigmaClientError("Figma API rate limit exceeded. Retry later.")
        if resp.status_code != 200:
            raise FigmaClientError(f"Figma API error {resp.status_code}: {resp.text[:200]}")

        try:
            return resp.json()
        except ValueError as e:
            raise FigmaClientError(f"Figma API returned invalid JSON for {path}") from e

    async def fetch_file(self, file_key: str) -> dict[str, Any]:
        """GET /v1/files/:key, the full file response."""
        data = await self._get(f"/v1/files/{file_key}")
        logger.info("Fetched Figma file %s (%s)", file_key, data.get("name", "unnamed"))
        return data

    async def get_document(self, url: str) -> dict[str, Any]:
        """Fetch the document tree for a share URL."""
        data = await self.fetch_file(extract_file_key(url))
        document = data.get("document")
        if not isinstance(document, dict):
            raise FigmaClientError("Figma file response has no document tree")
        return document
