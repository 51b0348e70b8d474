"""
Source Fetcher for the soundboard.

Fetches raw (still encoded) bytes for a source file, either over HTTP
or from the local filesystem, relative to the media root.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urljoin

import httpx

from soundboard.config import is_url
from soundboard.errors import LoadError

logger = logging.getLogger(__name__)


class SourceFetcher:
    """
    Transport-only fetcher for source files.

    Makes no caching decisions; BufferStore owns those.
    """

    def __init__(
        self,
        media_root: str = ".",
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize source fetcher.

        Args:
            media_root: Local directory or http(s) URL base that file names resolve against
            client: Shared httpx client (default: created lazily, owned by this fetcher)
            timeout: HTTP timeout in seconds (default: None, wait indefinitely)
        """
        self.media_root = media_root
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

        # Suppress httpx INFO level logging (one line per fetched file otherwise)
        httpx_logger = logging.getLogger("httpx")
        httpx_logger.setLevel(logging.WARNING)

    def resolve(self, file: str) -> str:
        """Location (URL or local path) a file name refers to."""
        if is_url(file):
            return file
        if is_url(self.media_root):
            base = self.media_root if self.media_root.endswith("/") else self.media_root + "/"
            return urljoin(base, file)
        return str(Path(self.media_root) / file)

    async def fetch(self, file: str) -> bytes:
        """
        Fetch the raw bytes of a source file.

        Args:
            file: File name as it appears in the clip document

        Returns:
            Encoded file contents

        Raises:
            LoadError: If the file cannot be fetched
        """
        location = self.resolve(file)
        if is_url(location):
            return await self._fetch_http(file, location)
        return await self._fetch_local(file, location)

    async def _fetch_http(self, file: str, url: str) -> bytes:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise LoadError(file, f"GET {url} failed: {e}", cause=e) from e
        logger.debug(f"[FETCH] {url}: {len(response.content)} bytes")
        return response.content

    async def _fetch_local(self, file: str, path: str) -> bytes:
        try:
            # Read off-loop so a slow disk never stalls other requests
            data = await asyncio.to_thread(Path(path).read_bytes)
        except OSError as e:
            raise LoadError(file, f"cannot read {path}: {e}", cause=e) from e
        logger.debug(f"[FETCH] {path}: {len(data)} bytes")
        return data

    async def fetch_document(self, location: str) -> bytes:
        """
        Fetch an arbitrary document (e.g. the clip document) by location.

        Raises:
            LoadError: If the document cannot be fetched
        """
        if is_url(location):
            return await self._fetch_http(location, location)
        return await self._fetch_local(location, location)

    async def aclose(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
