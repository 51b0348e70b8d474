"""
Buffer Store for the soundboard.

Fetches, decodes and memoizes source files as DecodedBuffers, keyed by
file name. Owns the asynchronous loading path and its cache.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from soundboard.buffers.decoded_buffer import DecodedBuffer
from soundboard.buffers.fetcher import SourceFetcher
from soundboard.buffers.ffmpeg_decoder import FFmpegDecoder
from soundboard.errors import DecodeError, LoadError

logger = logging.getLogger(__name__)


class BufferStore:
    """
    Load-or-fetch-from-cache store for decoded source files.

    Cached buffers are kept for the life of the process (the file set is
    small and bounded). Concurrent requests for the same uncached file
    share one in-flight load. A failed load caches nothing, so the next
    get() starts over from the fetch.
    """

    def __init__(self, fetcher: SourceFetcher, decoder: FFmpegDecoder):
        """
        Initialize buffer store.

        Args:
            fetcher: Fetches raw bytes for a file name
            decoder: Turns raw bytes into a DecodedBuffer
        """
        self.fetcher = fetcher
        self.decoder = decoder
        self._cache: Dict[str, DecodedBuffer] = {}
        self._in_flight: Dict[str, asyncio.Task] = {}

    async def get(self, file: str) -> DecodedBuffer:
        """
        Get the decoded buffer for a file, loading it on first use.

        Args:
            file: File name as it appears in the clip document

        Returns:
            The cached DecodedBuffer (same object on every call once loaded)

        Raises:
            LoadError: If fetching fails
            DecodeError: If decoding fails
        """
        cached = self._cache.get(file)
        if cached is not None:
            return cached

        task = self._in_flight.get(file)
        if task is None:
            task = asyncio.ensure_future(self._load(file))
            self._in_flight[file] = task
            task.add_done_callback(lambda t, f=file: self._on_load_done(f, t))
        else:
            logger.debug(f"[BUFFERS] Joining in-flight load: {file}")

        # Shielded: a cancelled requester must not abort a load others may share
        return await asyncio.shield(task)

    async def _load(self, file: str) -> DecodedBuffer:
        data = await self.fetcher.fetch(file)
        buffer = await self.decoder.decode(file, data)
        self._cache[file] = buffer
        logger.info(f"[BUFFERS] Loaded audio buffer: {file} ({buffer.duration:.2f}s)")
        return buffer

    def _on_load_done(self, file: str, task: asyncio.Task) -> None:
        if self._in_flight.get(file) is task:
            del self._in_flight[file]
        # Retrieve the exception so an unawaited failure is not reported as lost
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"[BUFFERS] Load failed, nothing cached: {file}")

    async def preload_all(self, files: Iterable[str]) -> List[str]:
        """
        Load every given file, one after another.

        A file that fails is logged and skipped; get() will retry it on demand.

        Args:
            files: File names to ensure are cached

        Returns:
            Files that could not be loaded
        """
        failed: List[str] = []
        files = list(files)
        for file in files:
            try:
                await self.get(file)
            except (LoadError, DecodeError) as e:
                logger.warning(f"[BUFFERS] Preload skipped {file}: {e}")
                failed.append(file)

        logger.info(f"[BUFFERS] Preload complete: {len(files) - len(failed)}/{len(files)} files cached")
        return failed

    def peek(self, file: str) -> Optional[DecodedBuffer]:
        """Cached buffer for a file, or None without triggering a load."""
        return self._cache.get(file)

    def is_cached(self, file: str) -> bool:
        return file in self._cache

    def is_loading(self, file: str) -> bool:
        return file in self._in_flight

    def cached_files(self) -> List[str]:
        return sorted(self._cache)

    async def aclose(self) -> None:
        """Abandon in-flight loads and release the fetcher's transport."""
        tasks = list(self._in_flight.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self.fetcher.aclose()
