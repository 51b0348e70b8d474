import asyncio
import logging
import random
from typing import List, Optional

from soundboard.buffers.buffer_store import BufferStore
from soundboard.buffers.ffmpeg_decoder import FFmpegDecoder
from soundboard.buffers.fetcher import SourceFetcher
from soundboard.catalog.clip_catalog import ClipCatalog
from soundboard.config import SoundboardConfig
from soundboard.errors import ConfigError, LoadError
from soundboard.outputs.base_device import BaseDevice
from soundboard.outputs.factory import create_output_device
from soundboard.playback.controller import PlaybackController
from soundboard.playback.listener import PlaybackListener
from soundboard.playback.sequence_player import SequencePlayer
from soundboard.state.now_playing_state import NowPlayingStateManager

logger = logging.getLogger(__name__)


class Soundboard:
    """
    Soundboard orchestrator.

    Constructs every component once, in dependency order, and is the
    surface a UI adapter talks to:
    - ClipCatalog, loaded in start(); a failed load degrades to an empty catalog
    - BufferStore (SourceFetcher + FFmpegDecoder)
    - Output device
    - PlaybackController, SequencePlayer, NowPlayingStateManager

    Components live for the lifetime of the process; nothing is shared
    through module-level globals.
    """

    def __init__(
        self,
        config: Optional[SoundboardConfig] = None,
        device: Optional[BaseDevice] = None,
        fetcher: Optional[SourceFetcher] = None,
        decoder: Optional[FFmpegDecoder] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize soundboard components.

        Components are created but the catalog is not loaded until start().

        Args:
            config: Configuration (default: SoundboardConfig defaults)
            device: Output device (default: from config.output_mode)
            fetcher: Source fetcher (default: resolves against config's media root)
            decoder: Decoder (default: ffmpeg at config's sample rate/channels)
            rng: Random source shared by segment and clip selection
        """
        self.config = config or SoundboardConfig()

        self.fetcher = fetcher or SourceFetcher(
            self.config.resolved_media_root,
            timeout=self.config.fetch_timeout_sec,
        )
        self.decoder = decoder or FFmpegDecoder(
            sample_rate=self.config.sample_rate,
            channels=self.config.channels,
        )
        self.buffers = BufferStore(self.fetcher, self.decoder)
        self.device = device or create_output_device(self.config)

        self.catalog = ClipCatalog.empty()
        self.catalog_error: Optional[ConfigError] = None

        self.now_playing = NowPlayingStateManager()
        self.controller = PlaybackController(
            self.catalog,
            self.buffers,
            self.device,
            listener=self.now_playing,
            rng=rng,
        )
        self.sequence = SequencePlayer(
            self.controller,
            pause_seconds=self.config.sequence_pause_sec,
            rng=rng,
        )

        self.running = False
        self._closed = False
        self._preload_started = False
        self._preload_task: Optional[asyncio.Task] = None

    async def start(self) -> bool:
        """
        Load the clip catalog and get ready to play.

        Returns:
            True if the catalog loaded; False if running with no clips
        """
        try:
            self.catalog = await self._load_catalog()
            self.catalog_error = None
        except ConfigError as e:
            logger.error(f"[SOUNDBOARD] Clip catalog unavailable, no clips playable: {e}")
            self.catalog = ClipCatalog.empty()
            self.catalog_error = e

        self.controller.catalog = self.catalog
        self.running = True
        logger.info(f"[SOUNDBOARD] Ready: {len(self.catalog)} clips, {len(self.catalog.all_files())} files")

        if self.config.preload == "startup":
            await self.preload()

        return self.catalog_error is None

    async def _load_catalog(self) -> ClipCatalog:
        location = self.config.catalog_location
        try:
            document = await self.fetcher.fetch_document(location)
        except LoadError as e:
            raise ConfigError(f"Clip document unreachable: {location} ({e.reason})") from e
        return ClipCatalog.load(document)

    async def preload(self) -> List[str]:
        """
        Cache every file the catalog references. Runs at most once.

        Returns:
            Files that failed to load
        """
        if self._preload_started:
            return []
        self._preload_started = True
        return await self.buffers.preload_all(self.catalog.all_files())

    def _maybe_preload(self) -> None:
        if self.config.preload != "first_play" or self._preload_started:
            return
        # Background; a play request for a file being preloaded joins that load
        self._preload_task = asyncio.ensure_future(self.preload())

    def add_listener(self, listener: PlaybackListener) -> None:
        self.controller.add_listener(listener)

    def set_filter(self, active_filter: Optional[str]) -> None:
        self.controller.set_filter(active_filter)

    def clip_names(self) -> List[str]:
        """Clip names playable under the active filter."""
        return self.catalog.names(self.controller.active_filter)

    def play(self, name: str) -> Optional[asyncio.Task]:
        """
        Play a clip once (see PlaybackController.play).

        The first play also kicks off the preload of every catalog file.
        """
        self._maybe_preload()
        return self.controller.play(name)

    def start_sequence(self) -> Optional[asyncio.Task]:
        """Start continuous random playback in the background."""
        self._maybe_preload()
        return self.sequence.start()

    def stop(self) -> None:
        """Silence playback and stop a running sequence."""
        if self.sequence.running:
            self.sequence.stop()
        else:
            self.controller.stop()

    async def aclose(self) -> None:
        """Stop everything and release the device and transport."""
        if self._closed:
            return
        self._closed = True
        self.running = False

        self.stop()
        await self.sequence.wait_stopped()
        await self.controller.aclose()

        if self._preload_task is not None and not self._preload_task.done():
            self._preload_task.cancel()
            await asyncio.gather(self._preload_task, return_exceptions=True)
        self._preload_task = None

        await self.buffers.aclose()
        self.device.close()
        logger.info("[SOUNDBOARD] Closed")
