"""
Sequence Player for the soundboard.

Drives an unattended loop that plays random clips back-to-back until
stopped, on top of PlaybackController.play_one_and_wait().
"""

import asyncio
import functools
import logging
import random
from dataclasses import dataclass
from typing import Callable, Optional

from soundboard.catalog.clip_catalog import ClipCatalog
from soundboard.playback.controller import PlaybackController

logger = logging.getLogger(__name__)

# Grace pause between two clips, in seconds
DEFAULT_PAUSE_SECONDS = 0.1


@dataclass
class SequenceState:
    """
    Process-wide state of the continuous random-playback loop.

    Attributes:
        running: True only while the loop is actively iterating
        stop_requested: Set by stop(); the loop exits at its next check
    """
    running: bool = False
    stop_requested: bool = False


class SequencePlayer:
    """
    Continuous random playback ("sequence mode").

    Registers itself with the controller so that a direct play() or a
    controller stop() halts the loop.
    """

    def __init__(
        self,
        controller: PlaybackController,
        pause_seconds: float = DEFAULT_PAUSE_SECONDS,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize sequence player.

        Args:
            controller: Controller whose output slot the sequence plays into
            pause_seconds: Pause between clips (default: 0.1)
            rng: Random source for clip selection (default: new random.Random)
        """
        self.controller = controller
        self.pause_seconds = pause_seconds
        self.state = SequenceState()
        self._rng = rng or random.Random()
        self._task: Optional[asyncio.Task] = None
        # Bumped by every run and every halt; a loop exits once it no longer owns the current value
        self._generation = 0
        controller.attach_sequence(self)

    @property
    def running(self) -> bool:
        return self.state.running

    def start(
        self,
        catalog: Optional[ClipCatalog] = None,
        filter_provider: Optional[Callable[[], str]] = None,
    ) -> Optional[asyncio.Task]:
        """
        Run the sequence loop as a background task.

        Returns:
            The loop task, or None if a sequence is already running
        """
        if self.state.running:
            logger.warning("[SEQUENCE] Already running; start ignored")
            return None
        self._task = asyncio.ensure_future(self.run_sequence(catalog, filter_provider))
        return self._task

    async def run_sequence(
        self,
        catalog: Optional[ClipCatalog] = None,
        filter_provider: Optional[Callable[[], str]] = None,
    ) -> int:
        """
        Play random clips back-to-back until stopped.

        The filter is read again before every clip, so changing it while
        the sequence runs takes effect on the next pick. Ends on its own
        when no clip is playable under the current filter.

        Args:
            catalog: Catalog to pick names from (default: the controller's)
            filter_provider: Returns the current file filter (default: the controller's active filter)

        Returns:
            Number of clips that played out naturally
        """
        if self.state.running:
            logger.warning("[SEQUENCE] Already running; run_sequence ignored")
            return 0

        catalog = catalog if catalog is not None else self.controller.catalog
        if filter_provider is None:
            filter_provider = self._controller_filter

        self._generation += 1
        generation = self._generation
        should_abandon = functools.partial(self._superseded, generation)

        self.state.running = True
        self.state.stop_requested = False
        completed = 0
        logger.info("[SEQUENCE] Started")

        try:
            while not self._superseded(generation):
                active_filter = filter_provider()
                pool = catalog.names(active_filter)
                if not pool:
                    logger.info(f"[SEQUENCE] No clips playable (filter={active_filter}); ending")
                    break

                name = self._rng.choice(pool)
                if await self.controller.play_one_and_wait(name, should_abandon=should_abandon):
                    completed += 1

                if self._superseded(generation):
                    break
                await asyncio.sleep(self.pause_seconds)
        finally:
            # A newer run may already own the state
            if generation == self._generation:
                self.state.running = False
            logger.info(f"[SEQUENCE] Stopped after {completed} clip(s)")

        return completed

    def _superseded(self, generation: int) -> bool:
        """True once this run was halted or replaced by a newer run."""
        return generation != self._generation or self.state.stop_requested

    def _controller_filter(self) -> str:
        return self.controller.active_filter

    def halt(self) -> None:
        """Flag the loop to exit without touching the output slot."""
        if self.state.running:
            logger.debug("[SEQUENCE] Halt requested")
        self.state.stop_requested = True
        self.state.running = False
        self._generation += 1

    def stop(self) -> None:
        """
        Stop the sequence and silence the current clip immediately.

        The loop exits at its next check; the sounding clip does not play out.
        """
        self.halt()
        self.controller.stop()

    async def wait_stopped(self) -> None:
        """Wait for a loop started with start() to exit."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
