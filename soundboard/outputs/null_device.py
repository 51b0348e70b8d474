import asyncio
import logging
from typing import Optional

from soundboard.buffers.decoded_buffer import DecodedBuffer
from .base_device import BaseDevice, PlaybackHandle

logger = logging.getLogger(__name__)


class NullHandle(PlaybackHandle):
    """Handle that renders nothing and completes after its audible length elapses."""

    def __init__(self, buffer: DecodedBuffer, start: float, duration: float):
        super().__init__(start, duration)
        # Clamped to the buffer, like a real device running out of samples
        self.audible_seconds = len(buffer.window(start, duration)) / buffer.sample_rate
        self._timer: Optional[asyncio.TimerHandle] = None

    def _begin(self) -> None:
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.audible_seconds, self._complete)

    def _stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _release(self) -> None:
        # Nothing attached
        return


class NullDevice(BaseDevice):
    """
    A device that discards all audio. Useful for headless runs and long-running tests.

    Starts suspended, like a freshly created browser audio context.
    """

    def __init__(self):
        self.suspended = True
        self.closed = False

    async def resume_if_suspended(self) -> None:
        if self.suspended:
            await asyncio.sleep(0)
            self.suspended = False
            logger.debug("[DEVICE] Null device resumed")

    def create_handle(self, buffer: DecodedBuffer, start: float, duration: float) -> NullHandle:
        return NullHandle(buffer, start, duration)

    def close(self) -> None:
        self.closed = True
