"""
SoundDevice output for the soundboard.

Renders segments to the system audio output through PortAudio. Each
handle owns its own OutputStream; PortAudio callbacks run on the audio
thread and are handed back to the event loop for completion.
"""

import asyncio
import logging
from typing import Optional, Union

import numpy as np
import sounddevice as sd

from soundboard.buffers.decoded_buffer import DecodedBuffer
from soundboard.errors import DeviceError
from .base_device import HANDLE_STOPPED, BaseDevice, PlaybackHandle

logger = logging.getLogger(__name__)


class SoundDeviceHandle(PlaybackHandle):
    """Plays one buffer window through a dedicated sounddevice.OutputStream."""

    def __init__(
        self,
        buffer: DecodedBuffer,
        start: float,
        duration: float,
        loop: asyncio.AbstractEventLoop,
        device: Optional[Union[int, str]] = None,
        blocksize: int = 1024,
    ):
        super().__init__(start, duration)
        self._frames = buffer.window(start, duration)
        self._sample_rate = buffer.sample_rate
        self._channels = buffer.channels
        self._loop = loop
        self._device = device
        self._blocksize = blocksize
        self._position = 0
        self._stream: Optional[sd.OutputStream] = None

    def _begin(self) -> None:
        try:
            self._stream = sd.OutputStream(
                samplerate=self._sample_rate,
                blocksize=self._blocksize,
                channels=self._channels,
                dtype="int16",
                device=self._device,
                callback=self._audio_callback,
                finished_callback=self._stream_finished,
            )
            self._stream.start()
        except sd.PortAudioError as e:
            self.state = HANDLE_STOPPED
            raise DeviceError(f"Cannot open output stream: {e}") from e

    def _audio_callback(self, outdata: np.ndarray, frames: int, time_info, status) -> None:
        """Audio callback - runs on audio thread."""
        if status:
            logger.debug(f"[DEVICE] Stream status: {status}")

        chunk = self._frames[self._position:self._position + frames]
        count = len(chunk)
        outdata[:count] = chunk
        if count < frames:
            outdata[count:] = 0
        self._position += count

        if self._position >= len(self._frames):
            raise sd.CallbackStop

    def _stream_finished(self) -> None:
        # Audio thread; also fires after abort(), where _complete() is a no-op
        try:
            self._loop.call_soon_threadsafe(self._complete)
        except RuntimeError:
            # Loop already closed during shutdown
            pass

    def _stop(self) -> None:
        if self._stream is not None:
            try:
                self._stream.abort()
            except sd.PortAudioError as e:
                logger.debug(f"[DEVICE] Abort failed (stream already stopped): {e}")

    def _release(self) -> None:
        if self._stream is not None:
            try:
                self._stream.close()
            except sd.PortAudioError as e:
                logger.debug(f"[DEVICE] Close failed: {e}")
            self._stream = None


class SoundDeviceOutput(BaseDevice):
    """
    System audio output via sounddevice.

    The device is probed on first resume; until then it counts as suspended.
    """

    def __init__(self, device: Optional[Union[int, str]] = None, blocksize: int = 1024):
        """
        Args:
            device: PortAudio device index or name (default: system default output)
            blocksize: Frames per audio callback
        """
        self.device = device
        self.blocksize = blocksize
        self.suspended = True

    async def resume_if_suspended(self) -> None:
        if not self.suspended:
            return
        try:
            info = await asyncio.to_thread(sd.query_devices, self.device, "output")
        except (sd.PortAudioError, ValueError) as e:
            raise DeviceError(f"No usable output device ({self.device or 'default'}): {e}") from e
        self.suspended = False
        logger.info(f"[DEVICE] Output ready: {info.get('name', self.device)}")

    def create_handle(self, buffer: DecodedBuffer, start: float, duration: float) -> SoundDeviceHandle:
        return SoundDeviceHandle(
            buffer,
            start,
            duration,
            loop=asyncio.get_running_loop(),
            device=self.device,
            blocksize=self.blocksize,
        )

    def close(self) -> None:
        self.suspended = True
