from abc import ABC, abstractmethod
from typing import Callable, Optional

from soundboard.buffers.decoded_buffer import DecodedBuffer

# Handle lifecycle states
HANDLE_CREATED = "created"
HANDLE_PLAYING = "playing"
HANDLE_FINISHED = "finished"
HANDLE_STOPPED = "stopped"
HANDLE_RELEASED = "released"


class PlaybackHandle(ABC):
    """
    One rendering of a segment on an output device.

    Lifecycle: created → playing → (finished | stopped) → released.
    The finished callback fires at most once, only on natural completion,
    and never after stop() or release().
    """

    def __init__(self, start: float, duration: float):
        """
        Args:
            start: Offset into the buffer in seconds
            duration: Seconds to render
        """
        self.start = start
        self.duration = duration
        self.state = HANDLE_CREATED
        self._finished_callback: Optional[Callable[["PlaybackHandle"], None]] = None

    def on_finished(self, callback: Callable[["PlaybackHandle"], None]) -> None:
        """Register the natural-completion callback (replaces any earlier one)."""
        self._finished_callback = callback

    def begin(self) -> None:
        """Start rendering. A handle can only be started once."""
        if self.state != HANDLE_CREATED:
            raise RuntimeError(f"Cannot begin a handle in state '{self.state}'")
        self.state = HANDLE_PLAYING
        self._begin()

    def stop(self) -> None:
        """Stop sound production. Idempotent."""
        if self.state == HANDLE_PLAYING:
            self.state = HANDLE_STOPPED
            self._stop()
        elif self.state == HANDLE_CREATED:
            self.state = HANDLE_STOPPED

    def release(self) -> None:
        """Stop if needed and free attached resources. Idempotent."""
        if self.state == HANDLE_RELEASED:
            return
        self.stop()
        self.state = HANDLE_RELEASED
        self._finished_callback = None
        self._release()

    @property
    def is_playing(self) -> bool:
        return self.state == HANDLE_PLAYING

    def _complete(self) -> None:
        """Called by implementations when the excerpt has played out."""
        if self.state != HANDLE_PLAYING:
            return
        self.state = HANDLE_FINISHED
        callback = self._finished_callback
        if callback is not None:
            callback(self)

    @abstractmethod
    def _begin(self) -> None:
        ...

    @abstractmethod
    def _stop(self) -> None:
        ...

    @abstractmethod
    def _release(self) -> None:
        ...


class BaseDevice(ABC):
    """
    Abstract base class for all audio output devices.

    All devices must implement resume_if_suspended(), create_handle() and close().
    """

    @abstractmethod
    async def resume_if_suspended(self) -> None:
        """
        Bring the output pathway to a running state.

        Raises:
            DeviceError: If the device cannot be used
        """
        ...

    @abstractmethod
    def create_handle(self, buffer: DecodedBuffer, start: float, duration: float) -> PlaybackHandle:
        """
        Create a handle that renders buffer[start:start + duration] when begun.

        Args:
            buffer: Decoded source file
            start: Offset in seconds
            duration: Seconds to render
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """
        Close the output device and release resources.
        """
        ...
