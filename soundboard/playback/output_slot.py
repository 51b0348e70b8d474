"""
Output Slot for the soundboard.

The single shared location holding the currently sounding playback handle.
"""

import logging
from typing import Optional

from soundboard.outputs.base_device import PlaybackHandle

logger = logging.getLogger(__name__)


class OutputSlot:
    """
    Holds zero or one live playback handle.

    Installing a handle while another one is held is refused, so the
    previous handle must always be fully released first.
    """

    def __init__(self):
        """Initialize an empty slot."""
        self._handle: Optional[PlaybackHandle] = None
        self._clip_name: Optional[str] = None

    @property
    def handle(self) -> Optional[PlaybackHandle]:
        return self._handle

    @property
    def clip_name(self) -> Optional[str]:
        return self._clip_name

    def is_empty(self) -> bool:
        return self._handle is None

    def holds(self, handle: PlaybackHandle) -> bool:
        """True if this exact handle is the one in the slot."""
        return self._handle is not None and self._handle is handle

    def install(self, handle: PlaybackHandle, clip_name: str) -> None:
        """
        Put a handle into the empty slot.

        Raises:
            RuntimeError: If the slot is occupied
        """
        if self._handle is not None:
            raise RuntimeError(
                f"Output slot occupied by '{self._clip_name}'; release it before installing '{clip_name}'"
            )
        self._handle = handle
        self._clip_name = clip_name

    def release(self) -> Optional[PlaybackHandle]:
        """
        Stop and release whatever occupies the slot, leaving it empty.

        Synchronous; safe to call on an empty slot.

        Returns:
            The handle that was released, or None if the slot was empty
        """
        handle = self._handle
        if handle is None:
            return None

        self._handle = None
        self._clip_name = None
        handle.stop()
        handle.release()
        return handle
