"""
Now Playing State Manager

Tracks which clip is currently highlighted, driven purely by playback
notifications. A UI adapter can read it or subscribe to changes instead
of implementing PlaybackListener itself.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NowPlayingState:
    """
    Immutable state snapshot for the currently sounding clip.

    No derived fields (elapsed, remaining, progress); consumers compute those.
    """
    clip_name: str
    started_at: float  # wall-clock timestamp (time.time())


class NowPlayingStateManager:
    """
    Manages NowPlayingState lifecycle.

    State is created on playback started and cleared on playback ended.
    The playback controller is the only writer.
    """

    def __init__(self):
        """Initialize state manager."""
        self._state: Optional[NowPlayingState] = None
        self._listeners: List[Callable[[Optional[NowPlayingState]], None]] = []

    def on_playback_started(self, clip_name: str) -> None:
        """
        Handle playback started: the new clip replaces any previous highlight.

        Args:
            clip_name: Clip that started
        """
        self._state = NowPlayingState(clip_name=clip_name, started_at=time.time())
        logger.debug(f"[NOW_PLAYING] State created: {clip_name}")
        self._notify_listeners(self._state)

    def on_playback_ended(self, clip_name: str) -> None:
        """
        Handle playback ended.

        An ended notification for a clip that is no longer the highlighted
        one leaves the state untouched.

        Args:
            clip_name: Clip that ended
        """
        if self._state is None or self._state.clip_name != clip_name:
            logger.debug(f"[NOW_PLAYING] Ignoring end of '{clip_name}' (not current)")
            return

        logger.debug(f"[NOW_PLAYING] State cleared: {clip_name}")
        self._state = None
        self._notify_listeners(None)

    def get_state(self) -> Optional[NowPlayingState]:
        """
        Get current state (read-only).

        Returns:
            Current NowPlayingState or None if nothing is playing
        """
        return self._state

    def clear_state(self) -> None:
        """Clear state (for restart semantics)."""
        self._state = None
        self._notify_listeners(None)

    def add_listener(self, callback: Callable[[Optional[NowPlayingState]], None]) -> None:
        """
        Add a listener callback for state changes.

        Callback will be called with (state: Optional[NowPlayingState]) when state changes.

        Args:
            callback: Function to call on state changes
        """
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[Optional[NowPlayingState]], None]) -> None:
        """
        Remove a listener callback.

        Args:
            callback: Function to remove
        """
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_listeners(self, state: Optional[NowPlayingState]) -> None:
        listeners = self._listeners.copy()

        for callback in listeners:
            try:
                callback(state)
            except Exception as e:
                # Exposure failures must not affect playback
                logger.debug(f"[NOW_PLAYING] Listener callback error: {e}")
