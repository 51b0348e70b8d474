from typing import Protocol


class PlaybackListener(Protocol):
    """
    Protocol for consumers of playback notifications (e.g. a UI adapter).

    Notifications are delivered on the event loop thread and must not block.
    """

    def on_playback_started(self, clip_name: str) -> None:
        """
        Called right before a clip's handle begins rendering.

        Args:
            clip_name: Clip that is starting
        """
        ...

    def on_playback_ended(self, clip_name: str) -> None:
        """
        Called when a clip played out naturally, was stopped by stop(), or
        was announced but the device refused to start it.

        Also called when a newer play request released the clip but then
        played nothing (nothing playable, load failure, device failure).
        Not called when the newer request starts; its on_playback_started
        replaces the highlight.

        Args:
            clip_name: Clip that ended
        """
        ...
