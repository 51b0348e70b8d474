"""
Playback module for the soundboard.

This package contains the output slot, the play request coordination
and cancellation protocol, and continuous sequence mode.
"""

from soundboard.playback.play_request import PlayRequest
from soundboard.playback.listener import PlaybackListener
from soundboard.playback.output_slot import OutputSlot
from soundboard.playback.controller import PlaybackController
from soundboard.playback.sequence_player import SequencePlayer, SequenceState

__all__ = [
    "PlayRequest",
    "PlaybackListener",
    "OutputSlot",
    "PlaybackController",
    "SequencePlayer",
    "SequenceState",
]
