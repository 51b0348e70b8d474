"""
Play Request model for the soundboard.

A PlayRequest lives only for the duration of one play() call's async chain.
"""

from dataclasses import dataclass

from soundboard.catalog.segment import Segment


@dataclass(frozen=True)
class PlayRequest:
    """
    One attempt to start playback.

    Attributes:
        request_id: Epoch token; the request is stale once the controller's counter moves past it
        clip_name: Clip that was requested
        segment: Segment chosen at random from the clip's candidates
    """
    request_id: int
    clip_name: str
    segment: Segment
