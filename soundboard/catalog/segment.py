"""
Segment model for the soundboard.

Defines the Segment dataclass: one playable excerpt of a source file.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Segment:
    """
    Represents a playable excerpt of a source file.

    Any one of a clip's segments may be chosen when the clip is requested.
    Segments are immutable once loaded from the clip document.

    Attributes:
        file: Source file name, resolved against the media root when fetched
        start: Offset into the file in seconds (>= 0)
        duration: Length of the excerpt in seconds (> 0)
    """
    file: str
    start: float
    duration: float

    @property
    def end(self) -> float:
        """Offset in seconds at which the excerpt stops."""
        return self.start + self.duration
