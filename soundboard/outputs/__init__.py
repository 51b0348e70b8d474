"""
Outputs module for the soundboard.

This package contains output devices and the playback handles they
create for rendering a segment.
"""

from .base_device import BaseDevice, PlaybackHandle
from .null_device import NullDevice, NullHandle
from .factory import create_output_device

__all__ = [
    "BaseDevice",
    "PlaybackHandle",
    "NullDevice",
    "NullHandle",
    "create_output_device",
]
