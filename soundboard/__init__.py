"""
Soundboard: random-excerpt clip playback over a single shared output.

A clip is a named set of (file, start, duration) segments. Playing a clip
picks one segment at random; a new playback always supersedes whatever is
in flight or sounding.
"""

from soundboard.errors import ConfigError, DecodeError, DeviceError, LoadError, SoundboardError

__version__ = "1.0.0"

__all__ = [
    "SoundboardError",
    "ConfigError",
    "LoadError",
    "DecodeError",
    "DeviceError",
    "__version__",
]
