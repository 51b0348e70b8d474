"""
Error taxonomy for the soundboard.

ConfigError is raised when the clip document cannot be used at all.
LoadError and DecodeError describe a single source file that is unavailable
for now; a later request for the same file retries from scratch.
DeviceError means the audio output cannot be used until it is fixed.
"""

from typing import Optional


class SoundboardError(Exception):
    """Base class for all soundboard failures."""


class ConfigError(SoundboardError):
    """Clip document is unreachable or malformed."""


class LoadError(SoundboardError):
    """Raw bytes for a source file could not be fetched."""

    def __init__(self, file: str, reason: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to load {file}: {reason}")
        self.file = file
        self.reason = reason
        self.cause = cause


class DecodeError(SoundboardError):
    """Fetched bytes are not decodable audio."""

    def __init__(self, file: str, reason: str):
        super().__init__(f"Failed to decode {file}: {reason}")
        self.file = file
        self.reason = reason


class DeviceError(SoundboardError):
    """Audio output device is unavailable."""
