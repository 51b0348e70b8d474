"""
Configuration management for the soundboard.

Reads configuration from a .env file and environment variables with sensible defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# Default .env file location
DEFAULT_ENV_FILE = Path("soundboard.env")

OUTPUT_MODES = ("sounddevice", "null")
PRELOAD_MODES = ("first_play", "startup", "off")

logger = logging.getLogger(__name__)


def _load_env_file():
    """Load environment variables from .env file if it exists."""
    env_file = os.getenv("SOUNDBOARD_ENV_FILE", str(DEFAULT_ENV_FILE))
    env_path = Path(env_file)

    if env_path.exists():
        load_dotenv(env_path, override=False)  # Don't override existing env vars


def _parse_int(name: str, default: str) -> int:
    value = os.getenv(name, default)
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Invalid {name}: {value} (must be an integer)")


def _parse_optional_float(name: str) -> Optional[float]:
    value = os.getenv(name, "")
    if value == "":
        return None
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Invalid {name}: {value} (must be a number)")


def is_url(location: str) -> bool:
    """True if location is an http(s) URL rather than a local path."""
    return location.startswith("http://") or location.startswith("https://")


def default_media_root(catalog_location: str) -> str:
    """
    Directory (or URL base) that segment files resolve against by default.

    Segment files sit next to the clip document, the way a page fetches
    its sounds relative to itself.
    """
    if is_url(catalog_location):
        return catalog_location.rsplit("/", 1)[0] + "/"
    return str(Path(catalog_location).resolve().parent)


@dataclass
class SoundboardConfig:
    """Soundboard configuration loaded from .env file and environment variables."""

    # Clip document and media
    catalog_location: str = "sounds.json"
    media_root: Optional[str] = None

    # Output
    output_mode: str = "sounddevice"
    sample_rate: int = 48000
    channels: int = 2

    # Playback behavior
    sequence_pause_ms: int = 100
    preload: str = "first_play"

    # Fetching (None means wait as long as it takes)
    fetch_timeout_sec: Optional[float] = None

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @property
    def sequence_pause_sec(self) -> float:
        """Inter-clip pause in seconds."""
        return self.sequence_pause_ms / 1000.0

    @property
    def resolved_media_root(self) -> str:
        """Media root, falling back to the catalog's own location."""
        return self.media_root or default_media_root(self.catalog_location)

    @classmethod
    def load_config(cls) -> "SoundboardConfig":
        """
        Load configuration from environment variables.

        Returns:
            SoundboardConfig instance with loaded values

        Raises:
            ValueError: If configuration is invalid
        """
        # Load .env file first (if it exists)
        _load_env_file()

        catalog_location = os.getenv("SOUNDBOARD_CATALOG", "sounds.json")
        media_root = os.getenv("SOUNDBOARD_MEDIA_ROOT") or None

        output_mode = os.getenv("SOUNDBOARD_OUTPUT_MODE", "sounddevice").lower()
        sample_rate = _parse_int("SOUNDBOARD_SAMPLE_RATE", "48000")
        channels = _parse_int("SOUNDBOARD_CHANNELS", "2")

        sequence_pause_ms = _parse_int("SOUNDBOARD_SEQUENCE_PAUSE_MS", "100")
        preload = os.getenv("SOUNDBOARD_PRELOAD", "first_play").lower()

        fetch_timeout_sec = _parse_optional_float("SOUNDBOARD_FETCH_TIMEOUT_SEC")

        log_level = os.getenv("SOUNDBOARD_LOG_LEVEL", "INFO").upper()
        log_file = os.getenv("SOUNDBOARD_LOG_FILE") or None

        config = cls(
            catalog_location=catalog_location,
            media_root=media_root,
            output_mode=output_mode,
            sample_rate=sample_rate,
            channels=channels,
            sequence_pause_ms=sequence_pause_ms,
            preload=preload,
            fetch_timeout_sec=fetch_timeout_sec,
            log_level=log_level,
            log_file=log_file,
        )

        config.validate()

        return config

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        if self.output_mode not in OUTPUT_MODES:
            raise ValueError(f"Invalid output mode: {self.output_mode} (must be one of {', '.join(OUTPUT_MODES)})")

        if self.preload not in PRELOAD_MODES:
            raise ValueError(f"Invalid preload mode: {self.preload} (must be one of {', '.join(PRELOAD_MODES)})")

        if self.sample_rate <= 0:
            raise ValueError(f"Invalid sample rate: {self.sample_rate} (must be positive)")

        if self.channels not in (1, 2):
            raise ValueError(f"Invalid channel count: {self.channels} (must be 1 or 2)")

        if self.sequence_pause_ms < 0:
            raise ValueError(f"Invalid sequence pause: {self.sequence_pause_ms}ms (must be >= 0)")

        if self.fetch_timeout_sec is not None and self.fetch_timeout_sec <= 0:
            raise ValueError(f"Invalid fetch timeout: {self.fetch_timeout_sec} (must be positive)")

        if not self.catalog_location:
            raise ValueError("Catalog location cannot be empty")

        valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        if self.log_level not in valid_levels:
            raise ValueError(f"Invalid log level: {self.log_level} (must be one of {', '.join(valid_levels)})")
