"""
Clip Catalog for the soundboard.

Parses and indexes the clip document (clip name -> ordered segments).
Pure data: the catalog never touches the filesystem or the network.
Callers hand it an already-read document.

Document format:

    {"sounds": {"Alice": [{"file": "a.mp3", "start": 2, "duration": 3}]}}

A bare {"Alice": [...]} mapping is accepted as well.
"""

import json
import logging
import math
from collections.abc import Mapping
from pathlib import PurePosixPath
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from soundboard.catalog.segment import Segment
from soundboard.errors import ConfigError

logger = logging.getLogger(__name__)

# Filter value that matches every segment
ALL_FILES = "all"

AUDIO_EXTENSIONS = (".mp3", ".wav", ".ogg", ".flac", ".m4a", ".aac", ".opus")

REQUIRED_SEGMENT_FIELDS = ("file", "start", "duration")


def _parse_number(clip: str, index: int, field_name: str, value) -> float:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"Clip '{clip}' segment {index}: '{field_name}' must be a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise ConfigError(f"Clip '{clip}' segment {index}: '{field_name}' must be finite, got {value!r}")
    return number


def _parse_segment(clip: str, index: int, raw) -> Segment:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Clip '{clip}' segment {index}: expected an object, got {type(raw).__name__}")

    missing = [name for name in REQUIRED_SEGMENT_FIELDS if name not in raw]
    if missing:
        raise ConfigError(f"Clip '{clip}' segment {index}: missing required field(s) {', '.join(missing)}")

    file = raw["file"]
    if not isinstance(file, str) or not file:
        raise ConfigError(f"Clip '{clip}' segment {index}: 'file' must be a non-empty string")

    start = _parse_number(clip, index, "start", raw["start"])
    duration = _parse_number(clip, index, "duration", raw["duration"])

    if start < 0:
        raise ConfigError(f"Clip '{clip}' segment {index}: 'start' must be >= 0, got {start}")
    if duration <= 0:
        raise ConfigError(f"Clip '{clip}' segment {index}: 'duration' must be > 0, got {duration}")

    return Segment(file=file, start=start, duration=duration)


class ClipCatalog:
    """
    Read-only index of clips and their segments.

    Every clip maps to at least one segment. Clip order follows the
    document so that names() is stable for display.
    """

    def __init__(self, clips: Optional[Mapping] = None):
        """
        Initialize catalog from already-validated segments.

        Args:
            clips: Mapping of clip name -> sequence of Segment (default: empty)
        """
        self._clips: Dict[str, Tuple[Segment, ...]] = {}
        for name, segments in (clips or {}).items():
            segments = tuple(segments)
            if not segments:
                raise ConfigError(f"Clip '{name}' has no segments")
            self._clips[name] = segments

    @classmethod
    def empty(cls) -> "ClipCatalog":
        """Catalog with no clips (degraded state after a failed load)."""
        return cls()

    @classmethod
    def load(cls, document: Union[Mapping, str, bytes]) -> "ClipCatalog":
        """
        Parse a clip document into a catalog.

        Nothing is returned on failure, so a caller never sees a partial catalog.

        Args:
            document: Parsed mapping, or JSON text/bytes

        Returns:
            Loaded ClipCatalog

        Raises:
            ConfigError: If the document is not valid JSON or is malformed
        """
        if isinstance(document, (str, bytes, bytearray)):
            try:
                document = json.loads(document)
            except (ValueError, UnicodeDecodeError) as e:
                raise ConfigError(f"Clip document is not valid JSON: {e}") from e

        if not isinstance(document, Mapping):
            raise ConfigError(f"Clip document must be an object, got {type(document).__name__}")

        sounds = document.get("sounds", document)
        if not isinstance(sounds, Mapping):
            raise ConfigError(f"'sounds' must be an object, got {type(sounds).__name__}")

        clips: Dict[str, List[Segment]] = {}
        for name, raw_segments in sounds.items():
            if not isinstance(raw_segments, list):
                raise ConfigError(f"Clip '{name}': expected a list of segments, got {type(raw_segments).__name__}")
            if not raw_segments:
                raise ConfigError(f"Clip '{name}' has no segments")
            clips[name] = [_parse_segment(name, i, raw) for i, raw in enumerate(raw_segments)]

        catalog = cls(clips)
        logger.info(f"[CATALOG] Loaded {len(catalog)} clips referencing {len(catalog.all_files())} files")
        return catalog

    def segments_for(self, name: str, active_filter: str = ALL_FILES) -> List[Segment]:
        """
        Get the segments of a clip, restricted to one source file if filtered.

        An empty result is not an error: it means nothing of this clip is
        playable under the current filter (or the clip is unknown).

        Args:
            name: Clip name
            active_filter: File name to restrict to, or "all"

        Returns:
            Segments in document order
        """
        segments = self._clips.get(name, ())
        if active_filter == ALL_FILES:
            return list(segments)
        return [segment for segment in segments if segment.file == active_filter]

    def all_files(self) -> List[str]:
        """
        Distinct source files referenced by any segment, sorted ascending.

        Returns:
            Sorted list of file names
        """
        return sorted({segment.file for segments in self._clips.values() for segment in segments})

    def names(self, active_filter: str = ALL_FILES) -> List[str]:
        """
        Clip names, optionally restricted to clips with a segment in the filtered file.

        Args:
            active_filter: File name to restrict to, or "all"

        Returns:
            Clip names in document order
        """
        if active_filter == ALL_FILES:
            return list(self._clips)
        return [
            name for name, segments in self._clips.items()
            if any(segment.file == active_filter for segment in segments)
        ]

    def has_clip(self, name: str) -> bool:
        return name in self._clips

    @staticmethod
    def file_label(file: str) -> str:
        """Display label for a source file: its name without the audio extension."""
        name = PurePosixPath(file).name
        for extension in AUDIO_EXTENSIONS:
            if name.lower().endswith(extension):
                return name[: -len(extension)]
        return name

    def filter_options(self) -> List[Tuple[str, str]]:
        """
        Choices for a file filter picker as (value, label) pairs.

        The first entry is always the "all" choice.
        """
        return [(ALL_FILES, "All")] + [(file, self.file_label(file)) for file in self.all_files()]

    def __contains__(self, name: object) -> bool:
        return name in self._clips

    def __len__(self) -> int:
        return len(self._clips)

    def __iter__(self) -> Iterator[str]:
        return iter(self._clips)

    def __repr__(self) -> str:
        return f"ClipCatalog(clips={len(self._clips)})"


def load_catalog_file(path) -> ClipCatalog:
    """
    Read and parse a clip document from the local filesystem.

    Raises:
        ConfigError: If the file cannot be read or is malformed
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise ConfigError(f"Clip document unreachable: {path} ({e})") from e
    return ClipCatalog.load(data)


def segments_by_file(catalog: ClipCatalog) -> Dict[str, Sequence[Tuple[str, Segment]]]:
    """Group every (clip, segment) pair under its source file."""
    grouped: Dict[str, List[Tuple[str, Segment]]] = {}
    for name in catalog:
        for segment in catalog.segments_for(name):
            grouped.setdefault(segment.file, []).append((name, segment))
    return grouped
