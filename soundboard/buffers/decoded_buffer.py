"""
Decoded audio buffer for the soundboard.

A DecodedBuffer holds a whole source file as PCM samples so that any
segment can be played from any offset without decoding again.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, eq=False)
class DecodedBuffer:
    """
    Fully decoded, randomly seekable sample buffer.

    Samples are int16, shaped (N, channels), and read-only once created.
    Owned by BufferStore after it is cached; never mutated.

    Attributes:
        file: Source file the samples were decoded from
        samples: numpy int16 array shaped (N, channels)
        sample_rate: Samples per second per channel
    """
    file: str
    samples: np.ndarray
    sample_rate: int

    def __post_init__(self):
        if self.samples.ndim != 2:
            raise ValueError(f"samples must be shaped (N, channels), got {self.samples.shape}")
        self.samples.setflags(write=False)

    @property
    def channels(self) -> int:
        return self.samples.shape[1]

    @property
    def num_samples(self) -> int:
        return self.samples.shape[0]

    @property
    def duration(self) -> float:
        """Length of the buffer in seconds."""
        return self.num_samples / self.sample_rate

    def window(self, start: float, duration: float) -> np.ndarray:
        """
        Samples covering [start, start + duration), clamped to the buffer.

        An offset past the end yields an empty window.
        """
        first = min(max(int(round(start * self.sample_rate)), 0), self.num_samples)
        last = min(first + max(int(round(duration * self.sample_rate)), 0), self.num_samples)
        return self.samples[first:last]
