import asyncio
import logging

import numpy as np

from soundboard.buffers.decoded_buffer import DecodedBuffer
from soundboard.errors import DecodeError

logger = logging.getLogger(__name__)


class FFmpegDecoder:
    """
    Whole-file audio → PCM decoder using ffmpeg.
    - Outputs 16-bit signed little-endian PCM at the configured rate and channel count
    - Returns a DecodedBuffer of numpy int16 samples shaped (N, channels)

    Raw bytes go in on stdin, so the decoder never needs to know where
    the file came from.
    """

    def __init__(self, sample_rate: int = 48000, channels: int = 2, ffmpeg_path: str = "ffmpeg"):
        """
        Initialize FFmpeg decoder.

        Args:
            sample_rate: Output sample rate (default: 48000)
            channels: Output channel count (default: 2)
            ffmpeg_path: ffmpeg executable (default: "ffmpeg" on PATH)
        """
        self.sample_rate = sample_rate
        self.channels = channels
        self.ffmpeg_path = ffmpeg_path

    def command(self) -> list:
        """ffmpeg argument vector: decode stdin to raw s16le on stdout."""
        return [
            self.ffmpeg_path,
            "-v", "error",
            "-i", "pipe:0",
            "-f", "s16le",
            "-ac", str(self.channels),
            "-ar", str(self.sample_rate),
            "-",
        ]

    async def decode(self, file: str, data: bytes) -> DecodedBuffer:
        """
        Decode a complete audio file held in memory.

        Args:
            file: Source file name (for errors and the resulting buffer)
            data: Encoded audio bytes

        Returns:
            DecodedBuffer with the whole file

        Raises:
            DecodeError: If ffmpeg is missing, fails, or produces no audio
        """
        if not data:
            raise DecodeError(file, "no data")

        # start_new_session isolates ffmpeg from Ctrl-C (SIGINT) sent to the parent
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command(),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except FileNotFoundError as e:
            raise DecodeError(file, f"ffmpeg not found ({self.ffmpeg_path})") from e
        except OSError as e:
            raise DecodeError(file, f"cannot run ffmpeg ({self.ffmpeg_path}): {e}") from e

        try:
            stdout, stderr = await proc.communicate(data)
        finally:
            # Abandoned decode (task cancelled): don't leave ffmpeg behind
            if proc.returncode is None:
                logger.debug(f"[DECODER] Killing unfinished ffmpeg (pid={proc.pid}) for {file}")
                proc.kill()
                await proc.wait()

        if proc.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip().splitlines()
            reason = detail[-1] if detail else f"ffmpeg exited with {proc.returncode}"
            raise DecodeError(file, reason)

        return self.to_buffer(file, stdout)

    def to_buffer(self, file: str, pcm: bytes) -> DecodedBuffer:
        """
        Wrap raw s16le PCM in a DecodedBuffer.

        A trailing partial frame is dropped.
        """
        bytes_per_frame = self.channels * 2  # 2 bytes per int16 sample
        usable = len(pcm) - (len(pcm) % bytes_per_frame)
        if usable == 0:
            raise DecodeError(file, "decoder produced no audio")

        samples = np.frombuffer(pcm[:usable], dtype=np.int16).reshape(-1, self.channels)
        buffer = DecodedBuffer(file=file, samples=samples, sample_rate=self.sample_rate)
        logger.debug(f"[DECODER] Decoded {file}: {buffer.duration:.2f}s, {buffer.channels}ch @ {self.sample_rate}Hz")
        return buffer
