"""
Buffers module for the soundboard.

This package contains the fetch → decode → cache pipeline that turns
source files into ready-to-play DecodedBuffers.
"""

from soundboard.buffers.decoded_buffer import DecodedBuffer
from soundboard.buffers.ffmpeg_decoder import FFmpegDecoder
from soundboard.buffers.fetcher import SourceFetcher
from soundboard.buffers.buffer_store import BufferStore

__all__ = ["DecodedBuffer", "FFmpegDecoder", "SourceFetcher", "BufferStore"]
