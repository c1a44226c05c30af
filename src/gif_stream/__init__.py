"""
GifStream
=========

Never-ending animated GIF streams for live images over plain HTTP.

This package turns an async frame-generation function into an infinite,
time-paced GIF bitstream that any image-capable client can display as a
continuously updating picture, without reconnecting.

Components:
    - encoding: GIF block writer, LZW encoder, palette quantization,
      frame compressors and the incremental GifMuxer
    - stream: FrameScheduler timing loop, single-slot ChunkChannel and the
      StreamBridge async iterator
    - scenes: Demo frame generators (clock, color bars)
    - main: FastAPI service exposing /stream.gif

Example:
    from datetime import timedelta
    from gif_stream import GifStream, FrameData

    async def render(ctx):
        return FrameData(pixels=ctx.next_frame())

    session = GifStream(timedelta(milliseconds=100), 320, 240, ctx, render)
    async for chunk in session.stream():
        await response.write(chunk)
"""

__version__ = "0.1.0"
__author__ = "GifStream Project"

from gif_stream.constants import GIF_HEADERS
from gif_stream.errors import (
    GifStreamError,
    DimensionMismatch,
    CompressionFailure,
    GenerationFailure,
)
from gif_stream.models import (
    DelayPolicy,
    DisposalMethod,
    FrameData,
    FrameError,
    PaletteMode,
    StreamConfig,
)
from gif_stream.stream import GifStream, StreamBridge

__all__ = [
    "__version__",
    "GIF_HEADERS",
    "GifStreamError",
    "DimensionMismatch",
    "CompressionFailure",
    "GenerationFailure",
    "DelayPolicy",
    "DisposalMethod",
    "FrameData",
    "FrameError",
    "PaletteMode",
    "StreamConfig",
    "GifStream",
    "StreamBridge",
]
