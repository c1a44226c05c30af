"""
Data Models
===========

Typed models shared across the encoding and streaming layers.

Models:
    Frame:
        - FrameData: Successful generation result (raw RGBA pixels)
        - FrameError: Failed generation result (opaque error payload)
        - FrameResult: Union of the two
        - FrameGenerator: Signature of a frame-generation capability
    
    Stream:
        - StreamConfig: Immutable per-session geometry, interval and context
        - DelayPolicy: How the per-frame delay is chosen
        - DisposalMethod: GIF disposal method written to each frame
        - PaletteMode: Which frame compressor a session uses
"""

from gif_stream.models.frame import FrameData, FrameError, FrameGenerator, FrameResult
from gif_stream.models.stream import (
    DelayPolicy,
    DisposalMethod,
    PaletteMode,
    StreamConfig,
)

__all__ = [
    # Frame
    "FrameData",
    "FrameError",
    "FrameResult",
    "FrameGenerator",
    # Stream
    "StreamConfig",
    "DelayPolicy",
    "DisposalMethod",
    "PaletteMode",
]
