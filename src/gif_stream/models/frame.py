"""
Frame Result Models
===================

Discriminated result returned by a frame-generation capability.

A generator is any async callable taking the session context and returning
either FrameData (success) or FrameError (failure). The scheduler never looks
inside either payload beyond handing pixels to the muxer or the error to the
consumer.

Design Rules:
    - Pixels are packed RGBA, width * height * 4 bytes
    - Any bytes-like object works (bytes, bytearray, memoryview, numpy uint8)
    - Pixels are NOT retained after the frame is compressed
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar, Union


C = TypeVar("C")


@dataclass(frozen=True, slots=True)
class FrameData:
    """
    Successfully generated raw frame.
    
    Attributes:
        pixels: Packed RGBA pixel buffer (any bytes-like object)
    """
    
    pixels: Any
    
    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixel buffer."""
        return f"FrameData(nbytes={memoryview(self.pixels).nbytes})"


@dataclass(frozen=True, slots=True)
class FrameError:
    """
    Failed frame generation.
    
    Attributes:
        error: Opaque failure value, surfaced to the consumer unchanged
    """
    
    error: Any


FrameResult = Union[FrameData, FrameError]

FrameGenerator = Callable[[C], Awaitable[FrameResult]]
