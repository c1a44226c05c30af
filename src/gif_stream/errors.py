"""
Stream Errors
=============

Exception taxonomy for GIF stream sessions.

Every failure terminates the session it occurs in and is raised exactly once
from the consumer's iteration. Nothing here is retried internally.

Cancellation is NOT part of this hierarchy: a consumer that stops iterating
causes asyncio.CancelledError inside the scheduler, which ends the stream
cleanly without surfacing an error.
"""

from typing import Any


class GifStreamError(Exception):
    """Base class for all stream session failures."""
    pass


class DimensionMismatch(GifStreamError):
    """
    Raised when a raw frame's byte length does not match the stream geometry.
    
    Attributes:
        expected: Byte length implied by width * height * bytes-per-pixel
        actual: Byte length of the frame that was supplied
    """
    
    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Raw frame is {actual} bytes, expected {expected} bytes"
        )


class CompressionFailure(GifStreamError):
    """Raised when a frame compressor fails to encode a frame."""
    pass


class GenerationFailure(GifStreamError):
    """
    Raised when the frame-generation capability reports a failure.
    
    The opaque failure value is kept untouched on ``error`` so callers
    can inspect whatever their generator produced.
    
    Attributes:
        error: The failure value returned (or raised) by the generator
    """
    
    def __init__(self, error: Any) -> None:
        self.error = error
        super().__init__(f"Frame generation failed: {error!r}")
