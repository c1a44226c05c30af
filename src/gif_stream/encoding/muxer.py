"""
GIF Muxer
=========

Incremental muxer for an open-ended GIF bitstream.

The muxer prepends the one-time preamble (signature + logical screen
descriptor [+ global color table]) to the first frame, then emits bare
frame blocks forever. It never writes a trailer.

Design Rules:
    - Raw frame length is validated BEFORE any state changes
    - The preamble flag flips false -> true exactly once, on first success
    - A failed call leaks no bytes and leaves the muxer untouched
    - Not thread-safe: a session has exactly one producer
"""

import logging
from typing import Optional

from gif_stream.constants import BYTES_PER_PIXEL
from gif_stream.encoding.blocks import (
    global_palette_flags,
    write_color_table,
    write_screen_descriptor,
)
from gif_stream.encoding.compressor import FrameCompressor
from gif_stream.errors import CompressionFailure, DimensionMismatch
from gif_stream.models.stream import delay_from_ms


logger = logging.getLogger(__name__)


class GifMuxer:
    """
    Wraps compressor output into the next chunk of a never-ending GIF.
    
    Attributes:
        width: Logical screen width
        height: Logical screen height
        frame_delay: Nominal delay (centiseconds) used when none is given
        preamble_emitted: Whether the header has been written
        frames_muxed: Number of frames emitted so far
        
    Example:
        muxer = GifMuxer(400, 100, LocalPaletteCompressor(), frame_delay=100)
        
        first = muxer.next_chunk(raw)   # header + frame
        second = muxer.next_chunk(raw)  # frame only
    """
    
    def __init__(
        self,
        width: int,
        height: int,
        compressor: FrameCompressor,
        frame_delay: int = delay_from_ms(100),
    ) -> None:
        """
        Initialize muxer.
        
        Args:
            width: Frame width in pixels, fixed for the stream
            height: Frame height in pixels, fixed for the stream
            compressor: Frame compressor producing image blocks
            frame_delay: Default delay in centiseconds
        """
        if width <= 0 or height <= 0:
            raise ValueError("width and height must be > 0")
        
        self._width = width
        self._height = height
        self._compressor = compressor
        self._frame_delay = frame_delay
        self._preamble_emitted: bool = False
        self._frames_muxed: int = 0
    
    @property
    def width(self) -> int:
        return self._width
    
    @property
    def height(self) -> int:
        return self._height
    
    @property
    def frame_delay(self) -> int:
        """Nominal delay in centiseconds."""
        return self._frame_delay
    
    @property
    def preamble_emitted(self) -> bool:
        """Whether the one-time preamble has been written."""
        return self._preamble_emitted
    
    @property
    def frames_muxed(self) -> int:
        """Number of frames emitted so far."""
        return self._frames_muxed
    
    @property
    def expected_nbytes(self) -> int:
        """Byte length every raw frame must have."""
        return self._width * self._height * BYTES_PER_PIXEL
    
    def next_chunk(self, raw_frame, delay: Optional[int] = None) -> bytes:
        """
        Encode one raw frame as the next chunk of the stream.
        
        Args:
            raw_frame: Packed RGBA pixels, width * height * 4 bytes
            delay: Delay in centiseconds, or None for the nominal delay
            
        Returns:
            Preamble + frame block on the first call, frame block afterwards
            
        Raises:
            DimensionMismatch: Raw frame length doesn't match the geometry,
                or the frame is not a bytes-like object
            CompressionFailure: The compressor failed
        """
        try:
            actual = memoryview(raw_frame).nbytes
        except TypeError:
            # not bytes-like, so it carries no pixel bytes at all
            actual = 0
        
        if actual != self.expected_nbytes:
            raise DimensionMismatch(expected=self.expected_nbytes, actual=actual)
        
        frame_delay = self._frame_delay if delay is None else delay
        
        try:
            block = self._compressor.compress(raw_frame, self._width, self._height, frame_delay)
        except CompressionFailure:
            raise
        except Exception as e:
            raise CompressionFailure(f"Failed to compress frame {self._frames_muxed}: {e}") from e
        
        self._frames_muxed += 1
        
        if self._preamble_emitted:
            return block
        
        chunk = bytearray()
        palette = self._compressor.global_palette
        if palette:
            write_screen_descriptor(chunk, self._width, self._height, global_palette_flags(palette))
            write_color_table(chunk, palette)
        else:
            write_screen_descriptor(chunk, self._width, self._height)
        chunk += block
        
        self._preamble_emitted = True
        logger.debug(
            f"Preamble emitted: {self._width}x{self._height}, "
            f"global_palette={bool(palette)}"
        )
        
        return bytes(chunk)
