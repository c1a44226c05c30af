"""
Frame Compressors
=================

Turn one raw RGBA frame into a self-contained GIF image block.

A compressor output is always:
    graphic control extension + image descriptor
    [+ local color table] + LZW image data

Implementations:
    - LocalPaletteCompressor: Per-frame palette, written as a local table
    - GlobalPaletteCompressor: Shared caller-supplied palette, no local table
    - AutoPaletteCompressor: Shared palette built from the first frame

The muxer reads ``global_palette`` after the first successful compression to
decide whether the logical screen descriptor announces a global color table.
"""

import logging
from typing import Optional, Protocol

from gif_stream.encoding.blocks import (
    interlace_rows,
    write_graphic_control,
    write_image_data,
    write_image_descriptor,
)
from gif_stream.encoding.lzw import lzw_encode, min_code_size_for
from gif_stream.encoding.palette import (
    MAX_COLORS,
    GlobalPalette,
    IndexedFrame,
    quantize_frame,
)
from gif_stream.models.stream import DisposalMethod


logger = logging.getLogger(__name__)


class FrameCompressor(Protocol):
    """
    Protocol for frame compressors.
    
    Attributes:
        global_palette: RGB table for the global color table, or None when
            frames carry their own local tables
    """
    
    global_palette: Optional[bytes]
    
    def compress(self, raw, width: int, height: int, delay: int) -> bytes:
        """
        Compress one frame.
        
        Args:
            raw: Packed RGBA pixels (width * height * 4 bytes)
            width: Frame width
            height: Frame height
            delay: Delay in centiseconds for the control extension
            
        Returns:
            GIF image block bytes
        """
        ...


def encode_indexed_frame(
    frame: IndexedFrame,
    delay: int,
    interlaced: bool = False,
    dispose: DisposalMethod = DisposalMethod.KEEP,
    local_palette: bool = True,
) -> bytes:
    """
    Write an indexed frame as a complete image block.
    
    Args:
        frame: Palette indices plus palette
        delay: Delay in centiseconds
        interlaced: Write rows in interlace order and set the flag
        dispose: Disposal method
        local_palette: Write frame.palette as a local color table
        
    Returns:
        Control extension + image descriptor + image data
    """
    height, width = frame.indices.shape
    buf = bytearray()
    
    write_graphic_control(buf, delay, dispose, frame.transparent_index)
    write_image_descriptor(
        buf,
        width,
        height,
        interlaced=interlaced,
        palette=frame.palette if local_palette else None,
    )
    
    indices = interlace_rows(frame.indices) if interlaced else frame.indices
    min_code_size = min_code_size_for(frame.indices)
    write_image_data(buf, min_code_size, lzw_encode(indices.ravel().tolist(), min_code_size))
    
    return bytes(buf)


class LocalPaletteCompressor:
    """
    Quantizes every frame to its own palette.
    
    Best color fidelity for changing content, at the cost of a color table
    (up to 768 bytes) per frame.
    """
    
    def __init__(
        self,
        colors: int = MAX_COLORS,
        dither: bool = True,
        interlaced: bool = False,
        dispose: DisposalMethod = DisposalMethod.KEEP,
    ) -> None:
        if not 2 <= colors <= MAX_COLORS:
            raise ValueError(f"colors must be between 2 and {MAX_COLORS}, got {colors}")
        
        self.colors = colors
        self.dither = dither
        self.interlaced = interlaced
        self.dispose = dispose
        self.global_palette: Optional[bytes] = None
    
    def compress(self, raw, width: int, height: int, delay: int) -> bytes:
        frame = quantize_frame(raw, width, height, colors=self.colors, dither=self.dither)
        return encode_indexed_frame(
            frame,
            delay,
            interlaced=self.interlaced,
            dispose=self.dispose,
        )


class GlobalPaletteCompressor:
    """Maps every frame onto one shared palette written as the global table."""
    
    def __init__(
        self,
        palette: GlobalPalette,
        interlaced: bool = False,
        dispose: DisposalMethod = DisposalMethod.KEEP,
    ) -> None:
        self.palette = palette
        self.interlaced = interlaced
        self.dispose = dispose
        self.global_palette: Optional[bytes] = palette.palette
    
    def compress(self, raw, width: int, height: int, delay: int) -> bytes:
        frame = self.palette.index(raw, width, height)
        return encode_indexed_frame(
            frame,
            delay,
            interlaced=self.interlaced,
            dispose=self.dispose,
            local_palette=False,
        )


class AutoPaletteCompressor:
    """
    Builds a shared palette from the first frame, then reuses it.
    
    The seeding frame is itself emitted, so no generation call is wasted.
    ``global_palette`` stays None until that first frame is compressed.
    """
    
    def __init__(
        self,
        colors: int = MAX_COLORS,
        dither: bool = True,
        interlaced: bool = False,
        dispose: DisposalMethod = DisposalMethod.KEEP,
    ) -> None:
        if not 1 <= colors <= MAX_COLORS:
            raise ValueError(f"colors must be between 1 and {MAX_COLORS}, got {colors}")
        
        self.colors = colors
        self.dither = dither
        self.interlaced = interlaced
        self.dispose = dispose
        self.palette: Optional[GlobalPalette] = None
        self.global_palette: Optional[bytes] = None
    
    def compress(self, raw, width: int, height: int, delay: int) -> bytes:
        palette = self.palette
        if palette is None:
            palette = GlobalPalette.from_rgba(
                raw, width, height, colors=self.colors, dither=self.dither
            )
        
        frame = palette.index(raw, width, height)
        block = encode_indexed_frame(
            frame,
            delay,
            interlaced=self.interlaced,
            dispose=self.dispose,
            local_palette=False,
        )
        
        # Commit only once the seeding frame encoded successfully
        if self.palette is None:
            self.palette = palette
            self.global_palette = palette.palette
            logger.debug(f"Auto palette committed with {palette.colors} colors")
        
        return block
