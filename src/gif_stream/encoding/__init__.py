"""
Encoding Module
===============

GIF container encoding for live streams.

Components:
    - blocks: GIF89a block writers (no trailer, ever)
    - lzw: Variable-width LZW code stream encoder
    - palette: Pillow-based quantization and shared palettes
    - compressor: Raw RGBA frame -> self-contained GIF image block
    - muxer: GifMuxer, the one-time preamble plus per-frame chunks
    - reader: Block-level scan of a (possibly unfinished) GIF stream

Example:
    from gif_stream.encoding import GifMuxer, LocalPaletteCompressor
    
    muxer = GifMuxer(320, 240, LocalPaletteCompressor(), frame_delay=10)
    chunk = muxer.next_chunk(rgba_bytes)
"""

from gif_stream.encoding.compressor import (
    AutoPaletteCompressor,
    FrameCompressor,
    GlobalPaletteCompressor,
    LocalPaletteCompressor,
)
from gif_stream.encoding.muxer import GifMuxer
from gif_stream.encoding.palette import GlobalPalette, IndexedFrame, quantize_frame
from gif_stream.encoding.reader import FrameInfo, GifFormatError, GifScan, scan_gif


__all__ = [
    "FrameCompressor",
    "LocalPaletteCompressor",
    "GlobalPaletteCompressor",
    "AutoPaletteCompressor",
    "GifMuxer",
    "GlobalPalette",
    "IndexedFrame",
    "quantize_frame",
    "FrameInfo",
    "GifFormatError",
    "GifScan",
    "scan_gif",
]
