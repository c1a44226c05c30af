"""
GIF Block Writer
================

Low-level writers for the GIF89a block grammar.

Every function appends one self-delimited block to a bytearray. Integers are
little-endian, as the format requires.

Blocks written here:
    - Header + logical screen descriptor (once per stream)
    - Global / local color tables
    - Graphic control extension (delay, disposal, transparency)
    - Image descriptor
    - Image data sub-blocks

The trailer block (0x3B) is intentionally absent: a live stream never ends
at the GIF level, only when the transport closes.
"""

import struct
from typing import Optional

import numpy as np

from gif_stream.constants import GIF_SIGNATURE
from gif_stream.models.stream import DisposalMethod


EXTENSION_INTRODUCER = 0x21
GRAPHIC_CONTROL_LABEL = 0xF9
IMAGE_SEPARATOR = 0x2C
TRAILER = 0x3B

SUB_BLOCK_SIZE = 0xFF


def flag_size(num_colors: int) -> int:
    """
    Color table size converted to the 3-bit size field.
    
    A table with size field N holds 2 ** (N + 1) entries.
    """
    if num_colors <= 2:
        return 0
    return min((num_colors - 1).bit_length() - 1, 7)


def global_palette_flags(palette: bytes) -> int:
    """Logical screen descriptor flags announcing a global color table."""
    size = flag_size(len(palette) // 3)
    # global color table present, color resolution, table size
    return 0x80 | (size << 4) | size


def write_screen_descriptor(
    buf: bytearray,
    width: int,
    height: int,
    flags: int = 0,
) -> None:
    """Write the signature and logical screen descriptor."""
    buf += GIF_SIGNATURE
    # width, height, flags, background color index, pixel aspect ratio
    buf += struct.pack("<HHBBB", width, height, flags, 0, 0)


def write_color_table(buf: bytearray, table: bytes) -> None:
    """Write an RGB color table, padded with black to a power of two."""
    num_colors = len(table) // 3
    buf += table[: num_colors * 3]
    
    padding = (2 << flag_size(num_colors)) - num_colors
    if padding > 0:
        buf += bytes(padding * 3)


def write_graphic_control(
    buf: bytearray,
    delay: int,
    dispose: DisposalMethod = DisposalMethod.KEEP,
    transparent_index: Optional[int] = None,
) -> None:
    """
    Write a graphic control extension.
    
    Args:
        buf: Output buffer
        delay: Frame delay in centiseconds
        dispose: Disposal method for this frame
        transparent_index: Palette index rendered as transparent, if any
    """
    flags = (int(dispose) & 0x07) << 2
    if transparent_index is not None:
        flags |= 0x01
    
    buf += struct.pack(
        "<BBBBHBB",
        EXTENSION_INTRODUCER,
        GRAPHIC_CONTROL_LABEL,
        4,
        flags,
        delay,
        transparent_index or 0,
        0,
    )


def write_image_descriptor(
    buf: bytearray,
    width: int,
    height: int,
    interlaced: bool = False,
    palette: Optional[bytes] = None,
) -> None:
    """
    Write an image descriptor covering the full logical screen.
    
    When a palette is given it is written as the frame's local color table.
    """
    flags = 0
    if interlaced:
        flags |= 0x40
    if palette is not None:
        flags |= 0x80 | flag_size(len(palette) // 3)
    
    # separator, left, top, width, height, flags
    buf += struct.pack("<BHHHHB", IMAGE_SEPARATOR, 0, 0, width, height, flags)
    
    if palette is not None:
        write_color_table(buf, palette)


def write_image_data(buf: bytearray, min_code_size: int, data: bytes) -> None:
    """Write LZW code size, compressed data as sub-blocks, and the terminator."""
    buf.append(min_code_size)
    
    for start in range(0, len(data), SUB_BLOCK_SIZE):
        chunk = data[start:start + SUB_BLOCK_SIZE]
        buf.append(len(chunk))
        buf += chunk
    
    buf.append(0)


def interlace_rows(indices: np.ndarray) -> np.ndarray:
    """
    Reorder the rows of an (H, W) index image into GIF interlace order.
    
    Pass 1: every 8th row from 0; pass 2: every 8th from 4;
    pass 3: every 4th from 2; pass 4: every 2nd from 1.
    """
    return np.concatenate(
        (indices[0::8], indices[4::8], indices[2::4], indices[1::2]),
        axis=0,
    )
