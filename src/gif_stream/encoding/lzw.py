"""
GIF LZW Encoder
===============

Variable-length-code LZW compression as used by GIF image data.

Codes start at min_code_size + 1 bits and grow to at most 12 bits. The
code table is reset with a clear code once it is full. Codes are packed
least-significant-bit first.

Code width rule:
    After writing a code, if the next free table slot has reached
    2 ** code_width, the width grows by one bit. This keeps the encoder in
    step with a decoder, which adds its table entries one code later.
"""

from typing import Iterable

import numpy as np


MAX_CODE_WIDTH = 12
MAX_TABLE_SIZE = 1 << MAX_CODE_WIDTH


def min_code_size_for(indices: np.ndarray) -> int:
    """Smallest legal LZW minimum code size for the given palette indices."""
    highest = int(indices.max()) if indices.size else 0
    return max(2, highest.bit_length())


class _BitPacker:
    """Accumulates variable-width codes into LSB-first bytes."""
    
    __slots__ = ("out", "_bits", "_count")
    
    def __init__(self) -> None:
        self.out = bytearray()
        self._bits = 0
        self._count = 0
    
    def write(self, code: int, width: int) -> None:
        self._bits |= code << self._count
        self._count += width
        while self._count >= 8:
            self.out.append(self._bits & 0xFF)
            self._bits >>= 8
            self._count -= 8
    
    def flush(self) -> bytes:
        if self._count:
            self.out.append(self._bits & 0xFF)
            self._bits = 0
            self._count = 0
        return bytes(self.out)


def lzw_encode(indices: Iterable[int], min_code_size: int) -> bytes:
    """
    Compress palette indices into GIF LZW code bytes.
    
    The result is the raw code stream only; the caller writes the minimum
    code size byte and splits the stream into sub-blocks.
    
    Args:
        indices: Palette indices, every value < 2 ** min_code_size
        min_code_size: LZW minimum code size (2..8)
        
    Returns:
        Packed LZW code stream, starting with a clear code and ending with
        an end-of-information code
    """
    if not 2 <= min_code_size <= 8:
        raise ValueError(f"min_code_size must be in 2..8, got {min_code_size}")
    
    clear_code = 1 << min_code_size
    end_code = clear_code + 1
    
    packer = _BitPacker()
    width = min_code_size + 1
    next_code = end_code + 1
    # (prefix_code << 8 | index) -> code
    table: dict[int, int] = {}
    
    packer.write(clear_code, width)
    
    iterator = iter(indices)
    try:
        prefix = int(next(iterator))
    except StopIteration:
        packer.write(end_code, width)
        return packer.flush()
    
    for value in iterator:
        key = (prefix << 8) | int(value)
        code = table.get(key)
        if code is not None:
            prefix = code
            continue
        
        packer.write(prefix, width)
        if next_code >= (1 << width) and width < MAX_CODE_WIDTH:
            width += 1
        
        if next_code < MAX_TABLE_SIZE - 1:
            table[key] = next_code
            next_code += 1
        else:
            packer.write(clear_code, width)
            table.clear()
            width = min_code_size + 1
            next_code = end_code + 1
        
        prefix = int(value)
    
    packer.write(prefix, width)
    if next_code >= (1 << width) and width < MAX_CODE_WIDTH:
        width += 1
    packer.write(end_code, width)
    
    return packer.flush()
