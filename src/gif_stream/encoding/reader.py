"""
GIF Block Reader
================

Walks the block structure of a (possibly unfinished) GIF byte stream.

Used by the capture script to count frames as they arrive, and by the test
suite to verify framing. It does NOT decode pixel data; image data
sub-blocks are skipped.

A scan stops cleanly at the first incomplete block, so it can be run on a
prefix of a live stream at any time.
"""

import struct
from dataclasses import dataclass, field
from typing import List, Optional

from gif_stream.encoding.blocks import (
    EXTENSION_INTRODUCER,
    GRAPHIC_CONTROL_LABEL,
    IMAGE_SEPARATOR,
    TRAILER,
)


class GifFormatError(ValueError):
    """Raised when bytes do not follow the GIF block grammar."""
    pass


@dataclass(frozen=True, slots=True)
class FrameInfo:
    """
    One image block found in a stream.
    
    Attributes:
        offset: Byte offset of the image separator
        end: Byte offset just past the image data terminator
        width: Image width
        height: Image height
        delay: Delay from the preceding control extension (centiseconds)
        disposal: Disposal method from the control extension
        transparent_index: Transparency index, if the flag is set
        interlaced: Interlace flag of the image descriptor
        local_colors: Local color table entries (0 if none)
    """
    
    offset: int
    end: int
    width: int
    height: int
    delay: Optional[int]
    disposal: int
    transparent_index: Optional[int]
    interlaced: bool
    local_colors: int


@dataclass
class GifScan:
    """
    Result of scanning a GIF byte stream.
    
    Attributes:
        width: Logical screen width (None if the header is incomplete)
        height: Logical screen height
        global_colors: Global color table entries (0 if none)
        frames: Complete image blocks, in order
        consumed: Bytes covered by complete blocks
        trailer: Whether a trailer block was found
    """
    
    width: Optional[int] = None
    height: Optional[int] = None
    global_colors: int = 0
    frames: List[FrameInfo] = field(default_factory=list)
    consumed: int = 0
    trailer: bool = False
    
    @property
    def frame_count(self) -> int:
        return len(self.frames)


class _Incomplete(Exception):
    pass


def _need(data: bytes, pos: int, size: int) -> None:
    if pos + size > len(data):
        raise _Incomplete()


def _skip_sub_blocks(data: bytes, pos: int) -> int:
    """Skip data sub-blocks up to and including the zero terminator."""
    while True:
        _need(data, pos, 1)
        size = data[pos]
        pos += 1
        if size == 0:
            return pos
        _need(data, pos, size)
        pos += size


def scan_gif(data: bytes) -> GifScan:
    """
    Scan the block structure of GIF bytes.
    
    Args:
        data: A complete GIF, or any prefix of a live GIF stream
        
    Returns:
        GifScan describing every complete block
        
    Raises:
        GifFormatError: If the bytes break the block grammar
    """
    data = bytes(data)
    scan = GifScan()
    
    if len(data) < 13:
        return scan
    if data[:6] not in (b"GIF87a", b"GIF89a"):
        raise GifFormatError(f"Not a GIF stream: signature {data[:6]!r}")
    
    width, height, flags = struct.unpack_from("<HHB", data, 6)
    pos = 13
    global_colors = 2 << (flags & 0x07) if flags & 0x80 else 0
    if pos + global_colors * 3 > len(data):
        return scan
    pos += global_colors * 3
    
    scan.width, scan.height, scan.global_colors = width, height, global_colors
    scan.consumed = pos
    
    control: Optional[tuple[int, int, Optional[int]]] = None
    
    try:
        while pos < len(data):
            introducer = data[pos]
            
            if introducer == TRAILER:
                scan.trailer = True
                scan.consumed = pos + 1
                break
            
            if introducer == EXTENSION_INTRODUCER:
                _need(data, pos, 2)
                label = data[pos + 1]
                if label == GRAPHIC_CONTROL_LABEL:
                    _need(data, pos, 8)
                    packed, delay, transparent = struct.unpack_from("<BHB", data, pos + 3)
                    control = (
                        delay,
                        (packed >> 2) & 0x07,
                        transparent if packed & 0x01 else None,
                    )
                pos = _skip_sub_blocks(data, pos + 2)
            
            elif introducer == IMAGE_SEPARATOR:
                _need(data, pos, 10)
                _, _, img_w, img_h, img_flags = struct.unpack_from("<HHHHB", data, pos + 1)
                end = pos + 10
                local_colors = 2 << (img_flags & 0x07) if img_flags & 0x80 else 0
                end += local_colors * 3
                _need(data, end, 1)
                # LZW minimum code size, then data sub-blocks
                end = _skip_sub_blocks(data, end + 1)
                
                delay, disposal, transparent = control or (None, 0, None)
                scan.frames.append(FrameInfo(
                    offset=pos,
                    end=end,
                    width=img_w,
                    height=img_h,
                    delay=delay,
                    disposal=disposal,
                    transparent_index=transparent,
                    interlaced=bool(img_flags & 0x40),
                    local_colors=local_colors,
                ))
                control = None
                pos = end
            
            else:
                raise GifFormatError(f"Unexpected block introducer 0x{introducer:02X} at {pos}")
            
            scan.consumed = pos
    except _Incomplete:
        pass
    
    return scan
