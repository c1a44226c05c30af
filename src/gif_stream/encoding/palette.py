"""
Palette Quantization
====================

Reduces packed RGBA frames to palette indices with Pillow.

Two strategies mirror the available frame compressors:
    - quantize_frame: Per-frame palette (becomes a local color table)
    - GlobalPalette: One shared palette built once, reused for every frame

Design Rules:
    - Input is packed RGBA, already validated for length by the muxer
    - Output indices are an (H, W) uint8 numpy array
    - Fully transparent pixels (alpha == 0) select the transparency index
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image

from gif_stream.constants import BYTES_PER_PIXEL


logger = logging.getLogger(__name__)


MAX_COLORS = 256


@dataclass(frozen=True, slots=True)
class IndexedFrame:
    """
    Frame reduced to palette indices.
    
    Attributes:
        indices: Palette index per pixel, shape (H, W), dtype uint8
        palette: RGB triples, len(palette) == 3 * number of colors
        transparent_index: Index of fully transparent pixels, if any
    """
    
    indices: np.ndarray
    palette: bytes
    transparent_index: Optional[int] = None
    
    def __repr__(self) -> str:
        return (
            f"IndexedFrame(shape={self.indices.shape}, "
            f"colors={len(self.palette) // 3}, "
            f"transparent={self.transparent_index})"
        )


def _rgba_array(raw, width: int, height: int) -> np.ndarray:
    return np.frombuffer(raw, dtype=np.uint8).reshape(height, width, BYTES_PER_PIXEL)


def _dither_mode(dither: bool) -> Image.Dither:
    return Image.Dither.FLOYDSTEINBERG if dither else Image.Dither.NONE


def _transparent_index(rgba: np.ndarray, indices: np.ndarray) -> Optional[int]:
    """Palette index of the first fully transparent pixel, if there is one."""
    transparent = rgba[..., 3] == 0
    if not transparent.any():
        return None
    return int(indices.flat[int(np.argmax(transparent))])


def _palette_bytes(image: Image.Image, indices: np.ndarray) -> bytes:
    """RGB palette of a P-mode image, covering every index actually used."""
    palette = bytes(image.getpalette("RGB") or b"")[: MAX_COLORS * 3]
    used = int(indices.max()) + 1 if indices.size else 1
    colors = max(len(palette) // 3, used, 2)
    return palette + bytes(colors * 3 - len(palette))


def quantize_frame(
    raw,
    width: int,
    height: int,
    colors: int = MAX_COLORS,
    dither: bool = True,
) -> IndexedFrame:
    """
    Quantize one RGBA frame to its own palette.
    
    Args:
        raw: Packed RGBA pixels (width * height * 4 bytes)
        width: Frame width
        height: Frame height
        colors: Maximum palette size (2..256)
        dither: Apply Floyd-Steinberg dithering
        
    Returns:
        IndexedFrame with a palette suitable for a local color table
    """
    rgba = _rgba_array(raw, width, height)
    image = Image.fromarray(rgba)

    # Pillow only supports fast octree (or libimagequant) for RGBA input
    quantized = image.quantize(
        colors=colors,
        method=Image.Quantize.FASTOCTREE,
        dither=_dither_mode(dither),
    )
    indices = np.asarray(quantized, dtype=np.uint8)
    
    return IndexedFrame(
        indices=indices,
        palette=_palette_bytes(quantized, indices),
        transparent_index=_transparent_index(rgba, indices),
    )


class GlobalPalette:
    """
    Shared palette applied to every frame of a stream.
    
    The palette is computed once (median cut over a reference frame) and
    written as the GIF global color table. Frames are then mapped onto it
    without emitting local color tables.
    
    Attributes:
        colors: Number of palette entries
        palette: RGB triples of the palette
        
    Example:
        palette = GlobalPalette.from_rgba(first_frame, 320, 240, colors=64)
        indexed = palette.index(next_frame, 320, 240)
    """
    
    def __init__(self, palette_image: Image.Image, dither: bool = True) -> None:
        """
        Initialize from a P-mode palette image.
        
        Args:
            palette_image: Pillow image in mode "P" whose palette is used
            dither: Apply Floyd-Steinberg dithering when mapping frames
        """
        if palette_image.mode != "P":
            raise ValueError(f"palette image must be mode 'P', got {palette_image.mode!r}")
        
        self._image = palette_image
        self._dither = dither
        
        raw = bytes(palette_image.getpalette("RGB") or b"")
        if len(raw) < 6:
            raw += bytes(6 - len(raw))
        self._palette = raw[: MAX_COLORS * 3]
    
    @classmethod
    def from_rgba(
        cls,
        raw,
        width: int,
        height: int,
        colors: int = MAX_COLORS,
        dither: bool = True,
    ) -> "GlobalPalette":
        """
        Build a palette from a reference RGBA frame.
        
        Args:
            raw: Packed RGBA pixels used to choose the palette
            width: Frame width
            height: Frame height
            colors: Number of colors, between 1 and 256
            dither: Dither frames later mapped onto the palette
        """
        if not 1 <= colors <= MAX_COLORS:
            raise ValueError(f"colors must be between 1 and {MAX_COLORS}, got {colors}")
        
        rgba = _rgba_array(raw, width, height)
        rgb = Image.fromarray(np.ascontiguousarray(rgba[..., :3]))
        palette_image = rgb.quantize(
            colors=colors,
            method=Image.Quantize.MEDIANCUT,
            dither=Image.Dither.NONE,
        )
        
        logger.info(f"Global palette built: {colors} colors requested from {width}x{height} frame")
        return cls(palette_image, dither=dither)
    
    @classmethod
    def from_colors(cls, colors: list[tuple[int, int, int]], dither: bool = True) -> "GlobalPalette":
        """Build a palette from explicit RGB triples."""
        if not 1 <= len(colors) <= MAX_COLORS:
            raise ValueError(f"palette must have 1 to {MAX_COLORS} colors")
        
        image = Image.new("P", (1, 1))
        flat = [channel for color in colors for channel in color]
        image.putpalette(flat, rawmode="RGB")
        return cls(image, dither=dither)
    
    @property
    def palette(self) -> bytes:
        """RGB triples of the palette."""
        return self._palette
    
    @property
    def colors(self) -> int:
        """Number of palette entries."""
        return len(self._palette) // 3
    
    def index(self, raw, width: int, height: int) -> IndexedFrame:
        """
        Map an RGBA frame onto this palette.
        
        Returns:
            IndexedFrame whose palette is the shared global palette
        """
        rgba = _rgba_array(raw, width, height)
        rgb = Image.fromarray(np.ascontiguousarray(rgba[..., :3]))
        quantized = rgb.quantize(palette=self._image, dither=_dither_mode(self._dither))
        indices = np.asarray(quantized, dtype=np.uint8)
        
        if indices.size and int(indices.max()) >= self.colors:
            # Pillow may pick an index past the requested table; clamp to the table
            indices = np.minimum(indices, self.colors - 1).astype(np.uint8)
        
        return IndexedFrame(
            indices=indices,
            palette=self._palette,
            transparent_index=_transparent_index(rgba, indices),
        )
