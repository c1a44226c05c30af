"""
Test Configuration
==================

Pytest fixtures and test configuration for GifStream.
"""

import io

import numpy as np
import pytest
from PIL import Image


def _solid_rgba(width, height, color=(200, 30, 30, 255)):
    frame = np.empty((height, width, 4), dtype=np.uint8)
    frame[...] = color
    return frame


def _decode_gif(data, trailer=True):
    """Decode every frame with Pillow; returns (frames, durations)."""
    if trailer:
        data = bytes(data) + b"\x3b"
    
    frames = []
    durations = []
    with Image.open(io.BytesIO(data)) as im:
        for index in range(im.n_frames):
            im.seek(index)
            frames.append(np.asarray(im.convert("RGB")))
            durations.append(im.info.get("duration"))
    return frames, durations


@pytest.fixture
def solid_rgba():
    """Factory for solid-color RGBA frames as (H, W, 4) uint8 arrays."""
    return _solid_rgba


@pytest.fixture
def decode_gif():
    """Decode GIF bytes with Pillow into RGB arrays and frame durations (ms)."""
    return _decode_gif


@pytest.fixture
def four_color_frame():
    """Provide a 16x8 RGBA frame made of four horizontal color stripes."""
    colors = [
        (255, 0, 0, 255),
        (0, 255, 0, 255),
        (0, 0, 255, 255),
        (255, 255, 255, 255),
    ]
    frame = np.empty((8, 16, 4), dtype=np.uint8)
    for row in range(8):
        frame[row] = colors[row % 4]
    return frame


@pytest.fixture
def constant_generator(solid_rgba):
    """Build an async generator returning the same solid frame, counting calls."""
    from gif_stream.models.frame import FrameData
    
    def factory(width, height, color=(200, 30, 30, 255)):
        frame = solid_rgba(width, height, color)
        calls = []
        
        async def generate(ctx):
            calls.append(ctx)
            return FrameData(pixels=frame)
        
        generate.calls = calls
        return generate
    
    return factory
