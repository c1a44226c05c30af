"""
Demo Scenes
===========

Frame-generation capabilities used by the demo service and the tests.

Each scene is an async callable taking a SceneContext and returning a
FrameData holding a packed RGBA numpy buffer. Scenes are deterministic
apart from the wall-clock text in ClockScene.

Scenes:
    - clock: Current time and frame counter drawn with OpenCV over a
      slowly shifting background
    - bars: Horizontally scrolling color bars
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict

import cv2
import numpy as np

from gif_stream.models.frame import FrameData, FrameGenerator, FrameResult


logger = logging.getLogger(__name__)


BAR_COLORS = np.array(
    [
        (192, 192, 192, 255),
        (192, 192, 0, 255),
        (0, 192, 192, 255),
        (0, 192, 0, 255),
        (192, 0, 192, 255),
        (192, 0, 0, 255),
        (0, 0, 192, 255),
    ],
    dtype=np.uint8,
)


@dataclass
class SceneContext:
    """
    Per-session state handed to a scene on every tick.
    
    Attributes:
        width: Frame width in pixels
        height: Frame height in pixels
        background: Background RGB color
        foreground: Text RGB color
        frame_index: Number of frames rendered so far
    """
    
    width: int
    height: int
    background: tuple[int, int, int] = (24, 28, 36)
    foreground: tuple[int, int, int] = (240, 240, 240)
    frame_index: int = field(default=0)
    
    def canvas(self) -> np.ndarray:
        """Blank opaque RGBA canvas filled with the background color."""
        img = np.empty((self.height, self.width, 4), dtype=np.uint8)
        img[...] = (*self.background, 255)
        return img


async def clock_scene(ctx: SceneContext) -> FrameResult:
    """
    Render the current time, a frame counter and a seconds progress bar.
    
    Args:
        ctx: Scene context (frame_index is advanced)
        
    Returns:
        FrameData with an RGBA buffer of ctx.width x ctx.height
    """
    img = ctx.canvas()
    
    # Background drifts a little every frame so consecutive frames differ
    shift = ctx.frame_index % 32
    img[..., 2] = np.clip(int(ctx.background[2]) + shift, 0, 255)
    
    now = time.time()
    text = time.strftime("%H:%M:%S", time.localtime(now))
    color = (*ctx.foreground, 255)
    
    scale = max(ctx.height / 60.0, 0.4)
    thickness = max(int(scale * 2), 1)
    (text_w, text_h), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, scale, thickness)
    origin = (max((ctx.width - text_w) // 2, 0), max((ctx.height + text_h) // 2, text_h))
    cv2.putText(img, text, origin, cv2.FONT_HERSHEY_SIMPLEX, scale, color, thickness, cv2.LINE_AA)
    
    cv2.putText(
        img,
        f"#{ctx.frame_index}",
        (4, max(ctx.height - 6, 10)),
        cv2.FONT_HERSHEY_PLAIN,
        1.0,
        color,
        1,
        cv2.LINE_8,
    )
    
    # Seconds progress bar along the top edge
    progress = int(ctx.width * ((now % 60.0) / 60.0))
    if progress > 0:
        cv2.rectangle(img, (0, 0), (progress - 1, 2), color, thickness=-1)
    
    ctx.frame_index += 1
    return FrameData(pixels=img)


async def bars_scene(ctx: SceneContext) -> FrameResult:
    """
    Render vertical color bars scrolling one bar-width per 8 frames.
    
    Args:
        ctx: Scene context (frame_index is advanced)
        
    Returns:
        FrameData with an RGBA buffer of ctx.width x ctx.height
    """
    bar_width = max(ctx.width // len(BAR_COLORS), 1)
    offset = (ctx.frame_index * bar_width) // 8
    
    columns = (np.arange(ctx.width) + offset) // bar_width % len(BAR_COLORS)
    row = BAR_COLORS[columns]
    img = np.ascontiguousarray(np.broadcast_to(row, (ctx.height, ctx.width, 4)))
    
    ctx.frame_index += 1
    return FrameData(pixels=img)


SCENES: Dict[str, Callable[[SceneContext], object]] = {
    "clock": clock_scene,
    "bars": bars_scene,
}


def create_scene(name: str) -> FrameGenerator[SceneContext]:
    """
    Look up a demo scene by name.
    
    Raises:
        ValueError: If the scene is unknown
    """
    try:
        scene = SCENES[name]
    except KeyError:
        raise ValueError(
            f"Unknown demo scene: {name!r} (available: {', '.join(sorted(SCENES))})"
        ) from None
    
    logger.info(f"Using demo scene: {name}")
    return scene
