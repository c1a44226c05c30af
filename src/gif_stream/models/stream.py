"""
Stream Models
=============

Immutable per-session configuration and the enums that tune encoding.

StreamConfig is fixed when a session is created. Width and height are
binding for the whole session because the logical screen descriptor is
written exactly once, ahead of the first frame.

Frame Delay:
    GIF stores delays in centiseconds (1/100 s) as an unsigned 16-bit value.
    
    nominal_delay = min(max(interval_ms, 10) // 10, 65535)

Example:
    from datetime import timedelta
    from gif_stream.models.stream import StreamConfig
    
    config = StreamConfig(
        interval=timedelta(seconds=1),
        width=400,
        height=100,
        context=None,
    )
    config.frame_delay  # 100
"""

from datetime import timedelta
from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gif_stream.constants import (
    MAX_DELAY_CS,
    MAX_DIMENSION,
    MIN_DELAY_MS,
)


class DelayPolicy(str, Enum):
    """
    How the delay field of each graphic control extension is chosen.
    
    Attributes:
        NOMINAL: Always encode the configured interval
        MEASURED: Encode the measured gap since the previous frame, so
            playback timing follows production timing under backpressure
    """
    
    NOMINAL = "nominal"
    MEASURED = "measured"


class DisposalMethod(IntEnum):
    """GIF disposal method, stored in bits 2-4 of the control extension flags."""
    
    ANY = 0
    KEEP = 1
    BACKGROUND = 2
    PREVIOUS = 3


class PaletteMode(str, Enum):
    """
    Color table strategy for a session.
    
    Attributes:
        LOCAL: Quantize each frame to its own local color table
        GLOBAL: Map every frame onto a caller-supplied global palette
        AUTO: Build the global palette from the first frame
    """
    
    LOCAL = "local"
    GLOBAL = "global"
    AUTO = "auto"


def delay_from_ms(milliseconds: float) -> int:
    """Convert a duration in milliseconds to a clamped centisecond delay."""
    centiseconds = int(max(milliseconds, MIN_DELAY_MS) // 10)
    return min(centiseconds, MAX_DELAY_CS)


class StreamConfig(BaseModel):
    """
    Immutable configuration for one stream session.
    
    Attributes:
        interval: Time between frames (must be > 0)
        width: Frame width in pixels
        height: Frame height in pixels
        context: Opaque value passed to every generation call
    """
    
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
    
    interval: timedelta = Field(..., description="Time between frames")
    width: int = Field(..., gt=0, le=MAX_DIMENSION, description="Frame width (px)")
    height: int = Field(..., gt=0, le=MAX_DIMENSION, description="Frame height (px)")
    context: Any = Field(..., description="Value passed to the frame generator")
    
    @field_validator("interval")
    @classmethod
    def validate_interval(cls, v: timedelta) -> timedelta:
        """Ensure the frame interval is positive."""
        if v <= timedelta(0):
            raise ValueError("interval must be greater than zero")
        return v
    
    @property
    def interval_seconds(self) -> float:
        """Frame interval in seconds."""
        return self.interval.total_seconds()
    
    @property
    def frame_delay(self) -> int:
        """Nominal per-frame delay in centiseconds."""
        return delay_from_ms(self.interval / timedelta(milliseconds=1))
