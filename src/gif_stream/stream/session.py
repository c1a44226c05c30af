"""
Stream Session
==============

Per-connection facade assembling config, compressor, muxer, scheduler
and bridge.

A GifStream is a small builder: construct it with the required options,
tune encoding with the chainable setters, then open one of the three
stream flavours. Each call returns a fresh StreamBridge; one bridge
serves exactly one consumer.

Stream flavours:
    - stream(): Per-frame palettes (local color tables)
    - stream_with_palette(palette): Shared caller-supplied global palette
    - stream_auto_palette(n_colors): Global palette built from the first frame

Example:
    session = (
        GifStream(timedelta(seconds=1), 400, 100, ctx, render)
        .interlaced(True)
        .dispose(DisposalMethod.BACKGROUND)
    )
    
    async for chunk in session.stream():
        await send(chunk)
"""

import itertools
import logging
from datetime import timedelta
from typing import Generic, TypeVar, Union

from gif_stream.encoding.compressor import (
    AutoPaletteCompressor,
    FrameCompressor,
    GlobalPaletteCompressor,
    LocalPaletteCompressor,
)
from gif_stream.encoding.muxer import GifMuxer
from gif_stream.encoding.palette import MAX_COLORS, GlobalPalette
from gif_stream.models.frame import FrameGenerator
from gif_stream.models.stream import DelayPolicy, DisposalMethod, StreamConfig
from gif_stream.stream.bridge import StreamBridge
from gif_stream.stream.scheduler import FrameScheduler


logger = logging.getLogger(__name__)


C = TypeVar("C")

_session_ids = itertools.count(1)


class GifStream(Generic[C]):
    """
    Builder for never-ending GIF streams.
    
    Attributes:
        config: Immutable session configuration
        frame_delay: Nominal delay in centiseconds
    """
    
    def __init__(
        self,
        interval: Union[timedelta, float],
        width: int,
        height: int,
        context: C,
        generator: FrameGenerator[C],
    ) -> None:
        """
        Initialize stream builder.
        
        Args:
            interval: Time between frames (timedelta, or seconds)
            width: Frame width in pixels
            height: Frame height in pixels
            context: Value passed to every generator call
            generator: Async callable returning FrameData or FrameError
        """
        self.config = StreamConfig(
            interval=interval,
            width=width,
            height=height,
            context=context,
        )
        self._generator = generator
        
        self._interlaced: bool = False
        self._dispose: DisposalMethod = DisposalMethod.KEEP
        self._colors: int = MAX_COLORS
        self._dither: bool = True
        self._delay_policy: DelayPolicy = DelayPolicy.MEASURED
    
    @property
    def frame_delay(self) -> int:
        """Nominal per-frame delay in centiseconds."""
        return self.config.frame_delay
    
    def interlaced(self, interlaced: bool) -> "GifStream[C]":
        self._interlaced = interlaced
        return self
    
    def dispose(self, dispose: DisposalMethod) -> "GifStream[C]":
        self._dispose = DisposalMethod(dispose)
        return self
    
    def colors(self, colors: int) -> "GifStream[C]":
        """Maximum palette size for stream() (2..256)."""
        if not 2 <= colors <= MAX_COLORS:
            raise ValueError(f"colors must be between 2 and {MAX_COLORS}")
        self._colors = colors
        return self
    
    def dither(self, dither: bool) -> "GifStream[C]":
        self._dither = dither
        return self
    
    def delay_policy(self, policy: DelayPolicy) -> "GifStream[C]":
        self._delay_policy = DelayPolicy(policy)
        return self
    
    def stream(self) -> StreamBridge[C]:
        """Open a stream quantizing each frame to its own palette."""
        return self._open(
            LocalPaletteCompressor(
                colors=self._colors,
                dither=self._dither,
                interlaced=self._interlaced,
                dispose=self._dispose,
            )
        )
    
    def stream_with_palette(self, palette: GlobalPalette) -> StreamBridge[C]:
        """Open a stream mapping every frame onto a shared global palette."""
        return self._open(
            GlobalPaletteCompressor(
                palette,
                interlaced=self._interlaced,
                dispose=self._dispose,
            )
        )
    
    def stream_auto_palette(self, n_colors: int) -> StreamBridge[C]:
        """Open a stream whose global palette is built from the first frame."""
        return self._open(
            AutoPaletteCompressor(
                colors=n_colors,
                dither=self._dither,
                interlaced=self._interlaced,
                dispose=self._dispose,
            )
        )
    
    def _open(self, compressor: FrameCompressor) -> StreamBridge[C]:
        name = f"session-{next(_session_ids)}"
        muxer = GifMuxer(
            self.config.width,
            self.config.height,
            compressor,
            frame_delay=self.config.frame_delay,
        )
        scheduler = FrameScheduler(
            self.config,
            muxer,
            self._generator,
            delay_policy=self._delay_policy,
            name=name,
        )
        logger.debug(f"[{name}] Opened with {type(compressor).__name__}")
        return StreamBridge(scheduler)
