"""
Stream Module
=============

Time-paced production of never-ending GIF streams.

This module provides the streaming layer of GifStream:
    - ChunkChannel: Single-slot async handoff (no backlog, no drops)
    - FrameScheduler: Timing loop calling the frame generator once per tick
    - StreamBridge: Async iterator over a scheduler, cancels it on disconnect
    - GifStream: Per-session facade assembling the pieces

Example:
    from gif_stream.stream import GifStream
    
    session = GifStream(timedelta(milliseconds=200), 320, 240, ctx, render)
    
    async for chunk in session.stream():
        await send(chunk)
"""

from gif_stream.stream.channel import ChunkChannel
from gif_stream.stream.scheduler import (
    FrameScheduler,
    SchedulerMetrics,
    SchedulerState,
)
from gif_stream.stream.bridge import StreamBridge
from gif_stream.stream.session import GifStream


__all__ = [
    "ChunkChannel",
    "FrameScheduler",
    "SchedulerMetrics",
    "SchedulerState",
    "StreamBridge",
    "GifStream",
]
