"""
Frame Scheduler
===============

Timing loop that paces frame generation for one stream session.

State Machine:
    IDLE -> TICKING -> (TICKING | STOPPING) -> STOPPED
    
    IDLE:     Created, no tick armed
    TICKING:  First tick fires immediately, then every interval
    STOPPING: Cancelled by the consumer, or a terminal failure occurred
    STOPPED:  Final, never restarted

Pacing:
    Ticks never overlap. When generation (or handing the chunk to a slow
    consumer) overruns the interval, the next tick fires as soon as the
    in-flight work completes and later ticks are paced from there:
    
        next_tick = max(next_tick + interval, now)

Delay Policy:
    NOMINAL:  every frame carries the configured interval
    MEASURED: every frame carries the measured gap since the previous frame
              was produced, so client playback follows production pace

Design Rules:
    - Generation failures are never retried (fail fast, surface once)
    - Cancellation is a clean stop, never surfaced as an error
    - A frame generated after cancellation is discarded, not forwarded
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from gif_stream.constants import MAX_DELAY_CS
from gif_stream.encoding.muxer import GifMuxer
from gif_stream.errors import GenerationFailure, GifStreamError
from gif_stream.models.frame import FrameData, FrameError, FrameGenerator
from gif_stream.models.stream import DelayPolicy, StreamConfig
from gif_stream.stream.channel import ChunkChannel


logger = logging.getLogger(__name__)


C = TypeVar("C")


class SchedulerState(str, Enum):
    """Lifecycle states of a FrameScheduler."""
    
    IDLE = "IDLE"
    TICKING = "TICKING"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"


class SchedulerMetrics:
    """Metrics for FrameScheduler observability."""
    
    __slots__ = (
        "ticks",
        "frames_emitted",
        "bytes_emitted",
        "overruns",
        "generation_failures",
        "last_delay_cs",
    )
    
    def __init__(self) -> None:
        self.ticks: int = 0
        self.frames_emitted: int = 0
        self.bytes_emitted: int = 0
        self.overruns: int = 0
        self.generation_failures: int = 0
        self.last_delay_cs: int = 0
    
    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "ticks": self.ticks,
            "frames_emitted": self.frames_emitted,
            "bytes_emitted": self.bytes_emitted,
            "overruns": self.overruns,
            "generation_failures": self.generation_failures,
            "last_delay_cs": self.last_delay_cs,
        }


def measured_delay(elapsed_seconds: float) -> int:
    """Convert a measured gap to a centisecond delay, clamped to [1, 65535]."""
    return max(1, min(round(elapsed_seconds * 100), MAX_DELAY_CS))


class FrameScheduler(Generic[C]):
    """
    Cancellable, time-paced frame producer.
    
    Invokes the frame generator once per tick with the session context,
    muxes the raw frame, and hands the chunk to a ChunkChannel.
    
    Attributes:
        state: Current lifecycle state
        metrics: Operational metrics
        
    Example:
        scheduler = FrameScheduler(config, muxer, render)
        channel = ChunkChannel()
        
        task = asyncio.create_task(scheduler.run(channel))
        chunk = await channel.get()
        
        # Later, stop
        task.cancel()
    """
    
    def __init__(
        self,
        config: StreamConfig,
        muxer: GifMuxer,
        generator: FrameGenerator[C],
        delay_policy: DelayPolicy = DelayPolicy.MEASURED,
        name: str = "stream",
    ) -> None:
        """
        Initialize frame scheduler.
        
        Args:
            config: Session configuration (interval, geometry, context)
            muxer: Muxer owned exclusively by this scheduler
            generator: Async frame-generation capability
            delay_policy: How each frame's delay is chosen
            name: Session name used in log messages
        """
        self._config = config
        self._muxer = muxer
        self._generator = generator
        self._delay_policy = delay_policy
        self._name = name
        
        self._state = SchedulerState.IDLE
        self._last_frame_at: Optional[float] = None
        
        self.metrics = SchedulerMetrics()
    
    @property
    def state(self) -> SchedulerState:
        return self._state
    
    @property
    def name(self) -> str:
        return self._name
    
    @property
    def delay_policy(self) -> DelayPolicy:
        return self._delay_policy
    
    async def run(self, channel: ChunkChannel) -> None:
        """
        Produce frames into the channel until cancelled or failed.
        
        Terminal failures are delivered through the channel; cancellation
        propagates as asyncio.CancelledError.
        
        Args:
            channel: Single-slot handoff to the consumer
            
        Raises:
            RuntimeError: If the scheduler already ran
        """
        if self._state is not SchedulerState.IDLE:
            raise RuntimeError(f"FrameScheduler '{self._name}' cannot be restarted")
        
        loop = asyncio.get_running_loop()
        interval = self._config.interval_seconds
        next_tick = loop.time()
        
        self._state = SchedulerState.TICKING
        logger.info(
            f"[{self._name}] Ticking every {interval * 1000:.0f}ms "
            f"({self._config.width}x{self._config.height}, "
            f"delay_policy={self._delay_policy.value})"
        )
        
        try:
            while True:
                wait = next_tick - loop.time()
                if wait > 0:
                    await asyncio.sleep(wait)
                
                self.metrics.ticks += 1
                pixels = await self._generate()
                produced_at = loop.time()
                
                delay = self._frame_delay(produced_at)
                chunk = self._muxer.next_chunk(pixels, delay)
                self._last_frame_at = produced_at
                
                await channel.put(chunk)
                self.metrics.frames_emitted += 1
                self.metrics.bytes_emitted += len(chunk)
                self.metrics.last_delay_cs = delay
                
                next_tick += interval
                now = loop.time()
                if now > next_tick:
                    self.metrics.overruns += 1
                    logger.warning(
                        f"[{self._name}] Frame {self.metrics.frames_emitted} overran "
                        f"the interval by {(now - next_tick) * 1000:.0f}ms, "
                        f"deferring next tick"
                    )
                    next_tick = now
        
        except asyncio.CancelledError:
            self._state = SchedulerState.STOPPING
            logger.info(
                f"[{self._name}] Cancelled after {self.metrics.frames_emitted} frames"
            )
            raise
        except GifStreamError as e:
            self._state = SchedulerState.STOPPING
            logger.error(f"[{self._name}] Stream terminated: {e}")
            await channel.put_error(e)
        except Exception as e:
            self._state = SchedulerState.STOPPING
            logger.exception(f"[{self._name}] Unexpected scheduler error: {e}")
            await channel.put_error(e)
        finally:
            self._state = SchedulerState.STOPPED
    
    async def _generate(self) -> Any:
        """
        Await one generation call and unwrap its result.
        
        If cancelled mid-generation, the call is cancelled too; a generator
        that ignores cancellation is awaited to completion and its result
        discarded.
        
        Returns:
            Raw frame pixels
            
        Raises:
            GenerationFailure: The generator returned FrameError or raised
        """
        task = asyncio.ensure_future(self._generator(self._config.context))
        
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            await asyncio.wait({task})
            if not task.cancelled():
                task.exception()
                logger.debug(f"[{self._name}] Discarding frame generated after cancellation")
            raise
        
        if task.cancelled():
            raise asyncio.CancelledError()
        
        try:
            result = task.result()
        except Exception as e:
            self.metrics.generation_failures += 1
            raise GenerationFailure(e) from e
        
        if isinstance(result, FrameData):
            return result.pixels
        
        self.metrics.generation_failures += 1
        if isinstance(result, FrameError):
            cause = result.error if isinstance(result.error, BaseException) else None
            raise GenerationFailure(result.error) from cause
        
        raise GenerationFailure(
            TypeError(f"Frame generator returned {type(result).__name__}, expected FrameData or FrameError")
        )
    
    def _frame_delay(self, produced_at: float) -> int:
        """Delay for the frame produced at the given loop time."""
        if self._delay_policy is DelayPolicy.NOMINAL or self._last_frame_at is None:
            return self._muxer.frame_delay
        return measured_delay(produced_at - self._last_frame_at)
