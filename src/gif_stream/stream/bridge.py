"""
Stream Bridge
=============

Exposes a FrameScheduler as an async iterator of GIF byte chunks.

The bridge owns the scheduler task. It starts the task on first iteration,
yields every chunk handed through the ChunkChannel, and re-raises the
terminal error if the scheduler fails.

Cancellation:
    When the consumer stops iterating (aclose(), break + finalization, or
    cancellation of the consuming task, e.g. an HTTP client disconnect),
    the bridge cancels the scheduler task and waits for it to stop, so no
    further tick fires.

Design Rules:
    - One bridge per client connection; never restartable
    - Infinite: ends only on error or cancellation
"""

import asyncio
import logging
from typing import AsyncIterator, Generic, Optional, TypeVar

from gif_stream.stream.channel import ChunkChannel
from gif_stream.stream.scheduler import FrameScheduler


logger = logging.getLogger(__name__)


C = TypeVar("C")


class StreamBridge(Generic[C]):
    """
    Async-iterable view over one scheduler's output.
    
    Example:
        bridge = StreamBridge(scheduler)
        
        async for chunk in bridge:
            await send(chunk)
    """
    
    def __init__(
        self,
        scheduler: FrameScheduler[C],
        channel: Optional[ChunkChannel] = None,
    ) -> None:
        """
        Initialize bridge.
        
        Args:
            scheduler: Scheduler to drive, owned exclusively by this bridge
            channel: Handoff channel (a fresh single-slot channel by default)
        """
        self._scheduler = scheduler
        self._channel = channel or ChunkChannel()
        self._task: Optional[asyncio.Task] = None
        self._started: bool = False
    
    @property
    def scheduler(self) -> FrameScheduler[C]:
        return self._scheduler
    
    @property
    def channel(self) -> ChunkChannel:
        return self._channel
    
    @property
    def running(self) -> bool:
        """Whether the scheduler task is alive."""
        return self._task is not None and not self._task.done()
    
    def __aiter__(self) -> AsyncIterator[bytes]:
        return self.stream()
    
    def stream(self) -> AsyncIterator[bytes]:
        """
        Start the session and return its chunk iterator.
        
        Returns:
            Async iterator of encoded GIF chunks
            
        Raises:
            RuntimeError: If this bridge was already iterated
        """
        if self._started:
            raise RuntimeError(
                "StreamBridge is not restartable; open a new session per connection"
            )
        self._started = True
        return self._iterate()
    
    async def _iterate(self) -> AsyncIterator[bytes]:
        self._task = asyncio.create_task(
            self._scheduler.run(self._channel),
            name=f"gif_scheduler:{self._scheduler.name}",
        )
        
        try:
            while True:
                yield await self._channel.get()
        finally:
            await self._stop()
    
    async def _stop(self) -> None:
        """Cancel the scheduler task and wait for it to finish."""
        task = self._task
        if task is None:
            return
        
        if not task.done():
            logger.info(f"[{self._scheduler.name}] Consumer disengaged, stopping scheduler")
            task.cancel()
        
        await asyncio.wait({task})
        
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"[{self._scheduler.name}] Scheduler ended with {task.exception()!r}")
        
        self._channel.clear()
