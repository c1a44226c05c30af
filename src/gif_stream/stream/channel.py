"""
Chunk Channel
=============

Single-slot async handoff between the scheduler task and the consumer.

This module provides the ChunkChannel class, the only interface between
the FrameScheduler (producer) and the StreamBridge (consumer).

Design Rules:
    - Capacity of exactly one chunk: the producer waits while it is full
    - Never drops: GIF frames must arrive in order and complete
    - A terminal error travels through the same slot, after every chunk
      produced before it
    - Does NOT inspect or modify chunks
"""

import asyncio
import logging
from typing import Union


logger = logging.getLogger(__name__)


class ChunkChannel:
    """
    Single-slot queue for encoded GIF chunks.
    
    Bounding the channel to one chunk means a slow consumer slows the
    scheduler down instead of building an unbounded backlog.
    
    Example:
        channel = ChunkChannel()
        
        # Producer
        await channel.put(chunk)
        
        # Consumer
        chunk = await channel.get()  # raises the terminal error, if any
    """
    
    def __init__(self) -> None:
        self._queue: asyncio.Queue[Union[bytes, BaseException]] = asyncio.Queue(maxsize=1)
        self._total_put: int = 0
        self._total_bytes: int = 0
        self._closed_with: Union[BaseException, None] = None
    
    @property
    def size(self) -> int:
        """Number of items waiting in the slot (0 or 1)."""
        return self._queue.qsize()
    
    @property
    def total_put(self) -> int:
        """Total chunks ever handed off."""
        return self._total_put
    
    @property
    def total_bytes(self) -> int:
        """Total bytes ever handed off."""
        return self._total_bytes
    
    async def put(self, chunk: bytes) -> None:
        """
        Hand a chunk to the consumer, waiting while the slot is full.
        
        Args:
            chunk: Encoded GIF bytes
        """
        if self._closed_with is not None:
            raise RuntimeError("Channel already carries a terminal error")
        
        await self._queue.put(chunk)
        self._total_put += 1
        self._total_bytes += len(chunk)
    
    async def put_error(self, error: BaseException) -> None:
        """
        Deliver a terminal error after any chunk already in the slot.
        
        Args:
            error: Exception the consumer will see raised from get()
        """
        self._closed_with = error
        await self._queue.put(error)
    
    async def get(self) -> bytes:
        """
        Take the next chunk.
        
        Returns:
            Next encoded GIF chunk
            
        Raises:
            The terminal error delivered by the producer
        """
        item = await self._queue.get()
        if isinstance(item, BaseException):
            raise item
        return item
    
    def clear(self) -> int:
        """
        Discard anything waiting in the slot.
        
        Returns:
            Number of items discarded.
        """
        cleared = 0
        while True:
            try:
                self._queue.get_nowait()
                cleared += 1
            except asyncio.QueueEmpty:
                break
        return cleared
    
    def metrics(self) -> dict:
        """
        Get channel metrics for observability.
        
        Returns:
            Dict with size, total_put, total_bytes
        """
        return {
            "size": self.size,
            "total_put": self._total_put,
            "total_bytes": self._total_bytes,
        }
