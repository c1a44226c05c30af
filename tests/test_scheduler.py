"""
Frame Scheduler Tests
=====================

Tests for pacing, delay policies, failure handling and cancellation.

Intervals are kept short; timing assertions leave generous slack.
"""

import asyncio
from datetime import timedelta

import pytest

from gif_stream.encoding.compressor import LocalPaletteCompressor
from gif_stream.encoding.muxer import GifMuxer
from gif_stream.encoding.reader import scan_gif
from gif_stream.errors import DimensionMismatch, GenerationFailure
from gif_stream.models.frame import FrameData, FrameError
from gif_stream.models.stream import DelayPolicy, StreamConfig
from gif_stream.stream.channel import ChunkChannel
from gif_stream.stream.scheduler import (
    FrameScheduler,
    SchedulerState,
    measured_delay,
)


WIDTH, HEIGHT = 8, 4


def make_scheduler(generator, interval=0.01, policy=DelayPolicy.MEASURED, context=None):
    config = StreamConfig(
        interval=timedelta(seconds=interval),
        width=WIDTH,
        height=HEIGHT,
        context=context,
    )
    muxer = GifMuxer(WIDTH, HEIGHT, LocalPaletteCompressor(), frame_delay=config.frame_delay)
    return FrameScheduler(config, muxer, generator, delay_policy=policy, name="test")


async def collect(scheduler, count):
    """Run the scheduler until `count` chunks arrive, then cancel it."""
    channel = ChunkChannel()
    task = asyncio.create_task(scheduler.run(channel))
    chunks = [await channel.get() for _ in range(count)]
    task.cancel()
    await asyncio.wait({task})
    return chunks, task


class TestMeasuredDelay:
    """Tests for measured_delay()."""
    
    def test_rounds_to_centiseconds(self):
        assert measured_delay(0.5) == 50
        assert measured_delay(0.123) == 12
        assert measured_delay(1.0) == 100
    
    def test_clamped(self):
        assert measured_delay(0.0) == 1
        assert measured_delay(0.001) == 1
        assert measured_delay(10_000.0) == 65535


class TestTicking:
    """Tests for the normal ticking lifecycle."""
    
    def test_initial_state(self, constant_generator):
        scheduler = make_scheduler(constant_generator(WIDTH, HEIGHT))
        
        assert scheduler.state is SchedulerState.IDLE
        assert scheduler.delay_policy is DelayPolicy.MEASURED
    
    def test_emits_frames(self, constant_generator):
        generator = constant_generator(WIDTH, HEIGHT)
        scheduler = make_scheduler(generator, context="ctx")
        
        chunks, task = asyncio.run(collect(scheduler, 3))
        
        scan = scan_gif(b"".join(chunks))
        assert scan.frame_count == 3
        assert chunks[0][:6] == b"GIF89a"
        assert all(ctx == "ctx" for ctx in generator.calls)
        assert scheduler.metrics.frames_emitted == 3
        assert scheduler.metrics.bytes_emitted == sum(len(c) for c in chunks)
    
    def test_first_tick_is_immediate(self, constant_generator):
        async def scenario():
            scheduler = make_scheduler(constant_generator(WIDTH, HEIGHT), interval=2.0)
            loop = asyncio.get_running_loop()
            start = loop.time()
            await collect(scheduler, 1)
            return loop.time() - start
        
        assert asyncio.run(scenario()) < 1.0
    
    def test_paced_by_interval(self, constant_generator):
        async def scenario():
            scheduler = make_scheduler(constant_generator(WIDTH, HEIGHT), interval=0.05)
            loop = asyncio.get_running_loop()
            start = loop.time()
            await collect(scheduler, 3)
            return loop.time() - start
        
        # ticks at 0, 50ms and 100ms
        assert asyncio.run(scenario()) >= 0.09
    
    def test_backpressure(self, constant_generator):
        """With nobody reading, at most one chunk waits and one is in flight."""
        generator = constant_generator(WIDTH, HEIGHT)
        
        async def scenario():
            scheduler = make_scheduler(generator, interval=0.005)
            channel = ChunkChannel()
            task = asyncio.create_task(scheduler.run(channel))
            await asyncio.sleep(0.1)
            task.cancel()
            await asyncio.wait({task})
        
        asyncio.run(scenario())
        
        assert len(generator.calls) == 2
    
    def test_cannot_restart(self, constant_generator):
        scheduler = make_scheduler(constant_generator(WIDTH, HEIGHT))
        asyncio.run(collect(scheduler, 1))
        
        with pytest.raises(RuntimeError, match="cannot be restarted"):
            asyncio.run(scheduler.run(ChunkChannel()))


class TestDelayPolicy:
    """Tests for per-frame delay selection."""
    
    def test_nominal(self, constant_generator):
        scheduler = make_scheduler(
            constant_generator(WIDTH, HEIGHT),
            interval=0.03,
            policy=DelayPolicy.NOMINAL,
        )
        
        chunks, _ = asyncio.run(collect(scheduler, 3))
        
        assert [f.delay for f in scan_gif(b"".join(chunks)).frames] == [3, 3, 3]
    
    def test_measured_follows_slow_generation(self, solid_rgba):
        frame = solid_rgba(WIDTH, HEIGHT)
        
        async def slow(ctx):
            await asyncio.sleep(0.08)
            return FrameData(pixels=frame)
        
        async def scenario():
            scheduler = make_scheduler(slow, interval=0.01)
            channel = ChunkChannel()
            loop = asyncio.get_running_loop()
            task = asyncio.create_task(scheduler.run(channel))
            chunks, arrivals = [], []
            for _ in range(4):
                chunks.append(await channel.get())
                arrivals.append(loop.time())
            task.cancel()
            await asyncio.wait({task})
            return scheduler, chunks, arrivals
        
        scheduler, chunks, arrivals = asyncio.run(scenario())
        
        delays = [f.delay for f in scan_gif(b"".join(chunks)).frames]
        gaps = [(b - a) * 100 for a, b in zip(arrivals, arrivals[1:])]
        # first frame carries the nominal interval, later ones the real gap
        assert delays[0] == 1
        for delay, gap in zip(delays[1:], gaps):
            assert abs(delay - gap) <= 2, (delays, gaps)
        assert scheduler.metrics.overruns >= 1


class TestFailures:
    """Generation failures end the stream once, without retries."""
    
    def test_failure_on_second_tick(self, solid_rgba):
        frame = solid_rgba(WIDTH, HEIGHT)
        calls = []
        
        async def flaky(ctx):
            calls.append(ctx)
            if len(calls) == 2:
                return FrameError("camera offline")
            return FrameData(pixels=frame)
        
        async def scenario():
            scheduler = make_scheduler(flaky)
            channel = ChunkChannel()
            task = asyncio.create_task(scheduler.run(channel))
            
            first = await channel.get()
            with pytest.raises(GenerationFailure) as exc_info:
                await channel.get()
            
            await asyncio.wait({task})
            await asyncio.sleep(0.05)
            return scheduler, task, first, exc_info.value
        
        scheduler, task, first, error = asyncio.run(scenario())
        
        assert first[:6] == b"GIF89a"
        assert error.error == "camera offline"
        assert len(calls) == 2
        assert not task.cancelled()
        assert scheduler.state is SchedulerState.STOPPED
        assert scheduler.metrics.frames_emitted == 1
        assert scheduler.metrics.generation_failures == 1
    
    def test_raised_exception(self):
        async def broken(ctx):
            raise ValueError("no frame")
        
        async def scenario():
            channel = ChunkChannel()
            task = asyncio.create_task(make_scheduler(broken).run(channel))
            try:
                await channel.get()
            finally:
                await asyncio.wait({task})
        
        with pytest.raises(GenerationFailure) as exc_info:
            asyncio.run(scenario())
        
        assert isinstance(exc_info.value.error, ValueError)
        assert isinstance(exc_info.value.__cause__, ValueError)
    
    def test_wrong_result_type(self):
        async def confused(ctx):
            return b"not wrapped"
        
        async def scenario():
            channel = ChunkChannel()
            task = asyncio.create_task(make_scheduler(confused).run(channel))
            try:
                await channel.get()
            finally:
                await asyncio.wait({task})
        
        with pytest.raises(GenerationFailure) as exc_info:
            asyncio.run(scenario())
        
        assert isinstance(exc_info.value.error, TypeError)
    
    def test_wrong_frame_size(self, solid_rgba):
        frame = solid_rgba(WIDTH + 1, HEIGHT)
        
        async def oversized(ctx):
            return FrameData(pixels=frame)
        
        async def scenario():
            channel = ChunkChannel()
            task = asyncio.create_task(make_scheduler(oversized).run(channel))
            try:
                await channel.get()
            finally:
                await asyncio.wait({task})
        
        with pytest.raises(DimensionMismatch):
            asyncio.run(scenario())
    
    def test_pixels_not_bytes_like(self):
        async def empty(ctx):
            return FrameData(pixels=None)
        
        async def scenario():
            channel = ChunkChannel()
            task = asyncio.create_task(make_scheduler(empty).run(channel))
            try:
                await channel.get()
            finally:
                await asyncio.wait({task})
        
        with pytest.raises(DimensionMismatch) as exc_info:
            asyncio.run(scenario())
        
        assert exc_info.value.actual == 0

class TestCancellation:
    """Cancellation is a clean stop, never surfaced as an error."""
    
    def test_no_generation_after_cancel(self, constant_generator):
        generator = constant_generator(WIDTH, HEIGHT)
        
        async def scenario():
            scheduler = make_scheduler(generator, interval=0.01)
            _, task = await collect(scheduler, 2)
            calls = len(generator.calls)
            await asyncio.sleep(0.05)
            return scheduler, task, calls
        
        scheduler, task, calls = asyncio.run(scenario())
        
        assert len(generator.calls) == calls
        assert task.cancelled()
        assert scheduler.state is SchedulerState.STOPPED
    
    def test_cancel_during_generation(self, solid_rgba):
        frame = solid_rgba(WIDTH, HEIGHT)
        
        async def scenario():
            started = asyncio.Event()
            cancelled = []
            
            async def slow(ctx):
                started.set()
                try:
                    await asyncio.sleep(10)
                except asyncio.CancelledError:
                    cancelled.append(True)
                    raise
                return FrameData(pixels=frame)
            
            channel = ChunkChannel()
            task = asyncio.create_task(make_scheduler(slow).run(channel))
            await started.wait()
            task.cancel()
            await asyncio.wait({task})
            return task, channel, cancelled
        
        task, channel, cancelled = asyncio.run(scenario())
        
        assert task.cancelled()
        assert cancelled == [True]
        assert channel.total_put == 0
    
    def test_result_after_cancel_discarded(self, solid_rgba):
        """A generator that ignores cancellation still never reaches the channel."""
        frame = solid_rgba(WIDTH, HEIGHT)
        
        async def scenario():
            started = asyncio.Event()
            
            async def stubborn(ctx):
                started.set()
                try:
                    await asyncio.sleep(10)
                except asyncio.CancelledError:
                    pass
                return FrameData(pixels=frame)
            
            scheduler = make_scheduler(stubborn)
            channel = ChunkChannel()
            task = asyncio.create_task(scheduler.run(channel))
            await started.wait()
            task.cancel()
            await asyncio.wait({task})
            return scheduler, task, channel
        
        scheduler, task, channel = asyncio.run(scenario())
        
        assert task.cancelled()
        assert channel.total_put == 0
        assert channel.size == 0
        assert scheduler.metrics.frames_emitted == 0
        assert scheduler.state is SchedulerState.STOPPED
