"""
GifStream Main Application
==========================

FastAPI entry point serving live, never-ending GIFs.

Every request to /stream.gif opens its own stream session: a fresh scene
context, muxer, scheduler and bridge. The session ends when the client
disconnects (Starlette cancels the response iteration, which cancels the
scheduler) or when frame generation fails.

Endpoints:
    GET  /            - Service information
    GET  /health      - Liveness probe
    GET  /metrics     - Session and frame counters
    GET  /stream.gif  - Live GIF of the configured demo scene
"""

import logging
import os
import time
from contextlib import aclosing, asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator, Dict

from fastapi import FastAPI
from fastapi.responses import JSONResponse, StreamingResponse

from gif_stream.config import settings
from gif_stream.constants import GIF_HEADERS
from gif_stream.encoding.palette import GlobalPalette
from gif_stream.errors import GifStreamError
from gif_stream.models.stream import PaletteMode
from gif_stream.scenes import SceneContext, create_scene
from gif_stream.stream import GifStream, StreamBridge


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_startup_time: float = 0.0

# Live sessions by name
_active_sessions: Dict[str, StreamBridge] = {}

# Counters across all sessions
_sessions_opened: int = 0
_sessions_failed: int = 0
_frames_served: int = 0
_bytes_served: int = 0


def get_active_sessions() -> Dict[str, StreamBridge]:
    return _active_sessions


# =============================================================================
# Session Factory
# =============================================================================

def create_session() -> StreamBridge:
    """
    Open a stream session for one client from the configured settings.
    
    Fails fast if the configured scene does not exist.
    """
    gif = settings.gif
    
    context = SceneContext(
        width=gif.width,
        height=gif.height,
        background=settings.demo.background,
        foreground=settings.demo.foreground,
    )
    session = (
        GifStream(
            timedelta(milliseconds=gif.interval_ms),
            gif.width,
            gif.height,
            context,
            create_scene(settings.demo.scene),
        )
        .interlaced(gif.interlaced)
        .dispose(gif.dispose)
        .colors(gif.colors)
        .dither(gif.dither)
        .delay_policy(gif.delay_policy)
    )
    
    if gif.palette == PaletteMode.AUTO:
        return session.stream_auto_palette(gif.colors)
    
    if gif.palette == PaletteMode.GLOBAL:
        # Demo palette: a uniform 6x6x6 color cube
        cube = [
            (r * 51, g * 51, b * 51)
            for r in range(6)
            for g in range(6)
            for b in range(6)
        ]
        return session.stream_with_palette(GlobalPalette.from_colors(cube, dither=gif.dither))
    
    return session.stream()


async def serve_session(bridge: StreamBridge) -> AsyncIterator[bytes]:
    """
    Relay one session's chunks to the HTTP response, keeping counters.
    
    Terminal stream errors end the response; the client sees the frames
    it already received, never a partial frame.
    """
    global _sessions_opened, _sessions_failed, _frames_served, _bytes_served
    
    name = bridge.scheduler.name
    _active_sessions[name] = bridge
    _sessions_opened += 1
    logger.info(f"[{name}] Client connected ({len(_active_sessions)} active)")
    
    try:
        async with aclosing(bridge.stream()) as chunks:
            async for chunk in chunks:
                _frames_served += 1
                _bytes_served += len(chunk)
                yield chunk
    except GifStreamError as e:
        _sessions_failed += 1
        logger.error(f"[{name}] Stream ended with error: {e}")
    finally:
        _active_sessions.pop(name, None)
        logger.info(
            f"[{name}] Client disconnected after "
            f"{bridge.scheduler.metrics.frames_emitted} frames"
        )


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    global _startup_time
    
    _startup_time = time.time()
    logger.info(f"Starting {settings.service.name} {settings.service.version}")
    
    gif = settings.gif
    logger.info(
        f"Live GIF: {gif.width}x{gif.height} every {gif.interval_ms}ms, "
        f"scene={settings.demo.scene}, palette={gif.palette.value}, "
        f"delay_policy={gif.delay_policy.value}"
    )
    
    # Fail at startup rather than on the first request
    create_scene(settings.demo.scene)
    
    yield
    
    logger.info(f"Shutting down with {len(_active_sessions)} active sessions")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="GifStream",
    description="Never-ending live GIF streams over HTTP",
    version=settings.service.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "GifStream",
        "version": settings.service.version,
        "name": settings.service.name,
        "status": "running",
        "stream": "/stream.gif",
        "scene": settings.demo.scene,
        "width": settings.gif.width,
        "height": settings.gif.height,
        "interval_ms": settings.gif.interval_ms,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?
    
    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Session and frame counters for observability."""
    sessions = {
        name: {
            "state": bridge.scheduler.state.value,
            **bridge.scheduler.metrics.to_dict(),
        }
        for name, bridge in _active_sessions.items()
    }
    
    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "active_sessions": len(_active_sessions),
        "sessions_opened": _sessions_opened,
        "sessions_failed": _sessions_failed,
        "frames_served": _frames_served,
        "bytes_served": _bytes_served,
        "sessions": sessions,
    })


@app.get("/stream.gif")
async def stream_gif() -> StreamingResponse:
    """
    Live GIF endpoint.
    
    The response never completes on its own; it ends when the client
    disconnects or frame generation fails.
    """
    bridge = create_session()
    return StreamingResponse(serve_session(bridge), headers=dict(GIF_HEADERS))


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    
    # Cloud Run uses PORT env var
    port = int(os.environ.get("PORT", settings.server.port))
    
    uvicorn.run(
        "gif_stream.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
