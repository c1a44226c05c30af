"""
Capture Script Tests
====================

Tests for scripts/capture_stream.py against a fake HTTP response.
"""

import importlib.util
from pathlib import Path

import pytest

from gif_stream.encoding.compressor import LocalPaletteCompressor
from gif_stream.encoding.muxer import GifMuxer
from gif_stream.encoding.reader import scan_gif


SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "capture_stream.py"


@pytest.fixture(scope="module")
def capture_stream():
    spec = importlib.util.spec_from_file_location("capture_stream", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class FakeResponse:
    """Minimal streaming response yielding pre-split chunks."""
    
    def __init__(self, chunks):
        self.chunks = chunks
        self.headers = {"Content-Type": "image/gif"}
    
    def __enter__(self):
        return self
    
    def __exit__(self, *exc):
        return False
    
    def raise_for_status(self):
        pass
    
    def iter_content(self, chunk_size=None):
        yield from self.chunks


@pytest.fixture
def live_bytes(solid_rgba):
    muxer = GifMuxer(10, 5, LocalPaletteCompressor())
    raw = solid_rgba(10, 5).tobytes()
    return b"".join(muxer.next_chunk(raw) for _ in range(4))


class TestCapture:
    """Tests for capture()."""
    
    def test_stops_after_frames(self, capture_stream, live_bytes, monkeypatch):
        # split at awkward offsets so frames straddle network chunks
        pieces = [live_bytes[i:i + 7] for i in range(0, len(live_bytes), 7)]
        monkeypatch.setattr(
            capture_stream.requests,
            "get",
            lambda *args, **kwargs: FakeResponse(pieces),
        )
        
        data = capture_stream.capture("http://test/stream.gif", frames=2, timeout=5.0)
        
        scan = scan_gif(data)
        assert scan.frame_count == 2
        assert scan.consumed == len(data)
    
    def test_stream_ends_early(self, capture_stream, live_bytes, monkeypatch):
        monkeypatch.setattr(
            capture_stream.requests,
            "get",
            lambda *args, **kwargs: FakeResponse([live_bytes[:-3]]),
        )
        
        data = capture_stream.capture("http://test/stream.gif", frames=10, timeout=5.0)
        
        assert scan_gif(data).frame_count == 3
    
    def test_rescans_only_unfinished_tail(self, capture_stream, solid_rgba, monkeypatch):
        muxer = GifMuxer(10, 5, LocalPaletteCompressor())
        raw = solid_rgba(10, 5).tobytes()
        chunks = [muxer.next_chunk(raw) for _ in range(12)]
        live = b"".join(chunks)
        pieces = [live[i:i + 7] for i in range(0, len(live), 7)]
        monkeypatch.setattr(
            capture_stream.requests,
            "get",
            lambda *args, **kwargs: FakeResponse(pieces),
        )
        
        scanned = []
        
        def recording_scan(data):
            scanned.append(len(data))
            return scan_gif(data)
        
        monkeypatch.setattr(capture_stream, "scan_gif", recording_scan)
        
        data = capture_stream.capture("http://test/stream.gif", frames=12, timeout=5.0)
        
        assert data == live
        # preamble plus at most one unfinished frame and one network piece
        preamble = len(chunks[0]) - len(chunks[1])
        assert max(scanned) <= preamble + max(len(c) for c in chunks[1:]) + 7
