"""
Block Reader Tests
==================

Tests for scan_gif() on complete streams and on live prefixes.
"""

import pytest

from gif_stream.encoding.blocks import TRAILER
from gif_stream.encoding.compressor import LocalPaletteCompressor
from gif_stream.encoding.muxer import GifMuxer
from gif_stream.encoding.reader import GifFormatError, scan_gif
from gif_stream.models.stream import DisposalMethod


@pytest.fixture
def three_frame_stream(solid_rgba):
    muxer = GifMuxer(
        6,
        3,
        LocalPaletteCompressor(dispose=DisposalMethod.BACKGROUND),
        frame_delay=50,
    )
    raw = solid_rgba(6, 3).tobytes()
    return [muxer.next_chunk(raw) for _ in range(3)]


class TestScanGif:
    """Tests for scan_gif()."""
    
    def test_complete_stream(self, three_frame_stream):
        data = b"".join(three_frame_stream)
        
        scan = scan_gif(data)
        
        assert (scan.width, scan.height) == (6, 3)
        assert scan.global_colors == 0
        assert scan.frame_count == 3
        assert [f.delay for f in scan.frames] == [50, 50, 50]
        assert all(f.disposal == DisposalMethod.BACKGROUND for f in scan.frames)
        assert scan.consumed == len(data)
        assert not scan.trailer
    
    def test_frame_offsets(self, three_frame_stream):
        data = b"".join(three_frame_stream)
        first = len(three_frame_stream[0])
        
        scan = scan_gif(data)
        
        # each image descriptor follows an 8-byte control extension
        assert scan.frames[1].offset == first + 8
        assert scan.frames[2].offset == first + len(three_frame_stream[1]) + 8
    
    def test_frame_ends(self, three_frame_stream):
        data = b"".join(three_frame_stream)
        
        scan = scan_gif(data)
        
        ends = [f.end for f in scan.frames]
        assert ends[-1] == len(data)
        # the next control extension starts where a frame's data ends
        assert [f.offset - 8 for f in scan.frames[1:]] == ends[:-1]
    
    def test_trailer(self, three_frame_stream):
        data = b"".join(three_frame_stream) + bytes([TRAILER])
        
        scan = scan_gif(data)
        
        assert scan.trailer
        assert scan.consumed == len(data)
    
    def test_every_prefix(self, three_frame_stream):
        """Any prefix scans cleanly and only counts complete frames."""
        data = b"".join(three_frame_stream)
        boundaries = []
        total = 0
        for chunk in three_frame_stream:
            total += len(chunk)
            boundaries.append(total)
        
        for end in range(len(data) + 1):
            scan = scan_gif(data[:end])
            
            assert scan.consumed <= end
            assert scan.frame_count == sum(1 for b in boundaries if b <= end)
    
    def test_short_header(self):
        scan = scan_gif(b"GIF89a")
        
        assert scan.width is None
        assert scan.frame_count == 0
        assert scan.consumed == 0
    
    def test_bad_signature(self):
        with pytest.raises(GifFormatError):
            scan_gif(b"PNG89a" + bytes(7))
    
    def test_bad_introducer(self, three_frame_stream):
        with pytest.raises(GifFormatError, match="0x99"):
            scan_gif(three_frame_stream[0] + b"\x99")
