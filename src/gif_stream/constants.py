"""
Stream Constants
================

Fixed values shared by the muxer, the scheduler and the HTTP layer.
"""

# GIF stores frame delays as an unsigned 16-bit count of centiseconds
MIN_DELAY_MS = 10
MAX_DELAY_CS = 65535

# Raw frames are packed RGBA
BYTES_PER_PIXEL = 4

# Largest width/height a logical screen descriptor can carry
MAX_DIMENSION = 65535

GIF_SIGNATURE = b"GIF89a"

# Response headers for an infinite GIF: no caching, no buffering proxies
GIF_HEADERS: tuple[tuple[str, str], ...] = (
    ("Content-Type", "image/gif"),
    ("Content-Transfer-Encoding", "binary"),
    ("Cache-Control", "no-cache, no-store, no-transform"),
    ("Expires", "0"),
    # cors
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Methods", "GET"),
)
