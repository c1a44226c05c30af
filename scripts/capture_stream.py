#!/usr/bin/env python3
"""
Live GIF Capture Script
=======================

Standalone script to record a running /stream.gif endpoint.

This script:
    1. Opens the live GIF endpoint as an HTTP stream
    2. Counts frames as complete image blocks arrive
    3. Stops after N frames (or a timeout)
    4. Writes what it received, plus a trailer, as a finite GIF file

Prerequisites:
    - The GifStream service must be running at the configured URL
    - Install the package: pip install -e .

Usage:
    python scripts/capture_stream.py --frames 10 --output capture.gif
    python scripts/capture_stream.py --url http://localhost:8080/stream.gif
"""

import argparse
import logging
import sys
import time

import requests

from gif_stream.encoding.blocks import TRAILER
from gif_stream.encoding.reader import scan_gif


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def capture(url: str, frames: int, timeout: float) -> bytes:
    """
    Read a live GIF until enough frames arrived.
    
    Args:
        url: Live GIF endpoint
        frames: Number of complete frames to capture
        timeout: Maximum seconds to wait overall
        
    Returns:
        Captured bytes, cut after the last complete frame
    """
    logger.info("=" * 60)
    logger.info(f"Capturing {frames} frames from {url}")
    logger.info("=" * 60)
    
    # complete frames go to `captured`; only `pending` is rescanned per chunk
    preamble = b""
    captured = bytearray()
    pending = bytearray()
    started = time.monotonic()
    seen = 0
    
    with requests.get(url, stream=True, timeout=(5, timeout)) as response:
        response.raise_for_status()
        logger.info(f"Content-Type: {response.headers.get('Content-Type')}")
        
        for chunk in response.iter_content(chunk_size=None):
            pending += chunk
            scan = scan_gif(preamble + pending)
            
            if not preamble:
                if scan.width is None:
                    continue
                size = 13 + 3 * scan.global_colors
                preamble = bytes(pending[:size])
                captured += preamble
                del pending[:size]
            
            complete = scan.frames[:frames - seen]
            for info in complete:
                logger.info(
                    f"Frame {seen + 1}: {info.width}x{info.height}, "
                    f"delay={info.delay}cs, {len(captured) + info.end - len(preamble)} bytes total"
                )
                seen += 1
            
            if complete:
                # scan offsets count the prefixed preamble
                cut = complete[-1].end - len(preamble)
                captured += pending[:cut]
                del pending[:cut]
            
            if seen >= frames:
                return bytes(captured)
            
            if time.monotonic() - started > timeout:
                logger.warning(f"Timeout after {seen} frames")
                return bytes(captured)
    
    logger.warning(f"Stream ended after {seen} frames")
    return bytes(captured)


def main() -> int:
    parser = argparse.ArgumentParser(description="Capture frames from a live GIF stream")
    parser.add_argument(
        "--url",
        default="http://localhost:8080/stream.gif",
        help="Live GIF endpoint",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=10,
        help="Number of frames to capture",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Maximum capture time in seconds",
    )
    parser.add_argument(
        "--output",
        default="capture.gif",
        help="Output GIF file",
    )
    args = parser.parse_args()
    
    try:
        data = capture(args.url, args.frames, args.timeout)
    except requests.RequestException as e:
        logger.error(f"Capture failed: {e}")
        return 1
    
    # The live stream never ends; terminate the capture so viewers accept it
    with open(args.output, "wb") as f:
        f.write(data)
        f.write(bytes([TRAILER]))
    
    logger.info(f"Wrote {len(data) + 1} bytes to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
