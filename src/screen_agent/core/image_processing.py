#!/usr/bin/env python3
"""
Frame Encoding

Turns a raw screen grab into the JPEG bytes stored in a capture batch.
Frames larger than the model input size are scaled down, and the JPEG
quality only drops when a frame would not fit in the per-frame byte cap.

This module is part of the Core Layer and should have no dependencies on
Presentation or Integration layers.

Sample input:
- encode_frame(Image.new("RGB", (3840, 2160)))

Expected output:
- (JPEG bytes of a 1920x1080 frame, {"original_size": (3840, 2160), "final_size": (1920, 1080), ...})
"""

import io
from typing import Any, Dict, Tuple

from PIL import Image
from loguru import logger

from screen_agent.core.constants import IMAGE_SETTINGS

QUALITY_STEP = 10


def _fit(img: Image.Image) -> Image.Image:
    max_width, max_height = IMAGE_SETTINGS["MAX_WIDTH"], IMAGE_SETTINGS["MAX_HEIGHT"]
    width, height = img.size
    if width <= max_width and height <= max_height:
        return img

    scale = min(max_width / width, max_height / height)
    size = (max(1, int(width * scale)), max(1, int(height * scale)))
    logger.debug(f"Scaling frame from {width}x{height} to {size[0]}x{size[1]}")
    return img.resize(size, Image.LANCZOS)


def _to_jpeg(img: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def encode_frame(
    img: Image.Image,
    quality: int = IMAGE_SETTINGS["DEFAULT_QUALITY"],
    max_bytes: int = IMAGE_SETTINGS["MAX_FILE_SIZE"],
) -> Tuple[bytes, Dict[str, Any]]:
    """
    Encode one captured frame as JPEG.

    MSS grabs arrive as RGB already; anything else (RGBA, palette, grayscale)
    is converted first because JPEG has no alpha channel.

    Args:
        img: The grabbed frame
        quality: Starting JPEG quality (1-100)
        max_bytes: Byte cap; quality steps down toward MIN_QUALITY until the frame fits

    Returns:
        Tuple[bytes, Dict[str, Any]]: JPEG bytes and metadata (original_size,
        final_size, bytes_size, quality actually used)
    """
    original_size = img.size
    img = _fit(img)
    if img.mode != "RGB":
        img = img.convert("RGB")

    used = quality
    data = _to_jpeg(img, used)
    while len(data) > max_bytes and used > IMAGE_SETTINGS["MIN_QUALITY"]:
        used = max(IMAGE_SETTINGS["MIN_QUALITY"], used - QUALITY_STEP)
        logger.info(f"Frame is {len(data) / 1024:.1f} KB, re-encoding at quality {used}")
        data = _to_jpeg(img, used)

    metadata = {
        "original_size": original_size,
        "final_size": img.size,
        "bytes_size": len(data),
        "quality": used,
    }
    return data, metadata


if __name__ == "__main__":
    """Validate frame encoding with generated frames"""
    import sys

    all_validation_failures = []
    total_tests = 0

    # Test 1: 4K grab is scaled to the model input size
    total_tests += 1
    frame, metadata = encode_frame(Image.new("RGB", (3840, 2160), color="red"))
    if metadata["final_size"] != (1920, 1080) or not frame.startswith(b"\xff\xd8"):
        all_validation_failures.append(f"Scale test: unexpected metadata {metadata}")

    # Test 2: Transparent frames are encodable
    total_tests += 1
    frame, metadata = encode_frame(Image.new("RGBA", (100, 100), color=(255, 0, 0, 128)))
    if Image.open(io.BytesIO(frame)).mode != "RGB":
        all_validation_failures.append("RGBA test: decoded frame is not RGB")

    # Test 3: Byte cap lowers the quality
    total_tests += 1
    noisy = Image.effect_noise((800, 800), 100).convert("RGB")
    _, metadata = encode_frame(noisy, 95, max_bytes=1)
    if metadata["quality"] != IMAGE_SETTINGS["MIN_QUALITY"]:
        all_validation_failures.append(f"Byte cap test: expected MIN_QUALITY, got {metadata['quality']}")

    if all_validation_failures:
        print(f"❌ VALIDATION FAILED - {len(all_validation_failures)} of {total_tests} tests failed:")
        for failure in all_validation_failures:
            print(f"  - {failure}")
        sys.exit(1)
    else:
        print(f"✅ VALIDATION PASSED - All {total_tests} tests produced expected results")
        print("Frame encoding is validated and ready for use")
        sys.exit(0)
