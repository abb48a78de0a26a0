#!/usr/bin/env python3
"""
Constants for Screen Agent

This module defines constants used throughout the capture and conversation
layers, ensuring consistent configuration across the application.

This module is part of the Core Layer and should have no dependencies on
Presentation or Integration layers.

Sample input:
- None (module contains only constants)

Expected output:
- None (module contains only constants)
"""

from typing import Dict, Any

# Image settings for captured frames
IMAGE_SETTINGS: Dict[str, Any] = {
    "MAX_WIDTH": 1920,  # Frames wider than this are downscaled
    "MAX_HEIGHT": 1920,  # Frames taller than this are downscaled
    "MIN_QUALITY": 30,  # Floor when shrinking oversized frames
    "DEFAULT_QUALITY": 85,  # JPEG quality for captured frames
    "MAX_FILE_SIZE": 2_000_000,  # Maximum encoded frame size in bytes (2MB)
    "MIME_TYPE": "image/jpeg",
}

# Model endpoint
API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models/"
DEFAULT_MODEL = "gemini-2.0-flash-exp"
REQUEST_TIMEOUT_SECONDS: float = 60.0
MAX_RETRIES: int = 3
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

# Capture timing
DEFAULT_CAPTURE_INTERVAL_SECONDS: float = 1.0
MIN_CAPTURE_INTERVAL_MS: int = 1

# Tool-use loop
MAX_TOOL_DEPTH: int = 8

# Presentation
NO_RESPONSE_TEXT = "No response"
EMPHASIS_MARKER = "**"

DEFAULT_SYSTEM_PROMPT = """You are a smart reply assistant that can analyze desktop screenshots and answer the user's questions. Follow these rules:
Questions about the images:
Analyze the image content carefully and give accurate, clear guidance based on the user's question.
If the question concerns technical support, give concrete steps or suggestions.
If the question is vague, ask the user for more information so the answer is accurate.
No images, or questions unrelated to the images:
Reply briefly and directly, keeping a natural conversational tone.
If the question is beyond your knowledge, use the available tools to look up current information before answering.
Reply style:
Keep answers concise and avoid lengthy or unnecessary detail.
Do not use emoji, special symbols or non-text content.
Always keep answers professional and practical, adjusting to the nature of the question."""

# Logging settings
LOG_MAX_STR_LEN: int = 100  # Maximum string length for truncated logging


if __name__ == "__main__":
    """Validate module constants"""
    import sys

    all_validation_failures = []
    total_tests = 0

    # Test 1: Verify IMAGE_SETTINGS contains all required keys
    total_tests += 1
    required_keys = ["MAX_WIDTH", "MAX_HEIGHT", "MIN_QUALITY", "DEFAULT_QUALITY", "MAX_FILE_SIZE", "MIME_TYPE"]
    missing_keys = [key for key in required_keys if key not in IMAGE_SETTINGS]
    if missing_keys:
        all_validation_failures.append(f"IMAGE_SETTINGS missing keys: {missing_keys}")

    # Test 2: Verify quality range is valid
    total_tests += 1
    if not (1 <= IMAGE_SETTINGS["MIN_QUALITY"] <= IMAGE_SETTINGS["DEFAULT_QUALITY"] <= 100):
        all_validation_failures.append(
            f"Invalid quality range: MIN_QUALITY={IMAGE_SETTINGS['MIN_QUALITY']}, "
            f"DEFAULT_QUALITY={IMAGE_SETTINGS['DEFAULT_QUALITY']}"
        )

    # Test 3: Verify loop and timing bounds
    total_tests += 1
    if MAX_TOOL_DEPTH < 1 or MIN_CAPTURE_INTERVAL_MS < 1:
        all_validation_failures.append(
            f"Invalid bounds: MAX_TOOL_DEPTH={MAX_TOOL_DEPTH}, MIN_CAPTURE_INTERVAL_MS={MIN_CAPTURE_INTERVAL_MS}"
        )

    # Test 4: Verify retry statuses are errors
    total_tests += 1
    if any(code < 400 for code in RETRYABLE_STATUS_CODES):
        all_validation_failures.append(f"Non-error status in RETRYABLE_STATUS_CODES: {sorted(RETRYABLE_STATUS_CODES)}")

    if all_validation_failures:
        print(f"❌ VALIDATION FAILED - {len(all_validation_failures)} of {total_tests} tests failed:")
        for failure in all_validation_failures:
            print(f"  - {failure}")
        sys.exit(1)
    else:
        print(f"✅ VALIDATION PASSED - All {total_tests} tests produced expected results")
        print("Constants are valid and ready for use")
        sys.exit(0)
