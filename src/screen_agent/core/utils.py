#!/usr/bin/env python3
"""
Utility Functions for Screen Agent

This module provides small helpers shared by the core and CLI modules:
answer post-processing, log-safe value rendering and secret masking.

This module is part of the Core Layer and should have no dependencies on
Presentation or Integration layers.

Sample input:
- strip_emphasis("**Paris** is the capital")
- mask_secret("AIzaSyD-1234567890")

Expected output:
- "Paris is the capital"
- "AIza**********7890"
"""

from typing import Any, Optional

from screen_agent.core.constants import EMPHASIS_MARKER, LOG_MAX_STR_LEN


def strip_emphasis(text: str) -> str:
    """Remove every bold marker from a model answer."""
    return text.replace(EMPHASIS_MARKER, "")


def truncate_large_value(value: Any, max_str_len: int = LOG_MAX_STR_LEN, max_list_elements: int = 3) -> Any:
    """
    Shorten a value for logging.

    Long strings are cut with a length note, long lists keep their first
    elements, and dicts are walked recursively. Base64 image payloads pass
    through here before reaching a log sink.

    Args:
        value: Value to shorten
        max_str_len: Maximum string length kept
        max_list_elements: Maximum number of list elements kept

    Returns:
        Any: A log-safe copy of the value
    """
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    if isinstance(value, str):
        if len(value) > max_str_len:
            return f"{value[:max_str_len]}... ({len(value)} chars)"
        return value
    if isinstance(value, dict):
        return {k: truncate_large_value(v, max_str_len, max_list_elements) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        items = [truncate_large_value(v, max_str_len, max_list_elements) for v in value[:max_list_elements]]
        if len(value) > max_list_elements:
            items.append(f"... ({len(value) - max_list_elements} more)")
        return items
    return value


def mask_secret(secret: Optional[str], visible: int = 4) -> str:
    """
    Mask a secret, keeping a few characters at each end.

    Args:
        secret: The secret value (API key)
        visible: Characters kept visible on each side

    Returns:
        str: Masked value, or "<not set>" when empty
    """
    if not secret:
        return "<not set>"
    if len(secret) <= visible * 2:
        return "*" * len(secret)
    return f"{secret[:visible]}{'*' * (len(secret) - visible * 2)}{secret[-visible:]}"


if __name__ == "__main__":
    """Validate utility functions"""
    import sys

    all_validation_failures = []
    total_tests = 0

    # Test 1: strip_emphasis
    total_tests += 1
    if strip_emphasis("**Paris** is **the** capital") != "Paris is the capital":
        all_validation_failures.append("strip_emphasis test: markers not removed")

    # Test 2: truncate_large_value
    total_tests += 1
    truncated = truncate_large_value({"data": "A" * 500, "items": [1, 2, 3, 4, 5], "raw": b"\xff\xd8"})
    if not truncated["data"].endswith("(500 chars)") or len(truncated["items"]) != 4 or truncated["raw"] != "<2 bytes>":
        all_validation_failures.append(f"truncate_large_value test: unexpected result {truncated}")

    # Test 3: mask_secret
    total_tests += 1
    if mask_secret("AIzaSyD-1234567890") != "AIza**********7890" or mask_secret("") != "<not set>":
        all_validation_failures.append("mask_secret test: unexpected masking")

    if all_validation_failures:
        print(f"❌ VALIDATION FAILED - {len(all_validation_failures)} of {total_tests} tests failed:")
        for failure in all_validation_failures:
            print(f"  - {failure}")
        sys.exit(1)
    else:
        print(f"✅ VALIDATION PASSED - All {total_tests} tests produced expected results")
        print("Utility functions are validated and ready for use")
        sys.exit(0)
