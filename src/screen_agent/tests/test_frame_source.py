#!/usr/bin/env python3
"""
Unit tests for core/frame_source.py
"""

import os
import sys
import unittest
from unittest.mock import MagicMock, patch

# Add parent directory to path to import module
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from screen_agent.core.errors import CaptureUnavailableError
from screen_agent.core.frame_source import FrameSource, ScreenFrameSource, get_monitors

MONITORS = [
    {"top": 0, "left": 0, "width": 16, "height": 8},
    {"top": 0, "left": 0, "width": 16, "height": 8},
]


def fake_grab(area):
    shot = MagicMock()
    shot.size = (area["width"], area["height"])
    shot.bgra = bytes([40, 80, 120, 255]) * (area["width"] * area["height"])
    return shot


def mock_mss(grab=fake_grab):
    sct = MagicMock()
    sct.monitors = MONITORS
    sct.grab.side_effect = grab
    factory = MagicMock()
    factory.return_value.__enter__.return_value = sct
    return factory, sct


class TestScreenFrameSource(unittest.TestCase):
    """Test cases for the MSS frame source"""

    def test_implements_frame_source(self):
        self.assertIsInstance(ScreenFrameSource(), FrameSource)

    def test_capture_returns_jpeg(self):
        factory, sct = mock_mss()
        with patch("screen_agent.core.frame_source.mss.mss", factory):
            frame = ScreenFrameSource().capture()

        self.assertTrue(frame.startswith(b"\xff\xd8"))
        sct.grab.assert_called_once_with(MONITORS[1])

    def test_all_monitors_combined(self):
        factory, sct = mock_mss()
        with patch("screen_agent.core.frame_source.mss.mss", factory):
            ScreenFrameSource(monitor=0).capture()

        sct.grab.assert_called_once_with(MONITORS[0])

    def test_monitor_out_of_range(self):
        factory, _ = mock_mss()
        with patch("screen_agent.core.frame_source.mss.mss", factory):
            with self.assertRaises(CaptureUnavailableError):
                ScreenFrameSource(monitor=5).capture()

    def test_grab_failure_is_wrapped(self):
        def broken(area):
            raise OSError("XGetImage() failed")

        factory, _ = mock_mss(broken)
        with patch("screen_agent.core.frame_source.mss.mss", factory):
            with self.assertRaises(CaptureUnavailableError) as ctx:
                ScreenFrameSource().capture()
        self.assertIsInstance(ctx.exception.__cause__, OSError)

    def test_get_monitors_skips_combined_view(self):
        factory, _ = mock_mss()
        with patch("screen_agent.core.frame_source.mss.mss", factory):
            monitors = get_monitors()

        self.assertEqual(len(monitors), 1)
        self.assertEqual(monitors[0]["monitor_num"], 1)

    def test_get_monitors_without_display(self):
        with patch("screen_agent.core.frame_source.mss.mss", side_effect=OSError("no display")):
            self.assertEqual(get_monitors(), [])


if __name__ == "__main__":
    unittest.main()
