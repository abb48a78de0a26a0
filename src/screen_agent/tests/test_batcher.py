#!/usr/bin/env python3
"""
Unit tests for core/batcher.py
"""

import os
import sys
import threading
import time
import unittest
from concurrent.futures import Executor, Future

# Add parent directory to path to import module
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from screen_agent.core.batcher import CaptureBatcher, CaptureState
from screen_agent.core.config import Settings, SettingsProvider
from screen_agent.core.errors import AlreadyCapturingError, CaptureUnavailableError


class FakeFrameSource:
    """Returns numbered frames; fails on the calls listed in fail_on."""

    def __init__(self, fail_on=()):
        self.calls = 0
        self.fail_on = set(fail_on)
        self._lock = threading.Lock()

    def capture(self) -> bytes:
        with self._lock:
            index = self.calls
            self.calls += 1
        if index in self.fail_on:
            raise RuntimeError(f"grab {index} failed")
        return f"frame-{index}".encode()


class InlineExecutor(Executor):
    """Runs submitted jobs immediately on the calling thread."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        future.set_result(fn(*args, **kwargs))
        return future


class DeferredExecutor(Executor):
    """Holds submitted jobs until run_all() is called."""

    def __init__(self):
        self.jobs = []

    def submit(self, fn, *args, **kwargs):
        self.jobs.append((fn, args, kwargs))
        return Future()

    def run_all(self):
        jobs, self.jobs = self.jobs, []
        for fn, args, kwargs in jobs:
            fn(*args, **kwargs)


class TestCaptureBatcher(unittest.TestCase):
    """Test cases for the capture batcher"""

    def setUp(self):
        self.source = FakeFrameSource()
        self.delivered = []
        self.batcher = CaptureBatcher(
            self.source,
            on_batch_ready=self.delivered.append,
            interval_ms=60_000,
            executor=InlineExecutor(),
        )

    def tearDown(self):
        self.batcher.close()

    def test_start_captures_immediately(self):
        """start() grabs the first frame before returning"""
        self.batcher.start()

        self.assertEqual(self.batcher.state, CaptureState.CAPTURING)
        self.assertEqual(self.batcher.frame_count, 1)
        self.assertEqual(self.source.calls, 1)

    def test_start_then_stop_leaves_nothing(self):
        """Stopping clears the batch and never fires the observer"""
        self.batcher.start()
        self.batcher._on_tick()
        self.batcher.stop()

        self.assertEqual(self.batcher.state, CaptureState.IDLE)
        self.assertEqual(self.batcher.frame_count, 0)
        self.assertEqual(self.batcher.submit_batch(), [])
        self.assertEqual(self.delivered, [])

    def test_ticks_then_submit_delivers_frames_in_order(self):
        """N ticks after start deliver N+1 frames, oldest first, in one event"""
        self.batcher.start()
        for _ in range(4):
            self.batcher._on_tick()

        batch = self.batcher.submit_batch()

        expected = [f"frame-{i}".encode() for i in range(5)]
        self.assertEqual(batch, expected)
        self.assertEqual(self.delivered, [expected])
        self.assertEqual(self.batcher.frame_count, 0)
        self.assertTrue(self.batcher.is_capturing)

    def test_empty_submit_is_noop(self):
        """Submitting an empty batch returns [] and fires no event"""
        self.assertEqual(self.batcher.submit_batch(), [])

        self.batcher.start()
        self.batcher.submit_batch()
        self.assertEqual(self.batcher.submit_batch(), [])
        self.assertEqual(len(self.delivered), 1)

    def test_delivered_snapshot_is_not_mutated_by_later_ticks(self):
        """Frames captured after a submit go into the next batch"""
        self.batcher.start()
        first = self.batcher.submit_batch()
        self.batcher._on_tick()
        self.batcher._on_tick()

        self.assertEqual(first, [b"frame-0"])
        self.assertEqual(self.batcher.submit_batch(), [b"frame-1", b"frame-2"])

    def test_observer_runs_outside_the_lock(self):
        """The observer may call back into the batcher"""
        seen = []
        batcher = CaptureBatcher(
            FakeFrameSource(),
            on_batch_ready=lambda frames: seen.append((len(frames), batcher.frame_count)),
            interval_ms=60_000,
            executor=InlineExecutor(),
        )
        try:
            batcher.start()
            batcher.submit_batch()
        finally:
            batcher.close()

        self.assertEqual(seen, [(1, 0)])

    def test_start_failure_raises_and_arms_nothing(self):
        """A failing first capture surfaces as CaptureUnavailableError"""
        batcher = CaptureBatcher(FakeFrameSource(fail_on={0}), interval_ms=60_000, executor=InlineExecutor())

        with self.assertRaises(CaptureUnavailableError):
            batcher.start()

        self.assertEqual(batcher.state, CaptureState.IDLE)
        self.assertIsNone(batcher._timer_thread)
        batcher.close()

    def test_start_while_capturing_is_rejected(self):
        self.batcher.start()
        with self.assertRaises(AlreadyCapturingError):
            self.batcher.start()

    def test_tick_failure_is_swallowed(self):
        """A failed tick does not stop capture or touch the batch"""
        source = FakeFrameSource(fail_on={1})
        batcher = CaptureBatcher(source, interval_ms=60_000, executor=InlineExecutor())
        try:
            batcher.start()
            batcher._on_tick()
            batcher._on_tick()

            self.assertTrue(batcher.is_capturing)
            self.assertEqual(batcher.submit_batch(), [b"frame-0", b"frame-2"])
        finally:
            batcher.close()

    def test_capture_finishing_after_stop_is_discarded(self):
        """An in-flight capture must not append to a stopped batcher"""
        executor = DeferredExecutor()
        batcher = CaptureBatcher(self.source, interval_ms=60_000, executor=executor)
        batcher.start()
        batcher._on_tick()
        batcher.stop()

        executor.run_all()

        self.assertEqual(batcher.frame_count, 0)

        # A new session does not receive the stale frame either
        batcher.start()
        executor.run_all()
        self.assertEqual(batcher.submit_batch(), [b"frame-2"])
        batcher.close()

    def test_tick_skipped_while_capture_in_flight(self):
        executor = DeferredExecutor()
        batcher = CaptureBatcher(self.source, interval_ms=60_000, executor=executor)
        batcher.start()

        batcher._on_tick()
        batcher._on_tick()
        self.assertEqual(len(executor.jobs), 1)

        executor.run_all()
        batcher._on_tick()
        self.assertEqual(len(executor.jobs), 1)
        batcher.close()

    def test_clear_drops_frames_without_event(self):
        self.batcher.start()
        self.batcher._on_tick()
        self.batcher.clear()

        self.assertEqual(self.batcher.frame_count, 0)
        self.assertEqual(self.delivered, [])
        self.assertTrue(self.batcher.is_capturing)

    def test_restored_frames_go_first(self):
        self.batcher.start()
        unsent = self.batcher.submit_batch()
        self.batcher._on_tick()
        self.batcher.restore(unsent)

        self.assertEqual(self.batcher.submit_batch(), [b"frame-0", b"frame-1"])

    def test_restore_after_stop_is_dropped(self):
        self.batcher.start()
        unsent = self.batcher.submit_batch()
        self.batcher.stop()
        self.batcher.restore(unsent)

        self.assertEqual(self.batcher.frame_count, 0)

    def test_stop_is_idempotent(self):
        self.batcher.stop()
        self.batcher.start()
        self.batcher.stop()
        self.batcher.stop()
        self.assertEqual(self.batcher.state, CaptureState.IDLE)

    def test_interval_from_settings(self):
        """The interval is read from settings and floored at 1ms"""
        provider = SettingsProvider(Settings(capture_interval_seconds=2.5))
        batcher = CaptureBatcher(self.source, provider)
        self.assertEqual(batcher.interval_ms(), 2500)

        provider.update(capture_interval_seconds=0)
        self.assertEqual(batcher.interval_ms(), 1)
        batcher.close()

    def test_timer_captures_in_background(self):
        """With a real timer and worker, frames accumulate on their own"""
        batcher = CaptureBatcher(FakeFrameSource(), interval_ms=10)
        try:
            batcher.start()
            deadline = time.monotonic() + 5
            while batcher.frame_count < 3 and time.monotonic() < deadline:
                time.sleep(0.01)
            batch = batcher.submit_batch()
        finally:
            batcher.close()

        self.assertGreaterEqual(len(batch), 3)
        self.assertEqual(batch[0], b"frame-0")
        self.assertEqual(batch, sorted(batch, key=lambda f: int(f.split(b"-")[1])))


if __name__ == "__main__":
    unittest.main()
