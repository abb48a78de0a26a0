#!/usr/bin/env python3
"""
Capture Batcher

This module periodically captures screen frames into an accumulating batch
and hands the whole batch off on demand.

States are IDLE and CAPTURING. `start()` captures one frame immediately on
the calling thread, then arms a repeating timer. Every tick hands a capture
job to a single-worker executor; a tick that finds the previous capture
still running is skipped. `submit_batch()` snapshots and clears the batch
under one lock and delivers the snapshot to the observer outside it.
`stop()` bumps a generation counter, so a capture that finishes after the
stop is discarded instead of leaking into the next session.

This module is part of the Core Layer and should have no dependencies on
Presentation or Integration layers.

Sample input:
- batcher = CaptureBatcher(ScreenFrameSource(), SettingsProvider(), on_batch_ready=print)
- batcher.start(); time.sleep(3); batcher.submit_batch()

Expected output:
- on_batch_ready called once with about 4 JPEG frames, oldest first
"""

import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from enum import Enum
from typing import Callable, List, Optional

from loguru import logger

from screen_agent.core.config import SettingsProvider
from screen_agent.core.constants import MIN_CAPTURE_INTERVAL_MS
from screen_agent.core.errors import AlreadyCapturingError, CaptureUnavailableError
from screen_agent.core.frame_source import FrameSource

BatchObserver = Callable[[List[bytes]], None]


class CaptureState(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"


class CaptureBatcher:
    """
    Background screen capture into a batch that is handed off atomically.

    Args:
        frame_source: Produces one encoded frame per call
        settings: Provider read on every start() for the capture interval
        on_batch_ready: Observer receiving each non-empty submitted batch
        interval_ms: Fixed interval overriding the settings value
        executor: Executor running tick captures; a single-worker pool by default
    """

    def __init__(
        self,
        frame_source: FrameSource,
        settings: Optional[SettingsProvider] = None,
        on_batch_ready: Optional[BatchObserver] = None,
        interval_ms: Optional[int] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self._frame_source = frame_source
        self._settings = settings or SettingsProvider()
        self._on_batch_ready = on_batch_ready
        self._interval_override = interval_ms

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="screen-capture")

        self._lock = threading.Lock()
        self._frames: List[bytes] = []
        self._state = CaptureState.IDLE
        self._generation = 0
        self._in_flight = False
        self._stop_event: Optional[threading.Event] = None
        self._timer_thread: Optional[threading.Thread] = None

    @property
    def state(self) -> CaptureState:
        with self._lock:
            return self._state

    @property
    def is_capturing(self) -> bool:
        return self.state is CaptureState.CAPTURING

    @property
    def frame_count(self) -> int:
        with self._lock:
            return len(self._frames)

    def interval_ms(self) -> int:
        if self._interval_override is not None:
            return max(MIN_CAPTURE_INTERVAL_MS, int(self._interval_override))
        return self._settings.current().capture_interval_ms

    def capture_single(self) -> bytes:
        """
        Capture one frame outside of any batch.

        Raises:
            CaptureUnavailableError: The frame source failed
        """
        try:
            return self._frame_source.capture()
        except CaptureUnavailableError:
            raise
        except Exception as e:
            raise CaptureUnavailableError(f"Unable to capture the screen: {e}") from e

    def start(self) -> None:
        """
        Begin capturing.

        Raises:
            AlreadyCapturingError: start() was called while capturing
            CaptureUnavailableError: The immediate first capture failed; no timer is armed
        """
        if self.is_capturing:
            raise AlreadyCapturingError()

        first_frame = self.capture_single()
        interval_ms = self.interval_ms()

        with self._lock:
            if self._state is CaptureState.CAPTURING:
                raise AlreadyCapturingError()
            self._generation += 1
            generation = self._generation
            self._frames = [first_frame]
            self._state = CaptureState.CAPTURING
            stop_event = threading.Event()
            self._stop_event = stop_event
            timer = threading.Thread(
                target=self._run_timer,
                args=(generation, stop_event, interval_ms / 1000.0),
                name="screen-capture-timer",
                daemon=True,
            )
            self._timer_thread = timer

        timer.start()
        logger.info(f"Screen capture started (interval {interval_ms}ms)")

    def _run_timer(self, generation: int, stop_event: threading.Event, interval_s: float) -> None:
        while not stop_event.wait(interval_s):
            self._on_tick(generation)

    def _on_tick(self, generation: Optional[int] = None) -> None:
        with self._lock:
            if self._state is not CaptureState.CAPTURING:
                return
            if generation is not None and generation != self._generation:
                return
            if self._in_flight:
                logger.debug("Previous capture still running, skipping tick")
                return
            self._in_flight = True
            current = self._generation

        try:
            self._executor.submit(self._capture_job, current)
        except RuntimeError as e:
            # Executor already shut down
            with self._lock:
                self._in_flight = False
            logger.warning(f"Capture tick dropped: {e}")

    def _capture_job(self, generation: int) -> None:
        frame: Optional[bytes] = None
        try:
            frame = self._frame_source.capture()
        except Exception as e:
            logger.warning(f"Screen capture failed during tick: {e}")

        with self._lock:
            self._in_flight = False
            if frame is None:
                return
            if generation != self._generation or self._state is not CaptureState.CAPTURING:
                logger.debug("Discarding frame captured after stop")
                return
            self._frames.append(frame)

    def submit_batch(self) -> List[bytes]:
        """
        Hand the current batch to the observer and start a new one.

        Capturing continues. An empty batch is a no-op and fires no event.

        Returns:
            List[bytes]: The delivered frames, oldest first (empty on no-op)
        """
        with self._lock:
            snapshot = self._frames
            self._frames = []

        if not snapshot:
            logger.debug("Submit requested with an empty batch")
            return []

        logger.info(f"Submitting batch of {len(snapshot)} frame(s)")
        if self._on_batch_ready is not None:
            self._on_batch_ready(snapshot)
        return snapshot

    def clear(self) -> None:
        with self._lock:
            self._frames = []

    def restore(self, frames: List[bytes]) -> None:
        """
        Put back a submitted batch that could not be sent.

        The frames go in front of anything captured since, so capture order
        is kept. Nothing is restored once capturing has stopped.
        """
        if not frames:
            return
        with self._lock:
            if self._state is not CaptureState.CAPTURING:
                logger.debug(f"Not capturing, dropping {len(frames)} returned frame(s)")
                return
            self._frames = list(frames) + self._frames
        logger.info(f"Restored {len(frames)} unsent frame(s) to the batch")

    def stop(self) -> None:
        """Disarm the timer and drop the batch. Safe to call repeatedly."""
        with self._lock:
            was_capturing = self._state is CaptureState.CAPTURING
            self._state = CaptureState.IDLE
            self._generation += 1
            self._frames = []
            stop_event, self._stop_event = self._stop_event, None
            timer, self._timer_thread = self._timer_thread, None

        if stop_event is not None:
            stop_event.set()
        if timer is not None and timer is not threading.current_thread():
            timer.join(timeout=1.0)
        if was_capturing:
            logger.info("Screen capture stopped")

    def close(self) -> None:
        self.stop()
        if self._owns_executor:
            self._executor.shutdown(wait=False)
