#!/usr/bin/env python3
"""
Screen Agent Session

This module wires a capture batcher to a conversation orchestrator and
decides what each question is sent with:

- capturing, screen included: the pending batch is submitted and capture continues
- capturing, screen excluded: the pending batch is dropped, text only
- not capturing, capture-on-send enabled: one fresh frame is captured
- otherwise: text only

Batches reach the session through a queue fed by the batcher's observer.
Every batch still waiting in the queue is sent, oldest first, so frames
submitted outside of `ask()` go out with the next question in capture order.
A batch that cannot be sent (busy, not configured) is put back.

This module is part of the Core Layer and should have no dependencies on
Presentation or Integration layers.

Sample input:
- session = ScreenAgentSession(SettingsProvider.from_env())
- session.start_capturing(); await asyncio.sleep(3)
- await session.ask("What is this error dialog?")

Expected output:
- The model's answer about the frames captured over those three seconds
"""

import asyncio
import queue
from typing import Callable, List, Optional, Tuple

from loguru import logger

from screen_agent.core.batcher import CaptureBatcher
from screen_agent.core.config import SettingsProvider
from screen_agent.core.errors import BusyError, EmptyRequestError, NotConfiguredError
from screen_agent.core.frame_source import FrameSource, ScreenFrameSource
from screen_agent.core.history import ConversationTurn, ExchangeRecord
from screen_agent.core.orchestrator import ConversationOrchestrator

AnswerHook = Callable[[str, str], None]


class ScreenAgentSession:
    """
    Headless controller for capture and question answering.

    Args:
        settings: Shared settings provider
        frame_source: Screen grabber; MSS on the primary monitor by default
        batcher: Capture batcher; built around frame_source when omitted
        orchestrator: Conversation orchestrator; built from settings when omitted
        on_answer: Called with (prompt, answer) after every answered question
    """

    def __init__(
        self,
        settings: SettingsProvider,
        frame_source: Optional[FrameSource] = None,
        batcher: Optional[CaptureBatcher] = None,
        orchestrator: Optional[ConversationOrchestrator] = None,
        on_answer: Optional[AnswerHook] = None,
    ) -> None:
        self._settings = settings
        self._batches: "queue.Queue[List[bytes]]" = queue.Queue()
        if batcher is None:
            batcher = CaptureBatcher(
                frame_source or ScreenFrameSource(), settings, on_batch_ready=self._batches.put
            )
        self._batcher = batcher
        self._orchestrator = orchestrator or ConversationOrchestrator(settings)
        self._on_answer = on_answer

    @property
    def batcher(self) -> CaptureBatcher:
        return self._batcher

    @property
    def orchestrator(self) -> ConversationOrchestrator:
        return self._orchestrator

    @property
    def is_capturing(self) -> bool:
        return self._batcher.is_capturing

    @property
    def history(self) -> Tuple[ConversationTurn, ...]:
        return self._orchestrator.history

    @property
    def exchanges(self) -> Tuple[ExchangeRecord, ...]:
        return self._orchestrator.exchanges

    def start_capturing(self) -> None:
        self._batcher.start()

    def _drain_batches(self) -> List[List[bytes]]:
        batches = []
        while True:
            try:
                batches.append(self._batches.get_nowait())
            except queue.Empty:
                return batches

    def _take_pending_batch(self) -> List[bytes]:
        snapshot = self._batcher.submit_batch()
        batches = self._drain_batches()
        if snapshot and not any(batch is snapshot for batch in batches):
            # Batcher supplied without the session's observer
            batches.append(snapshot)
        return [frame for batch in batches for frame in batch]

    async def ask(self, prompt: str, include_screen: bool = True) -> str:
        """
        Answer a question, attaching screen frames according to the capture state.

        Raises:
            EmptyRequestError: Blank prompt
            NotConfiguredError: No API key (the pending batch is left untouched)
            CaptureUnavailableError: A capture-on-send frame could not be grabbed
            BusyError: Another question is still being answered (the pending batch is kept)
        """
        if not prompt or not prompt.strip():
            raise EmptyRequestError("A prompt is required")
        settings = self._settings.current()
        if not settings.is_configured:
            raise NotConfiguredError()
        if self._orchestrator.is_busy:
            raise BusyError()

        frames: List[bytes] = []
        submitted = False
        if self._batcher.is_capturing:
            if include_screen:
                frames = self._take_pending_batch()
                submitted = True
            else:
                self._drain_batches()
                self._batcher.clear()
        elif include_screen and settings.capture_on_send:
            frames = [await asyncio.to_thread(self._batcher.capture_single)]

        logger.debug(f"Asking with {len(frames)} frame(s)")
        try:
            answer = await self._orchestrator.respond(frames, prompt)
        except (BusyError, NotConfiguredError):
            if submitted:
                self._batcher.restore(frames)
            raise
        if self._on_answer is not None:
            self._on_answer(prompt, answer)
        return answer

    async def stop_capturing(self, prompt: Optional[str] = None) -> Optional[str]:
        """Stop capturing, first sending the pending batch with `prompt` when one is given."""
        answer = None
        try:
            if prompt and prompt.strip() and self._batcher.is_capturing:
                answer = await self.ask(prompt)
        finally:
            self._batcher.stop()
            self._drain_batches()
        return answer

    def reset(self) -> None:
        self._orchestrator.reset_history()
        self._drain_batches()
        self._batcher.clear()

    async def aclose(self) -> None:
        self._batcher.close()
        await self._orchestrator.aclose()
