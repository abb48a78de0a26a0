#!/usr/bin/env python3
"""
Conversation Orchestrator

This module owns the running conversation with the model. Given a batch of
frames and a prompt it appends the user turn, sends the full history with
the tool set chosen for the request, and keeps resolving function calls
until the model answers in plain text.

Rules applied on every exchange:
- A request carrying images starts a fresh conversation.
- Requests with images attach the Google Search tool; text-only requests
  and every function-call follow-up use the configured tool mode.
- Function-call rounds are bounded by `max_tool_depth`.
- Failures inside the loop become the returned answer text and the
  exchange is rolled back out of the history.

This module is part of the Core Layer and should have no dependencies on
Presentation or Integration layers.

Sample input:
- orchestrator = ConversationOrchestrator(SettingsProvider.from_env())
- await orchestrator.respond([jpeg_bytes], "What error is shown?")

Expected output:
- "The dialog reports that the file is read-only. ..." (bold markers removed)
"""

import asyncio
import threading
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from loguru import logger

from screen_agent.core.client import GeminiClient
from screen_agent.core.config import SettingsProvider, ToolMode
from screen_agent.core.constants import NO_RESPONSE_TEXT
from screen_agent.core.errors import (
    BusyError,
    EmptyRequestError,
    ExchangeError,
    NotConfiguredError,
    ToolLoopExceededError,
)
from screen_agent.core.history import ConversationHistory, ConversationTurn, ExchangeRecord
from screen_agent.core.protocol import GenerateContentRequest, Tool
from screen_agent.core.tools import ToolRegistry, default_registry
from screen_agent.core.utils import strip_emphasis, truncate_large_value

ImageInput = Union[bytes, str]


class RequestMode(str, Enum):
    """Tool set attached to one outgoing request."""

    GOOGLE_SEARCH = "google_search"
    FUNCTION_CALLING = "function_calling"
    NONE = "none"


def request_mode(has_images: bool, tool_mode: ToolMode) -> RequestMode:
    if has_images:
        return RequestMode.GOOGLE_SEARCH
    return RequestMode(tool_mode.value)


class ConversationOrchestrator:
    """
    Multi-turn conversation with tool-call resolution.

    Args:
        settings: Provider read at the start of every exchange
        registry: Tools the model may call; the built-in registry by default
        client: Endpoint client; one reading the same settings by default
    """

    def __init__(
        self,
        settings: SettingsProvider,
        registry: Optional[ToolRegistry] = None,
        client: Optional[GeminiClient] = None,
    ) -> None:
        self._settings = settings
        self._registry = registry if registry is not None else default_registry()
        self._client = client or GeminiClient(settings)
        self._history = ConversationHistory()
        self._exchanges: List[ExchangeRecord] = []
        self._busy = threading.Lock()

    @property
    def history(self) -> Tuple[ConversationTurn, ...]:
        return self._history.turns

    @property
    def exchanges(self) -> Tuple[ExchangeRecord, ...]:
        return tuple(self._exchanges)

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def is_busy(self) -> bool:
        return self._busy.locked()

    def reset_history(self) -> None:
        if not self._busy.acquire(blocking=False):
            raise BusyError("Cannot reset the conversation while a request is being processed")
        try:
            self._history.reset()
        finally:
            self._busy.release()
        logger.info("Conversation history cleared")

    def _tools_for(self, mode: RequestMode) -> Optional[List[Tool]]:
        if mode is RequestMode.GOOGLE_SEARCH:
            return [Tool.google_search_tool()]
        if mode is RequestMode.FUNCTION_CALLING:
            declarations = self._registry.declarations()
            return [Tool.functions_tool(declarations)] if declarations else None
        return None

    async def respond(self, images: Optional[Sequence[ImageInput]] = None, prompt: str = "") -> str:
        """
        Run one exchange and return the answer text.

        Args:
            images: Encoded frames, oldest first; str items are taken as base64
            prompt: User question; may be blank when images are given

        Returns:
            str: The model's answer, or a readable error text when the exchange failed

        Raises:
            NotConfiguredError: No API key is configured (nothing is sent)
            EmptyRequestError: Blank prompt and no images
            BusyError: Another exchange is in flight
        """
        settings = self._settings.current()
        if not settings.is_configured:
            raise NotConfiguredError()

        frames = list(images or [])
        prompt = prompt or ""
        if not prompt.strip() and not frames:
            raise EmptyRequestError()

        if not self._busy.acquire(blocking=False):
            raise BusyError()
        try:
            answer = await self._run_exchange(settings, frames, prompt)
        finally:
            self._busy.release()

        self._exchanges.append(ExchangeRecord(prompt=prompt, answer=answer, image_count=len(frames)))
        return answer

    def respond_blocking(self, images: Optional[Sequence[ImageInput]] = None, prompt: str = "") -> str:
        return asyncio.run(self.respond(images, prompt))

    async def _run_exchange(self, settings, frames: List[ImageInput], prompt: str) -> str:
        if frames:
            self._history.reset()
            logger.debug("Request carries images, starting a new conversation")

        checkpoint = self._history.checkpoint()
        self._history.append(ConversationTurn.user(prompt, frames))
        logger.info(f"Sending prompt {truncate_large_value(prompt)!r} with {len(frames)} image(s)")

        mode = request_mode(bool(frames), settings.tool_mode)
        depth = 0
        try:
            while True:
                request = GenerateContentRequest.build(
                    settings.system_prompt, self._history.to_contents(), self._tools_for(mode)
                )
                turn = ConversationTurn.from_content(await self._client.generate(request))
                calls = turn.function_calls

                if not calls:
                    self._history.append(turn)
                    text = turn.text
                    return strip_emphasis(text if text.strip() else NO_RESPONSE_TEXT)

                depth += 1
                if depth > settings.max_tool_depth:
                    raise ToolLoopExceededError(settings.max_tool_depth)

                self._history.append(turn)
                results = []
                for call in calls:
                    results.append((call.name, await self._registry.dispatch(call.name, call.args)))
                self._history.append(ConversationTurn.tool_results(results))

                # Follow-ups never re-attach images
                mode = request_mode(False, settings.tool_mode)
        except ExchangeError as e:
            logger.error(f"Exchange failed: {e}")
            self._history.truncate(checkpoint)
            return strip_emphasis(e.as_answer())
        except Exception:
            logger.exception("Unexpected failure during exchange, rolling back")
            self._history.truncate(checkpoint)
            raise

    async def aclose(self) -> None:
        await self._client.aclose()
