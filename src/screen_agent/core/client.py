#!/usr/bin/env python3
"""
Model Endpoint Client

This module sends `generateContent` requests to the Gemini REST endpoint
with httpx and turns the reply into the first candidate's content.

Transport failures (no HTTP status) and throttling or server statuses
(429, 500, 502, 503, 504) are retried with exponential backoff through
tenacity. Everything else fails on the first attempt:

- non-success status -> TransportError carrying status and body
- network failure     -> TransportError carrying the failure detail
- unserializable body -> TransportError, raised before the first attempt
- unreadable body     -> ProtocolError (with the block reason, if any)

This module is part of the Core Layer and should have no dependencies on
Presentation or Integration layers.

Third-Party Package Documentation:
- httpx: https://www.python-httpx.org/
- tenacity: https://tenacity.readthedocs.io/en/latest/

Sample input:
- await GeminiClient(provider).generate(GenerateContentRequest.build("Be brief.", [user_content]))

Expected output:
- Content(role="model", parts=[Part(text="Paris is the capital of France.")])
"""

import json
from typing import Optional

import httpx
from loguru import logger
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from screen_agent.core.config import Settings, SettingsProvider
from screen_agent.core.constants import RETRYABLE_STATUS_CODES
from screen_agent.core.errors import ProtocolError, TransportError
from screen_agent.core.protocol import Content, GenerateContentRequest, GenerateContentResponse
from screen_agent.core.utils import truncate_large_value


def _is_retryable(error: BaseException) -> bool:
    if not isinstance(error, TransportError):
        return False
    return error.status_code is None or error.status_code in RETRYABLE_STATUS_CODES


def _log_retry(retry_state) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(f"Model request failed (attempt {retry_state.attempt_number}), retrying: {error}")


def build_url(settings: Settings) -> str:
    return f"{settings.api_base_url.rstrip('/')}/{settings.model}:generateContent"


class GeminiClient:
    """
    Thin async wrapper around the generateContent endpoint.

    Args:
        settings: Provider read on every call for key, model, timeout and retries
        http_client: Optional shared httpx.AsyncClient; a short-lived client
            is opened per call when omitted
        retry_wait: tenacity wait strategy between attempts
    """

    def __init__(
        self,
        settings: SettingsProvider,
        http_client: Optional[httpx.AsyncClient] = None,
        retry_wait: Optional[wait_base] = None,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)
        self.calls = 0

    async def generate(self, request: GenerateContentRequest) -> Content:
        """
        Send one request and return the first candidate's content.

        Raises:
            TransportError: Network failure or non-success status after retries
            ProtocolError: The body has no usable candidate
        """
        settings = self._settings.current()
        url = build_url(settings)
        payload = request.to_wire()
        try:
            body = json.dumps(payload)
        except (TypeError, ValueError) as e:
            logger.error(f"Request body could not be serialized: {e}")
            raise TransportError(f"Request body could not be serialized: {e}") from e
        logger.debug(
            f"POST {url} with {len(request.contents)} turn(s), "
            f"tools={truncate_large_value(payload.get('tools'))}"
        )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(settings.max_retries),
            wait=self._retry_wait,
            retry=retry_if_exception(_is_retryable),
            before_sleep=_log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                response = await self._post(url, body, settings)

        return self._parse(response)

    async def _post(self, url: str, body: str, settings: Settings) -> httpx.Response:
        headers = {"Content-Type": "application/json", "x-goog-api-key": settings.api_key}
        timeout = settings.request_timeout_seconds
        self.calls += 1
        try:
            if self._http is not None:
                response = await self._http.post(url, content=body, headers=headers, timeout=timeout)
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.post(url, content=body, headers=headers)
        except httpx.HTTPError as e:
            detail = str(e) or type(e).__name__
            logger.error(f"Model request failed: {detail}")
            raise TransportError(detail) from e

        if not response.is_success:
            logger.error(f"Model endpoint returned {response.status_code}: {truncate_large_value(response.text)}")
            raise TransportError(
                f"HTTP {response.status_code}", status_code=response.status_code, body=response.text
            )
        return response

    @staticmethod
    def _parse(response: httpx.Response) -> Content:
        try:
            data = response.json()
        except ValueError as e:
            raise ProtocolError(f"Response body is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise ProtocolError(f"Unexpected response body type {type(data).__name__}")

        try:
            parsed = GenerateContentResponse.model_validate(data)
        except ValidationError as e:
            raise ProtocolError(f"Malformed response: {e.error_count()} validation error(s)") from e

        content = parsed.first_content()
        if content is None:
            block_reason = parsed.prompt_feedback.block_reason if parsed.prompt_feedback else None
            raise ProtocolError("Response contains no candidate content", block_reason=block_reason)
        return content

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
