# src/screen_agent/core/config.py
"""
Configuration Module for Screen Agent.

Description:
This module centralizes the settings consumed by the capture batcher and
the conversation orchestrator: API key, model name, system prompt, capture
interval, tool mode and the capture-on-send flag. Values are read from
environment variables (optionally loaded from a .env file) into an
immutable `Settings` snapshot. A `SettingsProvider` holds the current
snapshot and is injected into every component that needs it.

Third-Party Package Documentation:
- python-dotenv: https://github.com/theskumar/python-dotenv
- Pydantic: https://docs.pydantic.dev/

Sample Input:
Environment variables (e.g., in .env file or exported):
SCREEN_AGENT_API_KEY="AIza..."
SCREEN_AGENT_MODEL="gemini-2.0-flash-exp"
SCREEN_AGENT_CAPTURE_INTERVAL=1
SCREEN_AGENT_TOOL_MODE="function_calling"
SCREEN_AGENT_CAPTURE_ON_SEND=true

Expected Output:
>>> provider = SettingsProvider(load_settings())
>>> provider.current().capture_interval_ms
1000
"""

import os
import threading
from enum import Enum
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from screen_agent.core.constants import (
    API_BASE_URL,
    DEFAULT_CAPTURE_INTERVAL_SECONDS,
    DEFAULT_MODEL,
    DEFAULT_SYSTEM_PROMPT,
    MAX_RETRIES,
    MAX_TOOL_DEPTH,
    MIN_CAPTURE_INTERVAL_MS,
    REQUEST_TIMEOUT_SECONDS,
)


class ToolMode(str, Enum):
    """Tool set attached to text-only requests."""

    NONE = "none"
    GOOGLE_SEARCH = "google_search"
    FUNCTION_CALLING = "function_calling"


class Settings(BaseModel):
    """Immutable snapshot of the current configuration."""

    model_config = ConfigDict(frozen=True)

    api_key: str = Field("", description="Gemini API key.")
    model: str = Field(DEFAULT_MODEL, description="Model name used in the endpoint path.")
    system_prompt: str = Field(DEFAULT_SYSTEM_PROMPT, description="System instruction text.")
    capture_interval_seconds: float = Field(
        DEFAULT_CAPTURE_INTERVAL_SECONDS, ge=0, description="Seconds between capture ticks."
    )
    tool_mode: ToolMode = Field(ToolMode.FUNCTION_CALLING, description="Tools for text-only requests.")
    capture_on_send: bool = Field(True, description="Grab a fresh frame when sending while not capturing.")
    request_timeout_seconds: float = Field(REQUEST_TIMEOUT_SECONDS, gt=0)
    max_tool_depth: int = Field(MAX_TOOL_DEPTH, ge=1)
    max_retries: int = Field(MAX_RETRIES, ge=1)
    api_base_url: str = Field(API_BASE_URL)

    @property
    def capture_interval_ms(self) -> int:
        return max(MIN_CAPTURE_INTERVAL_MS, int(round(self.capture_interval_seconds * 1000)))

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key.strip())


# Environment variable names
ENV_API_KEY = "SCREEN_AGENT_API_KEY"
ENV_API_KEY_FALLBACK = "GEMINI_API_KEY"
ENV_MODEL = "SCREEN_AGENT_MODEL"
ENV_SYSTEM_PROMPT = "SCREEN_AGENT_SYSTEM_PROMPT"
ENV_CAPTURE_INTERVAL = "SCREEN_AGENT_CAPTURE_INTERVAL"
ENV_TOOL_MODE = "SCREEN_AGENT_TOOL_MODE"
ENV_CAPTURE_ON_SEND = "SCREEN_AGENT_CAPTURE_ON_SEND"
ENV_REQUEST_TIMEOUT = "SCREEN_AGENT_REQUEST_TIMEOUT"
ENV_MAX_TOOL_DEPTH = "SCREEN_AGENT_MAX_TOOL_DEPTH"
ENV_MAX_RETRIES = "SCREEN_AGENT_MAX_RETRIES"
ENV_API_BASE = "SCREEN_AGENT_API_BASE"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def load_settings(
    env_file: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build a Settings snapshot from environment variables.

    Args:
        env_file: Optional path to a .env file. When omitted, python-dotenv
            searches the working directory tree.
        environ: Mapping to read instead of os.environ (no .env loading is
            done in that case).

    Returns:
        Settings: The loaded configuration.
    """
    if environ is None:
        # Existing environment variables win over .env entries
        load_dotenv(env_file)
        environ = os.environ

    values: dict = {}
    api_key = environ.get(ENV_API_KEY) or environ.get(ENV_API_KEY_FALLBACK)
    if api_key:
        values["api_key"] = api_key.strip()
    if environ.get(ENV_MODEL):
        values["model"] = environ[ENV_MODEL].strip()
    if environ.get(ENV_SYSTEM_PROMPT):
        values["system_prompt"] = environ[ENV_SYSTEM_PROMPT]
    if environ.get(ENV_CAPTURE_INTERVAL):
        values["capture_interval_seconds"] = float(environ[ENV_CAPTURE_INTERVAL])
    if environ.get(ENV_TOOL_MODE):
        values["tool_mode"] = ToolMode(environ[ENV_TOOL_MODE].strip().lower())
    if environ.get(ENV_CAPTURE_ON_SEND):
        values["capture_on_send"] = _parse_bool(environ[ENV_CAPTURE_ON_SEND])
    if environ.get(ENV_REQUEST_TIMEOUT):
        values["request_timeout_seconds"] = float(environ[ENV_REQUEST_TIMEOUT])
    if environ.get(ENV_MAX_TOOL_DEPTH):
        values["max_tool_depth"] = int(environ[ENV_MAX_TOOL_DEPTH])
    if environ.get(ENV_MAX_RETRIES):
        values["max_retries"] = int(environ[ENV_MAX_RETRIES])
    if environ.get(ENV_API_BASE):
        values["api_base_url"] = environ[ENV_API_BASE].strip()

    settings = Settings(**values)
    logger.debug(
        f"Loaded settings: model={settings.model}, tool_mode={settings.tool_mode.value}, "
        f"interval={settings.capture_interval_ms}ms, configured={settings.is_configured}"
    )
    return settings


class SettingsProvider:
    """
    Holder of the current Settings snapshot.

    Components call `current()` whenever they need configuration, so an
    `update()` made by the shell takes effect on the next request or the
    next `start()` without rebuilding anything.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings if settings is not None else Settings()
        self._lock = threading.Lock()

    def current(self) -> Settings:
        with self._lock:
            return self._settings

    def update(self, **changes: Any) -> Settings:
        with self._lock:
            merged = self._settings.model_dump()
            merged.update(changes)
            self._settings = Settings(**merged)
            return self._settings

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "SettingsProvider":
        return cls(load_settings(env_file))
