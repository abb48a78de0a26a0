"""
Core Layer for Screen Agent

This package contains the capture and conversation logic: the capture
batcher, the conversation orchestrator with its tool registry, the wire
protocol models and the endpoint client.

The core layer is designed to be:
1. Independent of UI or integration concerns
2. Fully testable in isolation
3. Configured through an injected SettingsProvider

Usage:
    from screen_agent.core import ScreenAgentSession, SettingsProvider
    session = ScreenAgentSession(SettingsProvider.from_env())
    answer = asyncio.run(session.ask("What is on my screen?"))
"""

# Constants and configuration
from screen_agent.core.constants import IMAGE_SETTINGS, DEFAULT_MODEL, MAX_TOOL_DEPTH
from screen_agent.core.config import Settings, SettingsProvider, ToolMode, load_settings

# Errors
from screen_agent.core.errors import (
    ScreenAgentError,
    NotConfiguredError,
    EmptyRequestError,
    BusyError,
    CaptureUnavailableError,
    AlreadyCapturingError,
    ExchangeError,
    TransportError,
    ProtocolError,
    UnknownToolError,
    ToolArgumentError,
    ToolExecutionError,
    ToolLoopExceededError,
)

# Capture
from screen_agent.core.frame_source import FrameSource, ScreenFrameSource, get_monitors
from screen_agent.core.batcher import CaptureBatcher, CaptureState

# Conversation
from screen_agent.core.history import ConversationHistory, ConversationTurn, ExchangeRecord, Role
from screen_agent.core.tools import ToolDescriptor, ToolParameter, ToolRegistry, default_registry
from screen_agent.core.client import GeminiClient
from screen_agent.core.orchestrator import ConversationOrchestrator, RequestMode
from screen_agent.core.session import ScreenAgentSession

# Logging
from screen_agent.core.log_setup import setup_logger

__all__ = [
    # Constants and configuration
    'IMAGE_SETTINGS',
    'DEFAULT_MODEL',
    'MAX_TOOL_DEPTH',
    'Settings',
    'SettingsProvider',
    'ToolMode',
    'load_settings',

    # Errors
    'ScreenAgentError',
    'NotConfiguredError',
    'EmptyRequestError',
    'BusyError',
    'CaptureUnavailableError',
    'AlreadyCapturingError',
    'ExchangeError',
    'TransportError',
    'ProtocolError',
    'UnknownToolError',
    'ToolArgumentError',
    'ToolExecutionError',
    'ToolLoopExceededError',

    # Capture
    'FrameSource',
    'ScreenFrameSource',
    'get_monitors',
    'CaptureBatcher',
    'CaptureState',

    # Conversation
    'ConversationHistory',
    'ConversationTurn',
    'ExchangeRecord',
    'Role',
    'ToolDescriptor',
    'ToolParameter',
    'ToolRegistry',
    'default_registry',
    'GeminiClient',
    'ConversationOrchestrator',
    'RequestMode',
    'ScreenAgentSession',

    # Logging
    'setup_logger',
]
