"""
Error Taxonomy for Screen Agent

Two families live here:

- Precondition errors (`NotConfiguredError`, `EmptyRequestError`,
  `BusyError`, `AlreadyCapturingError`, `CaptureUnavailableError`) are
  raised to the caller before any side effect takes place.
- Exchange errors (`ExchangeError` and its subclasses) happen while the
  tool-use loop is running. The orchestrator never lets them escape
  `respond()`; it turns them into a displayable answer via `as_answer()`.
"""

from typing import Any, Optional

from screen_agent.core.constants import NO_RESPONSE_TEXT


class ScreenAgentError(Exception):
    """Base class for every error raised by this package."""


class NotConfiguredError(ScreenAgentError):
    """No API key is configured."""

    def __init__(self, message: str = "API key is not set") -> None:
        super().__init__(message)


class EmptyRequestError(ScreenAgentError):
    """A request carried neither text nor images."""

    def __init__(self, message: str = "A prompt or at least one image is required") -> None:
        super().__init__(message)


class BusyError(ScreenAgentError):
    """Another respond() call is already in flight."""

    def __init__(self, message: str = "A request is already being processed") -> None:
        super().__init__(message)


class CaptureUnavailableError(ScreenAgentError):
    """The frame source could not produce a frame."""


class AlreadyCapturingError(ScreenAgentError):
    """start() was called while the batcher was already capturing."""

    def __init__(self, message: str = "Screen capture is already running") -> None:
        super().__init__(message)


class ExchangeError(ScreenAgentError):
    """Failure inside the request / tool-call loop."""

    def as_answer(self) -> str:
        return str(self)


class TransportError(ExchangeError):
    """Network failure or non-success HTTP status from the model endpoint."""

    def __init__(self, detail: str, status_code: Optional[int] = None, body: str = "") -> None:
        self.detail = detail
        self.status_code = status_code
        self.body = body
        super().__init__(detail)

    def as_answer(self) -> str:
        if self.status_code is not None:
            return f"API error {self.status_code}: {self.body}"
        return f"Unable to process request: {self.detail}"


class ProtocolError(ExchangeError):
    """The endpoint answered, but the body could not be read as a response."""

    def __init__(self, detail: str, block_reason: Optional[str] = None) -> None:
        self.detail = detail
        self.block_reason = block_reason
        super().__init__(detail)

    def as_answer(self) -> str:
        if self.block_reason:
            return f"{NO_RESPONSE_TEXT} (blocked: {self.block_reason})"
        return NO_RESPONSE_TEXT


class UnknownToolError(ExchangeError):
    """The model asked for a tool that is not registered."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Unknown tool requested by the model: {tool_name}")


class ToolArgumentError(ExchangeError):
    """Function-call arguments do not match the tool's parameter schema."""

    def __init__(self, tool_name: str, reason: str) -> None:
        self.tool_name = tool_name
        self.reason = reason
        super().__init__(f"Invalid arguments for tool {tool_name}: {reason}")


class ToolExecutionError(ExchangeError):
    """A registered tool raised while running."""

    def __init__(self, tool_name: str, cause: Any) -> None:
        self.tool_name = tool_name
        self.cause = cause
        super().__init__(f"Tool {tool_name} failed: {cause}")


class ToolLoopExceededError(ExchangeError):
    """The model kept requesting tools past the configured depth."""

    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        super().__init__(f"Tool call limit exceeded: the model requested more than {max_depth} tool rounds")
