#!/usr/bin/env python3
"""
Conversation History for Screen Agent

This module holds the turn model used by the orchestrator and the ordered
history it owns. Turns keep the logical role (`user`, `model`, `tool`);
the wire role is only chosen when a turn is converted to request content.
A model turn that requests functions must be followed by a tool turn that
answers every call by name before any other model turn is added.

This module is part of the Core Layer and should have no dependencies on
Presentation or Integration layers.

Sample input:
- history.append(ConversationTurn.user("What is on screen?", [jpeg_bytes]))
- history.to_contents()

Expected output:
- [Content(role="user", parts=[Part(text=...), Part(inline_data=...)])]
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from screen_agent.core.protocol import Content, FunctionCall, Part


class Role(str, Enum):
    USER = "user"
    MODEL = "model"
    TOOL = "tool"

    @property
    def wire_role(self) -> str:
        # Function results travel back with the user role
        return "model" if self is Role.MODEL else "user"


class ConversationTurn(BaseModel):
    """One turn of the conversation with its ordered parts."""

    model_config = ConfigDict(frozen=True)

    role: Role
    parts: Tuple[Part, ...] = Field(default_factory=tuple)

    @classmethod
    def user(cls, prompt: Optional[str], images: Sequence[Union[bytes, str]] = ()) -> "ConversationTurn":
        """Text part first (omitted when blank), then one inline image part per image."""
        parts: List[Part] = []
        if prompt and prompt.strip():
            parts.append(Part.from_text(prompt))
        parts.extend(Part.from_image(image) for image in images)
        return cls(role=Role.USER, parts=tuple(parts))

    @classmethod
    def from_content(cls, content: Content) -> "ConversationTurn":
        return cls(role=Role.MODEL, parts=tuple(content.parts))

    @classmethod
    def tool_results(cls, results: Sequence[Tuple[str, dict]]) -> "ConversationTurn":
        parts = tuple(Part.from_function_response(name, response) for name, response in results)
        return cls(role=Role.TOOL, parts=parts)

    @property
    def function_calls(self) -> List[FunctionCall]:
        return [part.function_call for part in self.parts if part.function_call is not None]

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.parts if part.text)

    @property
    def image_count(self) -> int:
        return sum(1 for part in self.parts if part.inline_data is not None)

    def to_content(self) -> Content:
        return Content(role=self.role.wire_role, parts=list(self.parts))


class ConversationHistory:
    """
    Ordered list of turns owned by one orchestrator.

    Appending is the normal path; `reset()` empties the history and
    `truncate()` rolls back to a checkpoint returned by `checkpoint()`.
    """

    def __init__(self) -> None:
        self._turns: List[ConversationTurn] = []

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self):
        return iter(tuple(self._turns))

    @property
    def turns(self) -> Tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    def append(self, turn: ConversationTurn) -> None:
        if turn.role is Role.MODEL and self._turns:
            last = self._turns[-1]
            if last.role is Role.MODEL and last.function_calls:
                raise ValueError("A model turn with function calls must be answered by a tool turn first")
        if turn.role is Role.TOOL:
            pending = self._turns[-1].function_calls if self._turns else []
            answered = [part.function_response.name for part in turn.parts if part.function_response]
            if [call.name for call in pending] != answered:
                raise ValueError(
                    f"Tool turn must answer {[call.name for call in pending]} in order, got {answered}"
                )
        self._turns.append(turn)

    def checkpoint(self) -> int:
        return len(self._turns)

    def truncate(self, checkpoint: int) -> None:
        del self._turns[checkpoint:]

    def reset(self) -> None:
        self._turns.clear()

    def to_contents(self) -> List[Content]:
        return [turn.to_content() for turn in self._turns]


class ExchangeRecord(BaseModel):
    """A completed respond() call as shown in the conversation log."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    answer: str
    image_count: int = 0
    timestamp: datetime = Field(default_factory=datetime.now)
