#!/usr/bin/env python3
"""
Protocol Models for the Gemini generateContent Endpoint

This module defines Pydantic models for the request and response bodies
exchanged with the model endpoint. Field aliases carry the exact wire
names (camelCase, except `system_instruction`), so models are built with
Python names and serialized with `to_wire()`.

This module is part of the Core Layer and should have no dependencies on
Presentation or Integration layers.

Sample input:
- GenerateContentRequest.build(
      system_prompt="You are helpful.",
      contents=[Content(role="user", parts=[Part.from_text("Hi")])],
      tools=[Tool.google_search_tool()],
  )

Expected output (to_wire()):
- {
      "system_instruction": {"parts": [{"text": "You are helpful."}]},
      "contents": [{"role": "user", "parts": [{"text": "Hi"}]}],
      "tools": [{"googleSearch": {}}]
  }
"""

import base64
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from screen_agent.core.constants import IMAGE_SETTINGS


class WireModel(BaseModel):
    """Base for models that travel as JSON with aliased field names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class InlineData(WireModel):
    mime_type: str = Field(IMAGE_SETTINGS["MIME_TYPE"], alias="mimeType")
    data: str = Field(..., description="Base64-encoded image bytes.")


class FunctionCall(WireModel):
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)


class FunctionResponse(WireModel):
    name: str
    response: Dict[str, Any] = Field(default_factory=dict)


class Part(WireModel):
    """One content part: text, inline image, function call or function result."""

    text: Optional[str] = None
    inline_data: Optional[InlineData] = Field(None, alias="inlineData")
    function_call: Optional[FunctionCall] = Field(None, alias="functionCall")
    function_response: Optional[FunctionResponse] = Field(None, alias="functionResponse")

    @model_validator(mode="after")
    def _single_kind(self) -> "Part":
        populated = [
            value
            for value in (self.text, self.inline_data, self.function_call, self.function_response)
            if value is not None
        ]
        if len(populated) > 1:
            raise ValueError("A part must hold exactly one of text, inlineData, functionCall, functionResponse")
        return self

    @property
    def kind(self) -> Optional[str]:
        if self.text is not None:
            return "text"
        if self.inline_data is not None:
            return "inline_data"
        if self.function_call is not None:
            return "function_call"
        if self.function_response is not None:
            return "function_response"
        return None

    @classmethod
    def from_text(cls, text: str) -> "Part":
        return cls(text=text)

    @classmethod
    def from_image(cls, image: Union[bytes, str], mime_type: str = IMAGE_SETTINGS["MIME_TYPE"]) -> "Part":
        """Build an inline image part; str input is taken as already base64-encoded."""
        if isinstance(image, (bytes, bytearray)):
            data = base64.b64encode(bytes(image)).decode("utf-8")
        else:
            data = image
        return cls(inline_data=InlineData(mime_type=mime_type, data=data))

    @classmethod
    def from_function_call(cls, name: str, args: Optional[Dict[str, Any]] = None) -> "Part":
        return cls(function_call=FunctionCall(name=name, args=args or {}))

    @classmethod
    def from_function_response(cls, name: str, response: Dict[str, Any]) -> "Part":
        return cls(function_response=FunctionResponse(name=name, response=response))


class Content(WireModel):
    role: Optional[str] = None
    parts: List[Part] = Field(default_factory=list)


class SystemInstruction(WireModel):
    parts: List[Part] = Field(default_factory=list)


class ParameterProperty(WireModel):
    type: str
    description: Optional[str] = None
    enum: Optional[List[str]] = None


class FunctionParameters(WireModel):
    type: str = "object"
    properties: Dict[str, ParameterProperty] = Field(default_factory=dict)
    required: Optional[List[str]] = None


class FunctionDeclaration(WireModel):
    name: str
    description: str = ""
    parameters: FunctionParameters = Field(default_factory=FunctionParameters)


class Tool(WireModel):
    google_search: Optional[Dict[str, Any]] = Field(None, alias="googleSearch")
    function_declarations: Optional[List[FunctionDeclaration]] = Field(None, alias="functionDeclarations")

    @classmethod
    def google_search_tool(cls) -> "Tool":
        return cls(google_search={})

    @classmethod
    def functions_tool(cls, declarations: List[FunctionDeclaration]) -> "Tool":
        return cls(function_declarations=list(declarations))


class GenerateContentRequest(WireModel):
    system_instruction: Optional[SystemInstruction] = Field(None, alias="system_instruction")
    contents: List[Content] = Field(default_factory=list)
    tools: Optional[List[Tool]] = None

    @classmethod
    def build(
        cls,
        system_prompt: Optional[str],
        contents: List[Content],
        tools: Optional[List[Tool]] = None,
    ) -> "GenerateContentRequest":
        instruction = None
        if system_prompt:
            instruction = SystemInstruction(parts=[Part.from_text(system_prompt)])
        return cls(system_instruction=instruction, contents=list(contents), tools=tools or None)


class Candidate(WireModel):
    content: Optional[Content] = None
    finish_reason: Optional[str] = Field(None, alias="finishReason")
    index: int = 0


class PromptFeedback(WireModel):
    block_reason: Optional[str] = Field(None, alias="blockReason")


class GenerateContentResponse(WireModel):
    candidates: List[Candidate] = Field(default_factory=list)
    prompt_feedback: Optional[PromptFeedback] = Field(None, alias="promptFeedback")

    def first_content(self) -> Optional[Content]:
        """Return the first candidate's content if it has any parts."""
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        return content
