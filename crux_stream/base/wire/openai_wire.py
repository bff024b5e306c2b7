"""Wire schemas for the OpenAI-compatible chat completions dialect.

Purpose
-------
Strict Pydantic models for the request body, the non-streaming response and
the streaming chunk of ``POST /chat/completions``. Each message and content
part is a tagged variant discriminated by a literal field (``role`` / ``type``).

Compatibility notes
-------------------
The "OpenAI-compatible" ecosystem deviates from the reference API in many
small ways; the observed deviations are accepted explicitly:

- ``object`` may be ``"chat.completion"`` (Perplexity) or ``""`` (Azure's
  first ``prompt_filter_results`` packet) on streaming chunks.
- ``choices[].index`` may be missing (OpenRouter), ``delta.role`` may be
  ``null`` (Deepseek), tool-call ``index`` may be missing (Mistral) and
  ``function.name``/``arguments`` may be ``null`` (TogetherAI).
- ``finish_reason`` and ``delta.role`` are tolerant: undocumented values
  validate as :class:`ExtensionValue` instead of failing.
- ``error`` and ``warning`` fields are undocumented but do appear inside
  otherwise-successful chunks.
- ``system_fingerprint`` may be ``null``.

Response models ignore unknown keys (vendors add fields freely); the request
model forbids them so typos are caught before anything is sent.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

from .extension import tolerant

TOOL_NAME_PATTERN = r"^[a-zA-Z0-9_-]{1,64}$"


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class _RequestModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Content parts


class TextContentPart(_RequestModel):
    type: Literal["text"]
    text: str


class ImageURL(_RequestModel):
    # Either a URL of the image or the base64 encoded image data.
    url: str
    detail: Optional[Literal["auto", "low", "high"]] = None


class ImageContentPart(_RequestModel):
    type: Literal["image_url"]
    image_url: ImageURL


ContentPart = Annotated[Union[TextContentPart, ImageContentPart], Field(discriminator="type")]


class FunctionCall(_WireModel):
    name: str
    # The model does not always generate valid JSON.
    arguments: str


class PredictedFunctionCall(_WireModel):
    type: Literal["function"]
    id: str
    function: FunctionCall


# ---------------------------------------------------------------------------
# Messages


class SystemMessage(_RequestModel):
    role: Literal["system"]
    content: str


class UserMessage(_RequestModel):
    role: Literal["user"]
    content: Union[str, List[ContentPart]]


class AssistantMessage(_WireModel):
    role: Literal["assistant"]
    # Required unless tool_calls is specified.
    content: Optional[str] = None
    tool_calls: Optional[List[PredictedFunctionCall]] = None


class ToolMessage(_RequestModel):
    role: Literal["tool"]
    content: str
    tool_call_id: str


Message = Annotated[
    Union[SystemMessage, UserMessage, AssistantMessage, ToolMessage],
    Field(discriminator="role"),
]


# ---------------------------------------------------------------------------
# Tools


class FunctionParameters(_RequestModel):
    type: Literal["object"]
    properties: Dict[str, Any] = Field(default_factory=dict)
    required: Optional[List[str]] = None


class FunctionDefinition(_RequestModel):
    name: str = Field(pattern=TOOL_NAME_PATTERN)
    description: Optional[str] = None
    # Omitting parameters defines a function with an empty parameter list.
    parameters: Optional[FunctionParameters] = None


class ToolDefinition(_RequestModel):
    type: Literal["function"]
    function: FunctionDefinition


class NamedFunction(_RequestModel):
    name: str


class ToolChoiceFunction(_RequestModel):
    type: Literal["function"]
    function: NamedFunction


ToolChoice = Union[Literal["none", "auto", "required"], ToolChoiceFunction]


# ---------------------------------------------------------------------------
# Request


class StreamOptions(_RequestModel):
    include_usage: Optional[bool] = None


class ResponseFormat(_RequestModel):
    type: Literal["text", "json_object"]


class ChatCompletionRequest(_RequestModel):
    """Request body of ``POST /chat/completions``."""

    model: str
    messages: List[Message]

    tools: Optional[List[ToolDefinition]] = None
    tool_choice: Optional[ToolChoice] = None
    parallel_tool_calls: Optional[bool] = None

    max_tokens: Optional[PositiveInt] = None
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    top_p: Optional[float] = Field(default=None, ge=0, le=1)

    n: Optional[PositiveInt] = None
    stream: Optional[bool] = None
    stream_options: Optional[StreamOptions] = None
    response_format: Optional[ResponseFormat] = None
    seed: Optional[int] = None
    stop: Optional[List[str]] = None
    user: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        """Return the JSON body, omitting unset fields."""
        return self.model_dump(mode="json", exclude_none=True)


# ---------------------------------------------------------------------------
# Response


class OpenAIFinishReason(str, Enum):
    STOP = "stop"  # natural completion, or stop sequence hit
    LENGTH = "length"  # max_tokens exceeded
    TOOL_CALLS = "tool_calls"
    CONTENT_FILTER = "content_filter"
    FUNCTION_CALL = "function_call"  # deprecated functions API
    # Extensions
    EMPTY = ""  # [LocalAI] bad response
    STOP_SEQUENCE = "stop_sequence"  # [OpenRouter->Anthropic]
    EOS = "eos"  # [OpenRouter->Phind]
    COMPLETE = "COMPLETE"  # [OpenRouter->Command-R+]
    ERROR = "error"  # [OpenRouter] network error


class OpenAIRole(str, Enum):
    ASSISTANT = "assistant"


TolerantFinishReason = tolerant(OpenAIFinishReason)
TolerantRole = tolerant(OpenAIRole)


class Usage(_WireModel):
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class UndocumentedError(_WireModel):
    message: Optional[str] = None
    type: Optional[str] = None
    param: Optional[str] = None
    code: Optional[Union[str, int]] = None


class ChatCompletionChoice(_WireModel):
    index: int
    message: AssistantMessage
    finish_reason: Optional[TolerantFinishReason] = None


class ChatCompletionResponse(_WireModel):
    """Non-streaming response of ``POST /chat/completions``."""

    object: Literal["chat.completion"]
    id: str
    choices: List[ChatCompletionChoice]
    model: str
    usage: Optional[Usage] = None
    created: float
    system_fingerprint: Optional[str] = None


class ChunkToolCallFunction(_WireModel):
    name: Optional[str] = None
    arguments: Optional[str] = None


class ChunkToolCall(_WireModel):
    # After the first delta of a call only index and arguments are sent.
    index: Optional[int] = None
    type: Optional[Literal["function"]] = None
    id: Optional[str] = None
    function: ChunkToolCallFunction


class ChunkDelta(_WireModel):
    role: Optional[TolerantRole] = None
    content: Optional[str] = None
    tool_calls: Optional[List[ChunkToolCall]] = None


class ChunkChoice(_WireModel):
    index: Optional[int] = None
    delta: ChunkDelta
    finish_reason: Optional[TolerantFinishReason] = None


class ChatCompletionChunk(_WireModel):
    """One streaming event of ``POST /chat/completions`` with ``stream: true``."""

    object: Literal["chat.completion.chunk", "chat.completion", ""]
    id: str
    # Empty for the usage-only last chunk when stream_options.include_usage is set.
    choices: List[ChunkChoice]
    model: str
    usage: Optional[Usage] = None
    created: float
    system_fingerprint: Optional[str] = None
    error: Optional[UndocumentedError] = None
    warning: Optional[str] = None


__all__ = [
    "TOOL_NAME_PATTERN",
    "TextContentPart",
    "ImageURL",
    "ImageContentPart",
    "ContentPart",
    "FunctionCall",
    "PredictedFunctionCall",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "ToolMessage",
    "Message",
    "FunctionParameters",
    "FunctionDefinition",
    "ToolDefinition",
    "NamedFunction",
    "ToolChoiceFunction",
    "ToolChoice",
    "StreamOptions",
    "ResponseFormat",
    "ChatCompletionRequest",
    "OpenAIFinishReason",
    "OpenAIRole",
    "Usage",
    "UndocumentedError",
    "ChatCompletionChoice",
    "ChatCompletionResponse",
    "ChunkToolCallFunction",
    "ChunkToolCall",
    "ChunkDelta",
    "ChunkChoice",
    "ChatCompletionChunk",
]
