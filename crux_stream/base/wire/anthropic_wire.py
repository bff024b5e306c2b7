"""Wire schemas for the Anthropic messages streaming dialect.

Every server-sent event carries a ``type`` discriminant; the union
:data:`AnthropicStreamEvent` selects the variant by that field, so an event
with a missing or unknown ``type`` is rejected as a whole. Content blocks and
block deltas are discriminated the same way.

``stop_reason`` is tolerant: values outside the documented set validate as
:class:`ExtensionValue`.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .extension import tolerant


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class AnthropicStopReason(str, Enum):
    END_TURN = "end_turn"
    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"
    TOOL_USE = "tool_use"
    PAUSE_TURN = "pause_turn"
    REFUSAL = "refusal"


TolerantStopReason = tolerant(AnthropicStopReason)


class AnthropicUsage(_WireModel):
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None


# Content blocks


class TextBlock(_WireModel):
    type: Literal["text"]
    text: str = ""


class ToolUseBlock(_WireModel):
    type: Literal["tool_use"]
    id: str
    name: str
    input: Dict[str, Any] = Field(default_factory=dict)


class ThinkingBlock(_WireModel):
    type: Literal["thinking"]
    thinking: str = ""


ContentBlock = Annotated[Union[TextBlock, ToolUseBlock, ThinkingBlock], Field(discriminator="type")]


# Block deltas


class TextDelta(_WireModel):
    type: Literal["text_delta"]
    text: str


class InputJsonDelta(_WireModel):
    type: Literal["input_json_delta"]
    partial_json: str


class ThinkingDelta(_WireModel):
    type: Literal["thinking_delta"]
    thinking: str


class SignatureDelta(_WireModel):
    type: Literal["signature_delta"]
    signature: str


BlockDelta = Annotated[
    Union[TextDelta, InputJsonDelta, ThinkingDelta, SignatureDelta],
    Field(discriminator="type"),
]


# Events


class MessageStartBody(_WireModel):
    id: str
    model: str
    role: Literal["assistant"] = "assistant"
    content: List[ContentBlock] = Field(default_factory=list)
    stop_reason: Optional[TolerantStopReason] = None
    usage: Optional[AnthropicUsage] = None


class MessageStartEvent(_WireModel):
    type: Literal["message_start"]
    message: MessageStartBody


class ContentBlockStartEvent(_WireModel):
    type: Literal["content_block_start"]
    index: int
    content_block: ContentBlock


class ContentBlockDeltaEvent(_WireModel):
    type: Literal["content_block_delta"]
    index: int
    delta: BlockDelta


class ContentBlockStopEvent(_WireModel):
    type: Literal["content_block_stop"]
    index: int


class MessageDeltaBody(_WireModel):
    stop_reason: Optional[TolerantStopReason] = None
    stop_sequence: Optional[str] = None


class MessageDeltaEvent(_WireModel):
    type: Literal["message_delta"]
    delta: MessageDeltaBody
    # Cumulative output token count.
    usage: Optional[AnthropicUsage] = None


class MessageStopEvent(_WireModel):
    type: Literal["message_stop"]


class PingEvent(_WireModel):
    type: Literal["ping"]


class ErrorBody(_WireModel):
    type: str
    message: str


class ErrorEvent(_WireModel):
    type: Literal["error"]
    error: ErrorBody


AnthropicStreamEvent = Annotated[
    Union[
        MessageStartEvent,
        ContentBlockStartEvent,
        ContentBlockDeltaEvent,
        ContentBlockStopEvent,
        MessageDeltaEvent,
        MessageStopEvent,
        PingEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

STREAM_EVENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(AnthropicStreamEvent)


__all__ = [
    "AnthropicStopReason",
    "AnthropicUsage",
    "TextBlock",
    "ToolUseBlock",
    "ThinkingBlock",
    "ContentBlock",
    "TextDelta",
    "InputJsonDelta",
    "ThinkingDelta",
    "SignatureDelta",
    "BlockDelta",
    "MessageStartBody",
    "MessageStartEvent",
    "ContentBlockStartEvent",
    "ContentBlockDeltaEvent",
    "ContentBlockStopEvent",
    "MessageDeltaBody",
    "MessageDeltaEvent",
    "MessageStopEvent",
    "PingEvent",
    "ErrorBody",
    "ErrorEvent",
    "AnthropicStreamEvent",
    "STREAM_EVENT_ADAPTER",
]
