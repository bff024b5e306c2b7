"""Dialect validators: raw vendor event -> :class:`CanonicalChunk`.

Purpose
-------
Validate one JSON-decoded upstream event against the strict schema of its
declared dialect and normalize it into the vendor-neutral chunk model. Any
mismatch raises :class:`SchemaValidationError` naming the offending field path.

Notes
-----
- Validation is pure: no logging, no I/O, no state. The same payload always
  yields an equal chunk or an equal error.
- Vendor finish reasons are mapped onto :class:`FinishReason`; values without a
  canonical counterpart are carried as :class:`ExtensionValue`.
- Only the first choice of an OpenAI chunk is consumed (``n`` > 1 is not
  streamed by this engine).
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional, Protocol, Tuple, runtime_checkable

from pydantic import ValidationError

from ..errors import SchemaValidationError
from ..streaming.chunk import (
    CanonicalChunk,
    FinishReason,
    FinishReasonValue,
    ToolCallDelta,
    UsageCounters,
)
from .anthropic_wire import (
    STREAM_EVENT_ADAPTER,
    AnthropicStopReason,
    AnthropicUsage,
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ErrorEvent,
    InputJsonDelta,
    MessageDeltaEvent,
    MessageStartEvent,
    TextBlock,
    TextDelta,
    ToolUseBlock,
)
from .extension import ExtensionValue
from .openai_wire import (
    ChatCompletionChunk,
    ChatCompletionResponse,
    ChunkChoice,
    OpenAIFinishReason,
    Usage,
)

OPENAI_DIALECT_NAME = "openai"
ANTHROPIC_DIALECT_NAME = "anthropic"

OPENAI_FINISH_REASONS: Dict[OpenAIFinishReason, FinishReason] = {
    OpenAIFinishReason.STOP: FinishReason.STOP,
    OpenAIFinishReason.LENGTH: FinishReason.LENGTH,
    OpenAIFinishReason.TOOL_CALLS: FinishReason.TOOL_CALLS,
    OpenAIFinishReason.FUNCTION_CALL: FinishReason.TOOL_CALLS,
    OpenAIFinishReason.CONTENT_FILTER: FinishReason.CONTENT_FILTER,
    OpenAIFinishReason.STOP_SEQUENCE: FinishReason.STOP,
    OpenAIFinishReason.EOS: FinishReason.STOP,
    OpenAIFinishReason.COMPLETE: FinishReason.STOP,
    OpenAIFinishReason.ERROR: FinishReason.ERROR,
}

ANTHROPIC_STOP_REASONS: Dict[AnthropicStopReason, FinishReason] = {
    AnthropicStopReason.END_TURN: FinishReason.STOP,
    AnthropicStopReason.STOP_SEQUENCE: FinishReason.STOP,
    AnthropicStopReason.PAUSE_TURN: FinishReason.STOP,
    AnthropicStopReason.MAX_TOKENS: FinishReason.LENGTH,
    AnthropicStopReason.TOOL_USE: FinishReason.TOOL_CALLS,
    AnthropicStopReason.REFUSAL: FinishReason.CONTENT_FILTER,
}


def _map_reason(value: Any, table: Dict[Any, FinishReason]) -> Optional[FinishReasonValue]:
    """Map a wire finish reason to its canonical value.

    Extension values pass through untouched; documented wire members without a
    canonical counterpart (e.g. OpenAI's empty string) become extension values.
    """
    if value is None:
        return None
    if isinstance(value, ExtensionValue):
        return value
    mapped = table.get(value)
    if mapped is not None:
        return mapped
    return ExtensionValue(value=str(value.value))


def _require_object(payload: Any, *, dialect: str, vendor: str) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise SchemaValidationError.not_an_object(payload, dialect=dialect, provider=vendor)
    return payload


# ---------------------------------------------------------------------------
# OpenAI chat completions


def _openai_usage(usage: Optional[Usage]) -> Optional[UsageCounters]:
    if usage is None:
        return None
    return UsageCounters(
        prompt_tokens=usage.prompt_tokens,
        completion_tokens=usage.completion_tokens,
        total_tokens=usage.total_tokens,
    )


def _first_choice(chunk: ChatCompletionChunk) -> Optional[ChunkChoice]:
    for choice in chunk.choices:
        if choice.index in (None, 0):
            return choice
    return None


def _upstream_error_text(chunk: ChatCompletionChunk) -> Optional[str]:
    error = chunk.error
    if error is None:
        return None
    return error.message or error.type or (str(error.code) if error.code is not None else "unknown upstream error")


def validate_openai_chunk(payload: Any, *, vendor: str = OPENAI_DIALECT_NAME) -> CanonicalChunk:
    """Validate one OpenAI-style streaming chunk and normalize it.

    Raises:
        SchemaValidationError: when ``payload`` is not a valid chunk.
    """
    data = _require_object(payload, dialect=OPENAI_DIALECT_NAME, vendor=vendor)
    try:
        chunk = ChatCompletionChunk.model_validate(data)
    except ValidationError as exc:
        raise SchemaValidationError.from_validation_error(
            exc, dialect=OPENAI_DIALECT_NAME, provider=vendor
        ) from exc

    text: Optional[str] = None
    tool_calls: Tuple[ToolCallDelta, ...] = ()
    finish_reason: Optional[FinishReasonValue] = None
    choice = _first_choice(chunk)
    if choice is not None:
        text = choice.delta.content or None
        tool_calls = tuple(
            ToolCallDelta(
                index=call.index,
                call_id=call.id,
                name=call.function.name,
                arguments=call.function.arguments,
            )
            for call in choice.delta.tool_calls or ()
        )
        finish_reason = _map_reason(choice.finish_reason, OPENAI_FINISH_REASONS)

    metadata: Dict[str, Any] = {}
    if chunk.warning:
        metadata["upstream_warning"] = chunk.warning

    return CanonicalChunk(
        text=text,
        tool_calls=tool_calls,
        finish_reason=finish_reason,
        usage=_openai_usage(chunk.usage),
        model=chunk.model or None,
        response_id=chunk.id or None,
        upstream_error=_upstream_error_text(chunk),
        metadata=metadata,
    )


def validate_openai_response(payload: Any, *, vendor: str = OPENAI_DIALECT_NAME) -> CanonicalChunk:
    """Validate a non-streaming ``chat.completion`` response.

    The whole message becomes a single terminal chunk: full text, complete
    tool calls (indexed in order), finish reason, usage and model.
    """
    data = _require_object(payload, dialect=OPENAI_DIALECT_NAME, vendor=vendor)
    try:
        response = ChatCompletionResponse.model_validate(data)
    except ValidationError as exc:
        raise SchemaValidationError.from_validation_error(
            exc, dialect=OPENAI_DIALECT_NAME, provider=vendor
        ) from exc

    if not response.choices:
        return CanonicalChunk(
            usage=_openai_usage(response.usage),
            model=response.model or None,
            response_id=response.id,
        )
    choice = response.choices[0]
    calls = tuple(
        ToolCallDelta(index=i, call_id=call.id, name=call.function.name, arguments=call.function.arguments)
        for i, call in enumerate(choice.message.tool_calls or ())
    )
    # A complete response is terminal even when the vendor omits the reason.
    finish = _map_reason(choice.finish_reason, OPENAI_FINISH_REASONS) or FinishReason.STOP
    return CanonicalChunk(
        text=choice.message.content or None,
        tool_calls=calls,
        finish_reason=finish,
        usage=_openai_usage(response.usage),
        model=response.model or None,
        response_id=response.id,
    )


# ---------------------------------------------------------------------------
# Anthropic messages stream


def _anthropic_usage(usage: Optional[AnthropicUsage]) -> Optional[UsageCounters]:
    if usage is None:
        return None
    if usage.input_tokens is None and usage.output_tokens is None:
        return None
    total = None
    if usage.input_tokens is not None and usage.output_tokens is not None:
        total = usage.input_tokens + usage.output_tokens
    return UsageCounters(
        prompt_tokens=usage.input_tokens,
        completion_tokens=usage.output_tokens,
        total_tokens=total,
    )


def validate_anthropic_event(payload: Any, *, vendor: str = ANTHROPIC_DIALECT_NAME) -> CanonicalChunk:
    """Validate one Anthropic stream event and normalize it.

    Events without content (``ping``, ``content_block_stop``,
    ``message_stop``, thinking deltas) normalize to an empty chunk.
    """
    data = _require_object(payload, dialect=ANTHROPIC_DIALECT_NAME, vendor=vendor)
    try:
        event = STREAM_EVENT_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise SchemaValidationError.from_validation_error(
            exc, dialect=ANTHROPIC_DIALECT_NAME, provider=vendor
        ) from exc

    if isinstance(event, MessageStartEvent):
        message = event.message
        return CanonicalChunk(
            usage=_anthropic_usage(message.usage),
            model=message.model or None,
            response_id=message.id or None,
        )
    if isinstance(event, ContentBlockStartEvent):
        block = event.content_block
        if isinstance(block, TextBlock):
            return CanonicalChunk(text=block.text or None)
        if isinstance(block, ToolUseBlock):
            arguments = json.dumps(block.input) if block.input else None
            return CanonicalChunk(
                tool_calls=(ToolCallDelta(index=event.index, call_id=block.id, name=block.name, arguments=arguments),)
            )
        return CanonicalChunk()
    if isinstance(event, ContentBlockDeltaEvent):
        delta = event.delta
        if isinstance(delta, TextDelta):
            return CanonicalChunk(text=delta.text or None)
        if isinstance(delta, InputJsonDelta):
            return CanonicalChunk(tool_calls=(ToolCallDelta(index=event.index, arguments=delta.partial_json),))
        return CanonicalChunk()
    if isinstance(event, MessageDeltaEvent):
        return CanonicalChunk(
            finish_reason=_map_reason(event.delta.stop_reason, ANTHROPIC_STOP_REASONS),
            usage=_anthropic_usage(event.usage),
        )
    if isinstance(event, ErrorEvent):
        return CanonicalChunk(upstream_error=f"{event.error.type}: {event.error.message}")
    return CanonicalChunk()


# ---------------------------------------------------------------------------
# Dialect objects


@runtime_checkable
class Dialect(Protocol):
    """A vendor wire dialect able to normalize raw events."""

    name: str
    endpoint_path: str

    def validate(self, payload: Any, *, vendor: str) -> CanonicalChunk:  # pragma: no cover - protocol
        """Validate ``payload`` and return its canonical chunk."""
        ...


class OpenAIChatDialect:
    """OpenAI-compatible ``chat.completion.chunk`` streams."""

    name = OPENAI_DIALECT_NAME
    endpoint_path = "/chat/completions"

    def validate(self, payload: Any, *, vendor: str = OPENAI_DIALECT_NAME) -> CanonicalChunk:
        return validate_openai_chunk(payload, vendor=vendor)


class AnthropicMessagesDialect:
    """Anthropic ``/v1/messages`` event streams."""

    name = ANTHROPIC_DIALECT_NAME
    endpoint_path = "/messages"

    def validate(self, payload: Any, *, vendor: str = ANTHROPIC_DIALECT_NAME) -> CanonicalChunk:
        return validate_anthropic_event(payload, vendor=vendor)


OPENAI_DIALECT = OpenAIChatDialect()
ANTHROPIC_DIALECT = AnthropicMessagesDialect()


def validate_event(payload: Any, dialect: Dialect, *, vendor: Optional[str] = None) -> CanonicalChunk:
    """Validate ``payload`` against ``dialect`` on behalf of ``vendor``."""
    return dialect.validate(payload, vendor=vendor or dialect.name)


__all__ = [
    "OPENAI_DIALECT_NAME",
    "ANTHROPIC_DIALECT_NAME",
    "OPENAI_FINISH_REASONS",
    "ANTHROPIC_STOP_REASONS",
    "validate_openai_chunk",
    "validate_openai_response",
    "validate_anthropic_event",
    "Dialect",
    "OpenAIChatDialect",
    "AnthropicMessagesDialect",
    "OPENAI_DIALECT",
    "ANTHROPIC_DIALECT",
    "validate_event",
]
