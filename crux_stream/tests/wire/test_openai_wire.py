"""OpenAI-compatible dialect: schema strictness and normalization."""
from __future__ import annotations

import pytest

from crux_stream.base.errors import SchemaValidationError
from crux_stream.base.streaming.chunk import FinishReason, ToolCallDelta
from crux_stream.base.wire import ChatCompletionRequest, ExtensionValue
from crux_stream.base.wire.validators import (
    OPENAI_DIALECT,
    validate_event,
    validate_openai_chunk,
    validate_openai_response,
)
from crux_stream.mock import openai_chunk


def test_text_delta_normalizes():
    chunk = validate_openai_chunk(openai_chunk(content="Hel", role="assistant", model="gpt-x"))
    assert chunk.text == "Hel"  # nosec B101
    assert chunk.model == "gpt-x" and chunk.response_id == "chatcmpl-mock"  # nosec B101
    assert chunk.finish_reason is None and not chunk.is_terminal  # nosec B101


def test_empty_content_is_no_text():
    chunk = validate_openai_chunk(openai_chunk(content=""))
    assert chunk.text is None and chunk.has_content is False  # nosec B101


def test_missing_object_tag_is_rejected_with_path():
    print("TEST: an event missing its object-type tag names the field")
    event = openai_chunk(content="x")
    del event["object"]
    with pytest.raises(SchemaValidationError) as ei:
        validate_openai_chunk(event, vendor="openrouter")
    assert ei.value.field_path == "object"  # nosec B101
    assert ei.value.dialect == "openai" and ei.value.provider == "openrouter"  # nosec B101


def test_non_object_payload_rejected():
    with pytest.raises(SchemaValidationError) as ei:
        validate_openai_chunk("data: not json")
    assert ei.value.field_path == "<root>"  # nosec B101


def test_wrong_nested_type_reports_nested_path():
    event = openai_chunk(content="x")
    event["choices"][0]["delta"]["content"] = 42
    with pytest.raises(SchemaValidationError) as ei:
        validate_openai_chunk(event)
    assert ei.value.field_path == "choices.0.delta.content"  # nosec B101


def test_unknown_finish_reason_is_extension():
    print("TEST: undocumented finish reasons are tolerated, not rejected")
    chunk = validate_openai_chunk(openai_chunk(finish_reason="weird_vendor_reason"))
    assert chunk.finish_reason == ExtensionValue(value="weird_vendor_reason")  # nosec B101
    assert chunk.is_terminal  # nosec B101


@pytest.mark.parametrize(
    "wire,canonical",
    [
        ("stop", FinishReason.STOP),
        ("length", FinishReason.LENGTH),
        ("tool_calls", FinishReason.TOOL_CALLS),
        ("content_filter", FinishReason.CONTENT_FILTER),
        ("eos", FinishReason.STOP),
        ("COMPLETE", FinishReason.STOP),
        ("error", FinishReason.ERROR),
    ],
)
def test_known_finish_reasons_map(wire, canonical):
    assert validate_openai_chunk(openai_chunk(finish_reason=wire)).finish_reason is canonical  # nosec B101


def test_unknown_role_tolerated_and_misnamed_object_accepted():
    event = openai_chunk(content="x", role="model")
    event["object"] = ""
    chunk = validate_openai_chunk(event)
    assert chunk.text == "x"  # nosec B101


def test_tool_call_deltas():
    event = openai_chunk(
        tool_calls=[
            {"index": 0, "id": "call_1", "type": "function", "function": {"name": "get_weather", "arguments": ""}},
        ]
    )
    chunk = validate_openai_chunk(event)
    assert chunk.tool_calls == (ToolCallDelta(index=0, call_id="call_1", name="get_weather", arguments=""),)  # nosec B101


def test_usage_warning_and_inline_error():
    event = openai_chunk(usage={"prompt_tokens": 3, "completion_tokens": 5, "total_tokens": 8})
    event["warning"] = "model deprecated"
    event["error"] = {"message": "upstream overloaded", "code": 502}
    chunk = validate_openai_chunk(event)
    assert chunk.usage.prompt_tokens == 3 and chunk.usage.total_tokens == 8  # nosec B101
    assert chunk.metadata == {"upstream_warning": "model deprecated"}  # nosec B101
    assert chunk.upstream_error == "upstream overloaded"  # nosec B101


def test_validation_is_pure():
    event = openai_chunk(content="same", finish_reason="stop")
    assert validate_event(event, OPENAI_DIALECT) == validate_event(event, OPENAI_DIALECT)  # nosec B101


def test_non_streaming_response_becomes_terminal_chunk():
    payload = {
        "object": "chat.completion",
        "id": "chatcmpl-1",
        "created": 1,
        "model": "gpt-x",
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {"type": "function", "id": "call_a", "function": {"name": "f", "arguments": "{}"}},
                    ],
                },
                "finish_reason": None,
            }
        ],
        "usage": {"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 3},
    }
    chunk = validate_openai_response(payload)
    assert chunk.finish_reason is FinishReason.STOP  # nosec B101
    assert chunk.tool_calls[0].call_id == "call_a" and chunk.tool_calls[0].index == 0  # nosec B101


def test_request_schema_is_strict():
    with pytest.raises(ValueError):
        ChatCompletionRequest.model_validate(
            {"model": "m", "messages": [{"role": "user", "content": "hi"}], "unexpected": True}
        )
    with pytest.raises(ValueError):
        ChatCompletionRequest.model_validate(
            {
                "model": "m",
                "messages": [{"role": "user", "content": "hi"}],
                "tools": [{"type": "function", "function": {"name": "bad name!"}}],
            }
        )
    request = ChatCompletionRequest.model_validate(
        {"model": "m", "messages": [{"role": "system", "content": "s"}, {"role": "user", "content": "hi"}]}
    )
    wire = request.to_wire()
    assert wire["messages"][1] == {"role": "user", "content": "hi"}  # nosec B101
    assert "temperature" not in wire  # nosec B101
