"""Unit tests for error classification and the structured error types."""
from __future__ import annotations

import httpx
import pytest
from pydantic import ValidationError

from crux_stream.base.errors import (
    ErrorCode,
    ProviderError,
    SchemaValidationError,
    TransportError,
    classify_exception,
)
from crux_stream.base.wire.openai_wire import ChatCompletionRequest


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.test/v1/chat/completions")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


@pytest.mark.parametrize(
    "status,code",
    [
        (401, ErrorCode.AUTH),
        (404, ErrorCode.NOT_FOUND),
        (429, ErrorCode.RATE_LIMIT),
        (500, ErrorCode.SERVER_ERROR),
        (503, ErrorCode.UNAVAILABLE),
        (504, ErrorCode.TIMEOUT),
    ],
)
def test_http_status_mapping(status, code):
    assert classify_exception(_status_error(status)) is code  # nosec B101


def test_timeouts_and_connection_failures():
    assert classify_exception(httpx.ReadTimeout("idle")) is ErrorCode.TIMEOUT  # nosec B101
    assert classify_exception(TimeoutError()) is ErrorCode.TIMEOUT  # nosec B101
    assert classify_exception(httpx.ConnectError("refused")) is ErrorCode.TRANSIENT  # nosec B101


def test_message_heuristics_and_fallback():
    assert classify_exception(RuntimeError("Rate limit exceeded")) is ErrorCode.RATE_LIMIT  # nosec B101
    assert classify_exception(ConnectionResetError("connection reset by peer")) is ErrorCode.TRANSIENT  # nosec B101
    assert classify_exception(RuntimeError("something odd")) is ErrorCode.UNKNOWN  # nosec B101


def test_transport_error_from_exception():
    err = TransportError.from_exception(httpx.ReadTimeout("stream idle"), provider="openai", model="gpt")
    assert err.code is ErrorCode.TIMEOUT and err.retryable is True  # nosec B101
    assert err.message == "stream idle"  # nosec B101

    original = ProviderError(code=ErrorCode.AUTH, message="bad key", provider="anthropic")
    wrapped = TransportError.from_exception(original, provider="other")
    assert wrapped.code is ErrorCode.AUTH and wrapped.provider == "anthropic"  # nosec B101
    assert isinstance(wrapped, ProviderError)  # nosec B101


def test_schema_validation_error_names_discriminant_path():
    with pytest.raises(ValidationError) as ei:
        ChatCompletionRequest.model_validate({"model": "m", "messages": [{"content": "hi"}]})
    err = SchemaValidationError.from_validation_error(ei.value, dialect="request", provider="openai")
    assert err.code is ErrorCode.VALIDATION  # nosec B101
    assert err.field_path == "messages.0.role"  # nosec B101
    assert "messages.0.role" in err.message  # nosec B101
    assert err.errors  # nosec B101


def test_not_an_object_uses_root_path():
    err = SchemaValidationError.not_an_object([1, 2], dialect="openai", provider="openai")
    assert err.field_path == "<root>"  # nosec B101
    assert "list" in err.message  # nosec B101
