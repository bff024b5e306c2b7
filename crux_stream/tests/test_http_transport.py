"""HTTP streaming transport over an in-memory ``httpx.MockTransport``.

No network I/O: every request is answered by a handler function.
"""
from __future__ import annotations

import json
from typing import Callable, List

import httpx
import pytest

from crux_stream.base.cancellation import CancellationError, CancellationToken
from crux_stream.base.errors import ErrorCode, TransportError
from crux_stream.base.resilience.retry import RetryConfig
from crux_stream.base.streaming import OutcomeStatus, StreamOrchestrator
from crux_stream.base.transport import HttpStreamTransport, build_http_request, decode_line, iter_events
from crux_stream.base.transport.sse import DONE
from crux_stream.base.wire import ChatCompletionRequest
from crux_stream.base.wire.registry import DialectRegistry
from crux_stream.base.wire.validators import ANTHROPIC_DIALECT, OpenAIChatDialect
from crux_stream.config import StreamConfig
from crux_stream.mock import anthropic_text_script, openai_text_script

BASE_URL = "https://api.test/v1"


def _sse(events) -> bytes:
    lines = [": keep-alive", "event: message"]
    lines += [f"data: {json.dumps(e)}" for e in events]
    lines.append("data: [DONE]")
    return ("\n\n".join(lines) + "\n\n").encode("utf-8")


def _transport(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> HttpStreamTransport:
    return HttpStreamTransport(
        client_factory=lambda base_url: httpx.Client(base_url=base_url, transport=httpx.MockTransport(handler)),
        endpoint_resolver=lambda vendor: (BASE_URL, "sk-test"),
        retry_config=kwargs.pop("retry_config", RetryConfig(sleep=lambda _s: None)),
        **kwargs,
    )


def _request(**extra) -> ChatCompletionRequest:
    payload = {"model": "m", "messages": [{"role": "system", "content": "be brief"}, {"role": "user", "content": "hi"}]}
    payload.update(extra)
    return ChatCompletionRequest.model_validate(payload)


def test_sse_line_decoding():
    assert decode_line("") is None  # nosec B101
    assert decode_line(": comment") is None  # nosec B101
    assert decode_line("event: ping") is None  # nosec B101
    assert decode_line("data: [DONE]") is DONE  # nosec B101
    assert decode_line(b'data: {"a": 1}') == {"a": 1}  # nosec B101
    assert decode_line("data: {broken") == "{broken"  # nosec B101
    assert list(iter_events(["data: 1", "data: [DONE]", "data: 2"])) == [1]  # nosec B101


def test_openai_stream_request_and_events():
    seen: List[httpx.Request] = []
    events = openai_text_script(["Hel", "lo"])

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=_sse(events), headers={"content-type": "text/event-stream"})

    received = list(_transport(handler).open("openai", _request(), CancellationToken()))

    assert received == events  # nosec B101
    request = seen[0]
    assert request.url.path == "/v1/chat/completions"  # nosec B101
    assert request.headers["authorization"] == "Bearer sk-test"  # nosec B101
    body = json.loads(request.content)
    assert body["stream"] is True and body["model"] == "m"  # nosec B101


class _DeploymentPathDialect(OpenAIChatDialect):
    endpoint_path = "/openai/deployments/chat/completions"


def test_request_path_comes_from_the_dialect():
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=_sse(openai_text_script(["ok"])))

    registry = DialectRegistry({"azure": _DeploymentPathDialect()})
    received = list(_transport(handler, registry=registry).open("azure", _request(), CancellationToken()))

    assert received[0]["choices"][0]["delta"]["content"] == "ok"  # nosec B101
    assert seen[0].url.path == "/v1/openai/deployments/chat/completions"  # nosec B101


def test_anthropic_request_shape():
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=_sse(anthropic_text_script(["ok"])))

    received = list(_transport(handler).open("anthropic", _request(), CancellationToken()))
    assert received[0]["type"] == "message_start"  # nosec B101
    request = seen[0]
    assert request.url.path == "/v1/messages"  # nosec B101
    assert request.headers["x-api-key"] == "sk-test"  # nosec B101
    assert "anthropic-version" in request.headers  # nosec B101
    body = json.loads(request.content)
    assert body["system"] == "be brief"  # nosec B101
    assert body["messages"] == [{"role": "user", "content": "hi"}]  # nosec B101
    assert body["max_tokens"] == 4096 and body["stream"] is True  # nosec B101


def test_build_http_request_maps_tools_for_anthropic():
    request = _request(
        tools=[{"type": "function", "function": {"name": "lookup", "parameters": {"type": "object", "properties": {}}}}],
        tool_choice="required",
        stop=["END"],
    )
    path, body, headers = build_http_request(ANTHROPIC_DIALECT, request, None)
    assert path == "/messages" and "x-api-key" not in headers  # nosec B101
    assert body["tools"][0]["name"] == "lookup"  # nosec B101
    assert body["tool_choice"] == {"type": "any"}  # nosec B101
    assert body["stop_sequences"] == ["END"]  # nosec B101


def test_http_error_status_is_classified_without_retry():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(401, json={"error": {"message": "bad key"}})

    with pytest.raises(TransportError) as ei:
        list(_transport(handler).open("openai", _request(), CancellationToken()))
    assert ei.value.code is ErrorCode.AUTH  # nosec B101
    assert "bad key" in ei.value.message  # nosec B101
    assert len(calls) == 1  # nosec B101


def test_rate_limit_is_retried(log_capture):
    statuses = [429, 200]

    def handler(request: httpx.Request) -> httpx.Response:
        status = statuses.pop(0)
        if status != 200:
            return httpx.Response(status, text="slow down")
        return httpx.Response(200, content=_sse(openai_text_script(["ok"])))

    received = list(_transport(handler).open("openai", _request(), CancellationToken()))
    assert received[0]["choices"][0]["delta"]["content"] == "ok"  # nosec B101
    attempts = log_capture.named("transport.http.attempt")
    assert attempts and attempts[0]["error_code"] == "rate_limit"  # nosec B101


def test_missing_base_url_is_unsupported():
    transport = HttpStreamTransport(endpoint_resolver=lambda vendor: (None, None))
    with pytest.raises(TransportError) as ei:
        list(transport.open("openai", _request(), CancellationToken()))
    assert ei.value.code is ErrorCode.UNSUPPORTED  # nosec B101


def test_cancelled_token_prevents_request():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, content=_sse([]))

    token = CancellationToken()
    token.cancel("early")
    with pytest.raises(CancellationError):
        list(_transport(handler).open("openai", _request(), token))
    assert calls == []  # nosec B101


def test_cancellation_stops_iteration_mid_stream():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_sse(openai_text_script(["a", "b", "c"])))

    token = CancellationToken()
    events = _transport(handler).open("openai", _request(), token)
    first = next(events)
    token.cancel("stop")
    assert first["choices"][0]["delta"]["content"] == "a"  # nosec B101
    assert list(events) == []  # nosec B101


def test_orchestrator_over_http_reports_idle_timeout():
    print("TEST: an idle stream surfaces as an errored outcome with a timeout code")

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    orchestrator = StreamOrchestrator(
        _transport(handler, retry_config=RetryConfig(max_attempts=1, sleep=lambda _s: None)),
        config=StreamConfig(throttle_units=0),
    )
    outcome = orchestrator.run(
        "openai/m", {"messages": [{"role": "user", "content": "hi"}]}, CancellationToken(), lambda s, d: None
    )
    assert outcome.status is OutcomeStatus.ERRORED  # nosec B101
    assert outcome.error_code == "timeout"  # nosec B101
