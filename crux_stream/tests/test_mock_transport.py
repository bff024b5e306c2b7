"""Scripted mock transport behavior."""
from __future__ import annotations

import pytest

from crux_stream.base.cancellation import CancellationToken
from crux_stream.base.wire import ChatCompletionRequest
from crux_stream.mock import MockScript, MockTransport, chunk_text, openai_text_script

REQUEST = ChatCompletionRequest.model_validate({"model": "m", "messages": [{"role": "user", "content": "hi"}]})


def test_chunk_text():
    assert chunk_text("abcdefgh", chunk_size=3) == ["abc", "def", "gh"]  # nosec B101
    assert chunk_text("") == []  # nosec B101


def test_vendor_wildcard_and_default_scripts():
    transport = MockTransport({"anthropic": ["a-event"], "*": ["any-event"]})
    assert list(transport.open("anthropic", REQUEST, CancellationToken())) == ["a-event"]  # nosec B101
    assert list(transport.open("groq", REQUEST, CancellationToken())) == ["any-event"]  # nosec B101
    fallback = MockTransport(default=["d"])
    assert list(fallback.open("openai", REQUEST, CancellationToken())) == ["d"]  # nosec B101
    assert [vendor for vendor, _ in transport.opened] == ["anthropic", "groq"]  # nosec B101


def test_events_are_copied_per_open():
    events = openai_text_script(["x"])
    transport = MockTransport({"*": events})
    first = list(transport.open("openai", REQUEST, CancellationToken()))
    first[0]["choices"].clear()
    second = list(transport.open("openai", REQUEST, CancellationToken()))
    assert second[0]["choices"]  # nosec B101
    assert transport.closed == 2  # nosec B101


def test_fail_after_positions():
    failing = MockTransport({"*": MockScript(events=[1, 2, 3], fail_after=1, error=ConnectionError("gone"))})
    received = []
    with pytest.raises(ConnectionError):
        for event in failing.open("openai", REQUEST, CancellationToken()):
            received.append(event)
    assert received == [1]  # nosec B101

    at_end = MockTransport({"*": MockScript(events=[1], fail_after=5)})
    with pytest.raises(RuntimeError):
        list(at_end.open("openai", REQUEST, CancellationToken()))


def test_delay_is_interrupted_by_cancellation():
    token = CancellationToken()
    token.cancel("stop")
    slow = MockTransport({"*": MockScript(events=[1, 2], delay_s=30.0)})
    assert list(slow.open("openai", REQUEST, token)) == []  # nosec B101
