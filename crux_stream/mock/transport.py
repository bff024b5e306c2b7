"""Deterministic mock transport replaying scripted vendor events.

Purpose
-------
Implement the ``StreamTransport`` contract without network traffic so tests
and the CLI ``--mock`` mode can exercise validation, accumulation,
publishing and cancellation end to end. Scripts are plain lists of raw
vendor events (dicts for valid events, anything else to simulate malformed
payloads), optionally followed by a failure.

Cancellation
------------
The replay stops as soon as the token is signalled; an optional per-event
delay waits on the token so a cancel releases it immediately.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from ..base.cancellation import CancellationToken
from ..base.logging import LogContext, get_logger, normalized_log_event
from ..base.wire.openai_wire import ChatCompletionRequest

DEFAULT_MOCK_MODEL = "mock-gpt"


@dataclass
class MockScript:
    """Events replayed for one ``open`` call.

    Attributes:
        events: Raw events yielded in order.
        fail_after: When set, ``error`` is raised after this many events were
            yielded (``0`` fails before the first event).
        error: Exception raised at ``fail_after``.
        delay_s: Wait before each event (interrupted by cancellation).
    """

    events: List[Any] = field(default_factory=list)
    fail_after: Optional[int] = None
    error: Optional[BaseException] = None
    delay_s: float = 0.0


ScriptLike = Union[MockScript, Sequence[Any]]


def _as_script(script: ScriptLike) -> MockScript:
    if isinstance(script, MockScript):
        return script
    return MockScript(events=list(script))


class MockTransport:
    """Replays a :class:`MockScript` per vendor id.

    Parameters
    ----------
    scripts: Mapping of vendor id to script; ``"*"`` matches any vendor.
    default: Script used when no vendor entry matches.

    ``opened`` records ``(vendor_id, request)`` for each ``open`` call.
    """

    def __init__(
        self,
        scripts: Optional[Mapping[str, ScriptLike]] = None,
        *,
        default: Optional[ScriptLike] = None,
    ) -> None:
        self._scripts: Dict[str, MockScript] = {k: _as_script(v) for k, v in (scripts or {}).items()}
        self._default = _as_script(default) if default is not None else None
        self.opened: List[Tuple[str, ChatCompletionRequest]] = []
        self.closed = 0
        self._logger = get_logger("mock.transport")

    def open(self, vendor_id: str, request: ChatCompletionRequest, token: CancellationToken) -> Iterator[Any]:
        script = self._scripts.get(vendor_id) or self._scripts.get("*") or self._default
        if script is None:
            script = MockScript(events=openai_text_script(["(no mock script)"], model=request.model))
        self.opened.append((vendor_id, request))
        normalized_log_event(
            self._logger,
            "transport.mock.start",
            LogContext(provider=vendor_id, model=request.model),
            phase="start",
            emitted=False,
            tokens=None,
            events=len(script.events),
        )
        return self._replay(script, token)

    def _replay(self, script: MockScript, token: CancellationToken) -> Iterator[Any]:
        try:
            for position, event in enumerate(script.events):
                if script.fail_after is not None and position == script.fail_after:
                    raise script.error or RuntimeError("mock transport failure")
                if script.delay_s > 0 and token.wait(script.delay_s):
                    return
                if token.cancelled:
                    return
                yield copy.deepcopy(event)
            if script.fail_after is not None and script.fail_after >= len(script.events):
                raise script.error or RuntimeError("mock transport failure")
        finally:
            self.closed += 1


# ---------------------------------------------------------------------------
# Script builders


def chunk_text(text: str, chunk_size: int = 16) -> List[str]:
    """Split text into readable pieces for deterministic streaming."""
    if not text:
        return []
    return [text[i : i + chunk_size] for i in range(0, len(text), chunk_size)]


def openai_chunk(
    *,
    content: Optional[str] = None,
    finish_reason: Optional[str] = None,
    tool_calls: Optional[List[Dict[str, Any]]] = None,
    usage: Optional[Dict[str, int]] = None,
    model: str = DEFAULT_MOCK_MODEL,
    response_id: str = "chatcmpl-mock",
    role: Optional[str] = None,
) -> Dict[str, Any]:
    """Build one ``chat.completion.chunk`` event."""
    delta: Dict[str, Any] = {}
    if role is not None:
        delta["role"] = role
    if content is not None:
        delta["content"] = content
    if tool_calls is not None:
        delta["tool_calls"] = tool_calls
    event: Dict[str, Any] = {
        "object": "chat.completion.chunk",
        "id": response_id,
        "created": 1700000000,
        "model": model,
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }
    if usage is not None:
        event["usage"] = usage
    return event


def openai_text_script(
    pieces: Sequence[str],
    *,
    model: str = DEFAULT_MOCK_MODEL,
    finish_reason: Optional[str] = "stop",
    usage: Optional[Dict[str, int]] = None,
) -> List[Dict[str, Any]]:
    """Build an OpenAI-style stream: one chunk per text piece, then the finish chunk."""
    events = [openai_chunk(content=piece, model=model, role="assistant" if i == 0 else None) for i, piece in enumerate(pieces)]
    if finish_reason is not None or usage is not None:
        events.append(openai_chunk(finish_reason=finish_reason, usage=usage, model=model))
    return events


def anthropic_text_script(
    pieces: Sequence[str],
    *,
    model: str = "claude-mock",
    stop_reason: str = "end_turn",
    input_tokens: int = 0,
    output_tokens: int = 0,
) -> List[Dict[str, Any]]:
    """Build an Anthropic messages stream carrying ``pieces`` in one text block."""
    events: List[Dict[str, Any]] = [
        {
            "type": "message_start",
            "message": {
                "id": "msg_mock",
                "type": "message",
                "role": "assistant",
                "model": model,
                "content": [],
                "stop_reason": None,
                "usage": {"input_tokens": input_tokens, "output_tokens": 0},
            },
        },
        {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
    ]
    events.extend(
        {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": piece}} for piece in pieces
    )
    events.extend(
        [
            {"type": "content_block_stop", "index": 0},
            {
                "type": "message_delta",
                "delta": {"stop_reason": stop_reason, "stop_sequence": None},
                "usage": {"output_tokens": output_tokens},
            },
            {"type": "message_stop"},
        ]
    )
    return events


__all__ = [
    "DEFAULT_MOCK_MODEL",
    "MockScript",
    "MockTransport",
    "chunk_text",
    "openai_chunk",
    "openai_text_script",
    "anthropic_text_script",
]
