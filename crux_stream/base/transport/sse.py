"""Server-sent events line decoding.

Purpose:
- Turn raw lines from ``httpx.Response.iter_lines()`` into decoded event
  payloads for the validators.

Notes:
- Only ``data:`` lines carry payloads; ``event:``, ``id:``, ``retry:`` and
  comment lines (``:``) are ignored. The dialect's ``type`` field already
  names the event, so ``event:`` lines add nothing.
- ``[DONE]`` terminates OpenAI-style streams.
- A payload that is not valid JSON is returned as the raw string so the
  validator rejects it as a malformed event (skipped or aborting per policy)
  instead of the transport failing the whole stream.
"""
from __future__ import annotations

import json
from typing import Any, Iterable, Iterator, Optional, Union

DONE_SENTINEL = "[DONE]"


class _Done:
    """Marker returned for the ``[DONE]`` terminator."""

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return "DONE"


DONE = _Done()


def data_payload(line: Union[str, bytes, None]) -> Optional[str]:
    """Return the payload of a ``data:`` line, else ``None``."""
    if not line:
        return None
    text = line.decode("utf-8", errors="replace") if isinstance(line, bytes) else str(line)
    if not text.startswith("data:"):
        return None
    return text[5:].strip()


def decode_line(line: Union[str, bytes, None]) -> Any:
    """Decode one SSE line.

    Returns ``None`` for lines without payload, :data:`DONE` for the
    terminator, the decoded JSON value, or the raw payload string when it is
    not valid JSON.
    """
    payload = data_payload(line)
    if payload is None or payload == "":
        return None
    if payload == DONE_SENTINEL:
        return DONE
    try:
        return json.loads(payload)
    except ValueError:
        return payload


def iter_events(lines: Iterable[Union[str, bytes]]) -> Iterator[Any]:
    """Yield decoded payloads from ``lines`` until ``[DONE]`` or exhaustion."""
    for line in lines:
        event = decode_line(line)
        if event is None:
            continue
        if event is DONE:
            return
        yield event


__all__ = ["DONE_SENTINEL", "DONE", "data_payload", "decode_line", "iter_events"]
