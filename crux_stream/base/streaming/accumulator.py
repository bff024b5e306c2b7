"""Delta accumulator: folds canonical chunks into a :class:`MessageSnapshot`.

Fold rules
----------
- Text deltas append to the last fragment when it is a text fragment;
  otherwise a new text fragment is opened.
- Tool-call deltas are routed to their tool-call fragment by call id, else by
  index, else to the most recent tool-call fragment; a delta that matches
  nothing opens a new fragment. Calls may interleave.
- An upstream error appends an :class:`ErrorFragment` (never merged).
- Any finish reason (including extension values) clears
  ``pending_incomplete``.
- ``model`` overwrites ``origin_llm``; usage and chunk metadata overwrite
  ``metadata`` per key. Absent values leave prior state untouched.

Accumulation is monotonic: fragments are never removed or reordered and
existing text is only ever extended.
"""
from __future__ import annotations

from typing import Dict, Optional

from .chunk import CanonicalChunk, ToolCallDelta, UsageCounters
from .snapshot import ErrorFragment, MessageSnapshot, TextFragment, ToolCallFragment
from .streaming_metrics import build_token_usage


def _find_tool_fragment(snapshot: MessageSnapshot, delta: ToolCallDelta) -> Optional[ToolCallFragment]:
    calls = snapshot.tool_calls
    if delta.call_id is not None:
        match = next((c for c in calls if c.call_id == delta.call_id), None)
        if match is not None:
            return match
        # An id we have not seen starts a new call, unless the open fragment
        # at the same index was opened without an id.
        if delta.index is not None:
            return next((c for c in calls if c.index == delta.index and c.call_id is None), None)
        return None
    if delta.index is not None:
        return next((c for c in reversed(calls) if c.index == delta.index), None)
    return calls[-1] if calls else None


def _apply_tool_delta(snapshot: MessageSnapshot, delta: ToolCallDelta) -> None:
    fragment = _find_tool_fragment(snapshot, delta)
    if fragment is None:
        fragment = ToolCallFragment(call_id=delta.call_id, index=delta.index)
        snapshot.fragments.append(fragment)
    if fragment.call_id is None and delta.call_id is not None:
        fragment.call_id = delta.call_id
    if fragment.index is None and delta.index is not None:
        fragment.index = delta.index
    if delta.name:
        fragment.name += delta.name
    if delta.arguments:
        fragment.arguments += delta.arguments


def _apply_text(snapshot: MessageSnapshot, text: str) -> None:
    last = snapshot.fragments[-1] if snapshot.fragments else None
    if isinstance(last, TextFragment):
        last.text += text
    else:
        snapshot.fragments.append(TextFragment(text=text))


def usage_mapping(usage: UsageCounters, previous: Optional[Dict[str, Optional[int]]] = None) -> Dict[str, Optional[int]]:
    """Merge ``usage`` over a previous ``{"prompt","completion","total"}`` mapping.

    Vendors split usage across events (Anthropic reports input tokens at the
    start and cumulative output tokens at the end); fields missing from the
    newer report keep their previous value.
    """
    previous = previous or {}
    prompt = usage.prompt_tokens if usage.prompt_tokens is not None else previous.get("prompt")
    completion = usage.completion_tokens if usage.completion_tokens is not None else previous.get("completion")
    return build_token_usage(prompt, completion, usage.total_tokens)


def apply_chunk(
    snapshot: MessageSnapshot,
    chunk: CanonicalChunk,
    *,
    error_prefix: str = "Issue: ",
) -> MessageSnapshot:
    """Fold ``chunk`` into ``snapshot`` in place and return it."""
    if chunk.text:
        _apply_text(snapshot, chunk.text)
    for delta in chunk.tool_calls:
        _apply_tool_delta(snapshot, delta)
    if chunk.upstream_error is not None:
        snapshot.fragments.append(ErrorFragment(message=f"{error_prefix}{chunk.upstream_error}"))
    if chunk.model:
        snapshot.origin_llm = chunk.model
    if chunk.usage is not None:
        snapshot.metadata["usage"] = usage_mapping(chunk.usage, snapshot.metadata.get("usage"))
    if chunk.metadata:
        snapshot.metadata.update(chunk.metadata)
    if chunk.finish_reason is not None:
        snapshot.pending_incomplete = False
    return snapshot


class DeltaAccumulator:
    """Owns one :class:`MessageSnapshot` and folds chunks into it.

    ``chunks_applied`` counts folded chunks for run metrics.
    """

    def __init__(self, snapshot: Optional[MessageSnapshot] = None, *, error_prefix: str = "Issue: ") -> None:
        self.snapshot = snapshot if snapshot is not None else MessageSnapshot()
        self.error_prefix = error_prefix
        self.chunks_applied = 0

    def apply(self, chunk: CanonicalChunk) -> MessageSnapshot:
        apply_chunk(self.snapshot, chunk, error_prefix=self.error_prefix)
        self.chunks_applied += 1
        return self.snapshot

    def append_error(self, message: str) -> MessageSnapshot:
        """Append a synthetic inline error fragment (transport failures)."""
        self.snapshot.fragments.append(ErrorFragment(message=f"{self.error_prefix}{message}"))
        return self.snapshot

    def complete(self) -> MessageSnapshot:
        """Mark the snapshot as no longer pending."""
        self.snapshot.pending_incomplete = False
        return self.snapshot


__all__ = ["apply_chunk", "usage_mapping", "DeltaAccumulator"]
