"""Delta accumulator fold rules."""
from __future__ import annotations

from crux_stream.base.streaming import (
    CanonicalChunk,
    DeltaAccumulator,
    ErrorFragment,
    FinishReason,
    MessageSnapshot,
    TextFragment,
    ToolCallDelta,
    ToolCallFragment,
    UsageCounters,
    apply_chunk,
)
from crux_stream.base.wire import ExtensionValue


def test_text_deltas_merge_into_one_fragment():
    acc = DeltaAccumulator()
    for piece in ("Hel", "lo ", "world"):
        acc.apply(CanonicalChunk(text=piece))
    snapshot = acc.apply(CanonicalChunk(finish_reason=FinishReason.STOP))
    assert [f.kind for f in snapshot.fragments] == ["text"]  # nosec B101
    assert snapshot.text == "Hello world"  # nosec B101
    assert snapshot.pending_incomplete is False  # nosec B101
    assert acc.chunks_applied == 4  # nosec B101


def test_text_after_tool_call_opens_new_fragment():
    snapshot = MessageSnapshot()
    apply_chunk(snapshot, CanonicalChunk(text="Let me check. "))
    apply_chunk(snapshot, CanonicalChunk(tool_calls=(ToolCallDelta(index=0, call_id="c1", name="search"),)))
    apply_chunk(snapshot, CanonicalChunk(text="Done."))
    assert [f.kind for f in snapshot.fragments] == ["text", "tool_call", "text"]  # nosec B101
    assert snapshot.text == "Let me check. Done."  # nosec B101


def test_tool_call_fragments_assemble_by_index():
    print("TEST: interleaved tool-call deltas are routed to their own call")
    snapshot = MessageSnapshot()
    deltas = [
        ToolCallDelta(index=0, call_id="call_a", name="get_weather", arguments=""),
        ToolCallDelta(index=1, call_id="call_b", name="get_time", arguments=""),
        ToolCallDelta(index=0, arguments='{"city":'),
        ToolCallDelta(index=1, arguments='{"tz":"UTC"}'),
        ToolCallDelta(index=0, arguments='"Paris"}'),
    ]
    for delta in deltas:
        apply_chunk(snapshot, CanonicalChunk(tool_calls=(delta,)))
    calls = snapshot.tool_calls
    assert [(c.call_id, c.name, c.arguments) for c in calls] == [  # nosec B101
        ("call_a", "get_weather", '{"city":"Paris"}'),
        ("call_b", "get_time", '{"tz":"UTC"}'),
    ]


def test_delta_without_id_or_index_goes_to_latest_call():
    snapshot = MessageSnapshot()
    apply_chunk(snapshot, CanonicalChunk(tool_calls=(ToolCallDelta(call_id="x", name="f"),)))
    apply_chunk(snapshot, CanonicalChunk(tool_calls=(ToolCallDelta(arguments="{}"),)))
    assert snapshot.tool_calls == [ToolCallFragment(call_id="x", name="f", arguments="{}")]  # nosec B101


def test_id_arriving_after_index_only_delta_is_adopted():
    snapshot = MessageSnapshot()
    apply_chunk(snapshot, CanonicalChunk(tool_calls=(ToolCallDelta(index=2, name="lookup"),)))
    apply_chunk(snapshot, CanonicalChunk(tool_calls=(ToolCallDelta(index=2, call_id="late", arguments="{}"),)))
    assert len(snapshot.tool_calls) == 1  # nosec B101
    assert snapshot.tool_calls[0].call_id == "late"  # nosec B101


def test_upstream_error_appends_error_fragment():
    acc = DeltaAccumulator(error_prefix="Issue: ")
    acc.apply(CanonicalChunk(text="partial"))
    acc.apply(CanonicalChunk(upstream_error="overloaded"))
    acc.apply(CanonicalChunk(upstream_error="overloaded"))
    assert acc.snapshot.fragments[1:] == [ErrorFragment("Issue: overloaded"), ErrorFragment("Issue: overloaded")]  # nosec B101
    assert acc.snapshot.pending_incomplete is True  # nosec B101


def test_extension_finish_reason_also_terminates():
    snapshot = apply_chunk(MessageSnapshot(), CanonicalChunk(finish_reason=ExtensionValue(value="eos_custom")))
    assert snapshot.pending_incomplete is False  # nosec B101


def test_model_override_and_usage_merge():
    snapshot = MessageSnapshot(origin_llm="requested-model")
    apply_chunk(snapshot, CanonicalChunk(model="served-model", usage=UsageCounters(prompt_tokens=5, completion_tokens=0)))
    apply_chunk(snapshot, CanonicalChunk(text="x"))
    assert snapshot.origin_llm == "served-model"  # nosec B101
    apply_chunk(snapshot, CanonicalChunk(usage=UsageCounters(completion_tokens=9), metadata={"upstream_warning": "w"}))
    assert snapshot.metadata["usage"] == {"prompt": 5, "completion": 9, "total": 14}  # nosec B101
    assert snapshot.metadata["upstream_warning"] == "w"  # nosec B101


def test_accumulation_is_monotonic():
    acc = DeltaAccumulator()
    previous_text = ""
    previous_count = 0
    chunks = [
        CanonicalChunk(text="a"),
        CanonicalChunk(tool_calls=(ToolCallDelta(index=0, call_id="c", name="n"),)),
        CanonicalChunk(),
        CanonicalChunk(text="b"),
        CanonicalChunk(upstream_error="oops"),
        CanonicalChunk(text="c", finish_reason=FinishReason.STOP),
    ]
    for chunk in chunks:
        snapshot = acc.apply(chunk)
        assert snapshot.text.startswith(previous_text)  # nosec B101
        assert len(snapshot.fragments) >= previous_count  # nosec B101
        previous_text, previous_count = snapshot.text, len(snapshot.fragments)
    assert isinstance(acc.snapshot.fragments[-1], TextFragment)  # nosec B101


def test_append_error_and_complete():
    acc = DeltaAccumulator(error_prefix="Issue: ")
    acc.append_error("connection reset")
    acc.complete()
    assert acc.snapshot.errors[0].message == "Issue: connection reset"  # nosec B101
    assert acc.snapshot.pending_incomplete is False  # nosec B101
