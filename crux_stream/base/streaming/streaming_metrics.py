"""Streaming metrics data structures.

Isolated within the streaming package to keep orchestration code small and cohesive.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any, Tuple


@dataclass
class StreamMetrics:
    """Collected metrics for a single orchestrated run.

    Counters
    --------
    events_received: raw events delivered by the transport.
    events_skipped: malformed events dropped under the ``skip`` policy.
    chunks_applied: canonical chunks folded into the snapshot.
    updates_emitted / updates_dropped: sink notifications delivered or
        decimated by the publisher (the terminal update counts as emitted).

    Timings are milliseconds measured with ``time.perf_counter``.
    """

    events_received: int = 0
    events_skipped: int = 0
    chunks_applied: int = 0
    updates_emitted: int = 0
    updates_dropped: int = 0
    time_to_first_chunk_ms: Optional[float] = None
    total_duration_ms: Optional[float] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    tokens: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_token_usage(prompt: Optional[int], completion: Optional[int], total: Optional[int] = None) -> Dict[str, Optional[int]]:
    """Return a canonical token usage mapping."""
    derived_total = total
    if derived_total is None and (prompt is not None and completion is not None):
        derived_total = prompt + completion
    return {"prompt": prompt, "completion": completion, "total": derived_total}


def apply_token_usage(metrics: StreamMetrics, *, prompt: Optional[int], completion: Optional[int], total: Optional[int] = None) -> None:
    """Populate token usage fields on a :class:`StreamMetrics` instance."""
    metrics.tokens = build_token_usage(prompt, completion, total)
    metrics.prompt_tokens = metrics.tokens["prompt"]
    metrics.completion_tokens = metrics.tokens["completion"]
    metrics.total_tokens = metrics.tokens["total"]


def validate_token_usage(
    metrics: StreamMetrics,
    *,
    raise_on_error: bool = False,
) -> Tuple[bool, Optional[str]]:
    """Validate token usage fields for internal consistency.

    Returns ``(True, None)`` when consistent, else ``(False, reason)``; raises
    ``ValueError`` instead when ``raise_on_error`` is set.
    """

    def _fail(reason: str) -> Tuple[bool, Optional[str]]:
        if raise_on_error:
            raise ValueError(f"token usage invalid: {reason}")
        return False, reason

    for name, value in (
        ("prompt_tokens", metrics.prompt_tokens),
        ("completion_tokens", metrics.completion_tokens),
        ("total_tokens", metrics.total_tokens),
    ):
        if value is not None and value < 0:
            return _fail(f"{name} negative: {value}")

    if (
        metrics.prompt_tokens is not None
        and metrics.completion_tokens is not None
        and metrics.total_tokens is not None
    ) and metrics.prompt_tokens + metrics.completion_tokens > metrics.total_tokens:
        # Some vendors add reasoning/cached tokens to the total, never less.
        return _fail("total_tokens smaller than prompt+completion")

    return True, None


__all__ = [
    "StreamMetrics",
    "apply_token_usage",
    "build_token_usage",
    "validate_token_usage",
]
