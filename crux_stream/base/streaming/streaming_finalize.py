"""Finalize run helper.

Located within the streaming package to localize terminal logging of a run
and the consolidation of its metrics.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..logging import LogContext, normalized_log_event
from .outcome import StreamState
from .streaming_metrics import StreamMetrics, build_token_usage

_TERMINAL_EVENTS = {
    StreamState.COMPLETED: "stream.run.end",
    StreamState.ABORTED: "stream.run.cancelled",
    StreamState.ERRORED: "stream.run.error",
}


def tokens_payload(metrics: StreamMetrics) -> Dict[str, Any]:
    """Return the canonical ``{"prompt","completion","total"}`` mapping for ``metrics``."""
    if metrics.tokens is not None:
        return metrics.tokens
    return build_token_usage(metrics.prompt_tokens, metrics.completion_tokens, metrics.total_tokens)


def finalize_run(
    *,
    logger: logging.Logger,
    ctx: LogContext,
    state: StreamState,
    metrics: StreamMetrics,
    error: Optional[str] = None,
    error_code: Optional[str] = None,
) -> None:
    """Emit the consolidated terminal log event of a run."""
    normalized_log_event(
        logger,
        _TERMINAL_EVENTS.get(state, "stream.run.end"),
        ctx,
        phase="finalize",
        attempt=None,
        emitted=metrics.updates_emitted > 0,
        tokens=tokens_payload(metrics),
        error_code=error_code,
        level=logging.ERROR if state is StreamState.ERRORED else logging.INFO,
        state=state.value,
        events_received=metrics.events_received,
        events_skipped=metrics.events_skipped,
        chunks_applied=metrics.chunks_applied,
        updates_emitted=metrics.updates_emitted,
        updates_dropped=metrics.updates_dropped,
        time_to_first_chunk_ms=metrics.time_to_first_chunk_ms,
        total_duration_ms=metrics.total_duration_ms,
        error=error,
    )


__all__ = ["finalize_run", "tokens_payload"]
