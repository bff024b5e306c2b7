"""Streaming package: canonical chunk model, accumulation, publishing and
orchestration of one generation.

Import order matters: the data model (``chunk``/``snapshot``) loads before
the orchestrator, which depends on the wire validators built on it.
"""

from .chunk import CanonicalChunk, FinishReason, ToolCallDelta, UsageCounters
from .snapshot import ErrorFragment, MessageSnapshot, TextFragment, ToolCallFragment
from .streaming_metrics import StreamMetrics, apply_token_usage, build_token_usage, validate_token_usage
from .accumulator import DeltaAccumulator, apply_chunk
from .publisher import RateLimitedPublisher, ThrottleState, throttle_interval_ms
from .outcome import OutcomeStatus, StreamOutcome, StreamState
from .streaming_finalize import finalize_run
from .orchestrator import StreamOrchestrator, UpdateSink, prepare_request

__all__ = [
    "CanonicalChunk",
    "FinishReason",
    "ToolCallDelta",
    "UsageCounters",
    "ErrorFragment",
    "MessageSnapshot",
    "TextFragment",
    "ToolCallFragment",
    "StreamMetrics",
    "apply_token_usage",
    "build_token_usage",
    "validate_token_usage",
    "DeltaAccumulator",
    "apply_chunk",
    "RateLimitedPublisher",
    "ThrottleState",
    "throttle_interval_ms",
    "OutcomeStatus",
    "StreamOutcome",
    "StreamState",
    "finalize_run",
    "StreamOrchestrator",
    "UpdateSink",
    "prepare_request",
]
