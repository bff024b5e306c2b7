"""crux_stream: streaming chat-generation engine.

Normalizes heterogeneous vendor streaming dialects into one canonical update
model and republishes it to a subscriber at a bounded, adaptive rate, with
cooperative mid-stream cancellation and partial-failure recovery.

Quick start::

    from crux_stream import CancellationToken, StreamOrchestrator, HttpStreamTransport

    orchestrator = StreamOrchestrator(HttpStreamTransport())
    outcome = orchestrator.run(
        "openai/gpt-4o-mini",
        {"messages": [{"role": "user", "content": "Hello"}]},
        CancellationToken(),
        lambda snapshot, done: print(snapshot.text, done),
    )
"""

__version__ = "0.1.0"

from .base import (
    CancellationError,
    CancellationToken,
    CanonicalChunk,
    ChatCompletionRequest,
    ConversationRunContext,
    DeltaAccumulator,
    DialectRegistry,
    ErrorCode,
    ExtensionValue,
    FinishReason,
    HttpStreamTransport,
    MessageSnapshot,
    OutcomeStatus,
    ProviderError,
    RateLimitedPublisher,
    SchemaValidationError,
    StreamOrchestrator,
    StreamOutcome,
    StreamState,
    StreamTransport,
    TransportError,
    apply_chunk,
    resolve_llm_id,
    validate_event,
)
from .config import MalformedEventPolicy, StreamConfig, get_stream_config
from .mock import MockScript, MockTransport
from .service import ConversationRunner, PostCompletionHook

__all__ = [
    "__version__",
    "CancellationError",
    "CancellationToken",
    "CanonicalChunk",
    "ChatCompletionRequest",
    "ConversationRunContext",
    "DeltaAccumulator",
    "DialectRegistry",
    "ErrorCode",
    "ExtensionValue",
    "FinishReason",
    "HttpStreamTransport",
    "MessageSnapshot",
    "OutcomeStatus",
    "ProviderError",
    "RateLimitedPublisher",
    "SchemaValidationError",
    "StreamOrchestrator",
    "StreamOutcome",
    "StreamState",
    "StreamTransport",
    "TransportError",
    "apply_chunk",
    "resolve_llm_id",
    "validate_event",
    "MalformedEventPolicy",
    "StreamConfig",
    "get_stream_config",
    "MockScript",
    "MockTransport",
    "ConversationRunner",
    "PostCompletionHook",
]
