"""Streaming engine base package.

Layers (leaves first):
- errors / cancellation / logging / tracing / timeouts: ambient primitives
- wire: vendor dialect schemas, validators and the dialect registry
- streaming: canonical chunk model, accumulator, publisher, orchestrator
- transport: upstream stream sources (HTTP reference implementation)

The streaming package is imported before the wire validators: the
validators build on the canonical chunk model.
"""

from .errors import (
    CancellationError,
    ErrorCode,
    ProviderError,
    SchemaValidationError,
    TransportError,
    classify_exception,
)
from .cancellation import CancellationToken, ConversationRunContext, RunTicket
from .streaming import (
    CanonicalChunk,
    DeltaAccumulator,
    FinishReason,
    MessageSnapshot,
    OutcomeStatus,
    RateLimitedPublisher,
    StreamMetrics,
    StreamOrchestrator,
    StreamOutcome,
    StreamState,
    apply_chunk,
)
from .wire import ExtensionValue, ChatCompletionRequest
from .wire.validators import (
    validate_anthropic_event,
    validate_event,
    validate_openai_chunk,
    validate_openai_response,
)
from .wire.registry import DialectRegistry, default_registry, resolve_llm_id
from .transport import HttpStreamTransport, StreamTransport

__all__ = [
    "CancellationError",
    "ErrorCode",
    "ProviderError",
    "SchemaValidationError",
    "TransportError",
    "classify_exception",
    "CancellationToken",
    "ConversationRunContext",
    "RunTicket",
    "CanonicalChunk",
    "DeltaAccumulator",
    "FinishReason",
    "MessageSnapshot",
    "OutcomeStatus",
    "RateLimitedPublisher",
    "StreamMetrics",
    "StreamOrchestrator",
    "StreamOutcome",
    "StreamState",
    "apply_chunk",
    "ExtensionValue",
    "ChatCompletionRequest",
    "validate_anthropic_event",
    "validate_event",
    "validate_openai_chunk",
    "validate_openai_response",
    "DialectRegistry",
    "default_registry",
    "resolve_llm_id",
    "HttpStreamTransport",
    "StreamTransport",
]
