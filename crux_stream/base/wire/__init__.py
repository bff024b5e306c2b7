"""Wire schemas for the supported vendor dialects.

Only the schema modules are re-exported here. Validators and the dialect
registry depend on the canonical chunk model and are imported from
``crux_stream.base.wire.validators`` / ``crux_stream.base.wire.registry``.
"""

from .extension import ExtensionValue, is_extension, raw_value, tolerant
from .openai_wire import (
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    OpenAIFinishReason,
)
from .anthropic_wire import AnthropicStopReason, AnthropicStreamEvent

__all__ = [
    "ExtensionValue",
    "is_extension",
    "raw_value",
    "tolerant",
    "ChatCompletionChunk",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "OpenAIFinishReason",
    "AnthropicStopReason",
    "AnthropicStreamEvent",
]
