"""Vendor-neutral streaming chunk model.

A :class:`CanonicalChunk` is produced once per validated upstream event by a
dialect validator and is immutable afterwards. Every field is optional: a
chunk may carry only a text delta, only tool-call deltas, only a finish
reason, only usage counters, or any combination.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from ..wire.extension import ExtensionValue


class FinishReason(str, Enum):
    """Canonical reasons for the end of a generation."""

    STOP = "stop"
    LENGTH = "length"
    TOOL_CALLS = "tool_calls"
    CONTENT_FILTER = "content_filter"
    ERROR = "error"


FinishReasonValue = Union[FinishReason, ExtensionValue]


@dataclass(frozen=True)
class ToolCallDelta:
    """A fragment of one tool call.

    Attributes:
        index: Position of the call within the message when the vendor reports
            one (continuation deltas are often keyed by index only).
        call_id: Vendor call id; present at least on the first delta of a call.
        name: Function name fragment.
        arguments: Argument-string (JSON text) fragment.
    """

    index: Optional[int] = None
    call_id: Optional[str] = None
    name: Optional[str] = None
    arguments: Optional[str] = None


@dataclass(frozen=True)
class UsageCounters:
    """Token usage reported by the upstream."""

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


@dataclass(frozen=True)
class CanonicalChunk:
    """One normalized increment of a streaming generation.

    Attributes:
        text: Text delta.
        tool_calls: Tool-call deltas, in wire order.
        finish_reason: ``None`` while generating; a canonical reason or an
            :class:`ExtensionValue` for undocumented vendor values.
        usage: Usage counters when the event carried them.
        model: Model that actually produced the content (origin override).
        response_id: Upstream response id.
        upstream_error: Error message reported inside the stream by the vendor.
        metadata: Auxiliary key/value data to merge into the snapshot.
    """

    text: Optional[str] = None
    tool_calls: Tuple[ToolCallDelta, ...] = ()
    finish_reason: Optional[FinishReasonValue] = None
    usage: Optional[UsageCounters] = None
    model: Optional[str] = None
    response_id: Optional[str] = None
    upstream_error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        """Whether the chunk carries a finish reason (any value)."""
        return self.finish_reason is not None

    @property
    def has_content(self) -> bool:
        """Whether the chunk adds text, tool-call or error content."""
        return bool(self.text) or bool(self.tool_calls) or self.upstream_error is not None


__all__ = [
    "FinishReason",
    "FinishReasonValue",
    "ToolCallDelta",
    "UsageCounters",
    "CanonicalChunk",
]
