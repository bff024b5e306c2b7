"""Accumulated view of an in-flight assistant message.

The snapshot is owned exclusively by the orchestrator/accumulator pair while
a run is streaming. Sinks never see the live object: the publisher hands
them a deep copy from :meth:`MessageSnapshot.copy`.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Literal, Optional, Union

FragmentKind = Literal["text", "tool_call", "error"]


@dataclass
class TextFragment:
    """Contiguous text produced by the model."""

    text: str = ""
    kind: FragmentKind = field(default="text", init=False)


@dataclass
class ToolCallFragment:
    """A tool call assembled from streamed deltas.

    ``arguments`` is the concatenation of every argument fragment received for
    this call, in arrival order. It is not guaranteed to be valid JSON.
    """

    call_id: Optional[str] = None
    name: str = ""
    arguments: str = ""
    index: Optional[int] = None
    kind: FragmentKind = field(default="tool_call", init=False)


@dataclass
class ErrorFragment:
    """Inline error shown inside the assistant message."""

    message: str = ""
    kind: FragmentKind = field(default="error", init=False)


Fragment = Union[TextFragment, ToolCallFragment, ErrorFragment]


@dataclass
class MessageSnapshot:
    """The always-current view of the message being generated.

    Attributes:
        fragments: Ordered content fragments; only the last one is open for
            appending.
        origin_llm: Model that actually produced the content (last write wins).
        pending_incomplete: ``True`` until the stream reaches a terminal event.
        metadata: Auxiliary data (usage, upstream warnings), overwritten per key.
    """

    fragments: List[Fragment] = field(default_factory=list)
    origin_llm: Optional[str] = None
    pending_incomplete: bool = True
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        """Concatenated text of all text fragments."""
        return "".join(f.text for f in self.fragments if isinstance(f, TextFragment))

    @property
    def tool_calls(self) -> List[ToolCallFragment]:
        return [f for f in self.fragments if isinstance(f, ToolCallFragment)]

    @property
    def errors(self) -> List[ErrorFragment]:
        return [f for f in self.fragments if isinstance(f, ErrorFragment)]

    def copy(self) -> "MessageSnapshot":
        """Return a deep copy safe to hand to a sink."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable dictionary representation."""
        return asdict(self)


__all__ = [
    "FragmentKind",
    "TextFragment",
    "ToolCallFragment",
    "ErrorFragment",
    "Fragment",
    "MessageSnapshot",
]
