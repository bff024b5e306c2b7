"""Run states and the terminal :class:`StreamOutcome`."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .snapshot import MessageSnapshot
from .streaming_metrics import StreamMetrics


class StreamState(str, Enum):
    """Orchestrator state machine: ``IDLE -> STREAMING -> terminal``."""

    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ABORTED = "aborted"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (StreamState.COMPLETED, StreamState.ABORTED, StreamState.ERRORED)


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    ABORTED = "aborted"
    ERRORED = "errored"


STATE_TO_STATUS = {
    StreamState.COMPLETED: OutcomeStatus.SUCCESS,
    StreamState.ABORTED: OutcomeStatus.ABORTED,
    StreamState.ERRORED: OutcomeStatus.ERRORED,
}


@dataclass(frozen=True)
class StreamOutcome:
    """Terminal result of one run, created exactly once.

    Attributes:
        status: ``success``, ``aborted`` or ``errored``.
        error_message: Captured failure message (``errored`` only).
        error_code: Normalized :class:`ErrorCode` value of the failure.
        snapshot: Final message snapshot handed over to the caller.
        metrics: Run metrics.
    """

    status: OutcomeStatus
    snapshot: MessageSnapshot
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    metrics: StreamMetrics = field(default_factory=StreamMetrics)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "error_message": self.error_message,
            "error_code": self.error_code,
            "snapshot": self.snapshot.to_dict(),
            "metrics": self.metrics.to_dict(),
        }


__all__ = ["StreamState", "OutcomeStatus", "STATE_TO_STATUS", "StreamOutcome"]
