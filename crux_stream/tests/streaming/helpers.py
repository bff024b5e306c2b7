"""Helpers for orchestrator tests: recording sinks and scripted transports."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

from crux_stream.base.cancellation import CancellationToken
from crux_stream.base.streaming import MessageSnapshot, StreamOrchestrator
from crux_stream.config import MalformedEventPolicy, StreamConfig

USER_REQUEST = {"messages": [{"role": "user", "content": "Say hello"}]}


@dataclass
class RecordingSink:
    """Sink storing every ``(snapshot, done)`` update it receives.

    ``on_update`` (optional) is called after recording, e.g. to cancel the
    run's token after a number of updates.
    """

    updates: List[Tuple[MessageSnapshot, bool]] = field(default_factory=list)
    on_update: Optional[Callable[[int], None]] = None

    def __call__(self, snapshot: MessageSnapshot, done: bool) -> None:
        self.updates.append((snapshot, done))
        if self.on_update is not None:
            self.on_update(len(self.updates))

    @property
    def final(self) -> MessageSnapshot:
        return self.updates[-1][0]

    @property
    def done_flags(self) -> List[bool]:
        return [done for _, done in self.updates]


class RaiseAfterCancelTransport:
    """Yields events, then fails on the next read once the token is cancelled.

    Mimics a network stream whose connection is torn down by cancellation.
    """

    def __init__(self, events: Sequence[Any]) -> None:
        self.events = list(events)

    def open(self, vendor_id: str, request: Any, token: CancellationToken) -> Iterator[Any]:
        def _gen() -> Iterator[Any]:
            for event in self.events:
                if token.cancelled:
                    raise ConnectionError("stream closed by cancellation")
                yield event

        return _gen()


class FailingOpenTransport:
    """Raises from ``open`` itself (start-phase failure)."""

    def __init__(self, error: BaseException) -> None:
        self.error = error

    def open(self, vendor_id: str, request: Any, token: CancellationToken) -> Iterator[Any]:
        raise self.error


def make_orchestrator(
    transport: Any,
    *,
    throttle_units: int = 0,
    policy: MalformedEventPolicy = MalformedEventPolicy.SKIP,
) -> StreamOrchestrator:
    config = StreamConfig(throttle_units=throttle_units, malformed_event_policy=policy)
    return StreamOrchestrator(transport, config=config)
