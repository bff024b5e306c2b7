"""Caller-level conversation runner with post-completion hooks.

Purpose
-------
Own the per-conversation in-flight handle (:class:`ConversationRunContext`),
create a fresh :class:`CancellationToken` for every generation, drive a
:class:`StreamOrchestrator` and then invoke post-completion hooks (titling,
suggestions, speech, persistence) with the final outcome and snapshot.

The orchestrator knows nothing about hooks; they run here, after the
terminal update has been delivered, in registration order. A failing hook is
logged (``stream.hook.error``) and never changes the outcome or stops later
hooks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from ..base.cancellation import CancellationToken, ConversationRunContext
from ..base.logging import LogContext, get_logger, normalized_log_event
from ..base.streaming.orchestrator import RequestLike, StreamOrchestrator, UpdateSink
from ..base.streaming.outcome import OutcomeStatus, StreamOutcome
from ..base.streaming.snapshot import MessageSnapshot
from ..base.transport.interfaces import StreamTransport
from ..base.wire.registry import DialectRegistry
from ..config import StreamConfig, get_stream_config

HookCallback = Callable[[StreamOutcome, MessageSnapshot], None]


@dataclass(frozen=True)
class PostCompletionHook:
    """A side effect chained after a generation ends.

    Attributes:
        name: Label used in logs.
        callback: ``callback(outcome, snapshot)``.
        run_when_aborted: Also run after a user cancellation.
        run_when_errored: Also run after a failed generation.
    """

    name: str
    callback: HookCallback
    run_when_aborted: bool = False
    run_when_errored: bool = False

    def applies_to(self, status: OutcomeStatus) -> bool:
        if status is OutcomeStatus.SUCCESS:
            return True
        if status is OutcomeStatus.ABORTED:
            return self.run_when_aborted
        return self.run_when_errored


class ConversationRunner:
    """Runs generations for one conversation, one at a time.

    Parameters
    ----------
    transport: Upstream stream source shared by all runs.
    conversation_id: Identifier carried into logs.
    hooks: Initial post-completion hooks.
    """

    def __init__(
        self,
        transport: StreamTransport,
        *,
        conversation_id: Optional[str] = None,
        registry: Optional[DialectRegistry] = None,
        config: Optional[StreamConfig] = None,
        throttle_units: Optional[int] = None,
        hooks: Sequence[PostCompletionHook] = (),
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.transport = transport
        self.context = ConversationRunContext(conversation_id)
        self.registry = registry
        self.config = config or get_stream_config()
        self.throttle_units = throttle_units
        self.hooks: List[PostCompletionHook] = list(hooks)
        self.last_outcome: Optional[StreamOutcome] = None
        self._logger = logger or get_logger("service.chat_runner")

    def add_hook(self, hook: PostCompletionHook) -> None:
        self.hooks.append(hook)

    @property
    def busy(self) -> bool:
        """Whether a generation currently owns the conversation."""
        return self.context.is_busy

    def cancel(self, reason: Optional[str] = None) -> bool:
        """Cancel the in-flight generation, if any."""
        return self.context.cancel_active(reason or "cancelled by user")

    def generate(
        self,
        llm_id: str,
        request: RequestLike,
        on_update: UpdateSink,
        *,
        cancel_previous: bool = True,
        token: Optional[CancellationToken] = None,
    ) -> StreamOutcome:
        """Stream one assistant message and run the post-completion hooks.

        A generation still in flight is cancelled first when
        ``cancel_previous`` is set; otherwise ``RuntimeError`` is raised.
        """
        if self.context.is_busy:
            if not cancel_previous:
                raise RuntimeError(f"conversation {self.context.conversation_id!r} already has a run in flight")
            self.context.cancel_active("superseded by a new generation")
        token = token or CancellationToken()
        orchestrator = StreamOrchestrator(
            self.transport,
            registry=self.registry,
            config=self.config,
            throttle_units=self.throttle_units,
        )
        outcome = orchestrator.run(llm_id, request, token, on_update, context=self.context)
        self.last_outcome = outcome
        self._run_hooks(outcome, orchestrator.run_id)
        return outcome

    def _run_hooks(self, outcome: StreamOutcome, run_id: str) -> None:
        ctx = LogContext(run_id=run_id, extra={"conversation_id": self.context.conversation_id})
        for hook in self.hooks:
            if not hook.applies_to(outcome.status):
                continue
            try:
                hook.callback(outcome, outcome.snapshot)
            except Exception as exc:  # hooks are fire-and-forget
                normalized_log_event(
                    self._logger,
                    "stream.hook.error",
                    ctx,
                    phase="hooks",
                    attempt=None,
                    error_code=exc.__class__.__name__,
                    emitted=None,
                    tokens=None,
                    level=logging.ERROR,
                    hook=hook.name,
                    status=outcome.status.value,
                    error=str(exc),
                )


__all__ = ["PostCompletionHook", "ConversationRunner", "HookCallback"]
