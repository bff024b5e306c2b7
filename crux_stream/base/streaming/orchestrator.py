"""Stream orchestrator: drives one generation from request to outcome.

Lifecycle
---------
``IDLE -> STREAMING -> {COMPLETED, ABORTED, ERRORED}``

1. Resolve the llm id to a vendor dialect and open the upstream transport
   with the request and the cancellation token.
2. For each raw event: validate -> fold into the snapshot -> offer the
   snapshot to the publisher's ``decimate`` (``on_update(snapshot, False)``).
3. Once the token is signaled, events are discarded, no further
   intermediate updates are delivered and the transport is closed.
4. A transport failure (or a malformed event under the ``abort`` policy, or
   an error reported inside the stream by the vendor) appends an inline
   error fragment and ends the run as ``errored``.
5. The publisher's ``finalize`` always delivers exactly one
   ``on_update(snapshot, True)``, last, whatever the terminal state.

An orchestrator instance serves a single run. When a
:class:`ConversationRunContext` is given, the token is installed for the
duration of the run and released with the run's own ticket only.
"""
from __future__ import annotations

import logging
import time
import uuid
from contextlib import ExitStack, suppress
from typing import Any, Callable, Iterable, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from ...config import MalformedEventPolicy, StreamConfig, get_stream_config
from ..cancellation import CancellationError, CancellationToken, ConversationRunContext
from ..errors import ErrorCode, ProviderError, SchemaValidationError, TransportError
from ..logging import LogContext, get_logger, normalized_log_event
from ..tracing import set_span_attributes, start_span
from ..transport.interfaces import StreamTransport
from ..wire.openai_wire import ChatCompletionRequest
from ..wire.registry import DialectRegistry, ResolvedLLM, default_registry
from .accumulator import DeltaAccumulator
from .chunk import CanonicalChunk
from .outcome import STATE_TO_STATUS, StreamOutcome, StreamState
from .publisher import RateLimitedPublisher
from .snapshot import MessageSnapshot
from .streaming_finalize import finalize_run
from .streaming_metrics import StreamMetrics, apply_token_usage, validate_token_usage

UpdateSink = Callable[[MessageSnapshot, bool], None]
RequestLike = Union[ChatCompletionRequest, Mapping[str, Any]]


def prepare_request(request: RequestLike, model: str, *, vendor: str = "unknown") -> ChatCompletionRequest:
    """Return a streaming copy of ``request`` addressed to ``model``.

    Raises:
        ProviderError: ``validation`` when a mapping request is invalid.
    """
    if not isinstance(request, ChatCompletionRequest):
        payload = dict(request)
        payload.setdefault("model", model)
        try:
            request = ChatCompletionRequest.model_validate(payload)
        except ValidationError as exc:
            raise SchemaValidationError.from_validation_error(exc, dialect="request", provider=vendor) from exc
    return request.model_copy(update={"model": model, "stream": True})


class StreamOrchestrator:
    """Runs one streaming generation and produces its :class:`StreamOutcome`.

    Parameters
    ----------
    transport:
        Upstream source of raw vendor events.
    registry:
        Vendor dialect registry (defaults to the built-in vendors).
    config:
        Engine configuration (defaults to :func:`get_stream_config`).
    throttle_units:
        Publisher fan-out hint; defaults to ``config.throttle_units``.
    """

    def __init__(
        self,
        transport: StreamTransport,
        *,
        registry: Optional[DialectRegistry] = None,
        config: Optional[StreamConfig] = None,
        throttle_units: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.transport = transport
        self.registry = registry or default_registry()
        self.config = config or get_stream_config()
        units = self.config.throttle_units if throttle_units is None else throttle_units
        self.publisher = RateLimitedPublisher(units, base_rate_hz=self.config.base_rate_hz)
        self.accumulator = DeltaAccumulator(error_prefix=self.config.error_fragment_prefix)
        self.metrics = StreamMetrics()
        self.state = StreamState.IDLE
        self.outcome: Optional[StreamOutcome] = None
        self.run_id = uuid.uuid4().hex[:12]
        self._logger = logger or get_logger("streaming.orchestrator")
        self._ctx = LogContext(run_id=self.run_id)
        self._sink: Optional[UpdateSink] = None

    @property
    def snapshot(self) -> MessageSnapshot:
        return self.accumulator.snapshot

    # ------------------------------------------------------------------ run

    def run(
        self,
        llm_id: str,
        request: RequestLike,
        token: CancellationToken,
        on_update: UpdateSink,
        *,
        context: Optional[ConversationRunContext] = None,
    ) -> StreamOutcome:
        """Stream ``request`` from ``llm_id`` into ``on_update``.

        Never raises for upstream problems; the returned outcome is the single
        authoritative signal. Raises ``RuntimeError`` when called twice.
        ``KeyboardInterrupt``/``SystemExit`` propagate, but the context
        handle installed for this run is still released.
        """
        if self.state is not StreamState.IDLE:
            raise RuntimeError(f"orchestrator already used (state={self.state.value})")
        self.state = StreamState.STREAMING
        self._sink = on_update
        ticket = context.install(token) if context is not None else None
        try:
            return self._drive(llm_id, request, token)
        finally:
            if ticket is not None and context is not None:
                context.release(ticket)

    # ------------------------------------------------------------- internals

    def _drive(self, llm_id: str, request: RequestLike, token: CancellationToken) -> StreamOutcome:
        t0 = time.perf_counter()
        failure: Optional[ProviderError] = None
        upstream_error: Optional[str] = None
        cancelled = False

        with start_span("crux_stream.stream.run") as span:
            try:
                resolved = self.registry.resolve(llm_id, default_vendor=self.config.default_vendor)
                self._ctx.provider, self._ctx.model = resolved.vendor, resolved.model
                set_span_attributes(span, {"vendor": resolved.vendor, "model": resolved.model})
                self.snapshot.origin_llm = resolved.model
                wire_request = prepare_request(request, resolved.model, vendor=resolved.vendor)
                normalized_log_event(
                    self._logger,
                    "stream.run.start",
                    self._ctx,
                    phase="start",
                    attempt=1,
                    emitted=False,
                    tokens=None,
                    llm_id=llm_id,
                    dialect=resolved.dialect.name,
                    throttle_interval_ms=self.publisher.interval_ms,
                )
                failure, upstream_error, cancelled = self._consume(resolved, wire_request, token, t0)
            except CancellationError:
                cancelled = True
            except Exception as exc:  # start-phase failure (resolution, request, transport open)
                if token.cancelled:
                    cancelled = True
                else:
                    failure = self._as_failure(exc)
                    with suppress(Exception):
                        span.record_exception(exc)

            if not cancelled and failure is None and token.cancelled:
                # The transport honored the token and ended the stream early.
                cancelled = True
            outcome = self._finish(t0, failure=failure, upstream_error=upstream_error, cancelled=cancelled)
            set_span_attributes(
                span,
                {
                    "outcome": outcome.status.value,
                    "events_received": self.metrics.events_received,
                    "updates_emitted": self.metrics.updates_emitted,
                    "total_duration_ms": self.metrics.total_duration_ms,
                },
            )

        return outcome

    def _consume(
        self,
        resolved: ResolvedLLM,
        request: ChatCompletionRequest,
        token: CancellationToken,
        t0: float,
    ) -> Tuple[Optional[ProviderError], Optional[str], bool]:
        """Fold the upstream stream; return ``(failure, upstream_error, cancelled)``."""
        failure: Optional[ProviderError] = None
        upstream_error: Optional[str] = None
        cancelled = False
        with ExitStack() as stack:
            events = self.transport.open(resolved.vendor, request, token)
            _register_close(events, stack)
            try:
                for raw in events:
                    self.metrics.events_received += 1
                    if token.cancelled:
                        cancelled = True
                        break
                    chunk = self._validate(resolved, raw)
                    if isinstance(chunk, SchemaValidationError):
                        failure = chunk
                        break
                    if chunk is None:
                        continue
                    self._apply(chunk, t0)
                    if chunk.upstream_error is not None and upstream_error is None:
                        upstream_error = chunk.upstream_error
                    if token.cancelled:
                        cancelled = True
                        break
                    self.publisher.decimate(self._emit_partial)
            except CancellationError:
                cancelled = True
            except Exception as exc:  # transport failure mid-stream
                if token.cancelled:
                    cancelled = True
                else:
                    failure = self._as_failure(exc, model=resolved.model)
        return failure, upstream_error, cancelled

    def _validate(self, resolved: ResolvedLLM, raw: Any) -> Union[CanonicalChunk, SchemaValidationError, None]:
        """Validate one event; ``None`` means skipped, an error means abort."""
        try:
            return resolved.dialect.validate(raw, vendor=resolved.vendor)
        except SchemaValidationError as exc:
            normalized_log_event(
                self._logger,
                "stream.event.invalid",
                self._ctx,
                phase="validate",
                attempt=None,
                error_code=exc.code.value,
                emitted=None,
                tokens=None,
                level=logging.WARNING,
                dialect=exc.dialect,
                field_path=exc.field_path,
                policy=self.config.malformed_event_policy.value,
                error=exc.message,
            )
            if self.config.malformed_event_policy is MalformedEventPolicy.ABORT:
                return exc
            self.metrics.events_skipped += 1
            return None

    def _apply(self, chunk: CanonicalChunk, t0: float) -> None:
        self.accumulator.apply(chunk)
        self.metrics.chunks_applied = self.accumulator.chunks_applied
        if self.metrics.time_to_first_chunk_ms is None and chunk.has_content:
            self.metrics.time_to_first_chunk_ms = (time.perf_counter() - t0) * 1000.0
        if chunk.response_id and not self._ctx.response_id:
            self._ctx.response_id = chunk.response_id
        warning = chunk.metadata.get("upstream_warning")
        if warning:
            normalized_log_event(
                self._logger,
                "stream.upstream.warning",
                self._ctx,
                phase="stream",
                attempt=None,
                emitted=None,
                tokens=None,
                level=logging.WARNING,
                warning=warning,
            )

    def _as_failure(self, exc: BaseException, model: Optional[str] = None) -> ProviderError:
        if isinstance(exc, ProviderError):
            return exc
        return TransportError.from_exception(exc, provider=self._ctx.provider or "unknown", model=model)

    def _finish(
        self,
        t0: float,
        *,
        failure: Optional[ProviderError],
        upstream_error: Optional[str],
        cancelled: bool,
    ) -> StreamOutcome:
        error_message: Optional[str] = None
        error_code: Optional[str] = None
        if cancelled:
            self.state = StreamState.ABORTED
        elif failure is not None:
            self.state = StreamState.ERRORED
            error_message, error_code = failure.message, failure.code.value
            self.accumulator.append_error(failure.message)
        elif upstream_error is not None:
            self.state = StreamState.ERRORED
            error_message, error_code = upstream_error, ErrorCode.UPSTREAM.value
        else:
            self.state = StreamState.COMPLETED

        self.accumulator.complete()
        usage = self.snapshot.metadata.get("usage")
        if isinstance(usage, Mapping):
            apply_token_usage(
                self.metrics,
                prompt=usage.get("prompt"),
                completion=usage.get("completion"),
                total=usage.get("total"),
            )
            usage_ok, usage_reason = validate_token_usage(self.metrics)
            if not usage_ok:
                normalized_log_event(
                    self._logger,
                    "stream.usage.invalid",
                    self._ctx,
                    phase="finalize",
                    attempt=None,
                    emitted=None,
                    tokens=self.metrics.tokens,
                    level=logging.WARNING,
                    reason=usage_reason,
                )
        self.publisher.finalize(self._emit_final)
        self.metrics.updates_emitted = self.publisher.emitted
        self.metrics.updates_dropped = self.publisher.dropped
        self.metrics.total_duration_ms = (time.perf_counter() - t0) * 1000.0
        finalize_run(
            logger=self._logger,
            ctx=self._ctx,
            state=self.state,
            metrics=self.metrics,
            error=error_message,
            error_code=error_code,
        )
        self.outcome = StreamOutcome(
            status=STATE_TO_STATUS[self.state],
            snapshot=self.snapshot,
            error_message=error_message,
            error_code=error_code,
            metrics=self.metrics,
        )
        return self.outcome

    # ----------------------------------------------------------------- sink

    def _emit_partial(self) -> None:
        self._deliver(done=False)

    def _emit_final(self) -> None:
        self._deliver(done=True)

    def _deliver(self, *, done: bool) -> None:
        """Hand a deep copy of the snapshot to the sink; sink errors are logged only."""
        if self._sink is None:
            return
        try:
            self._sink(self.snapshot.copy(), done)
        except Exception as exc:  # sink must not break the run
            normalized_log_event(
                self._logger,
                "stream.sink.error",
                self._ctx,
                phase="finalize" if done else "stream",
                attempt=None,
                error_code=ErrorCode.INTERNAL.value,
                emitted=None,
                tokens=None,
                level=logging.ERROR,
                done=done,
                error=f"{exc.__class__.__name__}: {exc}",
            )


def _register_close(events: Iterable[Any], stack: ExitStack) -> None:
    """Register best-effort closing of the transport's event iterable."""
    close_fn = getattr(events, "close", None)
    if callable(close_fn):

        def _safe_close() -> None:
            with suppress(Exception):
                close_fn()

        stack.callback(_safe_close)


__all__ = ["StreamOrchestrator", "UpdateSink", "prepare_request"]
