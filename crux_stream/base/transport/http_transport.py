"""Reference HTTP streaming transport (httpx).

Purpose:
- Open a vendor's streaming endpoint and yield raw decoded events for the
  orchestrator. OpenAI-style vendors are called at ``/chat/completions``;
  Anthropic-dialect vendors at ``/messages`` with a translated body.

Behavior:
- Start phase (request + response headers) is retried with
  :class:`RetryConfig` for transient, rate-limit and timeout failures. HTTP
  error statuses surface as :class:`TransportError` with the status-mapped
  code. Once streaming began nothing is retried.
- The cancellation token is checked between lines and a token callback
  closes the response, so a blocked read is released promptly.
- Idle reads are bounded by the stream timeout (``PT_TIMEOUT_STREAM_SECONDS``)
  and raise ``httpx.ReadTimeout``, reported by the orchestrator as a
  ``timeout`` transport error.
"""
from __future__ import annotations

import functools
import logging
from contextlib import suppress
from dataclasses import replace
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

import httpx

from ...config import get_vendor_endpoint
from ...config.defaults import ANTHROPIC_API_VERSION
from ..cancellation import CancellationToken
from ..errors import ErrorCode, ProviderError, RETRYABLE_CODES, TransportError
from ..logging import LogContext, get_logger, normalized_log_event
from ..resilience.retry import RetryConfig, retry
from ..tracing import set_span_attributes, start_span
from ..wire.openai_wire import ChatCompletionRequest
from ..wire.registry import DialectRegistry, default_registry
from ..wire.validators import ANTHROPIC_DIALECT_NAME, Dialect
from .anthropic_request import to_anthropic_body
from .client import get_httpx_client
from .sse import DONE, decode_line

EndpointResolver = Callable[[str], Tuple[Optional[str], Optional[str]]]
ClientFactory = Callable[[str], httpx.Client]

_ERROR_DETAIL_LIMIT = 260


def build_http_request(
    dialect: Dialect,
    request: ChatCompletionRequest,
    api_key: Optional[str],
) -> Tuple[str, Dict[str, Any], Dict[str, str]]:
    """Return ``(path, json_body, headers)`` for a streaming call.

    The path is the dialect's ``endpoint_path`` relative to the vendor base URL.
    """
    headers = {"Accept": "text/event-stream", "Content-Type": "application/json"}
    if dialect.name == ANTHROPIC_DIALECT_NAME:
        if api_key:
            headers["x-api-key"] = api_key
        headers["anthropic-version"] = ANTHROPIC_API_VERSION
        return dialect.endpoint_path, to_anthropic_body(request), headers
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    body = request.to_wire()
    body["stream"] = True
    return dialect.endpoint_path, body, headers


def _close_quietly(response: httpx.Response) -> None:
    with suppress(Exception):
        response.close()


class HttpStreamTransport:
    """:class:`StreamTransport` over HTTP server-sent events.

    Parameters:
        registry: Dialect registry used to pick the endpoint shape.
        client_factory: ``base_url -> httpx.Client``; defaults to the shared pool.
        endpoint_resolver: ``vendor -> (base_url, api_key)``; defaults to
            :func:`get_vendor_endpoint` (env/config driven).
        retry_config: Start-phase retry policy.
    """

    def __init__(
        self,
        *,
        registry: Optional[DialectRegistry] = None,
        client_factory: ClientFactory = get_httpx_client,
        endpoint_resolver: EndpointResolver = get_vendor_endpoint,
        retry_config: Optional[RetryConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._registry = registry or default_registry()
        self._client_factory = client_factory
        self._endpoint_resolver = endpoint_resolver
        self._logger = logger or get_logger("transport.http")
        self._retry_config = retry_config

    def open(self, vendor_id: str, request: ChatCompletionRequest, token: CancellationToken) -> Iterator[Any]:
        """Return a lazy iterator of decoded events; nothing is sent until iterated."""
        return self._events(vendor_id, request, token)

    # ------------------------------------------------------------------ I/O

    def _events(self, vendor_id: str, request: ChatCompletionRequest, token: CancellationToken) -> Iterator[Any]:
        dialect = self._registry.dialect_for(vendor_id)
        base_url, api_key = self._endpoint_resolver(vendor_id)
        if not base_url:
            raise TransportError(
                code=ErrorCode.UNSUPPORTED,
                message=f"no base URL configured for vendor '{vendor_id}'",
                provider=vendor_id,
                model=request.model,
            )
        path, body, headers = build_http_request(dialect, request, api_key)
        ctx = LogContext(provider=vendor_id, model=request.model)
        normalized_log_event(
            self._logger,
            "transport.http.start",
            ctx,
            phase="start",
            attempt=None,
            emitted=False,
            tokens=None,
            base_url=base_url,
            path=path,
            dialect=dialect.name,
            has_api_key=bool(api_key),
        )
        client = self._client_factory(base_url)
        with start_span("crux_stream.transport.start") as span:
            set_span_attributes(span, {"vendor": vendor_id, "model": request.model, "path": path})
            response = self._start(client, path, body, headers, ctx, token)

        unregister = token.add_callback(lambda _reason: _close_quietly(response))
        try:
            for line in response.iter_lines():
                if token.cancelled:
                    return
                event = decode_line(line)
                if event is None:
                    continue
                if event is DONE:
                    return
                yield event
        finally:
            unregister()
            _close_quietly(response)

    def _start(
        self,
        client: httpx.Client,
        path: str,
        body: Dict[str, Any],
        headers: Dict[str, str],
        ctx: LogContext,
        token: CancellationToken,
    ) -> httpx.Response:
        """Send the request and return the streaming response (status < 400)."""

        def _attempt() -> httpx.Response:
            token.raise_if_cancelled()
            http_request = client.build_request("POST", path, json=body, headers=headers)
            try:
                response = client.send(http_request, stream=True)
            except httpx.HTTPError as exc:
                raise TransportError.from_exception(exc, provider=ctx.provider, model=ctx.model) from exc
            if response.status_code < 400:
                return response
            try:
                response.read()
                detail = response.text[:_ERROR_DETAIL_LIMIT]
            finally:
                _close_quietly(response)
            status_error = httpx.HTTPStatusError(
                f"HTTP {response.status_code}: {detail}", request=http_request, response=response
            )
            raise TransportError.from_exception(status_error, provider=ctx.provider, model=ctx.model) from status_error

        config = self._retry_config or RetryConfig()
        if config.attempt_logger is None:
            config = replace(config, attempt_logger=functools.partial(self._log_attempt, ctx))
        return retry(config)(_attempt)()

    def _log_attempt(
        self,
        ctx: LogContext,
        *,
        attempt: int,
        max_attempts: int,
        delay: float | None,
        error: ProviderError | None,
    ) -> None:
        if error is None:
            return
        normalized_log_event(
            self._logger,
            "transport.http.attempt",
            ctx,
            phase="start",
            attempt=attempt + 1,
            error_code=error.code.value,
            emitted=False,
            tokens=None,
            level=logging.WARNING,
            max_attempts=max_attempts,
            retry_in_s=delay if error.code in RETRYABLE_CODES else None,
            error=error.message,
        )


__all__ = ["HttpStreamTransport", "build_http_request"]
