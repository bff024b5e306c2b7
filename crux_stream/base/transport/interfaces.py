"""Upstream transport contract consumed by the orchestrator.

A transport opens one vendor stream and yields raw, JSON-decoded vendor
events lazily. It terminates by natural close or by raising. Implementations
must honor the cancellation token by aborting in-flight I/O (for example by
registering ``token.add_callback`` to close the underlying response) rather
than draining the stream to completion. Timeouts are the transport's
responsibility and surface as exceptions.
"""
from __future__ import annotations

from typing import Any, Iterable, Protocol, runtime_checkable

from ..cancellation import CancellationToken
from ..wire.openai_wire import ChatCompletionRequest


@runtime_checkable
class StreamTransport(Protocol):
    """Source of raw vendor events for one streaming request."""

    def open(
        self,
        vendor_id: str,
        request: ChatCompletionRequest,
        token: CancellationToken,
    ) -> Iterable[Any]:  # pragma: no cover - protocol
        """Start streaming ``request`` from ``vendor_id``.

        Returns an iterable of raw events (decoded JSON objects, or raw text
        for payloads that could not be decoded).
        """
        ...


__all__ = ["StreamTransport"]
