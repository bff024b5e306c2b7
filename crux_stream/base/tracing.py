"""Lightweight tracing facade over OpenTelemetry.

The engine annotates stream runs and transport start phases with spans.
Only ``opentelemetry-api`` is required: without an SDK/exporter configured
by the host application the global tracer provider is a no-op, so calls are
always safe and cheap.

Policy notes
- No side effects on import.
- Spans expose ``set_attribute``/``record_exception`` and the context manager
  protocol.
"""
from __future__ import annotations

from contextlib import suppress
from typing import Any, Mapping

from opentelemetry import trace

TRACER_NAME = "crux_stream"


def get_tracer(service_name: str = TRACER_NAME) -> trace.Tracer:
    """Return the tracer for ``service_name`` from the global provider."""
    return trace.get_tracer(service_name)


def start_span(name: str, *, service_name: str = TRACER_NAME):
    """Start a span and return it as a context manager.

    Usage:

        with start_span("crux_stream.run") as span:
            span.set_attribute("vendor", "openai")
    """
    return get_tracer(service_name).start_as_current_span(name)


def set_span_attributes(span: Any, attributes: Mapping[str, Any]) -> None:
    """Set several attributes, skipping ``None`` values; never raises."""
    for key, value in attributes.items():
        if value is None:
            continue
        with suppress(Exception):
            span.set_attribute(key, value)


__all__ = ["get_tracer", "start_span", "set_span_attributes", "TRACER_NAME"]
