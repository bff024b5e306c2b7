"""Unified stream error taxonomy public surface.

This module re-exports the one-class-per-file implementations under
``crux_stream.base.errors_parts`` (plus the cancellation error) to maintain a
stable import path while enforcing the one-class-per-file governance rule.

Taxonomy
--------
- ``SchemaValidationError``: one malformed upstream event (recovered locally
  by default).
- ``TransportError``: network/protocol failure of the upstream collaborator.
- ``CancellationError``: user-requested stop; never reported as a failure.
"""

from .errors_parts.error_code import ErrorCode, RETRYABLE_CODES
from .errors_parts.provider_error import ProviderError
from .errors_parts.classification import classify_exception
from .errors_parts.schema_validation_error import SchemaValidationError
from .errors_parts.transport_error import TransportError
from .cancellation_parts.cancellation_error import CancellationError

__all__ = [
    "ErrorCode",
    "RETRYABLE_CODES",
    "ProviderError",
    "classify_exception",
    "SchemaValidationError",
    "TransportError",
    "CancellationError",
]
