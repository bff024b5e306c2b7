"""Cooperative cancellation primitives (public API facade).

Purpose
-------
Expose stable cancellation constructs via the canonical
``crux_stream.base.cancellation`` import path while the concrete
implementations live under ``cancellation_parts`` for organization.

Notes
-----
- ``CancellationToken`` is created fresh per run and is terminal once signalled.
- ``CancellationError`` is raised by operations that observe a cancellation request.
- ``ConversationRunContext`` holds the active run's token for one conversation,
  guarded by run-scoped ``RunTicket`` ownership.
"""

from .cancellation_parts.cancellation_error import CancellationError
from .cancellation_parts.cancellation_token import CancellationToken
from .cancellation_parts.run_context import ConversationRunContext, RunTicket

__all__ = ["CancellationToken", "CancellationError", "ConversationRunContext", "RunTicket"]
