"""Cancellation error type.

Defines the public ``CancellationError`` used to signal cooperative
cancellation of a streaming run. Kept isolated to satisfy one-class-per-file
policy.
"""

from __future__ import annotations


class CancellationError(RuntimeError):
    """Raised when an operation observes a cancellation request.

    Distinguishes a user-requested stop from transport or validation failures
    so the orchestrator can report an ``aborted`` outcome instead of an
    ``errored`` one.
    """


__all__ = ["CancellationError"]
