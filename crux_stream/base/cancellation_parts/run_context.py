"""Per-conversation in-flight handle with run-scoped ownership.

A ``ConversationRunContext`` is owned by the caller (one per conversation)
and holds the cancellation token of the run currently streaming into it.
Each installation returns a ``RunTicket``; only the holder of the matching
ticket can clear the handle, so a late-finishing stale run never clobbers the
handle installed by a newer run.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from threading import Lock
from typing import Optional

from .cancellation_token import CancellationToken

_RUN_SEQUENCE = itertools.count(1)


@dataclass(frozen=True)
class RunTicket:
    """Identifies one installation of a token into a run context."""

    run_id: int
    token: CancellationToken


class ConversationRunContext:
    """Caller-owned holder of the active run's cancellation token.

    Thread-safe. ``install`` replaces any previous handle (the previous run is
    not cancelled automatically; callers decide via ``cancel_active`` first).
    """

    def __init__(self, conversation_id: str | None = None) -> None:
        self.conversation_id = conversation_id
        self._lock = Lock()
        self._active: Optional[RunTicket] = None

    def install(self, token: CancellationToken) -> RunTicket:
        """Install ``token`` as the active handle and return its ticket."""
        ticket = RunTicket(run_id=next(_RUN_SEQUENCE), token=token)
        with self._lock:
            self._active = ticket
        return ticket

    def release(self, ticket: RunTicket) -> bool:
        """Clear the handle only if ``ticket`` is still the active one.

        Returns ``True`` when the handle was cleared, ``False`` when a newer
        run owns it (or it was already cleared).
        """
        with self._lock:
            if self._active is None or self._active.run_id != ticket.run_id:
                return False
            self._active = None
            return True

    def cancel_active(self, reason: str | None = None) -> bool:
        """Cancel the active run's token, if any; return whether one existed."""
        with self._lock:
            active = self._active
        if active is None:
            return False
        active.token.cancel(reason)
        return True

    @property
    def active_token(self) -> CancellationToken | None:
        """Token of the run currently installed, if any."""
        with self._lock:
            return self._active.token if self._active else None

    @property
    def is_busy(self) -> bool:  # noqa: D401 - short property
        """Whether a run currently owns the handle."""
        with self._lock:
            return self._active is not None


__all__ = ["ConversationRunContext", "RunTicket"]
