"""Cooperative cancellation token implementation.

Exposes the ``CancellationToken`` class created fresh for every streaming run.
The caller keeps a reference to request cancellation at any time; the
orchestrator polls it at each event boundary and the transport registers a
callback so in-flight network reads are released promptly.
"""

from __future__ import annotations

from contextlib import suppress
from threading import Event, Lock
from typing import Callable, List, Optional

from .state import State
from .cancellation_error import CancellationError


class CancellationToken:
    """A cooperative, single-shot cancellation signal.

    Thread-safe for ``cancel`` + ``raise_if_cancelled`` usage. Once cancelled
    the token stays cancelled (there is no reset). Child tokens inherit
    cancellation when the parent is cancelled.
    """

    def __init__(self, *, parent: "CancellationToken | None" = None) -> None:
        self._state = State()
        self._lock = Lock()
        self._event = Event()
        self._children: List[CancellationToken] = []
        if parent is not None:
            parent.link_child(self)

    @property
    def cancelled(self) -> bool:  # noqa: D401 - short form
        """Whether cancellation has been requested."""
        return self._state.cancelled

    @property
    def reason(self) -> str | None:  # noqa: D401 - short form
        """Reason string supplied at cancel time (if any)."""
        return self._state.reason

    def cancel(self, reason: str | None = None) -> None:
        """Request cooperative cancellation, run callbacks and cascade to children.

        Only the first call has an effect; later calls keep the original reason.
        Callback failures are suppressed so every registered listener runs.
        """
        with self._lock:
            if self._state.cancelled:
                return
            self._state.cancelled = True
            self._state.reason = reason
            callbacks = list(self._state.callbacks)
            self._state.callbacks.clear()
            children = list(self._children)
        self._event.set()
        for callback in callbacks:
            with suppress(Exception):
                callback(reason)
        for child in children:
            child.cancel(reason)

    def add_callback(self, callback: Callable[[Optional[str]], None]) -> Callable[[], None]:
        """Register ``callback(reason)`` to run on cancellation.

        If the token is already cancelled the callback runs immediately.
        Returns a zero-argument function that unregisters the callback.
        """
        with self._lock:
            if not self._state.cancelled:
                self._state.callbacks.append(callback)

                def _remove() -> None:
                    with self._lock:
                        with suppress(ValueError):
                            self._state.callbacks.remove(callback)

                return _remove
            reason = self._state.reason
        with suppress(Exception):
            callback(reason)
        return lambda: None

    def link_child(self, token: "CancellationToken") -> "CancellationToken":
        """Link a child token so parent cancellation cascades (returns child)."""
        with self._lock:
            self._children.append(token)
            should_cancel = self._state.cancelled
            reason = self._state.reason
        if should_cancel:
            token.cancel(reason)
        return token

    def raise_if_cancelled(self) -> None:
        """Raise ``CancellationError`` if token is cancelled."""
        if self._state.cancelled:
            raise CancellationError(self._state.reason or "operation cancelled")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or ``timeout`` elapses; return ``cancelled``."""
        return self._event.wait(timeout)

    def child(self) -> "CancellationToken":
        """Create and link a child token (shortcut)."""
        return CancellationToken(parent=self)

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return (
            f"CancellationToken(cancelled={self._state.cancelled}, "
            f"reason={self._state.reason!r}, children={len(self._children)})"
        )


__all__ = ["CancellationToken"]
