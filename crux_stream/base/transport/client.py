"""Shared HTTP client pool for streaming transports.

Purpose:
    Keep one reusable ``httpx.Client`` per vendor base URL so concurrent runs
    share connection pools instead of reconnecting per request. Timeouts come
    from :func:`httpx_timeout` (start/stream/http values of
    :func:`get_timeout_config`).

Lifecycle & cleanup:
    - Clients are cached by ``base_url``.
    - All clients are closed at interpreter exit via ``atexit``; tests may
      call :func:`close_all_clients` explicitly.
"""

from __future__ import annotations

import atexit
import threading
from contextlib import suppress
from typing import Dict

import httpx

from ..timeouts import httpx_timeout

_CLIENTS: Dict[str, httpx.Client] = {}
_LOCK = threading.RLock()


def get_httpx_client(base_url: str) -> httpx.Client:
    """Return the pooled ``httpx.Client`` for ``base_url``.

    Thread-safety:
        Safe for concurrent use; per-key creation is guarded by a re-entrant lock.
    """
    client = _CLIENTS.get(base_url)
    if client is not None and not client.is_closed:
        return client

    with _LOCK:
        client = _CLIENTS.get(base_url)
        if client is not None and not client.is_closed:
            return client
        client = httpx.Client(base_url=base_url, timeout=httpx_timeout())
        _CLIENTS[base_url] = client
        return client


def close_all_clients() -> None:
    """Close and clear all pooled HTTP clients."""
    with _LOCK:
        for client in _CLIENTS.values():
            with suppress(Exception):  # best-effort shutdown
                client.close()
        _CLIENTS.clear()


atexit.register(close_all_clients)

__all__ = ["get_httpx_client", "close_all_clients"]
