"""Unified timeout configuration for stream transports.

Timeouts are the responsibility of the upstream transport: an idle stream
surfaces as a transport error (``ErrorCode.TIMEOUT``) which the orchestrator
reports as an ``errored`` outcome. This module centralizes the values so no
transport hard-codes its own.

Key Components
--------------
TimeoutConfig
    Dataclass capturing normalized timeout values (seconds).

get_timeout_config()
    Returns a process-cached configuration, re-parsed only when the relevant
    environment variables change. Supported variables (all optional):
        PT_TIMEOUT_START_SECONDS
        PT_TIMEOUT_STREAM_SECONDS
        PT_TIMEOUT_HTTP_SECONDS

httpx_timeout()
    Builds the ``httpx.Timeout`` used for streaming requests: connect bounded
    by the start timeout, reads bounded by the stream idle timeout.
"""
from __future__ import annotations

from dataclasses import dataclass
import os

import httpx


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timeout values (seconds).

    Attributes:
        start_timeout_seconds: Timeout for establishing the streaming session
            (connect + response headers).
        stream_timeout_seconds: Idle timeout while waiting for the next event.
        http_timeout_seconds: Baseline timeout for non-streaming calls.
    """

    start_timeout_seconds: float = 30.0
    stream_timeout_seconds: float = 60.0
    http_timeout_seconds: float = 30.0


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None
_ENV_NAMES = ("PT_TIMEOUT_START_SECONDS", "PT_TIMEOUT_STREAM_SECONDS", "PT_TIMEOUT_HTTP_SECONDS")


def _parse_env_float(name: str, default: float) -> float:
    """Parse a positive float from ``name``; return ``default`` when unset or invalid."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached `TimeoutConfig` instance."""
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - documented module cache
    guard = "/".join(os.getenv(name, "") for name in _ENV_NAMES)
    if _CACHED is not None and _ENV_GUARD == guard:
        return _CACHED
    defaults = TimeoutConfig()
    _CACHED = TimeoutConfig(
        start_timeout_seconds=_parse_env_float("PT_TIMEOUT_START_SECONDS", defaults.start_timeout_seconds),
        stream_timeout_seconds=_parse_env_float("PT_TIMEOUT_STREAM_SECONDS", defaults.stream_timeout_seconds),
        http_timeout_seconds=_parse_env_float("PT_TIMEOUT_HTTP_SECONDS", defaults.http_timeout_seconds),
    )
    _ENV_GUARD = guard
    return _CACHED


def httpx_timeout(cfg: TimeoutConfig | None = None) -> httpx.Timeout:
    """Return the ``httpx.Timeout`` for streaming requests."""
    cfg = cfg or get_timeout_config()
    return httpx.Timeout(
        connect=cfg.start_timeout_seconds,
        read=cfg.stream_timeout_seconds,
        write=cfg.http_timeout_seconds,
        pool=cfg.start_timeout_seconds,
    )


__all__ = [
    "TimeoutConfig",
    "get_timeout_config",
    "httpx_timeout",
]
