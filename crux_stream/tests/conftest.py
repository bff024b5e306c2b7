"""Pytest fixtures shared by the crux_stream test suite.

Provides a controllable ``time.perf_counter`` clock, log capture on the
``crux_stream`` logger (which does not propagate to the root logger) and an
environment scrubbed of ``CRUX_STREAM_*`` overrides.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Iterator, List

import pytest

from crux_stream.base.logging import BASE_LOGGER_NAME, get_logger


@pytest.fixture(autouse=True)
def clean_stream_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep developer environment overrides out of the tests."""
    for name in (
        "CRUX_STREAM_CONFIG_FILE",
        "CRUX_STREAM_BASE_RATE_HZ",
        "CRUX_STREAM_THROTTLE_UNITS",
        "CRUX_STREAM_MALFORMED_EVENTS",
        "CRUX_STREAM_DEFAULT_VENDOR",
        "CRUX_STREAM_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture()
def fake_clock(monkeypatch):
    """Provide a deterministic perf_counter.

    Usage: fake_clock.advance(ms) to move time forward.
    """
    state = {"t": 0.0}

    def perf_counter():
        return state["t"]

    def advance(ms: float):
        state["t"] += ms / 1000.0

    monkeypatch.setattr(time, "perf_counter", perf_counter)
    return type("Clock", (), {"advance": staticmethod(advance)})


class _EventCapture(logging.Handler):
    """Collect structured log payloads emitted under ``crux_stream``."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def events(self) -> List[Dict[str, Any]]:
        out = []
        for record in self.records:
            try:
                payload = json.loads(record.getMessage())
            except ValueError:
                continue
            payload["_level"] = record.levelno
            out.append(payload)
        return out

    def named(self, event: str) -> List[Dict[str, Any]]:
        return [e for e in self.events() if e.get("event") == event]


@pytest.fixture()
def log_capture() -> Iterator[_EventCapture]:
    base = get_logger(BASE_LOGGER_NAME)
    handler = _EventCapture()
    base.addHandler(handler)
    try:
        yield handler
    finally:
        base.removeHandler(handler)
