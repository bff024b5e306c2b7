"""Rate-limited publisher: adaptive decimation of sink notifications.

Purpose
-------
Bound how often the downstream sink is notified while a message streams in.
The cadence adapts to a fan-out hint (``throttle_units``): the number of
concurrently visible panes rendering streams.

Interval policy
---------------
- ``0`` units: no throttling; every update is emitted.
- ``1`` unit: baseline cadence, ``1000 / base_rate_hz`` ms (12 Hz -> ~83 ms).
- ``n > 1``: ``round(baseline_ms * sqrt(n))`` ms; more panes each refresh
  less often.

``decimate`` drops notifications arriving inside the interval (the live
snapshot still reflects them). ``finalize`` always emits and resets the
timing state, so the terminal update is never lost.
"""
from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

DEFAULT_BASE_RATE_HZ = 12.0


def throttle_interval_ms(throttle_units: int, base_rate_hz: float = DEFAULT_BASE_RATE_HZ) -> float:
    """Return the minimum inter-emit interval (ms) for ``throttle_units``.

    Raises:
        ValueError: for negative units or a non-positive base rate.
    """
    if throttle_units < 0:
        raise ValueError(f"throttle_units must be >= 0, got {throttle_units}")
    if base_rate_hz <= 0:
        raise ValueError(f"base_rate_hz must be > 0, got {base_rate_hz}")
    if throttle_units == 0:
        return 0.0
    baseline_ms = 1000.0 / base_rate_hz
    if throttle_units == 1:
        return baseline_ms
    return float(round(baseline_ms * math.sqrt(throttle_units)))


@dataclass
class ThrottleState:
    """Private timing state of a publisher.

    ``last_emit`` is a ``time.perf_counter`` reading (seconds) or ``None``
    before the first emission.
    """

    interval_ms: float
    last_emit: Optional[float] = None

    def reset(self) -> None:
        self.last_emit = None


class RateLimitedPublisher:
    """Decimates notifications to a target cadence.

    Not thread-safe: one publisher serves one run, driven from the
    orchestrator's single flow of control.
    """

    def __init__(self, throttle_units: int = 1, *, base_rate_hz: float = DEFAULT_BASE_RATE_HZ) -> None:
        self.throttle_units = throttle_units
        self.state = ThrottleState(interval_ms=throttle_interval_ms(throttle_units, base_rate_hz))
        self.emitted = 0
        self.dropped = 0

    @property
    def interval_ms(self) -> float:
        return self.state.interval_ms

    def decimate(self, emit: Callable[[], None]) -> bool:
        """Call ``emit`` unless the previous emission is too recent.

        Returns whether ``emit`` was called.
        """
        now = time.perf_counter()
        last = self.state.last_emit
        if self.state.interval_ms > 0 and last is not None:
            if (now - last) * 1000.0 < self.state.interval_ms:
                self.dropped += 1
                return False
        self.state.last_emit = now
        self.emitted += 1
        emit()
        return True

    def finalize(self, emit: Callable[[], None]) -> None:
        """Unconditionally call ``emit`` once more and reset timing state."""
        self.state.reset()
        self.emitted += 1
        emit()


__all__ = [
    "DEFAULT_BASE_RATE_HZ",
    "throttle_interval_ms",
    "ThrottleState",
    "RateLimitedPublisher",
]
