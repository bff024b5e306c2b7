"""Rate-limited publisher: interval policy, decimation and finalize."""
from __future__ import annotations

import pytest

from crux_stream.base.streaming import RateLimitedPublisher, throttle_interval_ms


def test_interval_policy():
    assert throttle_interval_ms(0) == 0  # nosec B101
    assert throttle_interval_ms(1) == pytest.approx(1000 / 12)  # nosec B101
    assert throttle_interval_ms(2) == 118  # nosec B101
    assert throttle_interval_ms(4) == 167  # nosec B101
    assert throttle_interval_ms(1, base_rate_hz=10) == 100  # nosec B101
    assert throttle_interval_ms(9, base_rate_hz=10) == 300  # nosec B101


def test_invalid_inputs_rejected():
    with pytest.raises(ValueError):
        throttle_interval_ms(-1)
    with pytest.raises(ValueError):
        RateLimitedPublisher(1, base_rate_hz=0)


def test_zero_units_never_drops(fake_clock):
    publisher = RateLimitedPublisher(0)
    calls = []
    for _ in range(50):
        assert publisher.decimate(lambda: calls.append(1)) is True  # nosec B101
    assert len(calls) == 50 and publisher.dropped == 0  # nosec B101


def test_decimation_respects_interval(fake_clock):
    print("TEST: emissions inside the interval are dropped")
    publisher = RateLimitedPublisher(1, base_rate_hz=10)
    calls = []

    def emit():
        calls.append(1)

    assert publisher.decimate(emit) is True  # nosec B101
    fake_clock.advance(50)
    assert publisher.decimate(emit) is False  # nosec B101
    fake_clock.advance(49)
    assert publisher.decimate(emit) is False  # nosec B101
    fake_clock.advance(10)
    assert publisher.decimate(emit) is True  # nosec B101
    assert (publisher.emitted, publisher.dropped, len(calls)) == (2, 2, 2)  # nosec B101


def test_more_units_emit_less_often(fake_clock):
    def count(units: int) -> int:
        publisher = RateLimitedPublisher(units, base_rate_hz=12)
        for _ in range(100):
            publisher.decimate(lambda: None)
            fake_clock.advance(10)
        return publisher.emitted

    assert count(0) > count(1) > count(4) > count(16)  # nosec B101


def test_finalize_always_emits_and_resets(fake_clock):
    publisher = RateLimitedPublisher(1)
    seen = []
    publisher.decimate(lambda: seen.append("partial"))
    publisher.finalize(lambda: seen.append("final"))
    assert seen == ["partial", "final"]  # nosec B101
    assert publisher.state.last_emit is None  # nosec B101
    # after reset the next update is not throttled
    assert publisher.decimate(lambda: seen.append("next")) is True  # nosec B101
