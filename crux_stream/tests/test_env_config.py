"""Tests for the layered engine configuration (defaults, file, env, overrides)."""
from __future__ import annotations

from crux_stream.config import (
    MalformedEventPolicy,
    StreamConfig,
    get_stream_config,
    get_vendor_endpoint,
)
from crux_stream.config.defaults import OPENAI_DEFAULT_BASE_URL


def test_defaults_without_sources():
    cfg = get_stream_config()
    assert cfg == StreamConfig()  # nosec B101
    assert cfg.base_rate_hz == 12.0  # nosec B101
    assert cfg.throttle_units == 1  # nosec B101
    assert cfg.malformed_event_policy is MalformedEventPolicy.SKIP  # nosec B101
    assert cfg.error_fragment_prefix == "Issue: "  # nosec B101


def test_env_overrides_and_invalid_values_fall_back(monkeypatch):
    monkeypatch.setenv("CRUX_STREAM_THROTTLE_UNITS", "3")
    monkeypatch.setenv("CRUX_STREAM_MALFORMED_EVENTS", "ABORT")
    monkeypatch.setenv("CRUX_STREAM_BASE_RATE_HZ", "-5")
    cfg = get_stream_config()
    assert cfg.throttle_units == 3  # nosec B101
    assert cfg.malformed_event_policy is MalformedEventPolicy.ABORT  # nosec B101
    assert cfg.base_rate_hz == 12.0  # nosec B101


def test_overrides_win_over_env(monkeypatch):
    monkeypatch.setenv("CRUX_STREAM_THROTTLE_UNITS", "3")
    cfg = get_stream_config({"throttle_units": 0, "unknown_key": 1})
    assert cfg.throttle_units == 0  # nosec B101


def test_yaml_config_file(tmp_path, monkeypatch):
    path = tmp_path / "stream.yaml"
    path.write_text(
        "stream:\n"
        "  base_rate_hz: 24\n"
        "  malformed_event_policy: abort\n"
        "vendors:\n"
        "  openrouter:\n"
        "    base_url: https://proxy.example/v1\n"
        "    api_key: from-file\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("CRUX_STREAM_CONFIG_FILE", str(path))
    monkeypatch.delenv("OPENROUTER_BASE_URL", raising=False)
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    cfg = get_stream_config()
    assert cfg.base_rate_hz == 24.0  # nosec B101
    assert cfg.malformed_event_policy is MalformedEventPolicy.ABORT  # nosec B101
    assert get_vendor_endpoint("openrouter") == ("https://proxy.example/v1", "from-file")  # nosec B101


def test_vendor_endpoint_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.delenv("OPENAI_BASE_URL", raising=False)
    assert get_vendor_endpoint("OpenAI") == (OPENAI_DEFAULT_BASE_URL, "sk-env")  # nosec B101
    monkeypatch.delenv("NOVENDOR_BASE_URL", raising=False)
    monkeypatch.delenv("NOVENDOR_API_KEY", raising=False)
    assert get_vendor_endpoint("novendor") == (None, None)  # nosec B101
