"""Unified configuration layer for the streaming engine.

Goals
-----
* Centralize defaults (publisher cadence, malformed-event policy, vendors).
* Merge sources in a predictable order:
    1. Built-in defaults (``crux_stream.config.defaults``)
    2. Optional external config file (JSON or YAML) pointed to by
       ``CRUX_STREAM_CONFIG_FILE`` (``stream`` section)
    3. Environment variables (``CRUX_STREAM_*``)
    4. In-code overrides passed to :func:`get_stream_config`
* Resolve vendor endpoints for the reference HTTP transport
  (``<VENDOR>_BASE_URL`` / ``<VENDOR>_API_KEY``).

External Config File (Optional)
-------------------------------
```
stream:
  base_rate_hz: 12
  throttle_units: 2
  malformed_event_policy: abort
vendors:
  openrouter:
    base_url: https://openrouter.ai/api/v1
```

Invalid values never raise; they fall back to the defaults.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import json
import os

import yaml

from .defaults import (
    STREAM_BASE_RATE_HZ,
    STREAM_DEFAULT_THROTTLE_UNITS,
    STREAM_MALFORMED_EVENT_POLICY,
    STREAM_ERROR_FRAGMENT_PREFIX,
    STREAM_DEFAULT_VENDOR,
    VENDOR_DEFAULT_BASE_URLS,
)


class MalformedEventPolicy(str, Enum):
    """How the orchestrator treats one upstream event that fails validation."""

    SKIP = "skip"
    ABORT = "abort"


@dataclass(frozen=True)
class StreamConfig:
    """Resolved engine configuration.

    Attributes:
        base_rate_hz: Baseline publisher cadence for a single viewer.
        throttle_units: Default fan-out hint for the publisher.
        malformed_event_policy: Skip or abort on a malformed upstream event.
        default_vendor: Vendor used for llm ids without a ``vendor/`` prefix.
        error_fragment_prefix: Prefix of inline error fragments.
    """

    base_rate_hz: float = STREAM_BASE_RATE_HZ
    throttle_units: int = STREAM_DEFAULT_THROTTLE_UNITS
    malformed_event_policy: MalformedEventPolicy = MalformedEventPolicy(STREAM_MALFORMED_EVENT_POLICY)
    default_vendor: str = STREAM_DEFAULT_VENDOR
    error_fragment_prefix: str = STREAM_ERROR_FRAGMENT_PREFIX


ENV_FIELD_MAP = {
    "base_rate_hz": "CRUX_STREAM_BASE_RATE_HZ",
    "throttle_units": "CRUX_STREAM_THROTTLE_UNITS",
    "malformed_event_policy": "CRUX_STREAM_MALFORMED_EVENTS",
    "default_vendor": "CRUX_STREAM_DEFAULT_VENDOR",
}


_FILE_CACHE: Optional[Dict[str, Any]] = None
_FILE_CACHE_PATH: Optional[str] = None


def _load_external_config() -> Dict[str, Any]:
    global _FILE_CACHE, _FILE_CACHE_PATH
    path = os.getenv("CRUX_STREAM_CONFIG_FILE")
    if _FILE_CACHE is not None and _FILE_CACHE_PATH == path:
        return _FILE_CACHE
    _FILE_CACHE_PATH = path
    if not path or not Path(path).exists():
        _FILE_CACHE = {}
        return _FILE_CACHE
    text = Path(path).read_text(encoding="utf-8")
    data: Any
    # Try JSON first
    try:
        data = json.loads(text)
    except ValueError:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError:
            data = {}
    _FILE_CACHE = data if isinstance(data, dict) else {}
    return _FILE_CACHE


def _coerce_field(name: str, value: Any) -> Any:
    """Coerce a raw config value to the field type; ``None`` when invalid."""
    try:
        if name == "base_rate_hz":
            rate = float(value)
            return rate if rate > 0 else None
        if name == "throttle_units":
            units = int(value)
            return units if units >= 0 else None
        if name == "malformed_event_policy":
            return MalformedEventPolicy(str(value).strip().lower())
        if name == "default_vendor":
            vendor = str(value).strip().lower()
            return vendor or None
    except (TypeError, ValueError):
        return None
    return value


def _merge(fields: Dict[str, Any], source: Dict[str, Any]) -> None:
    for name, raw in source.items():
        if raw is None:
            continue
        coerced = _coerce_field(name, raw)
        if coerced is not None:
            fields[name] = coerced


def get_stream_config(overrides: Optional[Dict[str, Any]] = None) -> StreamConfig:
    """Return the merged engine configuration.

    Merge order (later wins): defaults -> external config -> env vars -> overrides
    """
    fields: Dict[str, Any] = {}

    file_cfg = _load_external_config().get("stream")
    if isinstance(file_cfg, dict):
        _merge(fields, {k: v for k, v in file_cfg.items() if k in StreamConfig.__dataclass_fields__})

    _merge(fields, {name: os.getenv(env) for name, env in ENV_FIELD_MAP.items()})

    if overrides:
        _merge(fields, {k: v for k, v in overrides.items() if k in StreamConfig.__dataclass_fields__})

    return replace(StreamConfig(), **fields)


def get_vendor_endpoint(vendor: str) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(base_url, api_key)`` for a vendor.

    Merge order (later wins): built-in base URL -> external ``vendors`` section
    -> ``<VENDOR>_BASE_URL`` / ``<VENDOR>_API_KEY`` env vars.
    """
    name = (vendor or "").lower().strip()
    base_url: Optional[str] = VENDOR_DEFAULT_BASE_URLS.get(name)
    api_key: Optional[str] = None

    vendors_cfg = _load_external_config().get("vendors")
    if isinstance(vendors_cfg, dict) and isinstance(vendors_cfg.get(name), dict):
        section = vendors_cfg[name]
        base_url = section.get("base_url") or base_url
        api_key = section.get("api_key") or api_key

    prefix = name.upper()
    base_url = os.getenv(f"{prefix}_BASE_URL") or base_url
    api_key = os.getenv(f"{prefix}_API_KEY") or api_key
    return base_url, api_key


__all__ = [
    "MalformedEventPolicy",
    "StreamConfig",
    "get_stream_config",
    "get_vendor_endpoint",
    "ENV_FIELD_MAP",
]
