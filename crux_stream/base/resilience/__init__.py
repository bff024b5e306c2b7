"""Resilience helpers (retry policy for transport start phases)."""

from .retry import RetryConfig, DEFAULT_RETRY_CONFIG, retry

__all__ = ["RetryConfig", "DEFAULT_RETRY_CONFIG", "retry"]
