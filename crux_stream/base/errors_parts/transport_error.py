"""
Transport error raised by upstream stream sources.

Represents a network or protocol failure of the upstream collaborator
(connection reset, HTTP error status, idle timeout, undecodable framing).
Surfaced by the orchestrator as an ``errored`` outcome.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .classification import classify_exception
from .error_code import ErrorCode, RETRYABLE_CODES
from .provider_error import ProviderError


@dataclass
class TransportError(ProviderError):
    """Network/protocol failure from the upstream transport."""

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        *,
        provider: str,
        model: Optional[str] = None,
    ) -> "TransportError":
        """Classify an arbitrary exception into a ``TransportError``.

        ``ProviderError`` instances keep their code and message.
        """
        if isinstance(exc, ProviderError):
            return cls(
                code=exc.code,
                message=exc.message,
                provider=exc.provider or provider,
                model=exc.model or model,
                retryable=exc.retryable,
                raw=exc,
            )
        code = classify_exception(exc) if isinstance(exc, Exception) else ErrorCode.UNKNOWN
        return cls(
            code=code,
            message=str(exc) or exc.__class__.__name__,
            provider=provider,
            model=model,
            retryable=code in RETRYABLE_CODES,
            raw=exc if isinstance(exc, Exception) else None,
        )


__all__ = ["TransportError"]
