"""Vendor dialect registry.

Maps vendor ids to the wire dialect their streaming endpoint speaks and
resolves ``"vendor/model"`` identifiers. Most vendors expose an
OpenAI-compatible chat completions API; Anthropic speaks its own messages
stream.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple

from ..errors import ErrorCode, ProviderError
from .validators import ANTHROPIC_DIALECT, OPENAI_DIALECT, Dialect

OPENAI_COMPATIBLE_VENDORS: Tuple[str, ...] = (
    "openai",
    "openrouter",
    "azure",
    "deepseek",
    "groq",
    "mistral",
    "togetherai",
    "perplexity",
    "localai",
    "lmstudio",
    "ollama",
    "xai",
)


@dataclass(frozen=True)
class ResolvedLLM:
    """An llm id resolved to its vendor, vendor-side model name and dialect."""

    vendor: str
    model: str
    dialect: Dialect

    @property
    def llm_id(self) -> str:
        return f"{self.vendor}/{self.model}"


class DialectRegistry:
    """Registry of vendor id -> :class:`Dialect`.

    Parameters
    ----------
    dialects:
        Initial vendor mapping; defaults to every known vendor.
    default_vendor:
        Vendor assumed for llm ids without a recognized vendor prefix.
    """

    def __init__(self, dialects: Optional[Mapping[str, Dialect]] = None, *, default_vendor: str = "openai") -> None:
        self._dialects: Dict[str, Dialect] = dict(dialects) if dialects is not None else _builtin_dialects()
        self.default_vendor = default_vendor

    def register(self, vendor: str, dialect: Dialect) -> None:
        """Register (or replace) the dialect spoken by ``vendor``."""
        self._dialects[vendor.strip().lower()] = dialect

    def vendors(self) -> Iterable[str]:
        return sorted(self._dialects)

    def __contains__(self, vendor: object) -> bool:
        return isinstance(vendor, str) and vendor.strip().lower() in self._dialects

    def dialect_for(self, vendor: str) -> Dialect:
        """Return the dialect for ``vendor``.

        Raises:
            ProviderError: ``unsupported`` when the vendor is unknown.
        """
        key = (vendor or "").strip().lower()
        dialect = self._dialects.get(key)
        if dialect is None:
            raise ProviderError(
                code=ErrorCode.UNSUPPORTED,
                message=f"no wire dialect registered for vendor '{vendor}'",
                provider=key or "unknown",
            )
        return dialect

    def resolve(self, llm_id: str, *, default_vendor: Optional[str] = None) -> ResolvedLLM:
        """Resolve ``llm_id`` into vendor, model and dialect."""
        vendor, model = resolve_llm_id(llm_id, default_vendor=default_vendor or self.default_vendor)
        return ResolvedLLM(vendor=vendor, model=model, dialect=self.dialect_for(vendor))


def _builtin_dialects() -> Dict[str, Dialect]:
    table: Dict[str, Dialect] = {vendor: OPENAI_DIALECT for vendor in OPENAI_COMPATIBLE_VENDORS}
    table["anthropic"] = ANTHROPIC_DIALECT
    return table


def resolve_llm_id(llm_id: str, *, default_vendor: str = "openai") -> Tuple[str, str]:
    """Split ``"vendor/model"`` into ``(vendor, model)``.

    The text before the first ``/`` is the vendor; the rest (which may contain
    further slashes, e.g. ``"openrouter/meta-llama/llama-3-8b"``) is the model.
    An id without a slash names a model of ``default_vendor``.

    Raises:
        ProviderError: ``validation`` for an empty id or empty model name.
    """
    raw = (llm_id or "").strip()
    vendor, model = default_vendor, raw
    if "/" in raw:
        prefix, rest = raw.split("/", 1)
        vendor, model = prefix.strip().lower(), rest.strip()
    if not model:
        raise ProviderError(
            code=ErrorCode.VALIDATION,
            message=f"llm id '{llm_id}' does not name a model",
            provider=vendor or "unknown",
        )
    return vendor, model


_DEFAULT_REGISTRY: Optional[DialectRegistry] = None


def default_registry() -> DialectRegistry:
    """Return the process-wide registry of built-in vendors."""
    global _DEFAULT_REGISTRY  # noqa: PLW0603 - lazily built module singleton
    if _DEFAULT_REGISTRY is None:
        _DEFAULT_REGISTRY = DialectRegistry()
    return _DEFAULT_REGISTRY


__all__ = [
    "OPENAI_COMPATIBLE_VENDORS",
    "ResolvedLLM",
    "DialectRegistry",
    "resolve_llm_id",
    "default_registry",
]
