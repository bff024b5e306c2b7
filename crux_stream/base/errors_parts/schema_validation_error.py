"""
Schema validation error for a single malformed upstream event.

Raised by the wire validators when a raw vendor event does not match any
permissible shape of its dialect. Carries the dotted path of the offending
field so logs point straight at the problem.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from .error_code import ErrorCode
from .provider_error import ProviderError

ROOT_PATH = "<root>"


def _format_loc(error: Dict[str, Any]) -> str:
    """Render a pydantic error location as a dotted field path.

    Tagged-union errors (missing or unknown discriminant) report the union's
    own location; the discriminant field name is appended so the path names
    the field that is actually missing.
    """
    loc: List[str] = [str(part) for part in error.get("loc", ())]
    if error.get("type") in ("union_tag_not_found", "union_tag_invalid"):
        discriminator = str((error.get("ctx") or {}).get("discriminator", "")).strip("'\"")
        if discriminator:
            loc.append(discriminator)
    return ".".join(loc) or ROOT_PATH


@dataclass
class SchemaValidationError(ProviderError):
    """One upstream event failed validation against its vendor dialect.

    Attributes:
        dialect: Name of the dialect whose schema rejected the event.
        field_path: Dotted path of the first offending field (``"<root>"``
            when the payload itself has the wrong type).
        errors: All error entries reported by the schema, in order.
    """

    dialect: str = ""
    field_path: str = ROOT_PATH
    errors: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)

    @classmethod
    def from_validation_error(
        cls,
        exc: ValidationError,
        *,
        dialect: str,
        provider: str,
        model: Optional[str] = None,
    ) -> "SchemaValidationError":
        """Build from a pydantic ``ValidationError`` raised by a wire schema."""
        entries = tuple(exc.errors(include_url=False))
        path = _format_loc(entries[0]) if entries else ROOT_PATH
        detail = entries[0].get("msg", "invalid value") if entries else "invalid value"
        return cls(
            code=ErrorCode.VALIDATION,
            message=f"{dialect} event invalid at '{path}': {detail}",
            provider=provider,
            model=model,
            raw=exc,
            dialect=dialect,
            field_path=path,
            errors=entries,
        )

    @classmethod
    def not_an_object(cls, payload: Any, *, dialect: str, provider: str) -> "SchemaValidationError":
        """Build for a payload that is not a JSON object at all."""
        return cls(
            code=ErrorCode.VALIDATION,
            message=f"{dialect} event must be a JSON object, got {type(payload).__name__}",
            provider=provider,
            dialect=dialect,
            field_path=ROOT_PATH,
        )


__all__ = ["SchemaValidationError", "ROOT_PATH"]
