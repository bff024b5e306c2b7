"""Tolerant enumerations for vendor wire schemas.

Upstream providers emit undocumented values for enumerated fields (finish
reasons, roles). Rejecting them breaks multi-vendor compatibility, so a
tolerant field accepts any string: known values become members of the enum,
anything else becomes an :class:`ExtensionValue` tagged variant. Non-string
values are still rejected.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Callable, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, PlainSerializer, PlainValidator

E = TypeVar("E", bound=Enum)


class ExtensionValue(BaseModel):
    """An enumerated value outside the documented set of a dialect."""

    model_config = ConfigDict(frozen=True)

    value: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


def is_extension(value: Any) -> bool:
    """Return ``True`` when ``value`` is an extension (undocumented) variant."""
    return isinstance(value, ExtensionValue)


def raw_value(value: Any) -> Any:
    """Return the wire string of an enum member or extension value."""
    if isinstance(value, ExtensionValue):
        return value.value
    if isinstance(value, Enum):
        return value.value
    return value


def _tolerant_validator(enum_cls: Type[E]) -> Callable[[Any], Union[E, ExtensionValue]]:
    def _validate(value: Any) -> Union[E, ExtensionValue]:
        if isinstance(value, (enum_cls, ExtensionValue)):
            return value
        if not isinstance(value, str):
            raise ValueError(f"expected a string for {enum_cls.__name__}, got {type(value).__name__}")
        try:
            return enum_cls(value)
        except ValueError:
            return ExtensionValue(value=value)

    return _validate


def tolerant(enum_cls: Type[E]) -> Any:
    """Build an annotated type accepting ``enum_cls`` members or extensions.

    Example::

        finish_reason: Optional[tolerant(FinishReason)] = None
    """
    return Annotated[
        Union[enum_cls, ExtensionValue],
        PlainValidator(_tolerant_validator(enum_cls)),
        PlainSerializer(raw_value),
    ]


__all__ = ["ExtensionValue", "is_extension", "raw_value", "tolerant"]
