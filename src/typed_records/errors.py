"""Exceptions raised while describing record types and moving row values."""

from __future__ import annotations

from typing import Any


class ShapeError(TypeError):
    """Raised when a record type cannot be catalogued as named columns."""

    def __init__(self, message: str, *, property_name: str, type_name: str | None = None) -> None:
        super().__init__(message)
        self.property_name = property_name
        self.type_name = type_name


class ConversionError(ValueError):
    """Raised when a value cannot be converted to a property's underlying type."""

    def __init__(
        self,
        value: Any,
        target_type: str,
        *,
        property_name: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.value = value
        self.source_type = type(value).__name__
        self.target_type = target_type
        self.property_name = property_name
        self.reason = reason
        location = f" for property '{property_name}'" if property_name else ""
        message = f"Cannot convert {value!r} ({self.source_type}) to {target_type}{location}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
