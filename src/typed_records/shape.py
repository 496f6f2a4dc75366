"""Shape classification for type definitions."""

from __future__ import annotations

from enum import Enum

from typed_records.types import TypeDefinition


class TypeShape(Enum):
    """How an operator addresses the members of a row."""

    RECORD = "record"
    ARRAY = "array"
    DYNAMIC_RECORD = "dynamic_record"


def classify(type_def: TypeDefinition) -> TypeShape:
    """Return the shape of ``type_def``, resolving aliases first.

    Arrays and dynamic records are recognised explicitly; everything else,
    primitives included, is treated as a record.
    """
    base = type_def.resolve_base_type()
    if base.is_array:
        return TypeShape.ARRAY
    if base.is_dynamic:
        return TypeShape.DYNAMIC_RECORD
    return TypeShape.RECORD
