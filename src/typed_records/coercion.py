"""Numeric classification, nullable unwrapping and value coercion."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from datetime import date, datetime
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Any

import structlog

from typed_records.errors import ConversionError
from typed_records.types import (
    NullableTypeDefinition,
    PrimitiveType,
    PrimitiveTypeDefinition,
    RecordTypeDefinition,
    TypeDefinition,
)

logger = structlog.get_logger(__name__)

_TRUE_TEXT = "true"
_FALSE_TEXT = "false"
_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")

# Sources that are never a record row
_SCALAR_TYPES = (str, bytes, bool, int, float, Decimal, date, list, tuple)


def is_numeric(type_def: TypeDefinition | None) -> bool:
    """Return whether ``type_def`` holds numbers.

    Integers, floats and decimals are numeric, as is a nullable wrapper over
    any of them. Boolean, string, datetime, enums, records, arrays and None
    are not.
    """
    if type_def is None:
        return False
    base = type_def.resolve_base_type()
    if isinstance(base, NullableTypeDefinition):
        return is_numeric(base.base_type)
    if isinstance(base, PrimitiveTypeDefinition):
        return base.primitive.is_numeric
    return False


def unwrap_nullable(type_def: TypeDefinition) -> TypeDefinition:
    """Return the wrapped type of a nullable wrapper, else ``type_def`` itself."""
    base = type_def.resolve_base_type()
    if isinstance(base, NullableTypeDefinition):
        return base.base_type
    return type_def


def coerce(value: Any, target: TypeDefinition, property_name: str | None = None) -> Any:
    """Convert ``value`` to the underlying type ``target``.

    None always converts to None. Enum targets accept the value unchanged;
    the consumer is expected to supply a compatible representation. Array
    elements are converted to the element type. A record target keeps a row
    object that is already of the record's class.

    Raises:
        ConversionError: If the value cannot be represented as ``target``.
    """
    try:
        return _convert_value(value, target)
    except (TypeError, ValueError, ArithmeticError) as exc:
        logger.debug(
            "conversion_failed",
            target_type=target.name,
            source_type=type(value).__name__,
            property_name=property_name,
        )
        raise ConversionError(value, target.name, property_name=property_name, reason=str(exc)) from exc


def _convert_value(value: Any, target: TypeDefinition) -> Any:
    if value is None:
        return None
    base = unwrap_nullable(target).resolve_base_type()
    if base.is_enum:
        return value
    return _convert(value, base)


def _convert(value: Any, base: TypeDefinition) -> Any:
    if isinstance(base, PrimitiveTypeDefinition):
        return _convert_primitive(value, base.primitive)
    if base.is_array:
        if not isinstance(value, (list, tuple)):
            raise TypeError(f"expected a list or tuple, got {type(value).__name__}")
        return _convert_items(value, base.element_type)
    if isinstance(base, RecordTypeDefinition):
        return _to_record(value, base)
    if base.is_dynamic:
        if isinstance(value, Mapping):
            return dict(value)
        raise TypeError(f"expected a mapping, got {type(value).__name__}")
    raise TypeError(f"no conversion to {base.name} is defined")


def _convert_items(values: list[Any] | tuple[Any, ...], element_type: TypeDefinition) -> list[Any]:
    items = []
    for i, item in enumerate(values):
        try:
            items.append(_convert_value(item, element_type))
        except (TypeError, ValueError, ArithmeticError) as exc:
            raise ValueError(f"element {i}: {exc}") from exc
    return items


def _to_record(value: Any, record: RecordTypeDefinition) -> Any:
    if isinstance(value, Mapping):
        return dict(value)
    if record.python_type is not None:
        if isinstance(value, record.python_type):
            return value
        raise TypeError(f"expected a mapping or {record.python_type.__name__}, got {type(value).__name__}")
    if isinstance(value, _SCALAR_TYPES):
        raise TypeError(f"expected a mapping or row object, got {type(value).__name__}")
    return value


def _convert_primitive(value: Any, primitive: PrimitiveType) -> Any:
    if primitive.is_integer:
        return _to_integer(value, primitive)
    if primitive in (PrimitiveType.FLOAT32, PrimitiveType.FLOAT64):
        if isinstance(value, (bool, int, float, Decimal)):
            return float(value)
        if isinstance(value, str):
            return float(value.strip())
        raise TypeError(f"unsupported source type {type(value).__name__}")
    if primitive is PrimitiveType.DECIMAL:
        return _to_decimal(value)
    if primitive is PrimitiveType.BOOLEAN:
        return _to_boolean(value)
    if primitive is PrimitiveType.STRING:
        return str(value)
    if primitive is PrimitiveType.DATETIME:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if isinstance(value, str):
            return datetime.fromisoformat(value.strip())
        raise TypeError(f"unsupported source type {type(value).__name__}")
    raise TypeError(f"no conversion to {primitive.value} is defined")


def _to_integer(value: Any, primitive: PrimitiveType) -> int:
    if isinstance(value, bool):
        result = int(value)
    elif isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError("value is not finite")
        # Python's round() is half-to-even
        result = round(value)
    elif isinstance(value, Decimal):
        result = int(value.to_integral_value(rounding=ROUND_HALF_EVEN))
    elif isinstance(value, str):
        text = value.strip()
        if not _INTEGER_TEXT.fullmatch(text):
            raise ValueError(f"invalid integer literal {value!r}")
        result = int(text)
    else:
        raise TypeError(f"unsupported source type {type(value).__name__}")

    low, high = primitive.int_range
    if not low <= result <= high:
        raise OverflowError(f"{result} is outside the {primitive.value} range [{low}, {high}]")
    return result


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        result = Decimal(int(value))
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"invalid decimal literal {value!r}") from None
    else:
        raise TypeError(f"unsupported source type {type(value).__name__}")

    if not result.is_finite():
        raise ValueError(f"{result} is not a finite decimal")
    return result


def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text == _TRUE_TEXT:
            return True
        if text == _FALSE_TEXT:
            return False
        raise ValueError(f"invalid boolean literal {value!r}")
    raise TypeError(f"unsupported source type {type(value).__name__}")
