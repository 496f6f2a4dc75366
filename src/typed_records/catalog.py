"""Ordered property metadata for record types."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import structlog

from typed_records.coercion import unwrap_nullable
from typed_records.errors import ShapeError
from typed_records.roles import RoleDescriptor
from typed_records.types import FieldDefinition, RecordTypeDefinition, TypeDefinition

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PropertyDescriptor:
    """A single addressable column of a record type."""

    name: str
    declared_type: TypeDefinition
    underlying_type: TypeDefinition
    ordinal: int
    roles: tuple[RoleDescriptor, ...] = ()


def build_properties(
    type_def: TypeDefinition,
    on_property: Callable[[PropertyDescriptor, FieldDefinition], None] | None = None,
) -> tuple[PropertyDescriptor, ...]:
    """Return the properties of a record type in declaration order.

    Types that are not records have no statically declared members and yield
    an empty tuple.

    Args:
        type_def: The type to catalogue.
        on_property: Called once per property, in order, with the descriptor
            and its field definition, after validation succeeds. Lets callers
            gather extra per-column metadata in the same pass.

    Raises:
        ShapeError: If a property takes index parameters or a name repeats.
            Validation covers every field before any descriptor is created.
    """
    base = type_def.resolve_base_type()
    if not isinstance(base, RecordTypeDefinition):
        return ()

    seen: set[str] = set()
    for f in base.fields:
        if f.is_indexed:
            params = ", ".join(p.name for p in f.index_params)
            raise ShapeError(
                f"Indexed property '{f.name}[{params}]' on type '{type_def.name}' "
                "cannot be used as a column",
                property_name=f.name,
                type_name=type_def.name,
            )
        if f.name in seen:
            raise ShapeError(
                f"Duplicate property '{f.name}' on type '{type_def.name}'",
                property_name=f.name,
                type_name=type_def.name,
            )
        seen.add(f.name)

    properties = tuple(
        PropertyDescriptor(
            name=f.name,
            declared_type=f.type_def,
            underlying_type=unwrap_nullable(f.type_def),
            ordinal=i,
            roles=tuple(f.roles),
        )
        for i, f in enumerate(base.fields)
    )
    if on_property is not None:
        for prop, f in zip(properties, base.fields):
            on_property(prop, f)
    logger.debug("catalog_built", type_name=type_def.name, properties=len(properties))
    return properties
