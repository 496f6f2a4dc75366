"""Type descriptors: shape, properties and resolved roles of one type."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable

from typed_records.catalog import PropertyDescriptor, build_properties
from typed_records.coercion import coerce
from typed_records.roles import RoleDescriptor, RoleKind, role_set
from typed_records.scanner import RoleSource, scan
from typed_records.shape import TypeShape, classify
from typed_records.types import DynamicRecordTypeDefinition, TypeDefinition


@dataclass(frozen=True, eq=False)
class TypeDescriptor:
    """Read-only metadata an operator needs to process rows of one type.

    Built by :func:`describe`. Safe to share between worker threads.
    """

    type_def: TypeDefinition
    shape: TypeShape
    properties: tuple[PropertyDescriptor, ...]
    properties_by_name: Mapping[str, PropertyDescriptor]
    roles: Mapping[RoleKind, tuple[RoleDescriptor, ...]]

    @property
    def name(self) -> str:
        return self.type_def.name

    @property
    def property_names(self) -> list[str]:
        return [p.name for p in self.properties]

    @property
    def is_record(self) -> bool:
        return self.shape is TypeShape.RECORD

    @property
    def is_array(self) -> bool:
        return self.shape is TypeShape.ARRAY

    @property
    def is_dynamic(self) -> bool:
        return self.shape is TypeShape.DYNAMIC_RECORD

    def is_requested(self, kind: RoleKind) -> bool:
        """Return whether ``kind`` was requested when this descriptor was built."""
        return kind in self.roles

    def roles_for(self, kind: RoleKind) -> tuple[RoleDescriptor, ...]:
        """Return the role descriptors for ``kind``.

        Raises:
            KeyError: If ``kind`` was not requested for this descriptor.
        """
        try:
            return self.roles[kind]
        except KeyError:
            raise KeyError(f"Role '{kind.value}' was not requested for type '{self.name}'") from None

    def get_property(self, name: str) -> PropertyDescriptor:
        """Get a property by name, raising KeyError if it is not declared."""
        try:
            return self.properties_by_name[name]
        except KeyError:
            raise KeyError(f"Property '{name}' not found in type '{self.name}'") from None

    def get_value(self, row: Any, name: str) -> Any:
        """Read column ``name`` from a row (mapping or attribute object).

        Dynamic records return None for a missing key.
        """
        if self.is_dynamic:
            return row.get(name) if isinstance(row, Mapping) else getattr(row, name, None)
        self.get_property(name)
        if isinstance(row, Mapping):
            return row[name]
        return getattr(row, name)

    def set_value(self, row: Any, name: str, value: Any) -> None:
        """Write column ``name``, converting record values to the property's underlying type.

        Raises:
            ConversionError: If the value cannot be converted.
        """
        if not self.is_dynamic:
            prop = self.get_property(name)
            value = coerce(value, prop.underlying_type, property_name=name)
        if isinstance(row, MutableMapping):
            row[name] = value
        else:
            setattr(row, name, value)


def describe(type_def: TypeDefinition, kinds: Iterable[RoleKind | str] = ()) -> TypeDescriptor:
    """Build the descriptor of ``type_def`` with the requested role kinds resolved.

    Records resolve roles from their declared properties, dynamic records from
    their role side table. Arrays have no named members, so every requested
    kind maps to an empty list.

    Raises:
        ShapeError: If a record property cannot be addressed as a column.
    """
    requested = role_set(kinds)
    shape = classify(type_def)

    properties: tuple[PropertyDescriptor, ...] = ()
    sources: tuple[RoleSource, ...] = ()
    if shape is TypeShape.RECORD:
        properties = build_properties(type_def)
        sources = properties
    elif shape is TypeShape.DYNAMIC_RECORD:
        base = type_def.resolve_base_type()
        assert isinstance(base, DynamicRecordTypeDefinition)
        sources = tuple(base.role_table)

    return TypeDescriptor(
        type_def=type_def,
        shape=shape,
        properties=properties,
        properties_by_name=MappingProxyType({p.name: p for p in properties}),
        roles=MappingProxyType(scan(sources, requested)),
    )
