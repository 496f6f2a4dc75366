"""Programmatic registration of record types.

Records can be declared in the DSL, built field by field with
:class:`RecordBuilder`, or derived from a dataclass with
:func:`register_dataclass`. All three produce the same definitions; roles are
always explicit declarations, never inferred from names.

Example::

    @dataclass
    class Customer:
        id: int = field(metadata=with_roles(IdColumn()))
        name: str = field(metadata=with_roles(CompareColumn()))
        email: Optional[str] = field(default=None, metadata=with_roles(CompareColumn(), UpdateColumn()))

    register_dataclass(registry, Customer)
"""

from __future__ import annotations

import dataclasses
import enum
import types
import typing
from collections.abc import Mapping, Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any

from typed_records.roles import RoleDescriptor
from typed_records.types import (
    DynamicRecordTypeDefinition,
    EnumTypeDefinition,
    FieldDefinition,
    RecordTypeDefinition,
    RoleEntry,
    TypeDefinition,
    TypeRegistry,
)

ROLES_METADATA_KEY = "roles"

# Name under which untyped mapping fields are registered
DYNAMIC_TYPE_NAME = "dynamic"

_PYTHON_PRIMITIVES: dict[Any, str] = {
    bool: "boolean",
    int: "int64",
    float: "float64",
    Decimal: "decimal",
    str: "string",
    datetime: "datetime",
}


def with_roles(*roles: RoleDescriptor) -> dict[str, tuple[RoleDescriptor, ...]]:
    """Return dataclass field metadata declaring ``roles``."""
    return {ROLES_METADATA_KEY: roles}


def resolve_type_name(registry: TypeRegistry, type_name: str) -> TypeDefinition:
    """Resolve a name with optional ``[]`` and ``?`` suffixes (``int32?``, ``string[]``)."""
    suffixes: list[str] = []
    name = type_name.strip()
    while name.endswith("[]") or name.endswith("?"):
        if name.endswith("[]"):
            suffixes.append("[]")
            name = name[:-2]
        else:
            suffixes.append("?")
            name = name[:-1]
    type_def = registry.get_or_raise(name)
    for suffix in reversed(suffixes):
        if suffix == "[]":
            type_def = registry.get_array_type(type_def)
        else:
            type_def = registry.get_nullable_type(type_def)
    return type_def


class RecordBuilder:
    """Declare a record type one field at a time."""

    def __init__(self, registry: TypeRegistry, name: str) -> None:
        self.registry = registry
        self.name = name
        self._fields: list[FieldDefinition] = []

    def field(
        self,
        name: str,
        type_ref: TypeDefinition | str,
        *roles: RoleDescriptor,
        index_params: Sequence[tuple[str, TypeDefinition | str]] = (),
    ) -> RecordBuilder:
        """Append a field and return the builder."""
        self._fields.append(
            FieldDefinition(
                name=name,
                type_def=self._resolve(type_ref),
                roles=list(roles),
                index_params=[
                    FieldDefinition(name=param_name, type_def=self._resolve(param_type))
                    for param_name, param_type in index_params
                ],
            )
        )
        return self

    def build(self) -> RecordTypeDefinition:
        """Return the definition without registering it."""
        return RecordTypeDefinition(name=self.name, fields=list(self._fields))

    def register(self) -> RecordTypeDefinition:
        """Register the definition and return it."""
        record = self.build()
        self.registry.register(record)
        return record

    def _resolve(self, type_ref: TypeDefinition | str) -> TypeDefinition:
        if isinstance(type_ref, TypeDefinition):
            return type_ref
        return resolve_type_name(self.registry, type_ref)


class DynamicRecordBuilder:
    """Declare the role side table of a dynamic record."""

    def __init__(self, registry: TypeRegistry, name: str) -> None:
        self.registry = registry
        self.name = name
        self._entries: list[RoleEntry] = []

    def key(self, name: str, *roles: RoleDescriptor) -> DynamicRecordBuilder:
        self._entries.append(RoleEntry(name=name, roles=list(roles)))
        return self

    def build(self) -> DynamicRecordTypeDefinition:
        return DynamicRecordTypeDefinition(name=self.name, role_table=list(self._entries))

    def register(self) -> DynamicRecordTypeDefinition:
        dynamic = self.build()
        self.registry.register(dynamic)
        return dynamic


def register_dataclass(
    registry: TypeRegistry, cls: type, name: str | None = None
) -> RecordTypeDefinition:
    """Register a dataclass as a record type.

    Field annotations map to registry types; roles come from the
    ``"roles"`` entry of each field's metadata (see :func:`with_roles`).
    Dataclasses referenced by fields are registered on the way. Registering a
    class whose name is already a record returns the existing definition.

    Raises:
        TypeError: If ``cls`` is not a dataclass or an annotation has no
            registry counterpart.
        ValueError: If the class refers to itself, directly or indirectly.
    """
    return _DataclassRegistrar(registry).register(cls, name)


class _DataclassRegistrar:
    def __init__(self, registry: TypeRegistry) -> None:
        self.registry = registry
        self._in_progress: set[type] = set()

    def register(self, cls: type, name: str | None = None) -> RecordTypeDefinition:
        if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
            raise TypeError(f"{cls!r} is not a dataclass type")
        name = name or cls.__name__
        existing = self.registry.get(name)
        if isinstance(existing, RecordTypeDefinition):
            return existing
        if cls in self._in_progress:
            raise ValueError(f"Self-referential record type '{name}' is not supported")

        self._in_progress.add(cls)
        try:
            hints = typing.get_type_hints(cls)
            fields = [
                FieldDefinition(
                    name=f.name,
                    type_def=self._type_for(hints[f.name], f"{name}.{f.name}"),
                    roles=list(f.metadata.get(ROLES_METADATA_KEY, ())),
                )
                for f in dataclasses.fields(cls)
            ]
        finally:
            self._in_progress.discard(cls)

        record = RecordTypeDefinition(name=name, fields=fields, python_type=cls)
        self.registry.register(record)
        return record

    def _type_for(self, annotation: Any, owner: str) -> TypeDefinition:
        primitive_name = _PYTHON_PRIMITIVES.get(annotation)
        if primitive_name is not None:
            return self.registry.get_or_raise(primitive_name)

        origin = typing.get_origin(annotation)
        args = typing.get_args(annotation)
        if origin in (typing.Union, types.UnionType):
            members = [a for a in args if a is not type(None)]
            if len(members) != 1 or len(args) != 2:
                raise TypeError(f"{owner}: only Optional[X] unions are supported, got {annotation!r}")
            return self.registry.get_nullable_type(self._type_for(members[0], owner))
        if origin in (list, Sequence) and len(args) == 1:
            return self.registry.get_array_type(self._type_for(args[0], owner))
        if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
            return self.registry.get_array_type(self._type_for(args[0], owner))
        if annotation in (dict, Mapping) or origin in (dict, Mapping):
            return self._dynamic_type()

        if isinstance(annotation, type) and issubclass(annotation, enum.Enum):
            return self._enum_type(annotation)
        if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
            return self.register(annotation)
        raise TypeError(f"{owner}: unsupported annotation {annotation!r}")

    def _enum_type(self, enum_cls: type[enum.Enum]) -> TypeDefinition:
        existing = self.registry.get(enum_cls.__name__)
        if existing is not None:
            if not existing.is_enum:
                raise TypeError(f"Type '{enum_cls.__name__}' exists but is not an enum type")
            return existing
        variants = {
            member.name: member.value if isinstance(member.value, int) else i
            for i, member in enumerate(enum_cls)
        }
        enum_def = EnumTypeDefinition(name=enum_cls.__name__, variants=variants)
        self.registry.register(enum_def)
        return enum_def

    def _dynamic_type(self) -> TypeDefinition:
        existing = self.registry.get(DYNAMIC_TYPE_NAME)
        if existing is not None:
            return existing
        dynamic = DynamicRecordTypeDefinition(name=DYNAMIC_TYPE_NAME)
        self.registry.register(dynamic)
        return dynamic
