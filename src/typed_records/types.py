"""Type definitions for the typed_records library."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typed_records.roles import RoleDescriptor, RoleKind


class PrimitiveType(Enum):
    """Built-in primitive types supported by the type system."""

    BOOLEAN = "boolean"
    UINT8 = "uint8"
    INT8 = "int8"
    UINT16 = "uint16"
    INT16 = "int16"
    UINT32 = "uint32"
    INT32 = "int32"
    UINT64 = "uint64"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DECIMAL = "decimal"
    STRING = "string"
    DATETIME = "datetime"

    @property
    def is_integer(self) -> bool:
        """Return whether this is a fixed-width integer type."""
        return self in _INTEGER_RANGES

    @property
    def is_numeric(self) -> bool:
        """Return whether this type holds numbers. Boolean is not numeric."""
        return self.is_integer or self in (
            PrimitiveType.FLOAT32,
            PrimitiveType.FLOAT64,
            PrimitiveType.DECIMAL,
        )

    @property
    def is_value_type(self) -> bool:
        """Return whether a missing value must be modelled with a nullable wrapper."""
        return self is not PrimitiveType.STRING

    @property
    def int_range(self) -> tuple[int, int]:
        """Return the inclusive (min, max) range of an integer type."""
        return _INTEGER_RANGES[self]


_INTEGER_RANGES: dict[PrimitiveType, tuple[int, int]] = {
    PrimitiveType.UINT8: (0, 2**8 - 1),
    PrimitiveType.INT8: (-(2**7), 2**7 - 1),
    PrimitiveType.UINT16: (0, 2**16 - 1),
    PrimitiveType.INT16: (-(2**15), 2**15 - 1),
    PrimitiveType.UINT32: (0, 2**32 - 1),
    PrimitiveType.INT32: (-(2**31), 2**31 - 1),
    PrimitiveType.UINT64: (0, 2**64 - 1),
    PrimitiveType.INT64: (-(2**63), 2**63 - 1),
}

# Mapping from type name strings to PrimitiveType enum values
PRIMITIVE_TYPE_NAMES: dict[str, PrimitiveType] = {pt.value: pt for pt in PrimitiveType}


@dataclass(eq=False)
class TypeDefinition:
    """Base class for all type definitions.

    Definitions compare by identity: two registrations of the same name in
    different registries are different types.
    """

    name: str

    @property
    def is_array(self) -> bool:
        """Return whether this type is an array type."""
        return False

    @property
    def is_primitive(self) -> bool:
        """Return whether this type is a primitive type."""
        return False

    @property
    def is_record(self) -> bool:
        """Return whether this type is a statically declared record."""
        return False

    @property
    def is_dynamic(self) -> bool:
        """Return whether this type resolves its members by name at runtime."""
        return False

    @property
    def is_enum(self) -> bool:
        """Return whether this type is an enum type."""
        return False

    @property
    def is_nullable(self) -> bool:
        """Return whether this type is a nullable wrapper."""
        return False

    @property
    def is_value_type(self) -> bool:
        """Return whether this type needs a nullable wrapper to hold None."""
        return False

    def resolve_base_type(self) -> TypeDefinition:
        """Resolve through aliases to get the underlying type."""
        return self


@dataclass(eq=False)
class PrimitiveTypeDefinition(TypeDefinition):
    """Type definition wrapping a primitive type."""

    primitive: PrimitiveType

    @property
    def is_primitive(self) -> bool:
        return True

    @property
    def is_value_type(self) -> bool:
        return self.primitive.is_value_type


@dataclass(eq=False)
class AliasTypeDefinition(TypeDefinition):
    """Type definition for 'define X as Y' aliases."""

    base_type: TypeDefinition

    @property
    def is_array(self) -> bool:
        return self.base_type.is_array

    @property
    def is_value_type(self) -> bool:
        return self.base_type.is_value_type

    def resolve_base_type(self) -> TypeDefinition:
        """Resolve through aliases to get the underlying type."""
        return self.base_type.resolve_base_type()


@dataclass(eq=False)
class NullableTypeDefinition(TypeDefinition):
    """Nullable wrapper over a value type (e.g., int32?)."""

    base_type: TypeDefinition

    @property
    def is_nullable(self) -> bool:
        return True


@dataclass(eq=False)
class ArrayTypeDefinition(TypeDefinition):
    """Type definition for array types (e.g., string[])."""

    element_type: TypeDefinition

    @property
    def is_array(self) -> bool:
        return True


@dataclass(eq=False)
class EnumTypeDefinition(TypeDefinition):
    """C-style enum: named variants with integer values."""

    variants: dict[str, int] = field(default_factory=dict)

    @property
    def is_enum(self) -> bool:
        return True

    @property
    def is_value_type(self) -> bool:
        return True


@dataclass(eq=False)
class FieldDefinition:
    """Definition of a property within a record type.

    ``index_params`` is non-empty for indexed properties (``cell[row: int32]``),
    which cannot be addressed by a single column name.
    """

    name: str
    type_def: TypeDefinition
    roles: list[RoleDescriptor] = field(default_factory=list)
    index_params: list[FieldDefinition] = field(default_factory=list)

    @property
    def is_indexed(self) -> bool:
        return bool(self.index_params)

    def get_role(self, kind: RoleKind) -> RoleDescriptor | None:
        """Return this field's declaration for ``kind``, if any."""
        for role in self.roles:
            if role.kind is kind:
                return role
        return None


@dataclass(eq=False)
class RecordTypeDefinition(TypeDefinition):
    """Record type with statically declared, ordered properties."""

    fields: list[FieldDefinition] = field(default_factory=list)
    # Class whose instances are rows of this record, when registered from one
    python_type: type | None = None

    @property
    def is_record(self) -> bool:
        return True

    def get_field(self, name: str) -> FieldDefinition | None:
        """Get a field by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass(eq=False)
class RoleEntry:
    """Side-table row binding a dynamic field name to its role declarations."""

    name: str
    roles: list[RoleDescriptor] = field(default_factory=list)


@dataclass(eq=False)
class DynamicRecordTypeDefinition(TypeDefinition):
    """Record whose members are resolved by key at runtime.

    Values are ordered mappings of str to any value; roles live in a side
    table keyed by field name instead of on declared properties.
    """

    role_table: list[RoleEntry] = field(default_factory=list)

    @property
    def is_dynamic(self) -> bool:
        return True

    def get_entry(self, name: str) -> RoleEntry | None:
        for entry in self.role_table:
            if entry.name == name:
                return entry
        return None


class TypeRegistry:
    """Registry of all defined types."""

    def __init__(self) -> None:
        self._types: dict[str, TypeDefinition] = {}
        self._register_primitives()

    def _register_primitives(self) -> None:
        """Register all primitive types."""
        for pt in PrimitiveType:
            self._types[pt.value] = PrimitiveTypeDefinition(name=pt.value, primitive=pt)

    def register(self, type_def: TypeDefinition) -> None:
        """Register a type definition.

        Record and dynamic definitions are validated here: field names must be
        unique and a field may declare each role kind at most once.
        """
        if type_def.name in self._types:
            raise ValueError(f"Type '{type_def.name}' is already defined")
        if isinstance(type_def, RecordTypeDefinition):
            _check_members(type_def.name, [(f.name, f.roles) for f in type_def.fields])
        elif isinstance(type_def, DynamicRecordTypeDefinition):
            _check_members(type_def.name, [(e.name, e.roles) for e in type_def.role_table])
        self._types[type_def.name] = type_def

    def get(self, name: str) -> TypeDefinition | None:
        """Get a type by name."""
        return self._types.get(name)

    def get_or_raise(self, name: str) -> TypeDefinition:
        """Get a type by name, raising if not found."""
        type_def = self._types.get(name)
        if type_def is None:
            raise KeyError(f"Type '{name}' not found")
        return type_def

    def get_array_type(self, element_type: TypeDefinition) -> ArrayTypeDefinition:
        """Get or create an array type for the given element type."""
        array_name = f"{element_type.name}[]"
        existing = self._types.get(array_name)
        if existing is not None:
            if not isinstance(existing, ArrayTypeDefinition):
                raise TypeError(f"Type '{array_name}' exists but is not an array type")
            return existing

        array_type = ArrayTypeDefinition(name=array_name, element_type=element_type)
        self._types[array_name] = array_type
        return array_type

    def get_nullable_type(self, base_type: TypeDefinition) -> TypeDefinition:
        """Get or create the nullable form of ``base_type``.

        Reference types (string, arrays, records) already hold None, so they are
        returned unchanged. Nullable types are not wrapped twice.
        """
        if base_type.is_nullable or not base_type.is_value_type:
            return base_type
        nullable_name = f"{base_type.name}?"
        existing = self._types.get(nullable_name)
        if existing is not None:
            return existing

        nullable = NullableTypeDefinition(name=nullable_name, base_type=base_type)
        self._types[nullable_name] = nullable
        return nullable

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return list(self._types.keys())

    def list_user_types(self) -> list[str]:
        """List names of aliases, enums, records and dynamic records."""
        return [
            name
            for name, td in self._types.items()
            if isinstance(
                td,
                (AliasTypeDefinition, EnumTypeDefinition, RecordTypeDefinition, DynamicRecordTypeDefinition),
            )
        ]

    def __contains__(self, name: str) -> bool:
        return name in self._types


def _check_members(type_name: str, members: list[tuple[str, list[RoleDescriptor]]]) -> None:
    seen: set[str] = set()
    for name, roles in members:
        if name in seen:
            raise ValueError(f"Duplicate field '{name}' in type '{type_name}'")
        seen.add(name)
        kinds: set[Any] = set()
        for role in roles:
            if role.kind in kinds:
                raise ValueError(
                    f"Field '{type_name}.{name}' declares role '{role.kind.value}' more than once"
                )
            kinds.add(role.kind)
