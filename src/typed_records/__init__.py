"""Typed Records - record shapes and declared column roles for dataflow operators."""

from typed_records.builder import DynamicRecordBuilder, RecordBuilder, register_dataclass, with_roles
from typed_records.catalog import PropertyDescriptor, build_properties
from typed_records.coercion import coerce, is_numeric, unwrap_nullable
from typed_records.context import PipelineRunContext
from typed_records.descriptor import TypeDescriptor, describe
from typed_records.errors import ConversionError, ShapeError
from typed_records.parsing import TypeParser
from typed_records.roles import (
    AggregateColumn,
    AggregationMethod,
    ColumnMap,
    CompareColumn,
    DeleteColumn,
    DistinctColumn,
    GroupColumn,
    IdColumn,
    KeyColumn,
    MatchColumn,
    RenameColumn,
    RetrieveColumn,
    RoleDescriptor,
    RoleKind,
    UpdateColumn,
    make_role,
)
from typed_records.scanner import scan
from typed_records.shape import TypeShape, classify
from typed_records.types import (
    AliasTypeDefinition,
    ArrayTypeDefinition,
    DynamicRecordTypeDefinition,
    EnumTypeDefinition,
    FieldDefinition,
    NullableTypeDefinition,
    PrimitiveType,
    PrimitiveTypeDefinition,
    RecordTypeDefinition,
    RoleEntry,
    TypeDefinition,
    TypeRegistry,
)

__all__ = [
    # Main API
    "describe",
    "TypeDescriptor",
    "PipelineRunContext",
    "TypeParser",
    # Components
    "TypeShape",
    "classify",
    "PropertyDescriptor",
    "build_properties",
    "scan",
    "coerce",
    "is_numeric",
    "unwrap_nullable",
    # Registration
    "RecordBuilder",
    "DynamicRecordBuilder",
    "register_dataclass",
    "with_roles",
    # Roles
    "RoleKind",
    "RoleDescriptor",
    "make_role",
    "AggregationMethod",
    "ColumnMap",
    "IdColumn",
    "CompareColumn",
    "UpdateColumn",
    "DeleteColumn",
    "AggregateColumn",
    "GroupColumn",
    "DistinctColumn",
    "MatchColumn",
    "RetrieveColumn",
    "RenameColumn",
    "KeyColumn",
    # Errors
    "ShapeError",
    "ConversionError",
    # Type definitions
    "TypeDefinition",
    "PrimitiveType",
    "PrimitiveTypeDefinition",
    "AliasTypeDefinition",
    "NullableTypeDefinition",
    "ArrayTypeDefinition",
    "EnumTypeDefinition",
    "RecordTypeDefinition",
    "DynamicRecordTypeDefinition",
    "FieldDefinition",
    "RoleEntry",
    "TypeRegistry",
]

__version__ = "0.1.0"
