"""Role kinds and role descriptors.

A role descriptor declares the part a property plays for a dataflow operator:
merge keys, change-detection columns, aggregation inputs, lookup columns and
so on. Declarations are attached to fields at registration time with
``property_name`` unset; the scanner hands out copies stamped with the name of
the property that declared them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Iterable


class RoleKind(Enum):
    """Functional purpose a property can play within an operator."""

    COLUMN_MAP = "column_map"
    ID = "id"
    COMPARE = "compare"
    UPDATE = "update"
    DELETE = "delete"
    AGGREGATE = "aggregate"
    GROUP = "group"
    DISTINCT = "distinct"
    MATCH = "match"
    RETRIEVE = "retrieve"
    RENAME = "rename"
    KEY = "key"

    @classmethod
    def from_name(cls, name: str) -> RoleKind:
        """Look up a role kind by its DSL name (``"compare"``, ``"column_map"``)."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown role kind: {name!r}") from None


def role_set(kinds: Iterable[RoleKind | str] = ()) -> frozenset[RoleKind]:
    """Normalize a collection of role kinds or role names to a frozenset."""
    return frozenset(k if isinstance(k, RoleKind) else RoleKind.from_name(k) for k in kinds)


class AggregationMethod(Enum):
    SUM = "sum"
    MIN = "min"
    MAX = "max"
    COUNT = "count"


@dataclass(frozen=True)
class RoleDescriptor:
    """Base class for per-property role metadata."""

    kind: ClassVar[RoleKind]

    property_name: str | None = field(default=None, kw_only=True)


@dataclass(frozen=True)
class ColumnMap(RoleDescriptor):
    """Maps the property to a differently named column."""

    kind: ClassVar[RoleKind] = RoleKind.COLUMN_MAP

    column_name: str
    ignore: bool = False


@dataclass(frozen=True)
class IdColumn(RoleDescriptor):
    """Match key for merge/upsert."""

    kind: ClassVar[RoleKind] = RoleKind.ID


@dataclass(frozen=True)
class CompareColumn(RoleDescriptor):
    """Part of the change-detection set for merge."""

    kind: ClassVar[RoleKind] = RoleKind.COMPARE


@dataclass(frozen=True)
class UpdateColumn(RoleDescriptor):
    """Column written when a merge updates an existing row."""

    kind: ClassVar[RoleKind] = RoleKind.UPDATE


@dataclass(frozen=True)
class DeleteColumn(RoleDescriptor):
    """Marks rows for deletion when the property equals ``delete_on_match_value``."""

    kind: ClassVar[RoleKind] = RoleKind.DELETE

    delete_on_match_value: Any = None


@dataclass(frozen=True)
class AggregateColumn(RoleDescriptor):
    """Output property receiving ``method`` applied over ``aggregated_property``."""

    kind: ClassVar[RoleKind] = RoleKind.AGGREGATE

    aggregated_property: str
    method: AggregationMethod = AggregationMethod.SUM

    def __post_init__(self) -> None:
        if not isinstance(self.method, AggregationMethod):
            try:
                object.__setattr__(self, "method", AggregationMethod(str(self.method).lower()))
            except ValueError:
                raise ValueError(f"Unknown aggregation method: {self.method!r}") from None


@dataclass(frozen=True)
class GroupColumn(RoleDescriptor):
    """Grouping key for aggregation.

    ``input_property`` names the property in the input rows; it defaults to
    the output property's own name.
    """

    kind: ClassVar[RoleKind] = RoleKind.GROUP

    input_property: str | None = None


@dataclass(frozen=True)
class DistinctColumn(RoleDescriptor):
    """Participates in deduplication; ``key`` controls whether it forms the key."""

    kind: ClassVar[RoleKind] = RoleKind.DISTINCT

    key: bool = True


@dataclass(frozen=True)
class MatchColumn(RoleDescriptor):
    """Lookup source property matched against ``input_property`` of incoming rows."""

    kind: ClassVar[RoleKind] = RoleKind.MATCH

    input_property: str | None = None


@dataclass(frozen=True)
class RetrieveColumn(RoleDescriptor):
    """Lookup source property copied into ``input_property`` of incoming rows."""

    kind: ClassVar[RoleKind] = RoleKind.RETRIEVE

    input_property: str | None = None


@dataclass(frozen=True)
class RenameColumn(RoleDescriptor):
    """Renames the property to ``new_name``."""

    kind: ClassVar[RoleKind] = RoleKind.RENAME

    new_name: str

    @property
    def current_name(self) -> str | None:
        return self.property_name


@dataclass(frozen=True)
class KeyColumn(RoleDescriptor):
    """Business key column."""

    kind: ClassVar[RoleKind] = RoleKind.KEY


ROLE_TYPES: dict[RoleKind, type[RoleDescriptor]] = {
    RoleKind.COLUMN_MAP: ColumnMap,
    RoleKind.ID: IdColumn,
    RoleKind.COMPARE: CompareColumn,
    RoleKind.UPDATE: UpdateColumn,
    RoleKind.DELETE: DeleteColumn,
    RoleKind.AGGREGATE: AggregateColumn,
    RoleKind.GROUP: GroupColumn,
    RoleKind.DISTINCT: DistinctColumn,
    RoleKind.MATCH: MatchColumn,
    RoleKind.RETRIEVE: RetrieveColumn,
    RoleKind.RENAME: RenameColumn,
    RoleKind.KEY: KeyColumn,
}

# Short DSL argument names for role-specific fields
_ARGUMENT_ALIASES: dict[RoleKind, dict[str, str]] = {
    RoleKind.COLUMN_MAP: {"column": "column_name", "name": "column_name"},
    RoleKind.DELETE: {"value": "delete_on_match_value"},
    RoleKind.AGGREGATE: {"of": "aggregated_property"},
    RoleKind.GROUP: {"input": "input_property"},
    RoleKind.MATCH: {"input": "input_property"},
    RoleKind.RETRIEVE: {"input": "input_property"},
    RoleKind.RENAME: {"to": "new_name"},
}


def make_role(kind: RoleKind | str, **arguments: Any) -> RoleDescriptor:
    """Create an unstamped role declaration of ``kind`` from keyword arguments.

    Raises:
        ValueError: If the kind is unknown or the arguments do not fit it.
    """
    if not isinstance(kind, RoleKind):
        kind = RoleKind.from_name(kind)
    aliases = _ARGUMENT_ALIASES.get(kind, {})
    resolved = {aliases.get(name, name): value for name, value in arguments.items()}
    if "property_name" in resolved:
        raise ValueError("property_name is assigned when roles are scanned")
    try:
        return ROLE_TYPES[kind](**resolved)
    except TypeError as exc:
        raise ValueError(f"Invalid arguments for role '{kind.value}': {exc}") from exc
