"""Resolution of declared roles into per-kind role descriptor lists."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Protocol, Sequence

from typed_records.roles import RoleDescriptor, RoleKind, role_set


class RoleSource(Protocol):
    """Anything that names a column and carries its role declarations."""

    @property
    def name(self) -> str: ...

    @property
    def roles(self) -> Sequence[RoleDescriptor]: ...


def scan(
    sources: Sequence[RoleSource],
    kinds: Iterable[RoleKind | str],
) -> dict[RoleKind, tuple[RoleDescriptor, ...]]:
    """Collect role descriptors for each requested kind.

    Sources are walked in order. A source contributes one descriptor to a
    kind's list only when it declares that kind; the descriptor is a copy of
    the declaration stamped with the source's name. Only requested kinds are
    keys of the result, and a requested kind with no declarations maps to an
    empty tuple.
    """
    requested = role_set(kinds)
    result: dict[RoleKind, tuple[RoleDescriptor, ...]] = {}
    # Iterate in enum order so the result is deterministic
    for kind in RoleKind:
        if kind not in requested:
            continue
        found: list[RoleDescriptor] = []
        for source in sources:
            declaration = _find_role(source, kind)
            if declaration is not None:
                found.append(replace(declaration, property_name=source.name))
        result[kind] = tuple(found)
    return result


def _find_role(source: RoleSource, kind: RoleKind) -> RoleDescriptor | None:
    for role in source.roles:
        if role.kind is kind:
            return role
    return None
