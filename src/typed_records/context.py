"""Per-run cache of type descriptors."""

from __future__ import annotations

import threading
from contextvars import Token
from typing import Any, Iterable

import structlog

from typed_records.descriptor import TypeDescriptor, describe
from typed_records.log import bind_run, generate_run_id, run_id_var
from typed_records.roles import RoleKind, role_set
from typed_records.types import TypeDefinition, TypeRegistry

logger = structlog.get_logger(__name__)


class PipelineRunContext:
    """Owns the type descriptors used during one pipeline run.

    Descriptors are built on first request and shared by every operator and
    worker of the run. The cache is keyed by (type identity, requested role
    set), written once per key and read many times. Closing the context
    discards it. Inside a ``with`` block the run id also tags events logged
    by other code in the same context.
    """

    def __init__(
        self,
        registry: TypeRegistry | None = None,
        *,
        cache_enabled: bool = True,
        run_id: str | None = None,
    ) -> None:
        """Initialize a run context.

        Args:
            registry: Registry used to resolve type names. Optional when
                callers always pass type definitions.
            cache_enabled: Build a fresh descriptor on every request when False.
            run_id: Identifier attached to log events; generated if omitted.
        """
        self.registry = registry
        self.cache_enabled = cache_enabled
        self.run_id = run_id or generate_run_id()
        self._cache: dict[tuple[int, frozenset[RoleKind]], TypeDescriptor] = {}
        self._lock = threading.Lock()
        self._log = bind_run(logger, self.run_id)
        self._run_token: Token[str | None] | None = None

    def descriptor_for(
        self,
        type_ref: TypeDefinition | str,
        kinds: Iterable[RoleKind | str] = (),
    ) -> TypeDescriptor:
        """Return the descriptor for a type and role set, building it once.

        Args:
            type_ref: A type definition, or a type name looked up in the registry.
            kinds: Role kinds the calling operator needs.

        Raises:
            KeyError: If a type name is not registered.
            ShapeError: If the record type cannot be catalogued.
        """
        type_def = self._resolve(type_ref)
        requested = role_set(kinds)
        if not self.cache_enabled:
            return describe(type_def, requested)

        # The cached descriptor references type_def, so its id stays unique
        key = (id(type_def), requested)
        cached = self._cache.get(key)
        if cached is not None:
            self._log.debug("descriptor_hit", type_name=type_def.name)
            return cached

        descriptor = describe(type_def, requested)
        with self._lock:
            existing = self._cache.setdefault(key, descriptor)
        if existing is descriptor:
            self._log.debug(
                "descriptor_cached",
                type_name=type_def.name,
                shape=descriptor.shape.value,
                roles=sorted(k.value for k in requested),
            )
        return existing

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def close(self) -> None:
        """Discard all cached descriptors."""
        with self._lock:
            self._cache.clear()

    def _resolve(self, type_ref: TypeDefinition | str) -> TypeDefinition:
        if isinstance(type_ref, TypeDefinition):
            return type_ref
        if self.registry is None:
            raise KeyError(f"Type '{type_ref}' cannot be resolved without a registry")
        return self.registry.get_or_raise(type_ref)

    def __enter__(self) -> PipelineRunContext:
        self._run_token = run_id_var.set(self.run_id)
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
        if self._run_token is not None:
            run_id_var.reset(self._run_token)
            self._run_token = None
