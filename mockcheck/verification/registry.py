"""
mockcheck — Explicit Constraint Registry

Maps (type, method name, parameter index) to constraint markers for classes
that cannot carry ``Annotated`` metadata themselves (third-party classes,
generated stubs, C extensions wrapped in Python shims).

The extractor merges registry entries after annotation-derived constraints.
Registration happens before the first verification against a type; the
extractor caches per type, so later registrations for an already-extracted
type are not seen by that extractor.

    registry = ConstraintRegistry()
    registry.register(Calculator, "square", 0, NotNull(), Min(0))
    registry.for_type(Calculator).param("divide", 1, NotNull())
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from mockcheck.verification.types import ParameterConstraint

logger = structlog.get_logger()


class _TypeRegistrar:
    """Fluent helper returned by ConstraintRegistry.for_type()."""

    def __init__(self, registry: ConstraintRegistry, target: type) -> None:
        self._registry = registry
        self._target = target

    def param(self, method: str, index: int, *constraints: ParameterConstraint) -> _TypeRegistrar:
        self._registry.register(self._target, method, index, *constraints)
        return self


class ConstraintRegistry:
    """
    Manually populated constraint metadata, keyed by type identity.

    Entries keep registration order per parameter; duplicates collapse.
    """

    def __init__(self) -> None:
        self._entries: dict[type, dict[str, dict[int, list[ParameterConstraint]]]] = {}
        self._logger = logger.bind(system="mockcheck.registry")

    def register(
        self,
        target: type,
        method: str,
        index: int,
        *constraints: ParameterConstraint,
    ) -> None:
        """
        Attach constraints to parameter ``index`` (0-based, self excluded) of
        ``target.method``.

        Raises ValueError for non-class targets, empty method names, negative
        indices, or values that are not ParameterConstraint instances. Whether
        the method and index exist is checked at extraction time.
        """
        if not isinstance(target, type):
            raise ValueError(f"Registry target must be a class, got {target!r}")
        if not method:
            raise ValueError("Registry method name must be non-empty")
        if index < 0:
            raise ValueError(f"Parameter index must be >= 0, got {index}")
        if not constraints:
            raise ValueError(f"No constraints given for {target.__name__}.{method}[{index}]")
        for c in constraints:
            if not isinstance(c, ParameterConstraint):
                raise ValueError(f"{c!r} is not a ParameterConstraint")

        slot = self._entries.setdefault(target, {}).setdefault(method, {}).setdefault(index, [])
        for c in constraints:
            if c not in slot:
                slot.append(c)
        self._logger.debug(
            "constraint_registered",
            target=target.__name__,
            method=method,
            index=index,
            constraints=[c.describe() for c in constraints],
        )

    def for_type(self, target: type) -> _TypeRegistrar:
        return _TypeRegistrar(self, target)

    def entries_for(self, target: type) -> dict[str, dict[int, tuple[ParameterConstraint, ...]]]:
        """
        Entries registered for ``target`` and its bases, most-derived first
        within each parameter slot.
        """
        merged: dict[str, dict[int, list[ParameterConstraint]]] = {}
        for klass in target.__mro__:
            for method, slots in self._entries.get(klass, {}).items():
                for index, constraints in slots.items():
                    slot = merged.setdefault(method, {}).setdefault(index, [])
                    slot.extend(c for c in constraints if c not in slot)
        return {
            method: {index: tuple(cs) for index, cs in slots.items()}
            for method, slots in merged.items()
        }

    def has_entries(self, target: type) -> bool:
        return any(klass in self._entries for klass in target.__mro__)

    def registered_types(self) -> Iterable[type]:
        return list(self._entries)

    def __len__(self) -> int:
        return sum(
            len(cs)
            for methods in self._entries.values()
            for slots in methods.values()
            for cs in slots.values()
        )
