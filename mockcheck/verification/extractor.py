"""
mockcheck — Constraint Metadata Extractor

Discovers the per-parameter constraints declared on a real class's methods.

Sources, merged in this order per parameter slot:
  1. ``typing.Annotated`` metadata on the parameter annotation:
       - ParameterConstraint markers (NotNull, Min, Max, Pattern) as-is
       - pydantic ``Field(...)`` / annotated_types markers, translated:
           Ge(n) -> Min(n), Le(n) -> Max(n), ``pattern`` -> Pattern
  2. ConstraintRegistry entries for the class and its bases.

Extraction always runs against the original class. Mock proxies do not keep
the real annotations, so passing one is an error rather than an empty result.
Annotations that cannot be resolved (names imported only under
``TYPE_CHECKING``) are tolerated on parameters that declare no constraints.

Results are cached per extractor, keyed by type identity. Metadata is
immutable once extracted, so concurrent readers never observe a partial map.
"""

from __future__ import annotations

import inspect
import re
import types
import typing
from typing import Annotated, Any
from unittest.mock import NonCallableMock

import annotated_types
import structlog
from pydantic.fields import FieldInfo

from mockcheck.verification.errors import MetadataExtractionError
from mockcheck.verification.registry import ConstraintRegistry
from mockcheck.verification.types import (
    ConstraintMap,
    Max,
    MethodConstraints,
    MethodSignature,
    Min,
    ParameterConstraint,
    Pattern,
)

logger = structlog.get_logger()

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)

_RESOLUTION_ERRORS = (NameError, TypeError, AttributeError, SyntaxError)


# ── Metadata Translation ──────────────────────────────────────────────────────


def translate_metadata(item: Any) -> list[ParameterConstraint]:
    """
    Map one ``Annotated`` metadata item to zero or more constraints.

    Items that are not constraints (documentation strings, serializer hints,
    unrelated markers) translate to an empty list.
    """
    if isinstance(item, ParameterConstraint):
        return [item]
    if isinstance(item, FieldInfo):
        out: list[ParameterConstraint] = []
        for inner in item.metadata:
            out.extend(translate_metadata(inner))
        return out
    if isinstance(item, annotated_types.Ge):
        return [Min(item.ge)]
    if isinstance(item, annotated_types.Le):
        return [Max(item.le)]
    if isinstance(item, annotated_types.Interval):
        out = []
        if item.ge is not None:
            out.append(Min(item.ge))
        if item.le is not None:
            out.append(Max(item.le))
        return out

    pattern = getattr(item, "pattern", None)
    if isinstance(pattern, re.Pattern):
        pattern = pattern.pattern
    if isinstance(pattern, str):
        return [Pattern(pattern)]
    return []


def _annotated_metadata(hint: Any) -> tuple[Any, ...]:
    """Metadata of an Annotated hint, including Annotated members of a union."""
    origin = typing.get_origin(hint)
    if origin is Annotated:
        return tuple(hint.__metadata__)
    if origin is typing.Union or origin is types.UnionType:
        collected: list[Any] = []
        for member in typing.get_args(hint):
            collected.extend(_annotated_metadata(member))
        return tuple(collected)
    return ()


def _type_descriptor(hint: Any, kind: Any) -> str:
    if hint is inspect.Parameter.empty:
        text = "Any"
    elif isinstance(hint, type):
        text = hint.__qualname__
    elif isinstance(hint, str):
        text = hint
    else:
        text = repr(hint).replace("typing.", "")
    if kind is inspect.Parameter.VAR_POSITIONAL:
        return "*" + text
    if kind is inspect.Parameter.VAR_KEYWORD:
        return "**" + text
    return text


# ── ConstraintExtractor ───────────────────────────────────────────────────────


class ConstraintExtractor:
    """
    Builds and caches ConstraintMaps for real classes.

    Public methods are walked by default; ``include_private`` also walks
    single-underscore names. Dunder methods are never walked. Methods named
    by the registry are always walked.
    """

    def __init__(
        self,
        registry: ConstraintRegistry | None = None,
        include_private: bool = False,
    ) -> None:
        self._registry = registry
        self._include_private = include_private
        self._cache: dict[type, ConstraintMap] = {}
        self._log = logger.bind(system="mockcheck.extractor")

    def extract(self, target: Any) -> ConstraintMap:
        """
        Return the constraint map for ``target``, extracting it on first use.

        Raises MetadataExtractionError when ``target`` is not a real class or
        exposes no discoverable constraint metadata at all.
        """
        if isinstance(target, NonCallableMock):
            raise MetadataExtractionError(
                "Cannot extract constraints from a mock proxy; pass the real class"
            )
        if not isinstance(target, type):
            raise MetadataExtractionError(
                f"Constraint target must be a class, got {type(target).__name__}"
            )
        if issubclass(target, NonCallableMock):
            raise MetadataExtractionError(
                f"{target.__name__} is a mock class; pass the real class"
            )

        cached = self._cache.get(target)
        if cached is not None:
            self._log.debug("extraction_cache_hit", target=target.__name__)
            return cached

        constraint_map = self._build(target)
        self._cache[target] = constraint_map
        self._log.debug(
            "constraints_extracted",
            target=target.__name__,
            methods=len(constraint_map),
            constraints=constraint_map.constraint_count,
        )
        return constraint_map

    def is_cached(self, target: type) -> bool:
        return target in self._cache

    # ── Private ─────────────────────────────────────────────────

    def _build(self, target: type) -> ConstraintMap:
        registered = self._registry.entries_for(target) if self._registry else {}

        names = {n for n in dir(target) if self._wants(n)} | set(registered)
        methods: dict[str, MethodConstraints] = {}
        for name in sorted(names):
            entry = self._method_constraints(target, name)
            if entry is not None:
                methods[name] = entry

        if not methods:
            raise MetadataExtractionError(
                f"{target.__name__} exposes no introspectable methods; "
                f"no constraint metadata can be discovered"
            )

        for name, slots in registered.items():
            entry = methods.get(name)
            if entry is None:
                raise MetadataExtractionError(
                    f"Registry names {target.__name__}.{name}, which is not an "
                    f"introspectable method"
                )
            methods[name] = _merge_registered(target, entry, slots)

        return ConstraintMap(target, methods)

    def _wants(self, name: str) -> bool:
        if name.startswith("__") and name.endswith("__"):
            return False
        if name.startswith("_"):
            return self._include_private
        return True

    def _method_constraints(self, target: type, name: str) -> MethodConstraints | None:
        try:
            raw = inspect.getattr_static(target, name)
        except AttributeError:
            return None

        if isinstance(raw, staticmethod):
            func, drop_first = raw.__func__, False
        elif isinstance(raw, classmethod):
            func, drop_first = raw.__func__, True
        elif inspect.isfunction(raw):
            func, drop_first = raw, True
        else:
            return None

        try:
            signature = inspect.signature(func)
        except (TypeError, ValueError):
            self._log.debug("signature_unavailable", target=target.__name__, method=name)
            return None

        params = list(signature.parameters.values())
        if drop_first:
            if not params or params[0].kind not in _POSITIONAL:
                self._log.debug("no_bound_receiver", target=target.__name__, method=name)
                return None
            params = params[1:]

        plain_hints, extra_hints = self._resolve_hints(target, name, func)

        descriptors: list[str] = []
        slots: list[tuple[ParameterConstraint, ...]] = []
        for param in params:
            descriptors.append(
                _type_descriptor(plain_hints.get(param.name, inspect.Parameter.empty), param.kind)
            )
            declared: list[ParameterConstraint] = []
            for item in _annotated_metadata(extra_hints.get(param.name)):
                for c in translate_metadata(item):
                    if c not in declared:
                        declared.append(c)
            slots.append(tuple(declared))

        return MethodConstraints(
            signature=MethodSignature(name=name, parameter_types=tuple(descriptors)),
            parameter_names=tuple(p.name for p in params),
            constraints=tuple(slots),
            binding=signature.replace(parameters=params),
        )

    def _resolve_hints(
        self,
        target: type,
        name: str,
        func: Any,
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        """
        Plain and extras-preserving type hints of ``func``, keyed by parameter.

        When the annotations cannot all be resolved together, each parameter
        is resolved on its own. An unresolvable annotation that cannot carry
        constraints is kept as its source text; one that may declare
        constraints raises MetadataExtractionError.
        """
        try:
            return (
                typing.get_type_hints(func),
                typing.get_type_hints(func, include_extras=True),
            )
        except _RESOLUTION_ERRORS as exc:
            self._log.debug(
                "annotations_resolved_per_parameter",
                target=target.__name__,
                method=name,
                error=str(exc),
            )

        try:
            annotations = dict(getattr(func, "__annotations__", {}))
        except _RESOLUTION_ERRORS as exc:
            # Non-stringified annotations are evaluated on first access.
            raise MetadataExtractionError(
                f"Cannot resolve annotations of {target.__name__}.{name}: {exc}"
            ) from exc

        globalns = getattr(inspect.unwrap(func), "__globals__", {})
        plain: dict[str, Any] = {}
        extras: dict[str, Any] = {}
        for pname, annotation in annotations.items():
            if pname == "return":
                continue
            holder = types.SimpleNamespace(__annotations__={pname: annotation})
            try:
                plain.update(typing.get_type_hints(holder, globalns=globalns))
                extras.update(typing.get_type_hints(holder, globalns=globalns, include_extras=True))
            except _RESOLUTION_ERRORS as exc:
                if _may_declare_constraints(annotation):
                    raise MetadataExtractionError(
                        f"Cannot resolve annotations of {target.__name__}.{name}: {exc}"
                    ) from exc
                self._log.debug(
                    "annotation_unresolved",
                    target=target.__name__,
                    method=name,
                    parameter=pname,
                    annotation=annotation,
                )
                plain[pname] = extras[pname] = annotation
        return plain, extras


def _may_declare_constraints(annotation: Any) -> bool:
    # String annotations can only carry markers through Annotated[...].
    return not isinstance(annotation, str) or "Annotated" in annotation


def _merge_registered(
    target: type,
    entry: MethodConstraints,
    registered: dict[int, tuple[ParameterConstraint, ...]],
) -> MethodConstraints:
    slots = [list(slot) for slot in entry.constraints]
    for index, constraints in registered.items():
        if index >= len(slots):
            raise MetadataExtractionError(
                f"Registry names parameter {index} of {target.__name__}.{entry.name}, "
                f"which takes {len(slots)} parameter(s)"
            )
        for c in constraints:
            if c not in slots[index]:
                slots[index].append(c)
    return entry.model_copy(update={"constraints": tuple(tuple(s) for s in slots)})
