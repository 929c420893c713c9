"""
mockcheck — Verification Types

Value objects shared by the extractor, evaluator, recorder and verifier:

  ParameterConstraint  -- NotNull / Min / Max / Pattern markers
  MethodSignature      -- name + parameter type descriptors (overload identity)
  MethodConstraints    -- per-position constraints for one real method
  ConstraintMap        -- all MethodConstraints of one target type (read-only)
  RecordedInvocation   -- one call a test double received, bound to its signature
  EvaluationResult     -- outcome of one (constraint, value) check
  ConstraintViolation  -- one failed or mismatched check
  VerificationReport   -- ordered violations for one verification run

Constraint markers are designed to sit inside ``typing.Annotated``:

    def square(self, value: Annotated[int, NotNull(), Min(0)]) -> int: ...
"""

from __future__ import annotations

import enum
import inspect
import math
import re
from collections.abc import Iterator, Mapping
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator

from mockcheck.primitives.common import MockcheckBaseModel, short_repr


# ── Enums ─────────────────────────────────────────────────────────────────────


class ConstraintKind(enum.StrEnum):
    NOT_NULL = "NOT_NULL"
    MIN = "MIN"
    MAX = "MAX"
    PATTERN = "PATTERN"


class EvaluationStatus(enum.StrEnum):
    PASS = "pass"
    FAIL = "fail"
    TYPE_MISMATCH = "type_mismatch"


class ViolationKind(enum.StrEnum):
    VIOLATION = "violation"          # genuine precondition breach
    TYPE_MISMATCH = "type_mismatch"  # value type cannot be checked by the constraint


# ── Constraints ───────────────────────────────────────────────────────────────


class ParameterConstraint(MockcheckBaseModel):
    """
    Base for all parameter constraints.

    Concrete markers narrow ``kind`` to a single literal and add their
    kind-specific parameters. Markers are frozen, hashable and compare
    structurally, so ``Min(0) == Min(0)``.
    """

    kind: ConstraintKind

    def describe(self) -> str:
        return self.kind.value

    def __str__(self) -> str:
        return self.describe()


class NotNull(ParameterConstraint):
    """The argument must not be None."""

    kind: Literal[ConstraintKind.NOT_NULL] = ConstraintKind.NOT_NULL


class _Bound(ParameterConstraint):
    bound: int | float | Decimal

    def __init__(self, bound: Any = None, /, **data: Any) -> None:
        if bound is not None:
            data["bound"] = bound
        super().__init__(**data)

    @field_validator("bound", mode="before")
    @classmethod
    def _finite_number(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("bound must be a number, not bool")
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError(f"bound must be finite, got {v!r}")
        if isinstance(v, Decimal) and not v.is_finite():
            raise ValueError(f"bound must be finite, got {v!r}")
        return v

    def describe(self) -> str:
        return f"{self.kind.value}({self.bound})"


class Min(_Bound):
    """The argument must be numeric and >= bound (inclusive)."""

    kind: Literal[ConstraintKind.MIN] = ConstraintKind.MIN


class Max(_Bound):
    """The argument must be numeric and <= bound (inclusive)."""

    kind: Literal[ConstraintKind.MAX] = ConstraintKind.MAX


class Pattern(ParameterConstraint):
    """str(argument) must fully match ``regex``."""

    kind: Literal[ConstraintKind.PATTERN] = ConstraintKind.PATTERN
    regex: str

    def __init__(self, regex: str | None = None, /, **data: Any) -> None:
        if regex is not None:
            data["regex"] = regex
        super().__init__(**data)

    @field_validator("regex")
    @classmethod
    def _compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(f"invalid regex {v!r}: {exc}") from exc
        return v

    def describe(self) -> str:
        return f"{self.kind.value}({self.regex!r})"


NOT_NULL = NotNull()


# ── Signatures & Metadata ─────────────────────────────────────────────────────


class MethodSignature(MockcheckBaseModel):
    """Method name plus ordered parameter type descriptors. Identity key for a method."""

    name: str
    parameter_types: tuple[str, ...] = ()

    @property
    def arity(self) -> int:
        return len(self.parameter_types)

    def __str__(self) -> str:
        return f"{self.name}({', '.join(self.parameter_types)})"


class MethodConstraints(MockcheckBaseModel):
    """
    Declared constraints for one real method, indexed by parameter position.

    ``binding`` is the real signature with the implicit self/cls removed;
    the recorder binds recorded arguments against it.
    """

    model_config = {"arbitrary_types_allowed": True}

    signature: MethodSignature
    parameter_names: tuple[str, ...]
    constraints: tuple[tuple[ParameterConstraint, ...], ...]
    binding: inspect.Signature = Field(exclude=True, repr=False)

    @model_validator(mode="after")
    def _positions_line_up(self) -> MethodConstraints:
        arity = self.signature.arity
        if len(self.parameter_names) != arity or len(self.constraints) != arity:
            raise ValueError(
                f"{self.signature.name}: {arity} parameter types, "
                f"{len(self.parameter_names)} names, {len(self.constraints)} constraint slots"
            )
        return self

    @property
    def name(self) -> str:
        return self.signature.name

    @property
    def constrained_positions(self) -> tuple[int, ...]:
        return tuple(i for i, slot in enumerate(self.constraints) if slot)

    @property
    def constraint_count(self) -> int:
        return sum(len(slot) for slot in self.constraints)


class ConstraintMap:
    """
    Read-only constraint metadata for one target type.

    Produced once per type by ConstraintExtractor and shared by every
    verification against that type.
    """

    __slots__ = ("_methods", "_target")

    def __init__(self, target: type, methods: Mapping[str, MethodConstraints]) -> None:
        self._target = target
        self._methods: Mapping[str, MethodConstraints] = MappingProxyType(dict(methods))

    @property
    def target(self) -> type:
        return self._target

    @property
    def methods(self) -> Mapping[str, MethodConstraints]:
        return self._methods

    def get(self, name: str) -> MethodConstraints | None:
        return self._methods.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._methods

    def __iter__(self) -> Iterator[str]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)

    @property
    def constraint_count(self) -> int:
        return sum(m.constraint_count for m in self._methods.values())

    def __repr__(self) -> str:
        return (
            f"ConstraintMap(target={self._target.__name__}, methods={len(self._methods)}, "
            f"constraints={self.constraint_count})"
        )


# ── Invocations ───────────────────────────────────────────────────────────────


class RecordedInvocation(MockcheckBaseModel):
    """
    One call received by a test double, bound to the real method signature.

    ``sequence`` is the call's position in the double's full call history,
    so it increases monotonically with real call order.
    """

    signature: MethodSignature
    arguments: tuple[Any, ...]
    sequence: int = Field(ge=0)

    @model_validator(mode="after")
    def _arity_matches(self) -> RecordedInvocation:
        if len(self.arguments) != self.signature.arity:
            raise ValueError(
                f"{self.signature.name} takes {self.signature.arity} arguments, "
                f"recorded {len(self.arguments)}"
            )
        return self

    @property
    def method(self) -> str:
        return self.signature.name


# ── Evaluation ────────────────────────────────────────────────────────────────


class EvaluationResult(MockcheckBaseModel):
    status: EvaluationStatus
    detail: str = ""

    @property
    def passed(self) -> bool:
        return self.status == EvaluationStatus.PASS

    @classmethod
    def ok(cls) -> EvaluationResult:
        return cls(status=EvaluationStatus.PASS)

    @classmethod
    def fail(cls, detail: str) -> EvaluationResult:
        return cls(status=EvaluationStatus.FAIL, detail=detail)

    @classmethod
    def mismatch(cls, detail: str) -> EvaluationResult:
        return cls(status=EvaluationStatus.TYPE_MISMATCH, detail=detail)


# ── Report ────────────────────────────────────────────────────────────────────


class ConstraintViolation(MockcheckBaseModel):
    """A single failed (or type-mismatched) constraint check."""

    invocation: RecordedInvocation
    parameter_index: int
    parameter_name: str
    constraint: ParameterConstraint
    actual_value: Any = None
    kind: ViolationKind = ViolationKind.VIOLATION
    detail: str = ""

    @property
    def method(self) -> str:
        return self.invocation.method

    @property
    def sequence(self) -> int:
        return self.invocation.sequence

    def describe(self) -> str:
        line = (
            f"#{self.sequence} {self.method}({self.parameter_name}[{self.parameter_index}]) "
            f"{self.constraint.describe()}: got {short_repr(self.actual_value)}"
        )
        if self.kind == ViolationKind.TYPE_MISMATCH:
            line += f" [TYPE_MISMATCH: {self.detail}]"
        return line


class VerificationReport(MockcheckBaseModel):
    """
    Ordered violations found across a mock's invocation history.

    Ordered by invocation sequence, then parameter index, then constraint
    declaration order. An empty report means every recorded call satisfied
    every declared constraint.
    """

    target: str = ""
    invocation_count: int = 0
    violations: tuple[ConstraintViolation, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.violations

    @property
    def count(self) -> int:
        return len(self.violations)

    @property
    def violations_only(self) -> tuple[ConstraintViolation, ...]:
        return tuple(v for v in self.violations if v.kind == ViolationKind.VIOLATION)

    @property
    def type_mismatches(self) -> tuple[ConstraintViolation, ...]:
        return tuple(v for v in self.violations if v.kind == ViolationKind.TYPE_MISMATCH)

    def for_method(self, name: str) -> tuple[ConstraintViolation, ...]:
        return tuple(v for v in self.violations if v.method == name)
