"""
Unit tests for verification value objects.

Tests constraint markers, metadata validation, and report accessors.
"""

from __future__ import annotations

import inspect
from decimal import Decimal

import pytest
from pydantic import ValidationError

from mockcheck.verification.types import (
    NOT_NULL,
    ConstraintKind,
    ConstraintMap,
    ConstraintViolation,
    Max,
    MethodConstraints,
    MethodSignature,
    Min,
    NotNull,
    Pattern,
    RecordedInvocation,
    VerificationReport,
    ViolationKind,
)


def _signature(name: str = "square", *types: str) -> MethodSignature:
    return MethodSignature(name=name, parameter_types=types or ("int",))


def _violation(
    sequence: int,
    index: int = 0,
    method: str = "square",
    kind: ViolationKind = ViolationKind.VIOLATION,
) -> ConstraintViolation:
    invocation = RecordedInvocation(
        signature=_signature(method, "int", "int"),
        arguments=(None, None),
        sequence=sequence,
    )
    return ConstraintViolation(
        invocation=invocation,
        parameter_index=index,
        parameter_name="ab"[index],
        constraint=NOT_NULL,
        actual_value=None,
        kind=kind,
        detail="expected a real number, got str" if kind == ViolationKind.TYPE_MISMATCH else "",
    )


# ─── Tests: Constraint Markers ────────────────────────────────────


class TestConstraintMarkers:
    def test_kinds(self):
        assert NotNull().kind == ConstraintKind.NOT_NULL
        assert Min(0).kind == ConstraintKind.MIN
        assert Max(0).kind == ConstraintKind.MAX
        assert Pattern(r"\w+").kind == ConstraintKind.PATTERN

    def test_structural_equality_and_hashing(self):
        assert Min(0) == Min(0)
        assert hash(Min(0)) == hash(Min(0))
        assert Min(0) != Max(0)
        assert Min(0) != Min(1)
        assert NotNull() == NOT_NULL
        assert len({Min(0), Min(0), Max(0)}) == 2

    def test_keyword_construction(self):
        assert Min(bound=3) == Min(3)
        assert Pattern(regex="x") == Pattern("x")

    def test_describe(self):
        assert NOT_NULL.describe() == "NOT_NULL"
        assert Min(0).describe() == "MIN(0)"
        assert str(Max(Decimal("2.5"))) == "MAX(2.5)"
        assert Pattern(r"[a-z]+").describe() == "PATTERN('[a-z]+')"

    def test_bool_bound_rejected(self):
        with pytest.raises(ValidationError, match="not bool"):
            Min(True)

    def test_non_finite_bound_rejected(self):
        with pytest.raises(ValidationError, match="finite"):
            Max(float("inf"))

    @pytest.mark.parametrize("bound", [Decimal("Infinity"), Decimal("-Infinity"), Decimal("NaN")])
    def test_non_finite_decimal_bound_rejected(self, bound):
        with pytest.raises(ValidationError, match="finite"):
            Min(bound)

    def test_invalid_regex_rejected(self):
        with pytest.raises(ValidationError, match="invalid regex"):
            Pattern("(")

    def test_markers_are_frozen(self):
        marker = Min(0)
        with pytest.raises(ValidationError):
            marker.bound = 5


# ─── Tests: Method Metadata ───────────────────────────────────────


class TestMethodConstraints:
    def test_positions_must_line_up(self):
        with pytest.raises(ValidationError, match="constraint slots"):
            MethodConstraints(
                signature=_signature("square", "int"),
                parameter_names=("value",),
                constraints=(),
                binding=inspect.Signature(),
            )

    def test_constrained_positions_and_count(self):
        entry = MethodConstraints(
            signature=_signature("divide", "float", "float", "str"),
            parameter_names=("a", "b", "label"),
            constraints=((NOT_NULL,), (NOT_NULL, Min(1)), ()),
            binding=inspect.Signature(),
        )
        assert entry.name == "divide"
        assert entry.constrained_positions == (0, 1)
        assert entry.constraint_count == 3
        assert "binding" not in entry.model_dump()

    def test_signature_text(self):
        assert str(_signature("divide", "float", "float")) == "divide(float, float)"
        assert _signature("divide", "float", "float").arity == 2


class TestConstraintMap:
    def test_read_only_mapping(self):
        entry = MethodConstraints(
            signature=_signature("square", "int"),
            parameter_names=("value",),
            constraints=((NOT_NULL,),),
            binding=inspect.Signature(),
        )
        cmap = ConstraintMap(int, {"square": entry})

        assert "square" in cmap
        assert cmap.get("missing") is None
        assert list(cmap) == ["square"]
        assert len(cmap) == 1
        assert cmap.constraint_count == 1
        with pytest.raises(TypeError):
            cmap.methods["other"] = entry  # type: ignore[index]


# ─── Tests: Invocations & Reports ─────────────────────────────────


class TestRecordedInvocation:
    def test_arity_must_match(self):
        with pytest.raises(ValidationError, match="takes 1 arguments"):
            RecordedInvocation(signature=_signature(), arguments=(1, 2), sequence=0)

    def test_negative_sequence_rejected(self):
        with pytest.raises(ValidationError):
            RecordedInvocation(signature=_signature(), arguments=(1,), sequence=-1)


class TestViolationAndReport:
    def test_violation_describe(self):
        assert _violation(4, index=1).describe() == "#4 square(b[1]) NOT_NULL: got None"

    def test_type_mismatch_describe(self):
        line = _violation(0, kind=ViolationKind.TYPE_MISMATCH).describe()
        assert line.endswith("[TYPE_MISMATCH: expected a real number, got str]")

    def test_empty_report_passes(self):
        report = VerificationReport(target="pkg.Calculator", invocation_count=3)
        assert report.passed
        assert report.count == 0

    def test_report_accessors(self):
        report = VerificationReport(
            target="pkg.Calculator",
            invocation_count=3,
            violations=(
                _violation(0),
                _violation(1, method="divide", kind=ViolationKind.TYPE_MISMATCH),
                _violation(2),
            ),
        )
        assert not report.passed
        assert report.count == 3
        assert [v.sequence for v in report.violations_only] == [0, 2]
        assert [v.sequence for v in report.type_mismatches] == [1]
        assert [v.sequence for v in report.for_method("divide")] == [1]
