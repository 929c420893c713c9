"""
mockcheck — Constraint Evaluator

Decides pass / fail / type-mismatch for one (constraint, actual value) pair.

Pure: no logging, no state, no exceptions for expected outcomes. A value
whose type a constraint cannot check is reported as TYPE_MISMATCH, kept
separate from FAIL so a test-double/metadata mismatch is never confused with
a genuine precondition breach.

Null policy:
  None is checked only by NOT_NULL. Every other kind passes vacuously on
  None, so one missing argument yields one NOT_NULL violation instead of
  an additional out-of-range or no-match report.
"""

from __future__ import annotations

import numbers
import operator
import re
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from mockcheck.primitives.common import short_repr
from mockcheck.verification.errors import TypeMismatchError
from mockcheck.verification.types import (
    ConstraintKind,
    EvaluationResult,
    Max,
    Min,
    ParameterConstraint,
    Pattern,
)


def _as_number(value: Any) -> numbers.Real | Decimal:
    """Return value unchanged if it is a real number; bool is not a number here."""
    if isinstance(value, bool) or not isinstance(value, (numbers.Real, Decimal)):
        raise TypeMismatchError("a real number", value)
    return value


def _in_range(value: Any, bound: Any, compare: Callable[[Any, Any], bool]) -> bool:
    number = _as_number(value)
    try:
        return compare(number, bound)
    except TypeError as exc:
        raise TypeMismatchError(f"a number comparable with {bound!r}", value) from exc
    except ArithmeticError:
        # Decimal NaN refuses ordering; it is never within a bound.
        return False


def _check_not_null(constraint: ParameterConstraint, value: Any) -> EvaluationResult:
    if value is None:
        return EvaluationResult.fail("value is None")
    return EvaluationResult.ok()


def _check_min(constraint: Min, value: Any) -> EvaluationResult:
    if _in_range(value, constraint.bound, operator.ge):
        return EvaluationResult.ok()
    return EvaluationResult.fail(f"{short_repr(value)} < {constraint.bound}")


def _check_max(constraint: Max, value: Any) -> EvaluationResult:
    if _in_range(value, constraint.bound, operator.le):
        return EvaluationResult.ok()
    return EvaluationResult.fail(f"{short_repr(value)} > {constraint.bound}")


def _check_pattern(constraint: Pattern, value: Any) -> EvaluationResult:
    try:
        text = str(value)
    except Exception as exc:
        raise TypeMismatchError("a value with a usable str()", value) from exc
    if re.fullmatch(constraint.regex, text) is not None:
        return EvaluationResult.ok()
    return EvaluationResult.fail(f"{short_repr(text)} does not match {constraint.regex!r}")


_CHECKS: dict[ConstraintKind, Callable[[Any, Any], EvaluationResult]] = {
    ConstraintKind.NOT_NULL: _check_not_null,
    ConstraintKind.MIN: _check_min,
    ConstraintKind.MAX: _check_max,
    ConstraintKind.PATTERN: _check_pattern,
}


def evaluate(constraint: ParameterConstraint, actual_value: Any) -> EvaluationResult:
    """
    Evaluate one constraint against one argument value.

    Returns PASS, FAIL, or TYPE_MISMATCH. Never raises for any argument value.
    """
    if actual_value is None and constraint.kind != ConstraintKind.NOT_NULL:
        return EvaluationResult.ok()

    check = _CHECKS[constraint.kind]
    try:
        return check(constraint, actual_value)
    except TypeMismatchError as exc:
        return EvaluationResult.mismatch(str(exc))
