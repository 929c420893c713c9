"""
mockcheck — Constraint Verifier

Checks, after the fact, that every call a test double received would have
satisfied the constraints declared on the real method it stands in for.

Usage:
    calculator = create_autospec(Calculator, instance=True)
    service_under_test(calculator)

    verifier = ConstraintVerifier(Calculator)
    report = verifier.verify_constraints(calculator)
    assert report.passed, format_report(report)

Pipeline per call:
    1. resolve the double's real type (bound target or the double's spec)
    2. ConstraintExtractor.extract(type)           -- cached per type
    3. InvocationRecorder.invocations_of(double)   -- read-only, oldest first
    4. evaluate() each (parameter, constraint, value) triple; *args and
       **kwargs parameters are checked element by element
    5. collect failures and type mismatches into a VerificationReport

The verifier never asserts. Turning a non-empty report into a test failure
is done by assert_constraints_satisfied() or by the caller.

Verifiers are test-scoped. The double's call history is read on every call
and never cached here, so a fresh double per test keeps reports isolated.
"""

from __future__ import annotations

import inspect
from typing import Any

import structlog

from mockcheck.config import VerifierConfig
from mockcheck.primitives.common import qualified_name, short_repr
from mockcheck.verification.errors import TargetResolutionError
from mockcheck.verification.evaluator import evaluate
from mockcheck.verification.extractor import ConstraintExtractor
from mockcheck.verification.recorder import InvocationRecorder, InvocationSource
from mockcheck.verification.registry import ConstraintRegistry
from mockcheck.verification.types import (
    ConstraintMap,
    ConstraintViolation,
    EvaluationStatus,
    MethodConstraints,
    MethodSignature,
    RecordedInvocation,
    VerificationReport,
    ViolationKind,
)

logger = structlog.get_logger()


class ConstraintVerifier:
    """
    Verifies recorded invocations of test doubles against declared constraints.

    When ``target`` is given, its constraints are extracted immediately so
    metadata problems surface at construction. Doubles must then be specced
    on ``target`` (or a subclass of it), or carry no spec at all.
    """

    def __init__(
        self,
        target: type | None = None,
        *,
        registry: ConstraintRegistry | None = None,
        source: InvocationSource | None = None,
        config: VerifierConfig | None = None,
        extractor: ConstraintExtractor | None = None,
    ) -> None:
        self._config = config or VerifierConfig()
        self._extractor = extractor or ConstraintExtractor(
            registry=registry,
            include_private=self._config.include_private,
        )
        self._recorder = InvocationRecorder(source)
        self._target = target
        self._log = logger.bind(system="mockcheck.verifier")

        if target is not None:
            self._extractor.extract(target)

    @property
    def target(self) -> type | None:
        return self._target

    @property
    def config(self) -> VerifierConfig:
        return self._config

    @property
    def extractor(self) -> ConstraintExtractor:
        return self._extractor

    def verify_constraints(self, mock: Any) -> VerificationReport:
        """
        Produce a fresh report for ``mock``'s full call history.

        Idempotent: with no new calls in between, repeated calls return equal
        reports.

        Raises:
            TargetResolutionError: the double's real type is unknown or is not
                the verifier's target.
            MetadataExtractionError: the real type exposes no constraint metadata.
            InvocationBindingError: a recorded call does not fit the real signature.
        """
        target = self._resolve_target(mock)
        constraint_map = self._extractor.extract(target)
        invocations = self._recorder.invocations_of(mock, constraint_map)
        by_signature = _index_by_signature(constraint_map)

        violations: list[ConstraintViolation] = []
        suppressed = 0
        for invocation in invocations:
            entry = by_signature[invocation.signature]
            for found in self._check_invocation(entry, invocation):
                if found.kind == ViolationKind.TYPE_MISMATCH and not self._config.report_type_mismatches:
                    suppressed += 1
                    self._log.warning(
                        "type_mismatch_suppressed",
                        method=found.method,
                        sequence=found.sequence,
                        parameter=found.parameter_name,
                        constraint=found.constraint.describe(),
                        value=short_repr(found.actual_value),
                    )
                    continue
                violations.append(found)

        report = VerificationReport(
            target=qualified_name(target),
            invocation_count=len(invocations),
            violations=tuple(violations),
        )

        self._log.info(
            "constraint_verification_complete",
            target=report.target,
            invocations=len(invocations),
            violations=len(report.violations_only),
            type_mismatches=len(report.type_mismatches),
            suppressed=suppressed,
        )
        return report

    # ── Private ─────────────────────────────────────────────────

    def _resolve_target(self, mock: Any) -> type:
        spec = self._recorder.target_of(mock)
        if self._target is None:
            if spec is None:
                raise TargetResolutionError(
                    "Cannot resolve the real type behind this double; create it with "
                    "create_autospec()/spec= or construct the verifier with a target"
                )
            return spec
        if spec is None:
            return self._target
        if issubclass(spec, self._target):
            return spec
        raise TargetResolutionError(
            f"Double is specced on {spec.__name__}, but this verifier verifies "
            f"{self._target.__name__}"
        )

    @staticmethod
    def _check_invocation(
        entry: MethodConstraints,
        invocation: RecordedInvocation,
    ) -> list[ConstraintViolation]:
        found: list[ConstraintViolation] = []
        for index in entry.constrained_positions:
            for value in _checked_values(entry, index, invocation.arguments[index]):
                for constraint in entry.constraints[index]:
                    result = evaluate(constraint, value)
                    if result.passed:
                        continue
                    found.append(
                        ConstraintViolation(
                            invocation=invocation,
                            parameter_index=index,
                            parameter_name=entry.parameter_names[index],
                            constraint=constraint,
                            actual_value=value,
                            kind=(
                                ViolationKind.TYPE_MISMATCH
                                if result.status == EvaluationStatus.TYPE_MISMATCH
                                else ViolationKind.VIOLATION
                            ),
                            detail=result.detail,
                        )
                    )
        return found


def _checked_values(entry: MethodConstraints, index: int, value: Any) -> tuple[Any, ...]:
    """Values a parameter's constraints apply to: the argument, or each element of *args / **kwargs."""
    kind = entry.binding.parameters[entry.parameter_names[index]].kind
    if kind is inspect.Parameter.VAR_POSITIONAL:
        return tuple(value)
    if kind is inspect.Parameter.VAR_KEYWORD:
        return tuple(value.values())
    return (value,)


def _index_by_signature(constraint_map: ConstraintMap) -> dict[MethodSignature, MethodConstraints]:
    return {entry.signature: entry for entry in constraint_map.methods.values()}
