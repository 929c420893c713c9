"""
mockcheck — Verification Subsystem

Runtime constraint verification for mock-based unit tests:
  extractor  -> declared per-parameter constraints of a real class
  recorder   -> invocations a test double actually received
  evaluator  -> pass / fail / type-mismatch for one (constraint, value)
  verifier   -> VerificationReport over a double's full call history
"""

from mockcheck.verification.assertions import (
    ConstraintAssertionError,
    assert_constraints_satisfied,
    format_report,
)
from mockcheck.verification.errors import (
    InvocationBindingError,
    MetadataExtractionError,
    MockcheckError,
    TargetResolutionError,
    TypeMismatchError,
)
from mockcheck.verification.evaluator import evaluate
from mockcheck.verification.extractor import ConstraintExtractor, translate_metadata
from mockcheck.verification.recorder import (
    InvocationRecorder,
    InvocationSource,
    UnittestMockSource,
)
from mockcheck.verification.registry import ConstraintRegistry
from mockcheck.verification.types import (
    NOT_NULL,
    ConstraintKind,
    ConstraintMap,
    ConstraintViolation,
    EvaluationResult,
    EvaluationStatus,
    Max,
    MethodConstraints,
    MethodSignature,
    Min,
    NotNull,
    ParameterConstraint,
    Pattern,
    RecordedInvocation,
    VerificationReport,
    ViolationKind,
)
from mockcheck.verification.verifier import ConstraintVerifier

__all__ = [
    "NOT_NULL",
    "ConstraintAssertionError",
    "ConstraintExtractor",
    "ConstraintKind",
    "ConstraintMap",
    "ConstraintRegistry",
    "ConstraintVerifier",
    "ConstraintViolation",
    "EvaluationResult",
    "EvaluationStatus",
    "InvocationBindingError",
    "InvocationRecorder",
    "InvocationSource",
    "Max",
    "MetadataExtractionError",
    "MethodConstraints",
    "MethodSignature",
    "Min",
    "MockcheckError",
    "NotNull",
    "ParameterConstraint",
    "Pattern",
    "RecordedInvocation",
    "TargetResolutionError",
    "TypeMismatchError",
    "UnittestMockSource",
    "VerificationReport",
    "ViolationKind",
    "assert_constraints_satisfied",
    "evaluate",
    "format_report",
    "translate_metadata",
]
