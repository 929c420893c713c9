"""
mockcheck — Constraint verification for mock-based unit tests.

Declares preconditions on real methods with ``typing.Annotated`` markers and
checks, after a test ran, that every call a test double received satisfied
them.
"""

from mockcheck.verification import (
    NOT_NULL,
    ConstraintAssertionError,
    ConstraintRegistry,
    ConstraintVerifier,
    Max,
    MetadataExtractionError,
    Min,
    NotNull,
    Pattern,
    VerificationReport,
    assert_constraints_satisfied,
    format_report,
)

__all__ = [
    "NOT_NULL",
    "ConstraintAssertionError",
    "ConstraintRegistry",
    "ConstraintVerifier",
    "Max",
    "MetadataExtractionError",
    "Min",
    "NotNull",
    "Pattern",
    "VerificationReport",
    "assert_constraints_satisfied",
    "format_report",
]
