"""
mockcheck — Verification Error Hierarchy

All exceptions raised by the constraint-verification core.

Namespace: mockcheck.verification.errors

Constraint violations are NOT exceptions. They are accumulated in a
VerificationReport and returned to the caller. Only conditions that make a
verification attempt impossible are raised:

  MetadataExtractionError   FATAL  -- target exposes no reachable constraint metadata
  TargetResolutionError     FATAL  -- mock's real type unknown or not the bound target
  InvocationBindingError    FATAL  -- recorded call does not fit the real signature

TypeMismatchError is raised only inside the evaluator and converted to a
TYPE_MISMATCH outcome before it can reach a caller.
"""

from __future__ import annotations

from typing import Any


class MockcheckError(RuntimeError):
    """Base for all mockcheck verification errors."""


class MetadataExtractionError(MockcheckError):
    """
    The target type exposes no discoverable constraint metadata.

    Raised for non-class targets, mock proxies passed in place of the real
    type, unresolvable annotations, classes with no introspectable methods,
    and registry entries that do not match the class. Never retried: static
    metadata absence does not change between attempts.
    """


class TargetResolutionError(MetadataExtractionError):
    """The real type behind a mock could not be resolved, or mismatches the verifier's target."""


class InvocationBindingError(MockcheckError):
    """
    A recorded call's arguments cannot be bound to the real method signature.

    Only possible with doubles that do not enforce signatures (``Mock(spec=...)``
    without autospec); ``create_autospec`` rejects such calls at call time.
    """

    def __init__(self, method: str, sequence: int, reason: str) -> None:
        super().__init__(
            f"call #{sequence} to {method!r} does not match the real signature: {reason}"
        )
        self.method = method
        self.sequence = sequence
        self.reason = reason


class TypeMismatchError(MockcheckError):
    """A constraint received a value of a type it cannot evaluate."""

    def __init__(self, expected: str, value: Any) -> None:
        super().__init__(f"expected {expected}, got {type(value).__name__}")
        self.expected = expected
        self.value = value
