"""
mockcheck — Report Formatting and Test Assertions

Thin layer between VerificationReport and a test framework's failure
signal. The verifier itself never raises on violations; this module does.
"""

from __future__ import annotations

from typing import Any

from mockcheck.verification.types import VerificationReport, ViolationKind
from mockcheck.verification.verifier import ConstraintVerifier


class ConstraintAssertionError(AssertionError):
    """Recorded invocations broke declared constraints. Carries the full report."""

    def __init__(self, report: VerificationReport) -> None:
        super().__init__(format_report(report))
        self.report = report


def format_report(report: VerificationReport) -> str:
    """
    Render a report as text for assertion messages and logs.

    One line per entry, in report order.
    """
    if report.passed:
        return (
            f"{report.target}: {report.invocation_count} recorded invocation(s), "
            f"all constraints satisfied."
        )

    violations = sum(1 for v in report.violations if v.kind == ViolationKind.VIOLATION)
    mismatches = report.count - violations
    lines = [
        f"{report.target}: {report.count} constraint failure(s) across "
        f"{report.invocation_count} recorded invocation(s) "
        f"({violations} violations, {mismatches} type mismatches):",
        "",
    ]
    for v in report.violations:
        lines.append(f"  {v.describe()}")

    if mismatches:
        lines.extend([
            "",
            "TYPE_MISMATCH entries mean the double was called with a value the "
            "constraint cannot check; the call site or the declared metadata is wrong.",
        ])

    return "\n".join(lines)


def assert_constraints_satisfied(
    mock: Any,
    verifier: ConstraintVerifier | None = None,
) -> VerificationReport:
    """
    Verify ``mock`` and raise ConstraintAssertionError if the report is non-empty.

    Returns the (empty) report on success. Without a verifier, a fresh one
    resolves the target from the double's spec.
    """
    report = (verifier or ConstraintVerifier()).verify_constraints(mock)
    if not report.passed:
        raise ConstraintAssertionError(report)
    return report
