"""
Unit tests for InvocationRecorder and the unittest.mock source.

Tests call ordering, argument binding, defaults, skipped calls, binding
errors, and that the double's history is left untouched.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Annotated, Any
from unittest.mock import MagicMock, Mock, create_autospec

import pytest

from mockcheck.verification.errors import InvocationBindingError, TargetResolutionError
from mockcheck.verification.extractor import ConstraintExtractor
from mockcheck.verification.recorder import (
    InvocationRecorder,
    InvocationSource,
    UnittestMockSource,
)
from mockcheck.verification.types import Min, NotNull


# ─── Fixtures ─────────────────────────────────────────────────────


class Ledger:
    def post(
        self,
        account: Annotated[str, NotNull()],
        amount: Annotated[int, Min(0)],
        memo: str = "",
    ) -> int:
        return amount

    def close(self) -> None:
        ...

    def _audit(self, entry: str) -> None:
        ...

    @staticmethod
    def normalise(code: str) -> str:
        return code.upper()


class _ListSource:
    """Hand-written source over plain call lists."""

    def __init__(self, spec: type | None, calls: list[tuple[str, tuple, dict]]) -> None:
        self._spec = spec
        self._calls = calls

    def spec_of(self, mock: Any) -> type | None:
        return self._spec

    def calls_of(self, mock: Any) -> Sequence[tuple[str, tuple[Any, ...], dict[str, Any]]]:
        return self._calls


def _ledger_map():
    return ConstraintExtractor().extract(Ledger)


# ─── Tests: Spec Resolution ───────────────────────────────────────


class TestSpecResolution:
    def test_autospec_instance(self):
        assert UnittestMockSource().spec_of(create_autospec(Ledger, instance=True)) is Ledger

    def test_spec_argument(self):
        assert UnittestMockSource().spec_of(Mock(spec=Ledger)) is Ledger
        assert UnittestMockSource().spec_of(MagicMock(spec=Ledger)) is Ledger

    def test_unspecced_mock(self):
        assert UnittestMockSource().spec_of(Mock()) is None

    def test_not_a_mock(self):
        assert UnittestMockSource().spec_of(Ledger()) is None

    def test_calls_of_non_mock_raises(self):
        with pytest.raises(TargetResolutionError, match="not a unittest.mock double"):
            UnittestMockSource().calls_of(Ledger())


# ─── Tests: Recording ─────────────────────────────────────────────


class TestRecording:
    def test_calls_in_order_with_sequence(self):
        ledger = create_autospec(Ledger, instance=True)
        ledger.post("cash", 10)
        ledger.close()
        ledger.post("bank", -5, "refund")

        invocations = InvocationRecorder().invocations_of(ledger, _ledger_map())

        assert [i.method for i in invocations] == ["post", "close", "post"]
        assert [i.sequence for i in invocations] == [0, 1, 2]
        assert invocations[2].arguments == ("bank", -5, "refund")
        assert invocations[1].arguments == ()

    def test_keyword_arguments_bound_to_positions(self):
        ledger = create_autospec(Ledger, instance=True)
        ledger.post(amount=3, account="cash")

        (invocation,) = InvocationRecorder().invocations_of(ledger, _ledger_map())
        assert invocation.arguments == ("cash", 3, "")

    def test_defaults_applied(self):
        ledger = create_autospec(Ledger, instance=True)
        ledger.post("cash", 1)

        (invocation,) = InvocationRecorder().invocations_of(ledger, _ledger_map())
        assert invocation.arguments[2] == ""

    def test_static_method_calls_recorded(self):
        ledger = create_autospec(Ledger, instance=True)
        ledger.normalise("eur")

        (invocation,) = InvocationRecorder().invocations_of(ledger, _ledger_map())
        assert invocation.method == "normalise"
        assert invocation.arguments == ("eur",)

    def test_no_calls(self):
        ledger = create_autospec(Ledger, instance=True)
        assert InvocationRecorder().invocations_of(ledger, _ledger_map()) == ()


# ─── Tests: Class Doubles ─────────────────────────────────────────


class TestClassDoubles:
    def test_instance_calls_count_as_method_calls(self):
        ledger_cls = create_autospec(Ledger)
        ledger = ledger_cls()
        ledger.post("cash", 7)
        ledger.close()

        invocations = InvocationRecorder().invocations_of(ledger_cls, _ledger_map())

        assert [(i.method, i.sequence) for i in invocations] == [("post", 1), ("close", 2)]
        assert invocations[0].arguments == ("cash", 7, "")

    def test_source_strips_instance_prefix_only_once(self):
        ledger_cls = Mock(spec=Ledger)
        ledger_cls().post("cash", 1).bit_length()

        names = [name for name, _, _ in UnittestMockSource().calls_of(ledger_cls)]
        assert names == ["", "post", "post().bit_length"]


# ─── Tests: Skipped Calls ─────────────────────────────────────────


class TestSkippedCalls:
    def test_direct_and_chained_calls_consume_sequence_numbers(self):
        ledger = Mock(spec=Ledger)
        ledger()
        ledger.post("cash", 1).bit_length()
        ledger.post("bank", 2)

        invocations = InvocationRecorder().invocations_of(ledger, _ledger_map())

        assert [i.sequence for i in invocations] == [1, 3]
        assert [i.arguments[0] for i in invocations] == ["cash", "bank"]

    def test_methods_outside_the_map_skipped(self):
        ledger = Mock(spec=Ledger)
        ledger._audit("entry")
        ledger.close()

        invocations = InvocationRecorder().invocations_of(ledger, _ledger_map())
        assert [(i.method, i.sequence) for i in invocations] == [("close", 1)]


# ─── Tests: Binding Errors ────────────────────────────────────────


class TestBindingErrors:
    def test_too_many_arguments(self):
        ledger = Mock(spec=Ledger)
        ledger.close()
        ledger.post("cash", 1, "memo", "extra")

        with pytest.raises(InvocationBindingError) as exc_info:
            InvocationRecorder().invocations_of(ledger, _ledger_map())

        assert exc_info.value.method == "post"
        assert exc_info.value.sequence == 1
        assert "call #1 to 'post'" in str(exc_info.value)

    def test_missing_required_argument(self):
        ledger = Mock(spec=Ledger)
        ledger.post(account="cash")

        with pytest.raises(InvocationBindingError, match="does not match the real signature"):
            InvocationRecorder().invocations_of(ledger, _ledger_map())


# ─── Tests: Read-only View ────────────────────────────────────────


def test_history_not_mutated():
    ledger = create_autospec(Ledger, instance=True)
    ledger.post("cash", 1)
    ledger.close()
    before = list(ledger.mock_calls)

    recorder = InvocationRecorder()
    first = recorder.invocations_of(ledger, _ledger_map())
    second = recorder.invocations_of(ledger, _ledger_map())

    assert list(ledger.mock_calls) == before
    assert first == second


def test_custom_source():
    source = _ListSource(Ledger, [("post", ("cash", 4), {}), ("unknown", (), {})])
    assert isinstance(source, InvocationSource)

    recorder = InvocationRecorder(source)
    assert recorder.source is source
    assert recorder.target_of(object()) is Ledger

    (invocation,) = recorder.invocations_of(object(), _ledger_map())
    assert invocation.arguments == ("cash", 4, "")
    assert invocation.sequence == 0
