"""
mockcheck — Invocation Recorder Adapter

Reads the calls a test double received and binds each one to the real
method it stands in for.

The mocking library is reached only through the InvocationSource protocol.
UnittestMockSource covers ``unittest.mock`` doubles (``create_autospec``,
``Mock(spec=...)``, ``MagicMock(spec=...)``); other libraries plug in their
own source.

Sequence numbers are positions in the double's full call history. Calls that
do not target a known method (calls on the double itself, chained calls,
magic methods) are skipped but still consume a number, so gaps are expected
and order is always the real call order. For class doubles, calls on the
instances they hand out (``Cls().method(...)``) count as calls to ``method``.

The adapter is a read-only view: it copies the history and never resets or
mutates it.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable
from unittest.mock import NonCallableMock

import structlog

from mockcheck.verification.errors import InvocationBindingError, TargetResolutionError
from mockcheck.verification.types import ConstraintMap, MethodConstraints, RecordedInvocation

logger = structlog.get_logger()

RawCall = tuple[str, tuple[Any, ...], dict[str, Any]]

_INSTANCE_PREFIX = "()."


@runtime_checkable
class InvocationSource(Protocol):
    """Capability supplied by a mocking library."""

    def spec_of(self, mock: Any) -> type | None:
        """The real class a double stands in for, or None if unknown."""
        ...

    def calls_of(self, mock: Any) -> Sequence[RawCall]:
        """(method name, positional args, keyword args) triples, oldest first."""
        ...


class UnittestMockSource:
    """InvocationSource over ``unittest.mock`` doubles."""

    def spec_of(self, mock: Any) -> type | None:
        if not isinstance(mock, NonCallableMock):
            return None
        spec = getattr(mock, "_spec_class", None)
        return spec if isinstance(spec, type) else None

    def calls_of(self, mock: Any) -> Sequence[RawCall]:
        if not isinstance(mock, NonCallableMock):
            raise TargetResolutionError(
                f"{type(mock).__name__} is not a unittest.mock double"
            )
        return [
            (_instance_call_name(name), tuple(args), dict(kwargs))
            for name, args, kwargs in list(mock.mock_calls)
        ]


def _instance_call_name(name: str) -> str:
    # Class doubles (create_autospec(Cls), patch(..., autospec=True)) record
    # calls on the instances they return as "().method".
    if name.startswith(_INSTANCE_PREFIX):
        return name[len(_INSTANCE_PREFIX):]
    return name


class InvocationRecorder:
    """Turns a double's raw call history into RecordedInvocations."""

    def __init__(self, source: InvocationSource | None = None) -> None:
        self._source: InvocationSource = source or UnittestMockSource()
        self._log = logger.bind(system="mockcheck.recorder")

    @property
    def source(self) -> InvocationSource:
        return self._source

    def target_of(self, mock: Any) -> type | None:
        return self._source.spec_of(mock)

    def invocations_of(
        self,
        mock: Any,
        constraint_map: ConstraintMap,
    ) -> tuple[RecordedInvocation, ...]:
        """
        Recorded invocations of methods in ``constraint_map``, oldest first.

        Raises InvocationBindingError when a call's arguments cannot be bound
        to the real method's signature.
        """
        recorded: list[RecordedInvocation] = []
        for sequence, (name, args, kwargs) in enumerate(self._source.calls_of(mock)):
            entry = constraint_map.get(name) if name else None
            if entry is None:
                self._log.debug("invocation_skipped", call=name or "<direct>", sequence=sequence)
                continue
            recorded.append(
                RecordedInvocation(
                    signature=entry.signature,
                    arguments=_bind(entry, args, kwargs, sequence),
                    sequence=sequence,
                )
            )
        return tuple(recorded)


def _bind(
    entry: MethodConstraints,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
    sequence: int,
) -> tuple[Any, ...]:
    try:
        bound = entry.binding.bind(*args, **kwargs)
    except TypeError as exc:
        raise InvocationBindingError(entry.name, sequence, str(exc)) from exc
    bound.apply_defaults()
    return tuple(bound.arguments[name] for name in entry.parameter_names)
