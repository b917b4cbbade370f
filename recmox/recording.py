"""Two-step recording: describe a call on the mock, then configure it.

During the record phase a mock returns a :class:`RecordedCall` placeholder and
its control keeps the call in a :class:`LastInvocation` slot. ``expect()`` or
``expect_last_call()`` then turns that pending call into an
:class:`~recmox.expectations.Expectation` and hands back
:class:`ExpectationSetters` to configure it.
"""

from __future__ import annotations

import dataclasses as dc
import typing as t

from .errors import UsageError
from .expectations import (
    ANY_TIMES,
    AT_LEAST_ONCE,
    ONCE,
    Action,
    AnswerAction,
    CallRange,
    DelegateAction,
    RaiseAction,
    ReturnAction,
)
from .invocation import describe_invocation

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .comparators import Comparator
    from .control import MockControl
    from .expectations import Expectation
    from .invocation import Invocation

_UNSET: t.Final = object()


@dc.dataclass(frozen=True, slots=True, eq=False)
class RecordedCall:
    """Placeholder result of a mock call made while recording."""

    control: MockControl
    invocation: Invocation

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"<RecordedCall {describe_invocation(self.invocation)}>"


@dc.dataclass(frozen=True, slots=True)
class Placeholder(Action):
    """Hand the :class:`RecordedCall` back to the code recording the call."""

    call: RecordedCall

    def perform(self, invocation: Invocation) -> RecordedCall:
        """Return the placeholder."""
        return self.call


class LastInvocation:
    """Pending call waiting for its behaviour definition."""

    __slots__ = ("_expectation", "_invocation", "_matchers")

    def __init__(self) -> None:
        self._invocation: Invocation | None = None
        self._matchers: tuple[tuple[str, Comparator], ...] = ()
        self._expectation: Expectation | None = None

    @property
    def invocation(self) -> Invocation | None:
        """Return the pending call, if any."""
        return self._invocation

    @property
    def matchers(self) -> tuple[tuple[str, Comparator], ...]:
        """Return the matchers captured for the pending call."""
        return self._matchers

    @property
    def expectation(self) -> Expectation | None:
        """Return the expectation created for the pending call, if any."""
        return self._expectation

    def push(
        self, invocation: Invocation, matchers: tuple[tuple[str, Comparator], ...]
    ) -> None:
        """Make *invocation* the pending call."""
        self._invocation = invocation
        self._matchers = matchers
        self._expectation = None

    def attach(self, expectation: Expectation) -> None:
        """Bind the expectation created for the pending call."""
        self._expectation = expectation

    def require(self, recorded: RecordedCall | None = None) -> Invocation:
        """Return the pending call, checking it is the one *recorded* names."""
        invocation = self._invocation
        if invocation is None:
            msg = "no last call on a mock available"
            raise UsageError(msg)
        if recorded is not None and recorded.invocation is not invocation:
            msg = (
                "expect() must wrap the most recent call recorded on its control "
                f"(pending call: {describe_invocation(invocation)})"
            )
            raise UsageError(msg)
        return invocation

    def clear(self) -> None:
        """Forget the pending call."""
        self._invocation = None
        self._matchers = ()
        self._expectation = None


class ExpectationSetters:
    """Fluent configuration of one recorded expectation."""

    __slots__ = ("_control", "_expectation", "_generation")

    def __init__(self, control: MockControl, expectation: Expectation) -> None:
        self._control = control
        self._expectation = expectation
        self._generation = control.generation

    @property
    def expectation(self) -> Expectation:
        """Return the configured expectation."""
        return self._expectation

    def _check(self, action: str) -> Expectation:
        self._control.require_recording(action, self._generation)
        return self._expectation

    def _add_action(self, name: str, action: Action) -> ExpectationSetters:
        exp = self._check(name)
        if exp.stub:
            msg = f"{name}() cannot follow a stub behaviour"
            raise UsageError(msg)
        exp.actions.append(action)
        return self

    def and_return(self, value: object) -> ExpectationSetters:
        """Return *value* from the matched call."""
        return self._add_action("and_return", ReturnAction(value))

    def and_raise(
        self, error: BaseException | type[BaseException]
    ) -> ExpectationSetters:
        """Raise *error* from the matched call."""
        _require_exception(error)
        return self._add_action("and_raise", RaiseAction(error))

    def and_answer(self, callback: t.Callable[..., object]) -> ExpectationSetters:
        """Compute the result with ``callback(*args, **kwargs)``."""
        _require_callable(callback)
        return self._add_action("and_answer", AnswerAction(callback))

    def and_delegate_to(self, target: object) -> ExpectationSetters:
        """Forward the matched call to the same method of *target*."""
        self._require_delegate(target)
        return self._add_action("and_delegate_to", DelegateAction(target))

    def _set_range(self, action: str, call_range: CallRange) -> ExpectationSetters:
        exp = self._check(action)
        if exp.stub:
            msg = f"{action}() cannot change the call count of a stub"
            raise UsageError(msg)
        exp.call_range = call_range
        return self

    def times(
        self, minimum: int, maximum: int | None | object = _UNSET
    ) -> ExpectationSetters:
        """Expect exactly *minimum* calls, or between *minimum* and *maximum*.

        ``maximum=None`` leaves the range unbounded.
        """
        if maximum is _UNSET:
            return self._set_range("times", CallRange.exactly(minimum))
        return self._set_range(
            "times", CallRange(minimum, t.cast("int | None", maximum))
        )

    def once(self) -> ExpectationSetters:
        """Expect exactly one call."""
        return self._set_range("once", ONCE)

    def at_least_once(self) -> ExpectationSetters:
        """Expect one or more calls."""
        return self._set_range("at_least_once", AT_LEAST_ONCE)

    def at_least(self, minimum: int) -> ExpectationSetters:
        """Expect *minimum* or more calls."""
        return self._set_range("at_least", CallRange(minimum, None))

    def at_most(self, maximum: int) -> ExpectationSetters:
        """Allow up to *maximum* calls, including none."""
        return self._set_range("at_most", CallRange(0, maximum))

    def any_times(self) -> ExpectationSetters:
        """Allow any number of calls, including none."""
        return self._set_range("any_times", ANY_TIMES)

    def in_order(self, group: str | None = None) -> ExpectationSetters:
        """Require this expectation to follow the ones before it in *group*."""
        exp = self._check("in_order")
        self._control.order_expectation(exp, group)
        return self

    def any_order(self) -> ExpectationSetters:
        """Remove this expectation from any order group."""
        exp = self._check("any_order")
        self._control.repository.regroup(exp, None)
        return self

    def _stub(self, name: str, action: Action) -> ExpectationSetters:
        exp = self._check(name)
        minimum = exp.call_range.minimum if exp.actions else 0
        exp.actions.append(action)
        exp.call_range = CallRange(minimum, None)
        if minimum == 0:
            exp.stub = True
            self._control.repository.regroup(exp, None)
        return self

    def and_stub_return(self, value: object) -> ExpectationSetters:
        """Return *value* for any number of calls, in any order."""
        return self._stub("and_stub_return", ReturnAction(value))

    def and_stub_raise(
        self, error: BaseException | type[BaseException]
    ) -> ExpectationSetters:
        """Raise *error* for any number of calls, in any order."""
        _require_exception(error)
        return self._stub("and_stub_raise", RaiseAction(error))

    def and_stub_answer(
        self, callback: t.Callable[..., object]
    ) -> ExpectationSetters:
        """Answer any number of calls with *callback*, in any order."""
        _require_callable(callback)
        return self._stub("and_stub_answer", AnswerAction(callback))

    def and_stub_delegate_to(self, target: object) -> ExpectationSetters:
        """Forward any number of calls to *target*, in any order."""
        self._require_delegate(target)
        return self._stub("and_stub_delegate_to", DelegateAction(target))

    def _require_delegate(self, target: object) -> None:
        name = self._expectation.method.name
        if not callable(getattr(target, name, None)):
            msg = f"delegate {target!r} has no method {name!r}"
            raise UsageError(msg)

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"<ExpectationSetters {self._expectation.describe()}>"


def _require_exception(error: object) -> None:
    if isinstance(error, BaseException):
        return
    if isinstance(error, type) and issubclass(error, BaseException):
        return
    msg = f"and_raise() needs an exception instance or class, got {error!r}"
    raise UsageError(msg)


def _require_callable(callback: object) -> None:
    if not callable(callback):
        msg = f"and_answer() needs a callable, got {callback!r}"
        raise UsageError(msg)


__all__ = [
    "ExpectationSetters",
    "LastInvocation",
    "Placeholder",
    "RecordedCall",
]
