"""Recorded expectations: matchers, call counts and behaviour."""

from __future__ import annotations

import dataclasses as dc
import typing as t

from .comparators import Comparator, describe_matcher, matches_all
from .errors import UsageError
from .invocation import Invocation, format_call

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .invocation import MethodSignature


@dc.dataclass(frozen=True, slots=True)
class CallRange:
    """Accepted number of calls; ``maximum=None`` means unbounded."""

    minimum: int
    maximum: int | None

    def __post_init__(self) -> None:
        """Reject negative minimums and inverted ranges."""
        if self.minimum < 0:
            msg = f"minimum call count must be >= 0, got {self.minimum}"
            raise UsageError(msg)
        if self.maximum is not None and self.maximum < self.minimum:
            msg = (
                f"maximum call count ({self.maximum}) must be >= "
                f"minimum ({self.minimum})"
            )
            raise UsageError(msg)

    @classmethod
    def exactly(cls, count: int) -> CallRange:
        """Return a range accepting exactly *count* calls."""
        return cls(count, count)

    def allows(self, calls: int) -> bool:
        """Return ``True`` when one more call fits after *calls*."""
        return self.maximum is None or calls < self.maximum

    def satisfied_by(self, calls: int) -> bool:
        """Return ``True`` when *calls* reaches the minimum."""
        return calls >= self.minimum

    def __str__(self) -> str:
        """Describe the range for diagnostics."""
        if self.maximum is None:
            if self.minimum == 0:
                return "any times"
            return f"at least {self.minimum}"
        if self.minimum == self.maximum:
            return str(self.minimum)
        return f"between {self.minimum} and {self.maximum}"


ONCE: t.Final = CallRange.exactly(1)
AT_LEAST_ONCE: t.Final = CallRange(1, None)
ANY_TIMES: t.Final = CallRange(0, None)


class Action:
    """Behaviour performed when an expectation serves a call."""

    __slots__ = ()

    def perform(self, invocation: Invocation) -> object:
        """Return the call's result or raise its error."""
        raise NotImplementedError


@dc.dataclass(frozen=True, slots=True)
class ReturnAction(Action):
    """Return ``value``."""

    value: object = None

    def perform(self, invocation: Invocation) -> object:
        """Return the configured value."""
        return self.value


@dc.dataclass(frozen=True, slots=True)
class RaiseAction(Action):
    """Raise ``error`` (an exception instance or class)."""

    error: BaseException | type[BaseException]

    def perform(self, invocation: Invocation) -> t.NoReturn:
        """Raise the configured error."""
        raise self.error


@dc.dataclass(frozen=True, slots=True)
class AnswerAction(Action):
    """Compute the result by calling ``callback`` with the call's arguments."""

    callback: t.Callable[..., object]

    def perform(self, invocation: Invocation) -> object:
        """Call the callback with the original positional and keyword arguments."""
        return self.callback(*invocation.args, **invocation.kwargs)


@dc.dataclass(frozen=True, slots=True)
class DelegateAction(Action):
    """Forward the call to the same-named method of ``target``."""

    target: object

    def perform(self, invocation: Invocation) -> object:
        """Invoke ``target.<method>(*args, **kwargs)``."""
        method = getattr(self.target, invocation.method.name)
        return method(*invocation.args, **invocation.kwargs)


@dc.dataclass(slots=True, eq=False)
class Expectation:
    """One recorded call pattern with its accepted count and behaviour."""

    invocation: Invocation
    matchers: tuple[tuple[str, Comparator], ...]
    call_range: CallRange = ONCE
    actions: list[Action] = dc.field(default_factory=list)
    group: str | None = None
    stub: bool = False
    calls: int = 0

    @property
    def method(self) -> MethodSignature:
        """Return the expected method identity."""
        return self.invocation.method

    @property
    def receiver(self) -> object:
        """Return the mock this expectation belongs to."""
        return self.invocation.receiver

    @property
    def is_satisfied(self) -> bool:
        """Return ``True`` once the minimum call count is reached."""
        return self.call_range.satisfied_by(self.calls)

    @property
    def is_exhausted(self) -> bool:
        """Return ``True`` when no further call may be matched."""
        return not self.call_range.allows(self.calls)

    @property
    def has_behavior(self) -> bool:
        """Return ``True`` once an action has been configured."""
        return bool(self.actions)

    def matches(self, invocation: Invocation) -> bool:
        """Return ``True`` if *invocation* satisfies this expectation."""
        return (
            invocation.receiver is self.receiver
            and invocation.method == self.method
            and matches_all(self.matchers, invocation.arguments)
        )

    def explain_mismatch(self, invocation: Invocation) -> str:
        """Return why *invocation* does not match, or ``""`` when it does."""
        if invocation.receiver is not self.receiver or invocation.method != self.method:
            return "different mock or method"
        labels = tuple(label for label, _ in self.matchers)
        if labels != invocation.labels:
            return f"arguments {invocation.labels} do not line up with {labels}"
        for (label, matcher), argument in zip(
            self.matchers, invocation.arguments, strict=True
        ):
            if not matcher(argument.value):
                return f"{label}={argument.value!r} failed {describe_matcher(matcher)}"
        return ""

    def next_action(self) -> Action:
        """Return the action for the next call; the last action repeats."""
        if not self.actions:
            return ReturnAction(None)
        return self.actions[min(self.calls, len(self.actions) - 1)]

    def record_call(self) -> None:
        """Count one served call.

        Raises
        ------
        UsageError
            When the call would exceed the range maximum.
        """
        if self.is_exhausted:
            msg = f"{self.describe_call()} already received {self.calls} call(s)"
            raise UsageError(msg)
        self.calls += 1

    def describe_call(self) -> str:
        """Render the expected call with its matchers."""
        keywords = {arg.label: arg.keyword for arg in self.invocation.arguments}
        return format_call(
            self.receiver,
            self.method,
            (
                (label, describe_matcher(matcher), keywords.get(label, False))
                for label, matcher in self.matchers
            ),
        )

    def describe(self) -> str:
        """Return the call with its expected and actual counts."""
        return (
            f"{self.describe_call()}: expected: {self.call_range}, "
            f"actual: {self.calls}"
        )


__all__ = [
    "ANY_TIMES",
    "AT_LEAST_ONCE",
    "ONCE",
    "Action",
    "AnswerAction",
    "CallRange",
    "DelegateAction",
    "Expectation",
    "RaiseAction",
    "ReturnAction",
]
