"""Exception hierarchy for recmox."""

from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .expectations import Expectation
    from .invocation import Invocation


class RecMoxError(Exception):
    """Base class for every error raised by recmox."""


class UsageError(RecMoxError):
    """Raised when the mocking API is used incorrectly.

    Covers behaviour configured without a preceding recorded call, invalid call
    count ranges and configuration attempted outside the record phase.
    """


class LifecycleError(UsageError):
    """Raised when a control operation is called in the wrong phase."""


class VerificationError(RecMoxError, AssertionError):
    """Base class for failures detected against recorded expectations."""


class UnexpectedCallError(VerificationError):
    """Raised when a replayed call matches no recorded expectation."""

    def __init__(
        self,
        message: str,
        *,
        invocation: Invocation | None = None,
        outstanding: t.Sequence[Expectation] = (),
    ) -> None:
        super().__init__(message)
        self.invocation = invocation
        self.outstanding = tuple(outstanding)


class OrderViolationError(UnexpectedCallError):
    """Raised when a replayed call skips ahead of its order group."""


class UnfulfilledExpectationError(VerificationError):
    """Raised by ``verify()`` when expectations were called too few times."""

    def __init__(self, message: str, *, unmet: t.Sequence[Expectation] = ()) -> None:
        super().__init__(message)
        self.unmet = tuple(unmet)


class ConcurrencyError(RecMoxError):
    """Raised when a checked control is called from an unexpected thread."""


__all__ = [
    "ConcurrencyError",
    "LifecycleError",
    "OrderViolationError",
    "RecMoxError",
    "UnexpectedCallError",
    "UnfulfilledExpectationError",
    "UsageError",
    "VerificationError",
]
