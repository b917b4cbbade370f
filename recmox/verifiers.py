"""Verification checks and diagnostic messages for mock controls."""

from __future__ import annotations

import typing as t
from textwrap import indent

from .errors import (
    OrderViolationError,
    UnexpectedCallError,
    UnfulfilledExpectationError,
)
from .invocation import describe_invocation

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .expectations import Expectation
    from .invocation import Invocation


def _numbered(entries: t.Sequence[str], *, start: int = 1) -> str:
    if not entries:
        return "(none)"
    lines: list[str] = []
    for index, entry in enumerate(entries, start=start):
        entry_lines = entry.splitlines() or [""]
        lines.append(f"{index}. {entry_lines[0]}")
        lines.extend(f"   {extra}" for extra in entry_lines[1:])
    return "\n".join(lines)


def _format_sections(title: str, sections: list[tuple[str, str]]) -> str:
    parts = [title]
    for label, body in sections:
        if not body:
            continue
        parts.append("")
        parts.append(f"{label}:")
        parts.append(indent(body, "  "))
    return "\n".join(parts)


def _describe_expectations(expectations: t.Sequence[Expectation]) -> str:
    return _numbered([exp.describe() for exp in expectations])


def _closest_mismatches(
    invocation: Invocation, expectations: t.Sequence[Expectation]
) -> str:
    """Explain why expectations for the same method rejected *invocation*."""
    lines: list[str] = []
    for exp in expectations:
        if exp.receiver is not invocation.receiver or exp.method != invocation.method:
            continue
        reason = exp.explain_mismatch(invocation)
        if reason:
            lines.append(f"{exp.describe_call()}: {reason}")
    return "\n".join(lines)


def unexpected_call_error(
    invocation: Invocation, outstanding: t.Sequence[Expectation]
) -> UnexpectedCallError:
    """Build the error raised for a call matching no expectation."""
    msg = _format_sections(
        "Unexpected method call.",
        [
            ("Actual call", describe_invocation(invocation)),
            ("Mismatch", _closest_mismatches(invocation, outstanding)),
            ("Outstanding expectations", _describe_expectations(outstanding)),
        ],
    )
    return UnexpectedCallError(msg, invocation=invocation, outstanding=outstanding)


def order_violation_error(
    invocation: Invocation,
    blocked: t.Sequence[Expectation],
    heads: t.Sequence[Expectation],
    outstanding: t.Sequence[Expectation],
) -> OrderViolationError:
    """Build the error raised when a call skips ahead of its order group."""
    msg = _format_sections(
        "Ordered expectation violated.",
        [
            ("Actual call", describe_invocation(invocation)),
            ("Matches out of order", _describe_expectations(blocked)),
            ("Next expected", _describe_expectations(heads)),
            ("Outstanding expectations", _describe_expectations(outstanding)),
        ],
    )
    return OrderViolationError(msg, invocation=invocation, outstanding=outstanding)


class UnexpectedCallVerifier:
    """Re-report unexpected calls that the code under test may have swallowed."""

    def verify(self, unexpected: t.Sequence[Invocation]) -> None:
        """Raise if any call failed to match during replay."""
        if not unexpected:
            return
        msg = _format_sections(
            "Unexpected method calls during replay.",
            [
                (
                    "Unexpected calls",
                    _numbered([describe_invocation(inv) for inv in unexpected]),
                ),
            ],
        )
        raise UnexpectedCallError(msg, invocation=unexpected[0])


class CountVerifier:
    """Report expectations that missed their minimum call count."""

    def verify(self, unmet: t.Sequence[Expectation]) -> None:
        """Raise listing every expectation in *unmet*, if there are any."""
        if not unmet:
            return
        msg = _format_sections(
            "Unfulfilled expectations.",
            [("Expected calls not made", _describe_expectations(unmet))],
        )
        raise UnfulfilledExpectationError(msg, unmet=unmet)


__all__ = [
    "CountVerifier",
    "UnexpectedCallVerifier",
    "order_violation_error",
    "unexpected_call_error",
]
