"""Comparator classes used for argument matching.

A comparator passed in place of an argument while recording becomes the
matcher for that argument position. Any other recorded value is compared with
:class:`Eq` (or :class:`Same` for controls matching by identity).
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import re
import typing as t

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .invocation import Argument


class Comparator:
    """Callable returning ``True`` when a value matches.

    Subclasses must be free of side effects: the same comparator may be
    evaluated against many candidate calls.
    """

    __slots__ = ()

    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* satisfies the comparison."""
        raise NotImplementedError


def _sequence_pair(expected: object, actual: object) -> bool:
    return (
        isinstance(expected, list | tuple)
        and type(expected) is type(actual)
        and len(expected) == len(t.cast("t.Sized", actual))
    )


def _mapping_pair(expected: object, actual: object) -> bool:
    return isinstance(expected, cabc.Mapping) and isinstance(actual, cabc.Mapping)


def _shape(value: object) -> object:
    if not hasattr(type(value), "shape"):
        return None
    return getattr(value, "shape", None)


def contents_equal(expected: object, actual: object) -> bool:
    """Compare two values by contents.

    Lists and tuples are compared item by item with the same rules, and
    mappings must hold the same keys with values compared the same way, so
    containers of array-like values work. Objects whose ``==`` returns an
    element-wise result are equal when their shapes agree and every element
    compares equal. A result whose truth is ambiguous counts as unequal.
    """
    if expected is actual:
        return True
    if _sequence_pair(expected, actual):
        pairs = zip(
            t.cast("t.Sequence[object]", expected),
            t.cast("t.Sequence[object]", actual),
            strict=True,
        )
        return all(contents_equal(e, a) for e, a in pairs)
    if _mapping_pair(expected, actual):
        left = t.cast("cabc.Mapping[object, object]", expected)
        right = t.cast("cabc.Mapping[object, object]", actual)
        if left.keys() != right.keys():
            return False
        return all(contents_equal(value, right[key]) for key, value in left.items())
    if _shape(expected) != _shape(actual):
        return False
    try:
        outcome = expected == actual
        if isinstance(outcome, bool):
            return outcome
        if hasattr(outcome, "all"):
            return bool(outcome.all())
        return bool(outcome)
    except ValueError:
        return False


@dc.dataclass(frozen=True, slots=True)
class Any(Comparator):
    """Match any value."""

    def __call__(self, value: object) -> bool:
        """Return ``True`` for any input."""
        return True


@dc.dataclass(frozen=True, slots=True)
class Eq(Comparator):
    """Match values equal to ``expected`` (array aware)."""

    expected: object

    def __call__(self, value: object) -> bool:
        """Return ``True`` when *value* equals ``expected``."""
        return contents_equal(self.expected, value)


@dc.dataclass(frozen=True, slots=True)
class Same(Comparator):
    """Match the very object ``expected``."""

    expected: object

    def __call__(self, value: object) -> bool:
        """Return ``True`` when *value* is ``expected``."""
        return value is self.expected


@dc.dataclass(frozen=True, slots=True)
class IsA(Comparator):
    """Match instances of ``typ``."""

    typ: type | tuple[type, ...]

    def __call__(self, value: object) -> bool:
        """Return ``True`` when *value* is an instance of ``typ``."""
        return isinstance(value, self.typ)


@dc.dataclass(frozen=True, slots=True)
class IsNone(Comparator):
    """Match ``None``."""

    def __call__(self, value: object) -> bool:
        """Return ``True`` when *value* is ``None``."""
        return value is None


@dc.dataclass(frozen=True, slots=True)
class NotNone(Comparator):
    """Match anything but ``None``."""

    def __call__(self, value: object) -> bool:
        """Return ``True`` when *value* is not ``None``."""
        return value is not None


@dc.dataclass(frozen=True, slots=True)
class Regex(Comparator):
    """Match strings containing a match for ``pattern``."""

    pattern: str
    _compiled: re.Pattern[str] = dc.field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Compile the pattern once."""
        object.__setattr__(self, "_compiled", re.compile(self.pattern))

    def __call__(self, value: object) -> bool:
        """Return ``True`` if the regex matches *value*."""
        return isinstance(value, str) and bool(self._compiled.search(value))


@dc.dataclass(frozen=True, slots=True)
class Contains(Comparator):
    """Match containers or strings holding ``item``."""

    item: object

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``item`` is in *value*."""
        try:
            return self.item in t.cast("t.Container[object]", value)
        except TypeError:
            return False


@dc.dataclass(frozen=True, slots=True)
class StartsWith(Comparator):
    """Match strings beginning with ``prefix``."""

    prefix: str

    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* starts with ``prefix``."""
        return isinstance(value, str) and value.startswith(self.prefix)


@dc.dataclass(frozen=True, slots=True)
class EndsWith(Comparator):
    """Match strings ending with ``suffix``."""

    suffix: str

    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* ends with ``suffix``."""
        return isinstance(value, str) and value.endswith(self.suffix)


@dc.dataclass(frozen=True, slots=True)
class Predicate(Comparator):
    """Use a custom ``func`` to determine a match."""

    func: t.Callable[[t.Any], object]

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``func(value)`` is truthy."""
        return bool(self.func(value))


@dc.dataclass(frozen=True, slots=True)
class Not(Comparator):
    """Invert another comparator."""

    matcher: Comparator

    def __call__(self, value: object) -> bool:
        """Return ``True`` when ``matcher`` rejects *value*."""
        return not self.matcher(value)


@dc.dataclass(frozen=True, slots=True, init=False)
class AllOf(Comparator):
    """Match when every comparator matches."""

    matchers: tuple[Comparator, ...]

    def __init__(self, *matchers: object) -> None:
        object.__setattr__(self, "matchers", tuple(matcher_for(m) for m in matchers))

    def __call__(self, value: object) -> bool:
        """Return ``True`` when all ``matchers`` accept *value*."""
        return all(matcher(value) for matcher in self.matchers)


@dc.dataclass(frozen=True, slots=True, init=False)
class AnyOf(Comparator):
    """Match when at least one comparator matches."""

    matchers: tuple[Comparator, ...]

    def __init__(self, *matchers: object) -> None:
        object.__setattr__(self, "matchers", tuple(matcher_for(m) for m in matchers))

    def __call__(self, value: object) -> bool:
        """Return ``True`` when any of ``matchers`` accepts *value*."""
        return any(matcher(value) for matcher in self.matchers)


def matcher_for(value: object, *, identity: bool = False) -> Comparator:
    """Return the comparator used for a recorded argument *value*."""
    if isinstance(value, Comparator):
        return value
    return Same(value) if identity else Eq(value)


def describe_matcher(matcher: Comparator) -> str:
    """Render *matcher* the way the recorded argument was written."""
    if isinstance(matcher, Eq):
        return repr(matcher.expected)
    return repr(matcher)


def matches_all(
    matchers: t.Sequence[tuple[str, Comparator]],
    arguments: t.Sequence[Argument],
) -> bool:
    """Return ``True`` iff every positional matcher accepts its argument."""
    if len(matchers) != len(arguments):
        return False
    for (label, matcher), argument in zip(matchers, arguments, strict=True):
        if label != argument.label or not matcher(argument.value):
            return False
    return True


__all__ = [
    "AllOf",
    "Any",
    "AnyOf",
    "Comparator",
    "Contains",
    "EndsWith",
    "Eq",
    "IsA",
    "IsNone",
    "Not",
    "NotNone",
    "Predicate",
    "Regex",
    "Same",
    "StartsWith",
    "contents_equal",
    "describe_matcher",
    "matcher_for",
    "matches_all",
]
