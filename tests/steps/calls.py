"""pytest-bdd steps recording and replaying calls."""

from __future__ import annotations

import typing as t

from pytest_bdd import parsers, when

from recmox import expect

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from recmox import MockControl
    from tests.helpers.control import Catalog


@when(parsers.cfparse('I expect lookup of "{name}" to return "{value}"'))
def expect_lookup(catalog: Catalog, name: str, value: str) -> None:
    """Record a single lookup."""
    expect(catalog.lookup(name)).and_return(value)


@when(
    parsers.cfparse('I expect lookup of "{name}" to return "{value}" {count:d} times')
)
def expect_lookup_times(catalog: Catalog, name: str, value: str, count: int) -> None:
    """Record a lookup expected *count* times."""
    expect(catalog.lookup(name)).and_return(value).times(count)


@when("I replay the control")
def replay_control(control: MockControl) -> None:
    """Invoke :meth:`MockControl.replay`."""
    control.replay()


@when("I reset the control")
def reset_control(control: MockControl) -> None:
    """Invoke :meth:`MockControl.reset`."""
    control.reset()


@when(parsers.cfparse('I look up "{name}"'))
def look_up(catalog: Catalog, results: list[object], name: str) -> None:
    """Call the mock as the code under test would."""
    results.append(catalog.lookup(name))


@when("I ask for the size")
def ask_size(catalog: Catalog, results: list[object]) -> None:
    """Call a method that has no expectation."""
    results.append(catalog.size())
