"""Step definitions for recmox behavioural tests."""
# pyright: reportMissingImports=false, reportUnknownMemberType=false

from __future__ import annotations

import typing as t

from behave import given, then, when  # type: ignore[attr-defined]

from recmox import MockControl, MockType, Phase, RecMoxError, expect


class Catalog(t.Protocol):
    """Collaborator mocked by the scenarios."""

    def lookup(self, name: str) -> str | None:
        """Return the colour of *name*."""
        ...

    def size(self) -> int:
        """Return the number of entries."""
        ...


class BehaveContext(t.Protocol):
    """Behave step context with attributes used in tests."""

    control: MockControl
    catalog: Catalog
    result: object


@given("a {kind} mock control")
def step_create_control(context: BehaveContext, kind: str) -> None:
    """Create a :class:`MockControl` of the requested kind."""
    context.control = MockControl(mock_type=MockType[kind.upper()])


@given("a mock catalog")
def step_create_catalog(context: BehaveContext) -> None:
    """Create a mock of :class:`Catalog`."""
    context.catalog = context.control.create_mock(Catalog)


@when('I expect lookup of "{name}" to return "{value}"')
def step_expect_lookup(context: BehaveContext, name: str, value: str) -> None:
    """Record a single lookup."""
    expect(context.catalog.lookup(name)).and_return(value)


@when('I expect lookup of "{name}" to return "{value}" {count:d} times')
def step_expect_lookup_times(
    context: BehaveContext, name: str, value: str, count: int
) -> None:
    """Record a lookup expected *count* times."""
    expect(context.catalog.lookup(name)).and_return(value).times(count)


@when("I replay the control")
def step_replay(context: BehaveContext) -> None:
    """Invoke :meth:`MockControl.replay`."""
    context.control.replay()


@when("I reset the control")
def step_reset(context: BehaveContext) -> None:
    """Invoke :meth:`MockControl.reset`."""
    context.control.reset()


@when('I look up "{name}"')
def step_lookup(context: BehaveContext, name: str) -> None:
    """Call the mock as the code under test would."""
    context.result = context.catalog.lookup(name)


@when("I ask for the size")
def step_size(context: BehaveContext) -> None:
    """Call a method that has no expectation."""
    context.result = context.catalog.size()


@then('the result should be "{text}"')
def step_check_result(context: BehaveContext, text: str) -> None:
    """Compare the last returned value."""
    assert str(context.result) == text  # noqa: S101


@then('looking up "{name}" should fail with "{text}"')
def step_lookup_fails(context: BehaveContext, name: str, text: str) -> None:
    """Ensure the call is rejected during replay."""
    try:
        context.catalog.lookup(name)
    except RecMoxError as err:
        assert text in str(err)  # noqa: S101
    else:
        msg = f"lookup({name!r}) did not fail"
        raise AssertionError(msg)


@then("verification should pass")
def step_verify_passes(context: BehaveContext) -> None:
    """Verify the control."""
    context.control.verify()


@then('verification should fail with "{text}"')
def step_verify_fails(context: BehaveContext, text: str) -> None:
    """Ensure verification reports *text*."""
    try:
        context.control.verify()
    except RecMoxError as err:
        assert text in str(err)  # noqa: S101
    else:
        msg = "verify() did not fail"
        raise AssertionError(msg)


@then("the control should be recording")
def step_check_recording(context: BehaveContext) -> None:
    """Check the control is back in the record phase."""
    assert context.control.phase is Phase.RECORD  # noqa: S101
