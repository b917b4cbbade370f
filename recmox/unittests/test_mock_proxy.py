"""Unit tests for :mod:`recmox.mock` proxies, including coroutine methods."""

from __future__ import annotations

import asyncio

import pytest

from recmox import (
    Mock,
    MockControl,
    UnexpectedCallError,
    UsageError,
    control_of,
    expect,
    is_mock,
)
from recmox.unittests._doubles import Clock, InMemoryRepository, Repository


def test_mock_passes_isinstance_checks(control: MockControl) -> None:
    """Mocks claim to be instances of the mocked class."""
    repo = control.create_mock(InMemoryRepository)
    assert isinstance(repo, InMemoryRepository)
    assert is_mock(repo)
    assert not is_mock(InMemoryRepository())
    assert control_of(repo) is control


def test_mock_repr(control: MockControl) -> None:
    """Named mocks use their name, others describe the mocked type."""
    assert repr(control.create_mock(Repository, "repo")) == "repo"
    assert repr(control.create_mock(Repository)) == "Mock for Repository"
    assert repr(control.create_mock()) == "Mock"
    method = control.create_mock(Repository).get
    assert repr(method) == "<intercepted method get of Mock for Repository>"


def test_invalid_mock_name(control: MockControl) -> None:
    """Mock names must be identifiers."""
    with pytest.raises(UsageError, match="not a valid mock name"):
        control.create_mock(Repository, "not valid")


def test_unknown_attributes_are_rejected(control: MockControl) -> None:
    """Only callables of the mocked type are intercepted."""
    repo = control.create_mock(InMemoryRepository)
    with pytest.raises(AttributeError, match="has no method 'data'"):
        _ = repo.data
    with pytest.raises(AttributeError):
        _ = repo.__len__


def test_control_of_rejects_plain_objects() -> None:
    """Only mocks have a control."""
    with pytest.raises(UsageError, match="is not a mock"):
        control_of(object())


def test_arity_errors_surface_at_the_call(control: MockControl) -> None:
    """Calls the real method would reject fail in both phases."""
    repo = control.create_mock(Repository)
    with pytest.raises(TypeError, match=r"Repository\.get\(\)"):
        repo.get()
    control.replay()
    with pytest.raises(TypeError):
        repo.get("a", "b")


def test_untyped_mock_accepts_any_method(control: MockControl) -> None:
    """Mocks without a target accept any public method name."""
    service = control.create_mock(name="service")
    service.anything(1, flag=True)
    control.expect_last_call().and_return(5)
    control.replay()

    assert service.anything(1, flag=True) == 5
    assert isinstance(service, Mock)
    with pytest.raises(AttributeError):
        _ = service._private
    with pytest.raises(UnexpectedCallError, match=r"service\.anything\(2\)"):
        service.anything(2)


def test_untyped_calls_need_behaviour(control: MockControl) -> None:
    """Untyped calls are not assumed to return nothing."""
    service = control.create_mock()
    service.ping()
    with pytest.raises(UsageError, match="missing behavior definition"):
        control.replay()


def test_coroutine_methods(control: MockControl) -> None:
    """Coroutine methods return awaitables during replay."""
    clock = control.create_mock(Clock)
    clock.sleep(0.5)
    expect(clock.tick()).and_return(3)
    control.replay()

    async def scenario() -> int:
        await clock.sleep(0.5)
        return await clock.tick()

    assert asyncio.run(scenario()) == 3
    control.verify()


def test_coroutine_errors_are_raised_when_awaited(control: MockControl) -> None:
    """Errors of coroutine methods surface on ``await``."""
    clock = control.create_mock(Clock)
    expect(clock.tick()).and_raise(TimeoutError)
    control.replay()

    pending = clock.tick()
    with pytest.raises(TimeoutError):
        asyncio.run(pending)


def test_coroutine_answers_may_be_async(control: MockControl) -> None:
    """Awaitable answers are awaited."""

    async def answer() -> int:
        return 7

    clock = control.create_mock(Clock)
    expect(clock.tick()).and_answer(answer)
    control.replay()
    assert asyncio.run(clock.tick()) == 7


def test_nice_coroutine_defaults(nice_control: MockControl) -> None:
    """Nice controls answer unmatched coroutine calls with defaults."""
    clock = nice_control.create_mock(Clock)
    nice_control.replay()
    assert asyncio.run(clock.tick()) == 0
    assert asyncio.run(clock.sleep(1.0)) is None


def test_expect_routes_to_the_recording_control() -> None:
    """expect() works with mocks of any control."""
    first, second = MockControl(), MockControl()
    repo_a = first.create_mock(Repository)
    repo_b = second.create_mock(Repository)
    expect(repo_a.get("a")).and_return("A")
    second.expect(repo_b.get("b")).and_return("B")
    first.expect(repo_b.count()).and_return(2)
    first.replay()
    second.replay()

    assert repo_a.get("a") == "A"
    assert repo_b.get("b") == "B"
    assert repo_b.count() == 2
    first.verify()
    second.verify()
