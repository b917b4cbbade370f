"""Unit tests for thread checking and thread-safe controls."""

from __future__ import annotations

import threading
import typing as t

import pytest

from recmox import ConcurrencyError, ControlConfig, MockControl, UsageError, expect
from recmox.unittests._doubles import Repository


def _call_in_thread(func: t.Callable[[], object]) -> list[BaseException]:
    """Run *func* in a new thread and return what it raised."""
    errors: list[BaseException] = []

    def target() -> None:
        try:
            func()
        except Exception as err:  # noqa: BLE001 - collected for assertions
            errors.append(err)

    thread = threading.Thread(target=target)
    thread.start()
    thread.join()
    return errors


def _replaying_repo(control: MockControl) -> Repository:
    repo = control.create_mock(Repository)
    expect(repo.count()).and_return(1).any_times()
    control.replay()
    return repo


def test_unchecked_control_accepts_other_threads() -> None:
    """Thread checking is off by default."""
    repo = _replaying_repo(MockControl())
    assert _call_in_thread(repo.count) == []


def test_checked_control_rejects_other_threads() -> None:
    """Calls from foreign threads fail fast when checking is enabled."""
    control = MockControl(ControlConfig(check_thread=True))
    repo = _replaying_repo(control)

    errors = _call_in_thread(repo.count)
    assert len(errors) == 1
    assert isinstance(errors[0], ConcurrencyError)
    assert "make_thread_safe(True)" in str(errors[0])
    assert repo.count() == 1


def test_check_can_be_enabled_while_recording() -> None:
    """check_is_used_in_one_thread switches the check on."""
    control = MockControl()
    control.check_is_used_in_one_thread(True)
    repo = _replaying_repo(control)
    assert len(_call_in_thread(repo.count)) == 1


def test_allowed_threads_may_call() -> None:
    """Explicitly allowed threads pass the check."""
    control = MockControl(ControlConfig(check_thread=True))
    repo = _replaying_repo(control)
    go = threading.Event()
    errors: list[BaseException] = []

    def target() -> None:
        go.wait()
        try:
            repo.count()
        except ConcurrencyError as err:
            errors.append(err)

    thread = threading.Thread(target=target)
    thread.start()
    control.allow_thread(thread)
    go.set()
    thread.join()
    assert errors == []


def test_allow_thread_needs_started_thread(control: MockControl) -> None:
    """Threads are identified once started."""
    with pytest.raises(UsageError, match="has not been started"):
        control.allow_thread(threading.Thread(target=lambda: None))


def test_thread_safe_control_counts_every_call() -> None:
    """Thread-safe controls serialise calls from many threads."""
    control = MockControl(ControlConfig(check_thread=True))
    control.make_thread_safe(True)
    repo = control.create_mock(Repository)
    expect(repo.count()).and_return(1).times(400)
    control.replay()
    assert control.is_thread_safe

    def work() -> None:
        for _ in range(50):
            repo.count()

    threads = [threading.Thread(target=work) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    control.verify()


def test_thread_settings_require_recording(control: MockControl) -> None:
    """Thread settings are configured before replay."""
    control.replay()
    with pytest.raises(UsageError):
        control.make_thread_safe(True)
    with pytest.raises(UsageError):
        control.check_is_used_in_one_thread(True)
