"""Pytest plugin providing the ``recmox`` fixture."""

from __future__ import annotations

import dataclasses as dc
import logging
import os
import typing as t

import pytest

from .config import RECMOX_THREAD_SAFETY_CHECK_ENV, ControlConfig
from .support import MockSupport

logger = logging.getLogger(__name__)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line and ini options for the plugin."""
    group = parser.getgroup("recmox")
    group.addoption(
        "--recmox-auto-verify",
        action="store_true",
        dest="recmox_auto_verify",
        default=None,
        help=(
            "Verify every replaying control of the recmox fixture during "
            "teardown. Overrides the pytest.ini setting."
        ),
    )
    group.addoption(
        "--no-recmox-auto-verify",
        action="store_false",
        dest="recmox_auto_verify",
        default=None,
        help=(
            "Leave verification of the recmox fixture to the test. "
            "Overrides the pytest.ini setting."
        ),
    )
    parser.addini(
        "recmox_auto_verify",
        "Verify every replaying control of the recmox fixture during teardown.",
        type="bool",
        default=True,
    )
    parser.addini(
        "recmox_thread_safety_check",
        "Fail replayed calls made from threads other than the test's own.",
        type="bool",
        default=False,
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register plugin-specific markers."""
    config.addinivalue_line(
        "markers",
        (
            "recmox(auto_verify: bool = True): override automatic verify() "
            "of the recmox fixture for a single test."
        ),
    )


class _RecMoxItem(t.Protocol):
    """pytest item carrying recmox teardown metadata."""

    _recmox_support: MockSupport | None
    _recmox_auto_verify: bool
    _recmox_verify_error: Exception | None
    _recmox_verify_should_fail: bool


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[t.Any]
) -> t.Generator[None, None, None]:
    """Attach the report of each stage to the test item.

    Teardown uses the call-stage report to decide whether a verification
    failure should fail the test or only be reported alongside it.
    """
    del call
    outcome = yield
    rep = outcome.get_result()
    setattr(item, f"rep_{rep.when}", rep)
    if rep.when == "teardown":
        _apply_deferred_verify_failure(item, rep)


def _auto_verify_enabled(request: pytest.FixtureRequest) -> bool:
    """Return whether the fixture should verify during teardown."""
    # Priority order: marker > fixture param > CLI option > INI setting

    marker_value = _get_marker_auto_verify(request)
    if marker_value is not None:
        return marker_value

    param_value = _get_param_auto_verify(request)
    if param_value is not None:
        return param_value

    config = request.config
    cli_value = config.getoption("recmox_auto_verify")
    if cli_value is not None:
        return bool(cli_value)

    return bool(config.getini("recmox_auto_verify"))


def _get_marker_auto_verify(request: pytest.FixtureRequest) -> bool | None:
    """Return marker override for auto verification if present."""
    marker = request.node.get_closest_marker("recmox")
    if marker is None or "auto_verify" not in marker.kwargs:
        return None
    return bool(marker.kwargs["auto_verify"])


def _get_param_auto_verify(request: pytest.FixtureRequest) -> bool | None:
    """Return fixture parameter override for auto verification if present."""
    param = getattr(request, "param", None)
    if param is None:
        return None
    if isinstance(param, dict):
        if "auto_verify" in param:
            return bool(param["auto_verify"])
        keys = list(param.keys())
        msg = (
            "recmox fixture param dict must contain 'auto_verify' key, "
            f"got keys: {keys}"
        )
        raise TypeError(msg)
    if isinstance(param, bool):
        return param
    msg = (
        "recmox fixture param must be a bool or dict with 'auto_verify' key, "
        f"got {type(param).__name__}"
    )
    raise TypeError(msg)


def _apply_deferred_verify_failure(
    item: pytest.Item, report: pytest.TestReport
) -> None:
    """Report a verification error captured during teardown of a failed test."""
    err: Exception | None = getattr(item, "_recmox_verify_error", None)
    if err is None:
        return
    delattr(item, "_recmox_verify_error")
    should_fail = getattr(item, "_recmox_verify_should_fail", False)
    if hasattr(item, "_recmox_verify_should_fail"):
        delattr(item, "_recmox_verify_should_fail")
    if not should_fail:
        report.sections.append(("recmox verification", f"{type(err).__name__}: {err}"))


def _fixture_config(request: pytest.FixtureRequest) -> ControlConfig:
    """Build the control configuration from the environment and ini file.

    ``RECMOX_THREAD_SAFETY_CHECK`` takes precedence over the ini setting.
    """
    config = ControlConfig.from_environ()
    if RECMOX_THREAD_SAFETY_CHECK_ENV in os.environ:
        return config
    check_thread = bool(request.config.getini("recmox_thread_safety_check"))
    return dc.replace(config, check_thread=check_thread)


@pytest.fixture
def recmox(request: pytest.FixtureRequest) -> t.Generator[MockSupport, None, None]:
    """Provide a :class:`MockSupport` verified when the test finishes."""
    support = MockSupport(_fixture_config(request))
    auto_verify = _auto_verify_enabled(request)
    try:
        _attach_node_state(request.node, support, auto_verify=auto_verify)
        yield support
    except Exception:
        logger.exception("Error during recmox fixture setup or test execution")
        raise
    finally:
        _teardown_recmox(request.node, support)


def _attach_node_state(
    item: pytest.Item, support: MockSupport, *, auto_verify: bool
) -> None:
    """Expose ``support`` on the test item for later teardown hooks."""
    typed_item = t.cast("_RecMoxItem", item)
    typed_item._recmox_support = support
    typed_item._recmox_auto_verify = auto_verify
    typed_item._recmox_verify_error = None
    typed_item._recmox_verify_should_fail = False


def _teardown_recmox(item: pytest.Item, support: MockSupport) -> None:
    """Verify replaying controls and clear per-item state."""
    typed_item = t.cast("_RecMoxItem", item)
    auto_verify = getattr(typed_item, "_recmox_auto_verify", True)
    should_verify = auto_verify and support.replaying()
    should_raise = False
    if should_verify:
        try:
            support.verify_all()
        except Exception as err:
            logger.exception("Error during recmox verification")
            typed_item._recmox_verify_error = err
            should_fail = not _call_stage_failed(item)
            typed_item._recmox_verify_should_fail = should_fail
            should_raise = should_fail
    _detach_node_state(item, support)
    if should_raise:
        err = typed_item._recmox_verify_error
        pytest.fail(f"{type(err).__name__}: {err}")


def _detach_node_state(item: pytest.Item, support: MockSupport) -> None:
    """Remove per-item references to ``support``."""
    typed_item = t.cast("_RecMoxItem", item)
    if getattr(typed_item, "_recmox_support", None) is support:
        delattr(typed_item, "_recmox_support")
    if hasattr(typed_item, "_recmox_auto_verify"):
        delattr(typed_item, "_recmox_auto_verify")


def _call_stage_failed(item: pytest.Item) -> bool:
    """Return ``True`` when the test body has already failed."""
    rep_call = getattr(item, "rep_call", None)
    return bool(rep_call and rep_call.failed)
