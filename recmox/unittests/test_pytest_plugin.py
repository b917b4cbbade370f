"""Unit tests for the pytest plugin."""

from __future__ import annotations

import dataclasses as dc
import textwrap

import pytest

from recmox import MockSupport, expect
from recmox.config import RECMOX_THREAD_SAFETY_CHECK_ENV
from recmox.unittests import pytest_plugin_module_utils as plugin_utils
from recmox.unittests._doubles import Repository, Service

BodyLiteral = plugin_utils.BodyLiteral


@dc.dataclass(slots=True, frozen=True)
class AutoVerifyTestCase:
    """Test case data for auto-verify configuration scenarios."""

    config_method: str
    ini_setting: str | None
    cli_args: tuple[str, ...]
    test_decorator: str
    body: BodyLiteral
    should_fail: bool


def test_fixture_basic(recmox: MockSupport) -> None:
    """Fixture yields a MockSupport verified at teardown."""
    repo = recmox.create_mock(Repository)
    expect(repo.get("k")).and_return("v")
    recmox.replay_all()
    assert Service(repo).lookup("k") == "v"


def test_fixture_reads_environment(
    pytester: pytest.Pytester, monkeypatch: pytest.MonkeyPatch
) -> None:
    """RECMOX_* variables reach the fixture configuration."""
    monkeypatch.setenv("RECMOX_MATCH_BY_IDENTITY", "1")
    pytester.makepyfile(
        """
        pytest_plugins = ("recmox.pytest_plugin",)

        def test_config(recmox):
            assert recmox.config.match_by_identity
        """
    )
    result = pytester.runpytest()
    result.assert_outcomes(passed=1)


def test_missing_call_fails_during_teardown(pytester: pytest.Pytester) -> None:
    """Verification failures should fail the test even without explicit calls."""
    test_file = pytester.makepyfile(
        plugin_utils.generate_verify_test_module("", "UNMET")
    )

    result = pytester.runpytest(str(test_file))
    result.assert_outcomes(passed=1, errors=1)
    result.stdout.fnmatch_lines(["*UnfulfilledExpectationError*"])


def test_verification_error_suppressed_on_test_failure(
    pytester: pytest.Pytester,
) -> None:
    """Primary test failures should mask verification errors."""
    test_file = pytester.makepyfile(
        """
        from recmox import expect

        pytest_plugins = ("recmox.pytest_plugin",)

        class Repository:
            def count(self) -> int:
                return 0

        def test_failure(recmox):
            repo = recmox.create_mock(Repository)
            expect(repo.count()).and_return(1)
            recmox.replay_all()
            assert False
        """
    )

    result = pytester.runpytest(str(test_file))
    result.assert_outcomes(failed=1)
    result.stdout.fnmatch_lines(["*assert False*"])


def test_recording_controls_are_not_verified(pytester: pytest.Pytester) -> None:
    """Controls that never replayed are left alone at teardown."""
    test_file = pytester.makepyfile(
        """
        from recmox import expect

        pytest_plugins = ("recmox.pytest_plugin",)

        class Repository:
            def count(self) -> int:
                return 0

        def test_recording_only(recmox):
            repo = recmox.create_mock(Repository)
            expect(repo.count()).and_return(1)
        """
    )

    result = pytester.runpytest(str(test_file))
    result.assert_outcomes(passed=1)


def test_manual_verification_passes(pytester: pytest.Pytester) -> None:
    """Tests that satisfy their expectations pass teardown verification."""
    test_file = pytester.makepyfile(
        plugin_utils.generate_verify_test_module("", "MANUAL")
    )
    result = pytester.runpytest(str(test_file))
    result.assert_outcomes(passed=1)


@pytest.mark.parametrize(
    ("param", "message"),
    [
        ('"yes"', "*recmox fixture param must be a bool or dict*"),
        ('{"verify": True}', "*must contain 'auto_verify' key*"),
    ],
    ids=["wrong-type", "wrong-key"],
)
def test_invalid_fixture_param(
    pytester: pytest.Pytester, param: str, message: str
) -> None:
    """Unsupported fixture parameters are reported at setup."""
    test_file = pytester.makepyfile(
        f"""
        import pytest

        pytest_plugins = ("recmox.pytest_plugin",)

        @pytest.mark.parametrize("recmox", [{param}], indirect=True)
        def test_param(recmox):
            pass
        """
    )
    result = pytester.runpytest(str(test_file))
    result.assert_outcomes(errors=1)
    result.stdout.fnmatch_lines([message])


@pytest.mark.parametrize(
    ("ini_value", "env_value", "expected"),
    [
        (None, None, False),
        ("true", None, True),
        ("true", "0", False),
        ("false", "1", True),
    ],
    ids=["default", "ini-enables", "env-overrides-ini-off", "env-overrides-ini-on"],
)
def test_thread_safety_check_setting(
    pytester: pytest.Pytester,
    monkeypatch: pytest.MonkeyPatch,
    ini_value: str | None,
    env_value: str | None,
    *,
    expected: bool,
) -> None:
    """The environment variable wins over the ini setting."""
    if env_value is None:
        monkeypatch.delenv(RECMOX_THREAD_SAFETY_CHECK_ENV, raising=False)
    else:
        monkeypatch.setenv(RECMOX_THREAD_SAFETY_CHECK_ENV, env_value)
    if ini_value is not None:
        pytester.makeini(
            textwrap.dedent(
                f"""
                [pytest]
                recmox_thread_safety_check = {ini_value}
                """
            )
        )
    test_file = pytester.makepyfile(
        f"""
        pytest_plugins = ("recmox.pytest_plugin",)

        def test_thread_check(recmox):
            assert recmox.config.check_thread is {expected}
            control = recmox.create_control()
            assert control.config.check_thread is {expected}
        """
    )
    result = pytester.runpytest(str(test_file))
    result.assert_outcomes(passed=1)


@pytest.mark.parametrize(
    "test_case",
    [
        pytest.param(
            AutoVerifyTestCase(
                config_method="ini_default",
                ini_setting=None,
                cli_args=(),
                test_decorator="",
                body="UNMET",
                should_fail=True,
            ),
            id="ini-default",
        ),
        pytest.param(
            AutoVerifyTestCase(
                config_method="ini_disables",
                ini_setting="recmox_auto_verify = false",
                cli_args=(),
                test_decorator="",
                body="UNMET",
                should_fail=False,
            ),
            id="ini-disables",
        ),
        pytest.param(
            AutoVerifyTestCase(
                config_method="cli_disables",
                ini_setting=None,
                cli_args=("--no-recmox-auto-verify",),
                test_decorator="",
                body="UNMET",
                should_fail=False,
            ),
            id="cli-disables",
        ),
        pytest.param(
            AutoVerifyTestCase(
                config_method="marker_overrides_ini",
                ini_setting="recmox_auto_verify = false",
                cli_args=(),
                test_decorator="@pytest.mark.recmox(auto_verify=True)",
                body="UNMET",
                should_fail=True,
            ),
            id="marker-overrides-ini",
        ),
        pytest.param(
            AutoVerifyTestCase(
                config_method="marker_overrides_cli",
                ini_setting=None,
                cli_args=("--recmox-auto-verify",),
                test_decorator="@pytest.mark.recmox(auto_verify=False)",
                body="UNMET",
                should_fail=False,
            ),
            id="marker-overrides-cli",
        ),
        pytest.param(
            AutoVerifyTestCase(
                config_method="fixture_param_bool",
                ini_setting=None,
                cli_args=(),
                test_decorator=(
                    '@pytest.mark.parametrize("recmox", [False], indirect=True)'
                ),
                body="UNMET",
                should_fail=False,
            ),
            id="fixture-param-bool",
        ),
        pytest.param(
            AutoVerifyTestCase(
                config_method="fixture_param_dict",
                ini_setting="recmox_auto_verify = false",
                cli_args=(),
                test_decorator="\n".join(
                    [
                        "@pytest.mark.parametrize(",
                        '    "recmox", [{"auto_verify": True}], indirect=True',
                        ")",
                    ]
                ),
                body="UNMET",
                should_fail=True,
            ),
            id="fixture-param-dict",
        ),
        pytest.param(
            AutoVerifyTestCase(
                config_method="cli_overrides_ini",
                ini_setting="recmox_auto_verify = false",
                cli_args=("--recmox-auto-verify",),
                test_decorator="",
                body="UNMET",
                should_fail=True,
            ),
            id="cli-overrides-ini",
        ),
        pytest.param(
            AutoVerifyTestCase(
                config_method="manual_verify",
                ini_setting=None,
                cli_args=(),
                test_decorator="",
                body="MANUAL",
                should_fail=False,
            ),
            id="manual-verify",
        ),
    ],
)
def test_auto_verify_configuration(
    pytester: pytest.Pytester,
    test_case: AutoVerifyTestCase,
) -> None:
    """Exercise auto-verify precedence without duplicating module scaffolding."""
    if test_case.ini_setting:
        pytester.makeini(
            textwrap.dedent(
                f"""
                [pytest]
                {test_case.ini_setting}
                """
            )
        )

    module = plugin_utils.generate_verify_test_module(
        test_case.test_decorator, test_case.body
    )
    module = f"# scenario: {test_case.config_method}\n" + module
    test_file = pytester.makepyfile(**{f"test_{test_case.config_method}.py": module})

    plugins: tuple[str, ...] = ("recmox.pytest_plugin",) if test_case.cli_args else ()
    result = pytester.runpytest(*test_case.cli_args, str(test_file), plugins=plugins)

    if test_case.should_fail:
        result.assert_outcomes(passed=1, errors=1)
        result.stdout.fnmatch_lines(["*UnfulfilledExpectationError*"])
    else:
        result.assert_outcomes(passed=1)
