"""Steps for testing the pytest plugin."""

from __future__ import annotations

import shutil
import subprocess
import sys
import tempfile
import typing as t
from pathlib import Path

from behave import given, then, when  # type: ignore[attr-defined]


class BehaveContext(t.Protocol):
    """Behave step context for plugin tests."""

    test_file: Path
    tmpdir: Path
    result: subprocess.CompletedProcess[str]


_MODULE_HEADER = """
from recmox import expect

pytest_plugins = ("recmox.pytest_plugin",)

class Catalog:
    def lookup(self, name: str) -> str:
        return name
"""

_PASSING_TEST = """
def test_example(recmox):
    catalog = recmox.create_mock(Catalog)
    expect(catalog.lookup("apple")).and_return("red")
    recmox.replay_all()
    assert catalog.lookup("apple") == "red"
"""

_UNMET_TEST = """
def test_example(recmox):
    catalog = recmox.create_mock(Catalog)
    expect(catalog.lookup("apple")).and_return("red")
    recmox.replay_all()
"""


def _write_test_file(context: BehaveContext, body: str) -> None:
    tmpdir = Path(tempfile.mkdtemp())
    context.test_file = tmpdir / "test_example.py"
    context.tmpdir = tmpdir
    context.test_file.write_text(_MODULE_HEADER + body)


@given("a temporary test file using the recmox fixture")
def step_create_test_file(context: BehaveContext) -> None:
    """Write a pytest file that exercises the fixture."""
    _write_test_file(context, _PASSING_TEST)


@given("a temporary test file with an unmet expectation")
def step_create_unmet_test_file(context: BehaveContext) -> None:
    """Write a pytest file whose expectation is never met."""
    _write_test_file(context, _UNMET_TEST)


@when("I run pytest on the file")
def step_run_pytest(context: BehaveContext) -> None:
    """Execute pytest on the generated file."""
    result = subprocess.run(  # noqa: S603
        [
            sys.executable,
            "-m",
            "pytest",
            "-p",
            "no:cacheprovider",
            str(context.test_file),
        ],
        capture_output=True,
        text=True,
    )
    context.result = result
    shutil.rmtree(context.tmpdir)


@then("the run should pass")
def step_check_pass(context: BehaveContext) -> None:
    """Assert that pytest exited successfully."""
    assert context.result.returncode == 0  # noqa: S101


@then("the run should report a teardown error")
def step_check_teardown_error(context: BehaveContext) -> None:
    """Assert that verification failed after the test body passed."""
    assert context.result.returncode != 0  # noqa: S101
    assert "1 passed, 1 error" in context.result.stdout  # noqa: S101
    assert "UnfulfilledExpectationError" in context.result.stdout  # noqa: S101
