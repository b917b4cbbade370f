"""Utilities for constructing synthetic pytest modules in plugin tests."""

from __future__ import annotations

import textwrap
import typing as t

BodyLiteral: t.TypeAlias = t.Literal["UNMET", "MANUAL"]

_UNKNOWN_BODY_ERR = "Unknown test body: {body}"

_PYTEST_IMPORT = "import pytest\n"

_MODULE_PREFIX = """\
from recmox import expect

pytest_plugins = ("recmox.pytest_plugin",)


class Repository:
    def count(self) -> int:
        return 0

"""

_TEST_BODIES: dict[BodyLiteral, str] = {
    # Only teardown verification notices the unmet expectation.
    "UNMET": """
        repo = recmox.create_mock(Repository)
        expect(repo.count()).and_return(1)
        recmox.replay_all()
    """,
    "MANUAL": """
        repo = recmox.create_mock(Repository)
        expect(repo.count()).and_return(1)
        recmox.replay_all()
        assert repo.count() == 1
        recmox.verify_all()
    """,
}


def _format_block(block: str, *, indent: int = 0) -> str:
    """Return a dedented block optionally indented by ``indent`` spaces."""
    normalized = textwrap.dedent(block).strip("\n")
    if not normalized:
        return ""

    normalized = f"{normalized}\n"
    if indent:
        normalized = textwrap.indent(normalized, " " * indent)
    return normalized


def generate_verify_test_module(decorator: str, body: BodyLiteral) -> str:
    """Return a synthetic pytest module tuned to an auto-verify scenario.

    ``decorator`` is emitted verbatim (when provided) immediately above the
    generated test so callers can inject parametrization or marks without
    post-processing the module text. The module only imports ``pytest`` when
    a decorator needs it.
    """
    if body not in _TEST_BODIES:
        raise ValueError(_UNKNOWN_BODY_ERR.format(body=body))

    decorator_block = _format_block(decorator) if decorator else ""
    module = _PYTEST_IMPORT if decorator_block else ""
    module += _MODULE_PREFIX
    module += f"{decorator_block}def test_case(recmox):\n"
    module += _format_block(_TEST_BODIES[body], indent=4)
    return module


__all__ = ["BodyLiteral", "generate_verify_test_module"]
