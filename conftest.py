"""Global test configuration and shared fixtures."""

from __future__ import annotations

import pytest

from recmox import MockControl, MockType

pytest_plugins = ("recmox.pytest_plugin", "pytester")


@pytest.fixture
def control() -> MockControl:
    """Return a default control."""
    return MockControl()


@pytest.fixture
def strict_control() -> MockControl:
    """Return a strict control."""
    return MockControl(mock_type=MockType.STRICT)


@pytest.fixture
def nice_control() -> MockControl:
    """Return a nice control."""
    return MockControl(mock_type=MockType.NICE)
