"""Record, replay and verify mock objects for Python tests.

A mock records the calls made on it while its control is in the record phase,
serves calls against those expectations once ``replay()`` is called and checks
with ``verify()`` that every required call happened.
"""

from __future__ import annotations

from .comparators import (
    AllOf,
    Any,
    AnyOf,
    Comparator,
    Contains,
    EndsWith,
    Eq,
    IsA,
    IsNone,
    Not,
    NotNone,
    Predicate,
    Regex,
    Same,
    StartsWith,
)
from .config import ControlConfig, MockType
from .control import MockControl, Phase, create_control
from .errors import (
    ConcurrencyError,
    LifecycleError,
    OrderViolationError,
    RecMoxError,
    UnexpectedCallError,
    UnfulfilledExpectationError,
    UsageError,
    VerificationError,
)
from .expectations import CallRange, Expectation
from .injection import MockField, inject_mocks, mock_field
from .invocation import Invocation, MethodSignature
from .mock import Mock, control_of, is_mock
from .pytest_plugin import recmox as recmox_fixture
from .recording import ExpectationSetters, RecordedCall
from .support import (
    MockSupport,
    create_mock,
    create_nice_mock,
    create_strict_mock,
    expect,
    expect_last_call,
    replay,
    reset,
    verify,
)

__all__ = [
    "AllOf",
    "Any",
    "AnyOf",
    "CallRange",
    "Comparator",
    "ConcurrencyError",
    "Contains",
    "ControlConfig",
    "EndsWith",
    "Eq",
    "Expectation",
    "ExpectationSetters",
    "Invocation",
    "IsA",
    "IsNone",
    "LifecycleError",
    "MethodSignature",
    "Mock",
    "MockControl",
    "MockField",
    "MockSupport",
    "MockType",
    "Not",
    "NotNone",
    "OrderViolationError",
    "Phase",
    "Predicate",
    "RecMoxError",
    "RecordedCall",
    "Regex",
    "Same",
    "StartsWith",
    "UnexpectedCallError",
    "UnfulfilledExpectationError",
    "UsageError",
    "VerificationError",
    "control_of",
    "create_control",
    "create_mock",
    "create_nice_mock",
    "create_strict_mock",
    "expect",
    "expect_last_call",
    "inject_mocks",
    "is_mock",
    "mock_field",
    "recmox_fixture",
    "replay",
    "reset",
    "verify",
]
