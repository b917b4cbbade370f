"""Helpers operating on several controls at once, and module-level shortcuts."""

from __future__ import annotations

import logging
import types  # noqa: TC003
import typing as t

from .config import ControlConfig, MockType
from .control import MockControl, Phase
from .errors import UsageError
from .mock import control_of

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .recording import ExpectationSetters, RecordedCall

logger = logging.getLogger(__name__)


def _run_all(
    action: str,
    controls: t.Iterable[MockControl],
    *,
    call: t.Callable[[MockControl], None],
) -> None:
    """Apply *call* to every control, re-raising the first failure.

    Every control is attempted even after a failure; later failures are
    logged.
    """
    first: Exception | None = None
    for index, control in enumerate(controls):
        try:
            call(control)
        except Exception as err:
            if first is None:
                first = err
            else:
                logger.warning("%s failed for control #%d: %s", action, index, err)
    if first is not None:
        raise first


class MockSupport:
    """Registry of controls so that tests can replay and verify them together.

    Controls are processed in creation order by the ``*_all`` methods.
    """

    def __init__(self, config: ControlConfig | None = None) -> None:
        self.config = config if config is not None else ControlConfig()
        self.controls: list[MockControl] = []

    def __enter__(self) -> MockSupport:
        """Enter a block that verifies every replaying control on a clean exit."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Verify replaying controls unless the block raised."""
        if exc_type is None and self.replaying():
            self.verify_all()

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------
    def create_control(self, mock_type: MockType | None = None) -> MockControl:
        """Create and register a control."""
        control = MockControl(self.config, mock_type=mock_type)
        self.controls.append(control)
        return control

    def create_nice_control(self) -> MockControl:
        """Create and register a nice control."""
        return self.create_control(MockType.NICE)

    def create_strict_control(self) -> MockControl:
        """Create and register a strict control."""
        return self.create_control(MockType.STRICT)

    # ------------------------------------------------------------------
    # Mocks
    # ------------------------------------------------------------------
    def create_mock(
        self,
        target: type | None = None,
        *,
        name: str | None = None,
        mock_type: MockType | None = None,
    ) -> t.Any:  # noqa: ANN401
        """Create a mock of *target* with its own registered control."""
        return self.create_control(mock_type).create_mock(target, name)

    def create_nice_mock(
        self, target: type | None = None, *, name: str | None = None
    ) -> t.Any:  # noqa: ANN401
        """Create a nice mock of *target*."""
        return self.create_mock(target, name=name, mock_type=MockType.NICE)

    def create_strict_mock(
        self, target: type | None = None, *, name: str | None = None
    ) -> t.Any:  # noqa: ANN401
        """Create a strict mock of *target*."""
        return self.create_mock(target, name=name, mock_type=MockType.STRICT)

    # ------------------------------------------------------------------
    # Aggregate lifecycle
    # ------------------------------------------------------------------
    def replaying(self) -> bool:
        """Return ``True`` when any registered control is replaying."""
        return any(control.phase is Phase.REPLAY for control in self.controls)

    def replay_all(self) -> None:
        """Switch every registered control to replay."""
        _run_all("replay", self.controls, call=MockControl.replay)

    def verify_all(self) -> None:
        """Verify every registered control."""
        _run_all("verify", self.controls, call=MockControl.verify)

    def reset_all(self) -> None:
        """Reset every registered control."""
        _run_all("reset", self.controls, call=MockControl.reset)

    def reset_all_to_nice(self) -> None:
        """Reset every registered control to nice."""
        _run_all("reset_to_nice", self.controls, call=MockControl.reset_to_nice)

    def reset_all_to_default(self) -> None:
        """Reset every registered control to default."""
        _run_all(
            "reset_to_default", self.controls, call=MockControl.reset_to_default
        )

    def reset_all_to_strict(self) -> None:
        """Reset every registered control to strict."""
        _run_all(
            "reset_to_strict", self.controls, call=MockControl.reset_to_strict
        )


# ----------------------------------------------------------------------
# Module-level shortcuts
# ----------------------------------------------------------------------
def create_mock(
    target: type | None = None,
    *,
    name: str | None = None,
    mock_type: MockType = MockType.DEFAULT,
    config: ControlConfig | None = None,
) -> t.Any:  # noqa: ANN401
    """Create a mock of *target* with a dedicated control."""
    return MockControl(config, mock_type=mock_type).create_mock(target, name)


def create_nice_mock(
    target: type | None = None, *, name: str | None = None
) -> t.Any:  # noqa: ANN401
    """Create a nice mock of *target* with a dedicated control."""
    return create_mock(target, name=name, mock_type=MockType.NICE)


def create_strict_mock(
    target: type | None = None, *, name: str | None = None
) -> t.Any:  # noqa: ANN401
    """Create a strict mock of *target* with a dedicated control."""
    return create_mock(target, name=name, mock_type=MockType.STRICT)


def expect(recorded: object) -> ExpectationSetters:
    """Configure the call that produced *recorded*.

    >>> expect(repo.get("x")).and_return("v1")  # doctest: +SKIP
    """
    control = getattr(recorded, "control", None)
    if not isinstance(control, MockControl):
        msg = (
            "expect() needs the value returned by a mock call made while "
            f"recording, got {recorded!r}"
        )
        raise UsageError(msg)
    return control.expect(t.cast("RecordedCall", recorded))


def expect_last_call(mock: object) -> ExpectationSetters:
    """Configure the most recent call recorded on the control of *mock*."""
    return control_of(mock).expect_last_call()


def _controls_of(mocks: t.Iterable[object]) -> list[MockControl]:
    controls: list[MockControl] = []
    for mock in mocks:
        control = control_of(mock)
        if not any(control is seen for seen in controls):
            controls.append(control)
    return controls


def replay(*mocks: object) -> None:
    """Switch the controls of *mocks* to replay."""
    _run_all("replay", _controls_of(mocks), call=MockControl.replay)


def verify(*mocks: object) -> None:
    """Verify the controls of *mocks*."""
    _run_all("verify", _controls_of(mocks), call=MockControl.verify)


def reset(*mocks: object) -> None:
    """Reset the controls of *mocks*."""
    _run_all("reset", _controls_of(mocks), call=MockControl.reset)


__all__ = [
    "MockSupport",
    "create_mock",
    "create_nice_mock",
    "create_strict_mock",
    "expect",
    "expect_last_call",
    "replay",
    "reset",
    "verify",
]
