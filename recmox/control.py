"""Mock control: the record-replay-verify state machine."""

from __future__ import annotations

import enum
import itertools
import logging
import threading
import types  # noqa: TC003
import typing as t
from collections import deque

from .comparators import matcher_for
from .config import ControlConfig, MockType
from .errors import ConcurrencyError, LifecycleError, UsageError
from .expectations import Action, Expectation, ReturnAction
from .invocation import Invocation, describe_invocation
from .mock import Mock
from .recording import ExpectationSetters, LastInvocation, Placeholder, RecordedCall
from .repository import ExpectationRepository
from .verifiers import (
    UnexpectedCallVerifier,
    order_violation_error,
    unexpected_call_error,
)

logger = logging.getLogger(__name__)

_STRICT_GROUP = "strict"


class Phase(enum.StrEnum):
    """Lifecycle phases for :class:`MockControl`."""

    RECORD = "RECORD"
    REPLAY = "REPLAY"


class MockControl:
    """Owns the expectations of one or more mocks and drives their lifecycle.

    Mocks created by the same control share its repository, so ordering
    constraints of a strict control apply across all of them.
    """

    def __init__(
        self,
        config: ControlConfig | None = None,
        *,
        mock_type: MockType | None = None,
    ) -> None:
        """Create a control in the record phase.

        Parameters
        ----------
        config:
            Creation-time settings. Defaults to :class:`ControlConfig()`.
        mock_type:
            Overrides ``config.mock_type`` when given.
        """
        self._config = config if config is not None else ControlConfig()
        self._mock_type = (
            mock_type if mock_type is not None else self._config.mock_type
        )
        self._phase = Phase.RECORD
        self._repository = ExpectationRepository()
        self._last = LastInvocation()
        self._thread_safe = self._config.thread_safe
        self._check_thread = self._config.check_thread
        self._owner_thread = threading.get_ident()
        self._allowed_threads: set[int] = set()
        self._lock = threading.RLock()
        self._group_ids = itertools.count(1)
        self._order_group: str | None = None
        self._generation = 0
        self.journal: deque[Invocation] = deque(
            maxlen=self._config.max_journal_entries
        )
        self._unexpected: list[Invocation] = []
        self._apply_mock_type()

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------
    @property
    def phase(self) -> Phase:
        """Return the current lifecycle phase."""
        return self._phase

    @property
    def mock_type(self) -> MockType:
        """Return the unexpected-call policy."""
        return self._mock_type

    @property
    def config(self) -> ControlConfig:
        """Return the creation-time configuration."""
        return self._config

    @property
    def repository(self) -> ExpectationRepository:
        """Return the recorded expectations."""
        return self._repository

    @property
    def generation(self) -> int:
        """Return a counter bumped by every reset."""
        return self._generation

    @property
    def is_thread_safe(self) -> bool:
        """Return ``True`` when replayed calls are serialised."""
        return self._thread_safe

    @property
    def unexpected_calls(self) -> tuple[Invocation, ...]:
        """Return replayed calls that matched no expectation."""
        return tuple(self._unexpected)

    # ------------------------------------------------------------------
    # Context manager protocol
    # ------------------------------------------------------------------
    def __enter__(self) -> MockControl:
        """Enter a block that verifies the control on a clean exit."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Verify when leaving a replay block without an exception."""
        if exc_type is None and self._phase is Phase.REPLAY:
            self.verify()

    # ------------------------------------------------------------------
    # Mock creation
    # ------------------------------------------------------------------
    def create_mock(
        self, target: type | None = None, name: str | None = None
    ) -> t.Any:  # noqa: ANN401
        """Return a mock of *target* backed by this control."""
        mock = Mock(self, target, name)
        logger.debug("Created %r on %s control", mock, self._mock_type.name.lower())
        return mock

    # ------------------------------------------------------------------
    # Interception entry point
    # ------------------------------------------------------------------
    def dispatch(self, invocation: Invocation) -> Action:
        """Return the action answering an intercepted *invocation*."""
        if self._phase is Phase.RECORD:
            return self._record(invocation)
        self._check_calling_thread()
        if self._thread_safe:
            with self._lock:
                return self._replay_call(invocation)
        return self._replay_call(invocation)

    def _record(self, invocation: Invocation) -> Action:
        self._close_pending()
        identity = self._config.match_by_identity
        matchers = tuple(
            (arg.label, matcher_for(arg.value, identity=identity))
            for arg in invocation.arguments
        )
        self._last.push(invocation, matchers)
        return Placeholder(RecordedCall(self, invocation))

    def _replay_call(self, invocation: Invocation) -> Action:
        self.journal.append(invocation)
        expectation = self._repository.find_match(invocation)
        if expectation is None:
            return self._unexpected_call(invocation)
        action = expectation.next_action()
        expectation.record_call()
        return action

    def _unexpected_call(self, invocation: Invocation) -> Action:
        if self._mock_type is MockType.NICE:
            return ReturnAction(invocation.method.default_return())
        self._unexpected.append(invocation)
        outstanding = self._repository.outstanding()
        blocked = self._repository.blocked_by_order(invocation)
        if blocked:
            heads = self._repository.heads()
            raise order_violation_error(invocation, blocked, heads, outstanding)
        raise unexpected_call_error(invocation, outstanding)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------
    def expect(self, recorded: RecordedCall) -> ExpectationSetters:
        """Configure the call that produced *recorded*."""
        if not isinstance(recorded, RecordedCall):
            msg = (
                "expect() needs the value returned by a mock call made while "
                f"recording, got {recorded!r}"
            )
            raise UsageError(msg)
        if recorded.control is not self:
            return recorded.control.expect(recorded)
        self.require_recording("expect")
        self._last.require(recorded)
        return ExpectationSetters(self, self._pending_expectation())

    def expect_last_call(self) -> ExpectationSetters:
        """Configure the most recent call recorded on this control."""
        self.require_recording("expect_last_call")
        self._last.require()
        return ExpectationSetters(self, self._pending_expectation())

    def _pending_expectation(self) -> Expectation:
        expectation = self._last.expectation
        if expectation is not None:
            return expectation
        invocation = self._last.require()
        expectation = Expectation(
            invocation, self._last.matchers, group=self._order_group
        )
        self._repository.add(expectation)
        self._last.attach(expectation)
        return expectation

    def _close_pending(self) -> None:
        """Finish the pending call before another one is recorded."""
        invocation = self._last.invocation
        if invocation is None:
            return
        expectation = self._last.expectation
        method = invocation.method
        if expectation is None and method.is_void:
            self._pending_expectation()
        elif expectation is None or (
            not expectation.has_behavior and method.returns_value
        ):
            msg = (
                "missing behavior definition for the preceding method call: "
                f"{describe_invocation(invocation)}"
            )
            raise UsageError(msg)
        self._last.clear()

    def require_recording(self, action: str, generation: int | None = None) -> None:
        """Ensure behaviour may still be configured."""
        self._require_phase(Phase.RECORD, action)
        if generation is not None and generation != self._generation:
            msg = f"Cannot call {action}(): the expectation was discarded by a reset"
            raise LifecycleError(msg)

    def order_expectation(self, expectation: Expectation, group: str | None) -> None:
        """Place *expectation* at the end of an order group."""
        name = group or self._order_group or "ordered"
        self._repository.regroup(expectation, name)

    def check_order(  # noqa: FBT001
        self, enabled: bool, *, group: str | None = None
    ) -> None:
        """Switch call order checking for expectations recorded from now on.

        Enabling starts a new order group, named *group* when given.
        """
        self.require_recording("check_order")
        if enabled:
            self._order_group = group or f"order-{next(self._group_ids)}"
        else:
            self._order_group = None

    # ------------------------------------------------------------------
    # Thread handling
    # ------------------------------------------------------------------
    def make_thread_safe(self, thread_safe: bool) -> None:  # noqa: FBT001
        """Serialise replayed calls with a lock, allowing any thread."""
        self.require_recording("make_thread_safe")
        self._thread_safe = thread_safe

    def check_is_used_in_one_thread(self, should_check: bool) -> None:  # noqa: FBT001
        """Fail replayed calls made from threads other than the creating one."""
        self.require_recording("check_is_used_in_one_thread")
        self._check_thread = should_check

    def allow_thread(self, thread: threading.Thread | int) -> None:
        """Accept replayed calls from *thread* while checking threads."""
        ident = thread if isinstance(thread, int) else thread.ident
        if ident is None:
            msg = f"{thread!r} has not been started"
            raise UsageError(msg)
        self._allowed_threads.add(ident)

    def _check_calling_thread(self) -> None:
        if not self._check_thread or self._thread_safe:
            return
        current = threading.get_ident()
        if current == self._owner_thread or current in self._allowed_threads:
            return
        msg = (
            f"Mock control created in thread {self._owner_thread} was called from "
            f"thread {current}; call make_thread_safe(True) or allow_thread() "
            "to share it between threads"
        )
        raise ConcurrencyError(msg)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def replay(self) -> None:
        """Switch from recording to serving calls against the expectations."""
        self._require_phase(Phase.RECORD, "replay")
        self._close_pending()
        self._repository.freeze()
        self.journal.clear()
        self._unexpected.clear()
        self._phase = Phase.REPLAY
        logger.debug("Replaying %d expectation(s)", len(self._repository))

    def verify(self) -> None:
        """Fail if calls were unexpected or expectations were not met."""
        if self._phase is Phase.RECORD and self._nothing_to_verify():
            return
        self._require_phase(Phase.REPLAY, "verify")
        self.verify_unexpected_calls()
        self.verify_recording()

    def verify_recording(self) -> None:
        """Fail listing every expectation called fewer times than required."""
        self._require_phase(Phase.REPLAY, "verify_recording")
        self._repository.verify()

    def verify_unexpected_calls(self) -> None:
        """Fail if any replayed call matched no expectation."""
        self._require_phase(Phase.REPLAY, "verify_unexpected_calls")
        UnexpectedCallVerifier().verify(self._unexpected)

    def _nothing_to_verify(self) -> bool:
        """Return ``True`` after a reset with nothing recorded since."""
        return (
            self._generation > 0
            and self._repository.is_empty()
            and self._last.invocation is None
        )

    def reset(self) -> None:
        """Discard every expectation and return to the record phase."""
        self._repository.reset()
        self._last.clear()
        self.journal.clear()
        self._unexpected.clear()
        self._generation += 1
        self._phase = Phase.RECORD
        self._apply_mock_type()
        logger.debug("Reset %s control", self._mock_type.name.lower())

    def reset_to_nice(self) -> None:
        """Reset and return default values for unexpected calls."""
        self._mock_type = MockType.NICE
        self.reset()

    def reset_to_default(self) -> None:
        """Reset and fail on unexpected calls, ignoring call order."""
        self._mock_type = MockType.DEFAULT
        self.reset()

    def reset_to_strict(self) -> None:
        """Reset and fail on unexpected calls, checking call order."""
        self._mock_type = MockType.STRICT
        self.reset()

    def _apply_mock_type(self) -> None:
        strict = self._mock_type is MockType.STRICT
        self._order_group = _STRICT_GROUP if strict else None

    def _require_phase(self, expected: Phase, action: str) -> None:
        """Ensure we're in ``expected`` phase before executing ``action``."""
        if self._phase is not expected:
            msg = (
                f"Cannot call {action}(): not in '{expected.name.lower()}' phase "
                f"(current phase: {self._phase.name.lower()})"
            )
            raise LifecycleError(msg)

    def __repr__(self) -> str:
        """Return a debug representation."""
        return (
            f"<MockControl {self._mock_type.name.lower()} "
            f"phase={self._phase.name.lower()} expectations={len(self._repository)}>"
        )


def create_control(
    mock_type: MockType = MockType.DEFAULT, config: ControlConfig | None = None
) -> MockControl:
    """Return a new control using *mock_type*."""
    return MockControl(config, mock_type=mock_type)


__all__ = ["MockControl", "Phase", "create_control"]
