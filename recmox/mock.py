"""Proxy objects forwarding every method call to a mock control."""

from __future__ import annotations

import inspect
import typing as t

from .errors import UsageError
from .invocation import Invocation, MethodSignature
from .recording import Placeholder

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .control import MockControl
    from .expectations import Action


class MethodInterceptor(t.Protocol):
    """Receiver of intercepted calls."""

    def dispatch(self, invocation: Invocation) -> Action:
        """Return the action answering *invocation*."""
        ...


async def _perform_async(action: Action, invocation: Invocation) -> object:
    result = action.perform(invocation)
    if inspect.isawaitable(result):
        return await result
    return result


class InterceptedMethod:
    """Bound method of a :class:`Mock`; calling it dispatches an invocation."""

    __slots__ = ("_method", "_mock")

    def __init__(self, mock: Mock, method: MethodSignature) -> None:
        self._mock = mock
        self._method = method

    def __call__(self, *args: t.Any, **kwargs: t.Any) -> t.Any:  # noqa: ANN401
        """Forward the call to the mock's control and perform its action."""
        interceptor = control_of(self._mock)
        invocation = Invocation.create(self._mock, self._method, args, kwargs)
        action = interceptor.dispatch(invocation)
        if self._method.is_async and not isinstance(action, Placeholder):
            return _perform_async(action, invocation)
        return action.perform(invocation)

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"<intercepted method {self._method.name} of {self._mock!r}>"


class Mock:
    """Stand-in for an instance of ``target``.

    Attribute access returns an :class:`InterceptedMethod` for every callable
    attribute of ``target``; with no target any public name is accepted.
    ``isinstance(mock, target)`` holds.
    """

    __slots__ = (
        "_recmox_control",
        "_recmox_methods",
        "_recmox_name",
        "_recmox_target",
    )

    def __init__(
        self,
        control: MockControl,
        target: type | None = None,
        name: str | None = None,
    ) -> None:
        if name is not None and not name.isidentifier():
            msg = f"{name!r} is not a valid mock name"
            raise UsageError(msg)
        self._recmox_control = control
        self._recmox_target = target
        self._recmox_name = name
        self._recmox_methods: dict[str, MethodSignature] = {}

    def __getattr__(self, name: str) -> InterceptedMethod:
        """Return an interceptor for method *name*."""
        dunder = name.startswith("__") and name.endswith("__")
        if dunder or name.startswith("_recmox"):
            raise AttributeError(name)
        target = self._recmox_target
        if target is None and name.startswith("_"):
            raise AttributeError(name)
        method = self._recmox_methods.get(name)
        if method is None:
            try:
                method = MethodSignature.from_attribute(target, name)
            except AttributeError as exc:
                msg = f"{self!r} has no method {name!r}"
                raise AttributeError(msg) from exc
            self._recmox_methods[name] = method
        return InterceptedMethod(self, method)

    @property  # type: ignore[misc]
    def __class__(self) -> type:  # type: ignore[override]
        """Report the mocked type so ``isinstance`` checks pass."""
        target = self._recmox_target
        return Mock if target is None else target

    def __repr__(self) -> str:
        """Return the mock name, or a description of the mocked type."""
        if self._recmox_name is not None:
            return self._recmox_name
        target = self._recmox_target
        if target is None:
            return "Mock"
        return f"Mock for {target.__qualname__}"


def is_mock(obj: object) -> bool:
    """Return ``True`` when *obj* is a recmox mock."""
    return type(obj) is Mock


def control_of(mock: object) -> MockControl:
    """Return the control behind *mock*."""
    if not is_mock(mock):
        msg = f"{mock!r} is not a mock"
        raise UsageError(msg)
    return t.cast("Mock", mock)._recmox_control


__all__ = ["InterceptedMethod", "MethodInterceptor", "Mock", "control_of", "is_mock"]
