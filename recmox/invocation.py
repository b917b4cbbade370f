"""Method identity and intercepted call values."""

from __future__ import annotations

import dataclasses as dc
import inspect
import types
import typing as t

_EMPTY = inspect.Signature.empty

# Zero values returned by nice mocks, keyed by return annotation.
_DEFAULT_RETURNS: dict[object, object] = {
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
    "bool": False,
    "int": 0,
    "float": 0.0,
    "complex": 0j,
}


class Argument(t.NamedTuple):
    """One normalised argument of a call."""

    label: str
    value: object
    keyword: bool = False


def _signature_of(func: t.Callable[..., object]) -> inspect.Signature | None:
    """Return the signature of *func*, resolving string annotations if possible."""
    try:
        return inspect.signature(func, eval_str=True)
    except NameError:
        # Unresolvable forward references stay as strings.
        return inspect.signature(func)
    except (TypeError, ValueError):
        return None


def _drops_receiver(raw: object) -> bool:
    """Return ``True`` when *raw* receives the instance as first parameter."""
    return not isinstance(raw, staticmethod | classmethod)


@dc.dataclass(frozen=True, slots=True)
class MethodSignature:
    """Identity of a mockable method: declaring type plus name.

    Two signatures are equal when they name the same method on the same type;
    the parameter list only drives argument binding.
    """

    owner: type | None
    name: str
    signature: inspect.Signature | None = dc.field(default=None, compare=False)
    is_async: bool = dc.field(default=False, compare=False)

    @classmethod
    def from_attribute(cls, owner: type | None, name: str) -> MethodSignature:
        """Describe method *name* of *owner*.

        Raises
        ------
        AttributeError
            When *owner* has no callable attribute called *name*.
        """
        if owner is None:
            return cls(None, name)
        raw = inspect.getattr_static(owner, name)
        func = getattr(owner, name)
        if not callable(func):
            msg = f"{owner.__qualname__}.{name} is not a method"
            raise AttributeError(msg)
        sig = _signature_of(func)
        if sig is not None and _drops_receiver(raw) and sig.parameters:
            params = list(sig.parameters.values())[1:]
            sig = sig.replace(parameters=params)
        return cls(owner, name, sig, inspect.iscoroutinefunction(func))

    @property
    def qualname(self) -> str:
        """Return ``Owner.name`` for messages."""
        if self.owner is None:
            return self.name
        return f"{self.owner.__qualname__}.{self.name}"

    @property
    def return_annotation(self) -> object:
        """Return the declared return annotation, or ``Signature.empty``."""
        if self.signature is None:
            return _EMPTY
        return self.signature.return_annotation

    @property
    def is_void(self) -> bool:
        """Return ``True`` when the method is declared to return ``None``."""
        annotation = self.return_annotation
        return annotation is None or annotation is type(None) or annotation == "None"

    @property
    def returns_value(self) -> bool:
        """Return ``True`` when a non-``None`` return type is declared."""
        return self.return_annotation is not _EMPTY and not self.is_void

    def default_return(self) -> object:
        """Return the zero value matching the declared return type."""
        annotation = self.return_annotation
        try:
            return _DEFAULT_RETURNS.get(annotation)
        except TypeError:  # unhashable annotation objects
            return None

    def bind(
        self, args: t.Sequence[object], kwargs: t.Mapping[str, object]
    ) -> tuple[Argument, ...]:
        """Normalise a call into ordered :class:`Argument` entries.

        Declared parameters appear in declaration order with defaults applied,
        ``*args`` expand positionally and ``**kwargs`` expand by sorted key.
        """
        if self.signature is None:
            positional = [Argument(f"#{i}", v) for i, v in enumerate(args)]
            named = [Argument(k, kwargs[k], keyword=True) for k in sorted(kwargs)]
            return (*positional, *named)
        try:
            bound = self.signature.bind(*args, **kwargs)
        except TypeError as exc:
            msg = f"{self.qualname}(): {exc}"
            raise TypeError(msg) from exc
        bound.apply_defaults()
        entries: list[Argument] = []
        for name, param in self.signature.parameters.items():
            value = bound.arguments[name]
            if param.kind is inspect.Parameter.VAR_POSITIONAL:
                entries.extend(
                    Argument(f"{name}[{index}]", item)
                    for index, item in enumerate(t.cast("tuple[object, ...]", value))
                )
            elif param.kind is inspect.Parameter.VAR_KEYWORD:
                extra = t.cast("dict[str, object]", value)
                entries.extend(
                    Argument(key, extra[key], keyword=True) for key in sorted(extra)
                )
            else:
                keyword = param.kind is inspect.Parameter.KEYWORD_ONLY
                entries.append(Argument(name, value, keyword=keyword))
        return tuple(entries)


@dc.dataclass(frozen=True, slots=True, eq=False)
class Invocation:
    """A single intercepted call on a mock."""

    receiver: object
    method: MethodSignature
    arguments: tuple[Argument, ...]
    args: tuple[object, ...] = ()
    kwargs: t.Mapping[str, object] = dc.field(
        default_factory=lambda: types.MappingProxyType({})
    )

    @classmethod
    def create(
        cls,
        receiver: object,
        method: MethodSignature,
        args: t.Sequence[object] = (),
        kwargs: t.Mapping[str, object] | None = None,
    ) -> Invocation:
        """Bind *args* and *kwargs* against *method* and build an invocation."""
        call_kwargs = dict(kwargs or {})
        return cls(
            receiver=receiver,
            method=method,
            arguments=method.bind(args, call_kwargs),
            args=tuple(args),
            kwargs=types.MappingProxyType(call_kwargs),
        )

    @property
    def values(self) -> tuple[object, ...]:
        """Return the normalised argument values."""
        return tuple(arg.value for arg in self.arguments)

    @property
    def labels(self) -> tuple[str, ...]:
        """Return the normalised argument labels."""
        return tuple(arg.label for arg in self.arguments)


def receiver_label(receiver: object, method: MethodSignature) -> str:
    """Return the name used for *receiver* in diagnostics."""
    name = getattr(receiver, "_recmox_name", None)
    if name:
        return str(name)
    if method.owner is not None:
        return method.owner.__qualname__
    return type(receiver).__name__


def format_call(
    receiver: object,
    method: MethodSignature,
    entries: t.Iterable[tuple[str, str, bool]],
) -> str:
    """Render ``label.method(a, b, key=c)`` from rendered argument entries."""
    parts = [f"{label}={text}" if keyword else text for label, text, keyword in entries]
    return f"{receiver_label(receiver, method)}.{method.name}({', '.join(parts)})"


def describe_invocation(invocation: Invocation) -> str:
    """Return a readable representation of *invocation*."""
    return format_call(
        invocation.receiver,
        invocation.method,
        ((arg.label, repr(arg.value), arg.keyword) for arg in invocation.arguments),
    )


__all__ = [
    "Argument",
    "Invocation",
    "MethodSignature",
    "describe_invocation",
    "format_call",
    "receiver_label",
]
