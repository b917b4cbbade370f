"""Populate annotated attributes of a test object with fresh mocks."""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as t

from .config import MockType
from .errors import UsageError
from .support import MockSupport

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class MockField:
    """Marker declaring that an attribute should receive a mock."""

    name: str | None = None
    mock_type: MockType | None = None
    target: type | None = None


def mock_field(
    *,
    name: str | None = None,
    mock_type: MockType | None = None,
    target: type | None = None,
) -> t.Any:  # noqa: ANN401
    """Declare a class attribute to be filled by :func:`inject_mocks`.

    >>> class TestService:
    ...     repo: Repository = mock_field(mock_type=MockType.STRICT)
    """
    return MockField(name=name, mock_type=mock_type, target=target)


def _annotations(cls: type) -> dict[str, object]:
    try:
        return t.get_type_hints(cls)
    except (NameError, TypeError):
        return dict(vars(cls).get("__annotations__", {}))


def _resolve_target(owner: type, attr: str, field: MockField) -> type:
    if field.target is not None:
        return field.target
    annotation = _annotations(owner).get(attr)
    if isinstance(annotation, type):
        return annotation
    msg = (
        f"Cannot infer the mocked type of {owner.__qualname__}.{attr} "
        f"from annotation {annotation!r}; pass target= to mock_field()"
    )
    raise UsageError(msg)


def inject_mocks(obj: object, support: MockSupport | None = None) -> dict[str, t.Any]:
    """Assign a new mock to every :func:`mock_field` attribute of *obj*.

    Parameters
    ----------
    obj:
        Instance whose class (or base classes) declare mock fields. When
        *obj* is itself a :class:`MockSupport` its controls are used.
    support:
        Registry receiving the created controls. Defaults to *obj* when it
        is a :class:`MockSupport`, otherwise a new one.

    Returns
    -------
    dict[str, Any]
        Mocks keyed by attribute name.
    """
    if support is None:
        support = obj if isinstance(obj, MockSupport) else MockSupport()
    created: dict[str, t.Any] = {}
    seen: set[str] = set()
    for cls in type(obj).__mro__:
        for attr, value in vars(cls).items():
            # Subclass attributes shadow those of base classes.
            if attr in seen:
                continue
            seen.add(attr)
            if not isinstance(value, MockField):
                continue
            target = _resolve_target(cls, attr, value)
            mock_type = value.mock_type or support.config.mock_type
            mock = support.create_mock(target, name=value.name, mock_type=mock_type)
            setattr(obj, attr, mock)
            created[attr] = mock
            logger.debug("Injected %r into %s", mock, attr)
    return created


__all__ = ["MockField", "inject_mocks", "mock_field"]
