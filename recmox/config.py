"""Configuration passed to mock controls at creation time."""

from __future__ import annotations

import dataclasses as dc
import enum
import os
import typing as t

RECMOX_THREAD_SAFE_ENV = "RECMOX_THREAD_SAFE"
RECMOX_THREAD_SAFETY_CHECK_ENV = "RECMOX_THREAD_SAFETY_CHECK"
RECMOX_MATCH_BY_IDENTITY_ENV = "RECMOX_MATCH_BY_IDENTITY"

_TRUE_VALUES: t.Final = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES: t.Final = frozenset({"0", "false", "no", "off", ""})


class MockType(enum.StrEnum):
    """Policy applied to unexpected calls and call ordering."""

    DEFAULT = "DEFAULT"
    NICE = "NICE"
    STRICT = "STRICT"


def parse_bool(value: str, *, name: str) -> bool:
    """Interpret *value* as a boolean flag named *name*."""
    folded = value.strip().casefold()
    if folded in _TRUE_VALUES:
        return True
    if folded in _FALSE_VALUES:
        return False
    msg = f"{name} must be a boolean flag, got {value!r}"
    raise ValueError(msg)


@dc.dataclass(frozen=True, slots=True)
class ControlConfig:
    """Settings for a :class:`~recmox.control.MockControl`.

    Parameters
    ----------
    mock_type:
        Initial policy. ``STRICT`` enables call order checking, ``NICE``
        returns default values for unexpected calls.
    thread_safe:
        Serialise replayed calls with a lock so that several threads may use
        the mocks concurrently.
    check_thread:
        Fail with :class:`~recmox.errors.ConcurrencyError` when a replayed call
        arrives from a thread other than the creating one. Ignored while
        ``thread_safe`` is set.
    match_by_identity:
        Compare plain recorded arguments with ``is`` instead of ``==``.
    max_journal_entries:
        Maximum number of replayed invocations kept in the journal; ``None``
        keeps them all.
    """

    mock_type: MockType = MockType.DEFAULT
    thread_safe: bool = False
    check_thread: bool = False
    match_by_identity: bool = False
    max_journal_entries: int | None = None

    def __post_init__(self) -> None:
        """Validate the journal bound."""
        if self.max_journal_entries is not None and self.max_journal_entries <= 0:
            msg = "max_journal_entries must be positive"
            raise ValueError(msg)

    @classmethod
    def from_environ(
        cls,
        environ: t.Mapping[str, str] | None = None,
        **overrides: t.Any,  # noqa: ANN401 - forwarded to the dataclass
    ) -> ControlConfig:
        """Build a configuration from ``RECMOX_*`` variables in *environ*.

        Explicit keyword *overrides* win over the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, t.Any] = {}
        for field, var in (
            ("thread_safe", RECMOX_THREAD_SAFE_ENV),
            ("check_thread", RECMOX_THREAD_SAFETY_CHECK_ENV),
            ("match_by_identity", RECMOX_MATCH_BY_IDENTITY_ENV),
        ):
            raw = env.get(var)
            if raw is not None:
                values[field] = parse_bool(raw, name=var)
        values.update(overrides)
        return cls(**values)


__all__ = [
    "RECMOX_MATCH_BY_IDENTITY_ENV",
    "RECMOX_THREAD_SAFETY_CHECK_ENV",
    "RECMOX_THREAD_SAFE_ENV",
    "ControlConfig",
    "MockType",
    "parse_bool",
]
