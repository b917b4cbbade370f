"""Unit tests for :mod:`recmox.config`."""

from __future__ import annotations

import pytest

from recmox import ControlConfig, MockControl, MockType, expect
from recmox.config import (
    RECMOX_MATCH_BY_IDENTITY_ENV,
    RECMOX_THREAD_SAFE_ENV,
    RECMOX_THREAD_SAFETY_CHECK_ENV,
    parse_bool,
)
from recmox.unittests._doubles import Repository


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1", True),
        ("TRUE", True),
        (" yes ", True),
        ("on", True),
        ("0", False),
        ("False", False),
        ("no", False),
        ("", False),
    ],
)
def test_parse_bool(raw: str, *, expected: bool) -> None:
    """Common spellings of boolean flags are accepted."""
    assert parse_bool(raw, name="FLAG") is expected


def test_parse_bool_rejects_other_values() -> None:
    """Unknown spellings are reported with the flag name."""
    with pytest.raises(ValueError, match="FLAG must be a boolean flag"):
        parse_bool("maybe", name="FLAG")


def test_defaults() -> None:
    """A plain configuration enables nothing."""
    config = ControlConfig()
    assert config.mock_type is MockType.DEFAULT
    assert not config.thread_safe
    assert not config.check_thread
    assert not config.match_by_identity
    assert config.max_journal_entries is None


def test_from_environ() -> None:
    """RECMOX_* variables fill the matching settings."""
    config = ControlConfig.from_environ(
        {
            RECMOX_THREAD_SAFE_ENV: "1",
            RECMOX_THREAD_SAFETY_CHECK_ENV: "true",
            RECMOX_MATCH_BY_IDENTITY_ENV: "off",
            "UNRELATED": "x",
        }
    )
    assert config.thread_safe
    assert config.check_thread
    assert not config.match_by_identity


def test_from_environ_overrides_win() -> None:
    """Keyword overrides take precedence over the environment."""
    config = ControlConfig.from_environ(
        {RECMOX_THREAD_SAFE_ENV: "1"},
        thread_safe=False,
        mock_type=MockType.STRICT,
    )
    assert not config.thread_safe
    assert config.mock_type is MockType.STRICT


def test_from_environ_reads_os_environ(monkeypatch: pytest.MonkeyPatch) -> None:
    """The process environment is used by default."""
    monkeypatch.setenv(RECMOX_THREAD_SAFETY_CHECK_ENV, "yes")
    assert ControlConfig.from_environ().check_thread


def test_from_environ_rejects_invalid_flags() -> None:
    """Invalid values name the offending variable."""
    with pytest.raises(ValueError, match=RECMOX_THREAD_SAFE_ENV):
        ControlConfig.from_environ({RECMOX_THREAD_SAFE_ENV: "sometimes"})


@pytest.mark.parametrize("bound", [0, -1])
def test_journal_bound_must_be_positive(bound: int) -> None:
    """A journal needs room for at least one entry."""
    with pytest.raises(ValueError, match="max_journal_entries"):
        ControlConfig(max_journal_entries=bound)


def test_config_thread_safe_flag_reaches_control() -> None:
    """Controls start thread safe when configured so."""
    assert MockControl(ControlConfig(thread_safe=True)).is_thread_safe


def test_match_by_identity() -> None:
    """Identity matching distinguishes equal but distinct arguments."""
    key = "".join(["k", "e", "y"])
    control = MockControl(ControlConfig(match_by_identity=True))
    repo = control.create_mock(Repository)
    expect(repo.get(key)).and_return("v")
    control.replay()
    assert repo.get(key) == "v"
    control.verify()
