"""Collaborator types mocked by the test suite."""

from __future__ import annotations

import typing as t


class Repository(t.Protocol):
    """Key-value store used by :class:`Service`."""

    def get(self, key: str) -> str | None:
        """Return the value stored under *key*."""
        ...

    def put(self, key: str, value: str) -> None:
        """Store *value* under *key*."""
        ...

    def exists(self, key: str) -> bool:
        """Return ``True`` when *key* is stored."""
        ...

    def count(self) -> int:
        """Return the number of stored keys."""
        ...

    def ratio(self) -> float:
        """Return the fill ratio."""
        ...

    def find(self, *keys: str, limit: int = 10, **filters: object) -> list[str]:
        """Return stored keys among *keys*."""
        ...


class Clock(t.Protocol):
    """Time source used by :class:`Service`."""

    def now(self) -> float:
        """Return the current time."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Wait for *seconds*."""
        ...

    async def tick(self) -> int:
        """Return the tick counter."""
        ...


class Service:
    """Code under test combining a repository and a clock."""

    def __init__(self, repo: Repository, clock: Clock | None = None) -> None:
        self.repo = repo
        self.clock = clock

    def lookup(self, key: str) -> str:
        """Return the value for *key* or ``"missing"``."""
        value = self.repo.get(key)
        return "missing" if value is None else value

    def store(self, key: str, value: str) -> None:
        """Store *value* unless *key* exists."""
        if not self.repo.exists(key):
            self.repo.put(key, value)

    def stamp(self, key: str) -> None:
        """Store the current time under *key*."""
        assert self.clock is not None
        self.repo.put(key, str(self.clock.now()))


class InMemoryRepository:
    """Real repository used as a delegation target."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        """Return the value stored under *key*."""
        return self.data.get(key)

    def put(self, key: str, value: str) -> None:
        """Store *value* under *key*."""
        self.data[key] = value

    def exists(self, key: str) -> bool:
        """Return ``True`` when *key* is stored."""
        return key in self.data

    def count(self) -> int:
        """Return the number of stored keys."""
        return len(self.data)
