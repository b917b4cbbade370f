"""Ordered storage and lookup of recorded expectations."""

from __future__ import annotations

import dataclasses as dc
import typing as t

from .errors import LifecycleError
from .verifiers import CountVerifier

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .expectations import Expectation
    from .invocation import Invocation

_REQUIRED: t.Final = 0
_OPTIONAL: t.Final = 1
_STUB: t.Final = 2
_NO_MATCH: t.Final = 3


@dc.dataclass(slots=True, eq=False)
class OrderGroup:
    """Expectations that must be satisfied in the order they were recorded.

    ``position`` points at the earliest member still reachable. Members before
    it are closed. Starting at ``position``, a member is reachable when every
    member between it and ``position`` has reached its minimum.
    """

    name: str
    members: list[Expectation] = dc.field(default_factory=list)
    position: int = 0

    def window(self) -> t.Iterator[Expectation]:
        """Yield the members that may currently serve a call."""
        for exp in self.members[self.position :]:
            yield exp
            if not exp.is_satisfied:
                return

    def heads(self) -> list[Expectation]:
        """Return reachable members that still accept calls."""
        return [exp for exp in self.window() if not exp.is_exhausted]

    def advance_to(self, expectation: Expectation) -> None:
        """Close every member recorded before *expectation*."""
        self.position = self.members.index(expectation)

    def remove(self, expectation: Expectation) -> None:
        """Drop *expectation* from the group, keeping the position stable."""
        index = self.members.index(expectation)
        del self.members[index]
        if index < self.position:
            self.position -= 1


class ExpectationRepository:
    """Expectations of one control, in recording order."""

    def __init__(self) -> None:
        self._expectations: list[Expectation] = []
        self._groups: dict[str, OrderGroup] = {}
        self._frozen = False

    def __len__(self) -> int:
        """Return the number of recorded expectations."""
        return len(self._expectations)

    def __iter__(self) -> t.Iterator[Expectation]:
        """Iterate over expectations in recording order."""
        return iter(self._expectations)

    @property
    def frozen(self) -> bool:
        """Return ``True`` while the recorded set is closed for replay."""
        return self._frozen

    @property
    def groups(self) -> t.Mapping[str, OrderGroup]:
        """Return the order groups by name."""
        return self._groups

    def is_empty(self) -> bool:
        """Return ``True`` when nothing has been recorded."""
        return not self._expectations

    def add(self, expectation: Expectation) -> None:
        """Append *expectation*, joining its order group if it has one."""
        if self._frozen:
            msg = "Cannot add expectations during replay; reset the control first"
            raise LifecycleError(msg)
        self._expectations.append(expectation)
        if expectation.group is not None:
            self._group(expectation.group).members.append(expectation)

    def regroup(self, expectation: Expectation, group: str | None) -> None:
        """Move *expectation* into *group* (``None`` makes it unordered)."""
        if self._frozen:
            msg = "Cannot change call ordering during replay"
            raise LifecycleError(msg)
        if expectation.group is not None:
            self._groups[expectation.group].remove(expectation)
        expectation.group = group
        if group is not None:
            self._group(group).members.append(expectation)

    def freeze(self) -> None:
        """Close the recorded set for replay."""
        self._frozen = True

    def reset(self) -> None:
        """Forget every expectation and order group."""
        self._expectations.clear()
        self._groups.clear()
        self._frozen = False

    def _group(self, name: str) -> OrderGroup:
        group = self._groups.get(name)
        if group is None:
            group = self._groups[name] = OrderGroup(name)
        return group

    def _reachable(self) -> set[int]:
        return {
            id(exp) for group in self._groups.values() for exp in group.window()
        }

    @staticmethod
    def _rank(expectation: Expectation) -> int:
        if not expectation.is_satisfied:
            return _REQUIRED
        return _STUB if expectation.stub else _OPTIONAL

    def find_match(self, invocation: Invocation) -> Expectation | None:
        """Return the expectation that should serve *invocation*.

        Candidates are scanned in recording order. Within an order group only
        the first matching reachable member is a candidate. Expectations still
        below their minimum win over optional ones, which win over stubs.
        """
        reachable = self._reachable()
        seen_groups: set[str] = set()
        best: Expectation | None = None
        best_rank = _NO_MATCH
        for exp in self._expectations:
            if exp.group is not None and (
                exp.group in seen_groups or id(exp) not in reachable
            ):
                continue
            if exp.is_exhausted or not exp.matches(invocation):
                continue
            if exp.group is not None:
                seen_groups.add(exp.group)
            rank = self._rank(exp)
            if rank < best_rank:
                best, best_rank = exp, rank
            if rank == _REQUIRED:
                break
        if best is not None and best.group is not None:
            self._groups[best.group].advance_to(best)
        return best

    def blocked_by_order(self, invocation: Invocation) -> list[Expectation]:
        """Return grouped expectations *invocation* would match out of order."""
        reachable = self._reachable()
        return [
            exp
            for exp in self._expectations
            if exp.group is not None
            and id(exp) not in reachable
            and not exp.is_exhausted
            and exp.matches(invocation)
        ]

    def heads(self) -> list[Expectation]:
        """Return the next expected member of every order group."""
        return [exp for group in self._groups.values() for exp in group.heads()]

    def outstanding(self) -> list[Expectation]:
        """Return non-stub expectations that still accept calls."""
        return [
            exp for exp in self._expectations if not exp.stub and not exp.is_exhausted
        ]

    def unmet(self) -> list[Expectation]:
        """Return expectations below their minimum, in recording order."""
        return [exp for exp in self._expectations if not exp.is_satisfied]

    def verify(self) -> None:
        """Raise listing every expectation that was called too few times."""
        CountVerifier().verify(self.unmet())


__all__ = ["ExpectationRepository", "OrderGroup"]
