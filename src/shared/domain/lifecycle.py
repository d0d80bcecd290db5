"""Linear lifecycle state machines.

A ``StatusFlow`` is an immutable description of one entity lifecycle:
a forward chain where every state has at most one successor, a set of
terminal states, and a single non-linear *reject* edge into the
cancelled state.  It only looks up tables and holds no
request state, so one instance is shared between requests and threads.

Reaching the end of the chain is **not** an error: ``advance`` returns a
``Transition`` with ``changed=False`` and the caller reports it as
informational ("already at final status").
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence


class InvalidTransition(Exception):
    """A transition was requested from a state that does not allow it."""


class TransitionOutcome(StrEnum):
    ADVANCED = "advanced"
    REJECTED = "rejected"
    CONFIRMED = "confirmed"
    FINAL = "final"


@dataclass(frozen=True)
class Transition:
    """Result of a lifecycle operation."""

    previous: str
    current: str
    outcome: TransitionOutcome

    @property
    def changed(self) -> bool:
        return self.previous != self.current


@dataclass(frozen=True)
class StatusView:
    """What a progress widget needs: where we are and what comes next."""

    status: str
    label: str
    icon: str
    next_status: Optional[str]
    next_label: Optional[str]
    is_terminal: bool


class StatusFlow:
    """Forward chain + reject edge for one entity type."""

    def __init__(
        self,
        chain: Sequence[str],
        *,
        cancelled: str,
        rejectable: Iterable[str],
        labels: Mapping[str, str],
        icons: Mapping[str, str],
        terminal: Iterable[str] = (),
    ) -> None:
        if len(chain) < 2:
            raise ValueError("A status chain needs at least two states.")
        self._chain = tuple(str(s) for s in chain)
        self._next = MappingProxyType(dict(zip(self._chain, self._chain[1:])))
        self._initial = self._chain[0]
        self._cancelled = str(cancelled)
        self._terminal = frozenset({self._chain[-1], self._cancelled, *map(str, terminal)})
        self._rejectable = frozenset(str(s) for s in rejectable)
        self._labels = MappingProxyType({str(k): v for k, v in labels.items()})
        self._icons = MappingProxyType({str(k): v for k, v in icons.items()})

        overlap = self._rejectable & self._terminal
        if overlap:
            raise ValueError(f"Terminal states cannot be rejectable: {sorted(overlap)}")

    # Immutable and shared: serializer fields copy their constructor
    # arguments on every instantiation, and the proxied tables cannot be copied.
    def __copy__(self) -> StatusFlow:
        return self

    def __deepcopy__(self, memo: dict) -> StatusFlow:
        return self

    # ------------------------------------------------------------------
    # Table access
    # ------------------------------------------------------------------

    @property
    def initial(self) -> str:
        return self._initial

    @property
    def final(self) -> str:
        return self._chain[-1]

    @property
    def cancelled(self) -> str:
        return self._cancelled

    @property
    def chain(self) -> tuple[str, ...]:
        return self._chain

    @property
    def next_map(self) -> Mapping[str, str]:
        return self._next

    @property
    def terminal_states(self) -> frozenset[str]:
        return self._terminal

    @property
    def rejectable_states(self) -> frozenset[str]:
        return self._rejectable

    def next_status(self, status: str) -> Optional[str]:
        """Successor of *status* on the forward chain, or ``None``."""
        return self._next.get(str(status))

    def is_terminal(self, status: str) -> bool:
        return str(status) in self._terminal

    def label(self, status: str) -> str:
        return self._labels.get(str(status), str(status).replace("_", " ").title())

    def icon(self, status: str) -> str:
        return self._icons.get(str(status), "")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def advance(self, status: str) -> Transition:
        """Move one step forward, or report that there is nowhere to go."""
        current = str(status)
        nxt = self._next.get(current)
        if nxt is None:
            return Transition(current, current, TransitionOutcome.FINAL)
        return Transition(current, nxt, TransitionOutcome.ADVANCED)

    def can_reject(self, status: str) -> bool:
        return str(status) in self._rejectable

    def reject(self, status: str) -> Transition:
        current = str(status)
        if current not in self._rejectable:
            raise InvalidTransition(f"Cannot reject from status {current}.")
        return Transition(current, self._cancelled, TransitionOutcome.REJECTED)

    def can_accept(self, status: str, assignee_id: object | None) -> bool:
        """Assignment is open only while pending and nobody holds the job."""
        return str(status) == self._initial and not assignee_id

    def describe(self, status: str) -> StatusView:
        current = str(status)
        nxt = self._next.get(current)
        return StatusView(
            status=current,
            label=self.label(current),
            icon=self.icon(current),
            next_status=nxt,
            next_label=self.label(nxt) if nxt else None,
            is_terminal=current in self._terminal,
        )
