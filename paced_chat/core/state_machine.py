"""Dispatch state machine: pure transitions from (state, event) to (state, effects).

Two phases exist. ``IDLE`` means no dispatch is running and nothing is
queued. ``DISPATCHING`` means one gateway exchange (or the cooldown leading
into one) owns the engine; anything submitted meanwhile waits in the
``PendingQueue`` and is released one item per ``DispatchCompleted``.

No function here performs I/O or touches a clock, so every path can be
exercised directly in tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class Phase(str, Enum):
    IDLE = "idle"
    DISPATCHING = "dispatching"


@dataclass(frozen=True)
class PendingQueue:
    """Immutable FIFO of user texts waiting for the gateway."""

    items: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)

    def __iter__(self):
        return iter(self.items)

    def push(self, text: str) -> PendingQueue:
        return PendingQueue(self.items + (text,))

    def pop(self) -> tuple[str, PendingQueue]:
        if not self.items:
            raise IndexError("pop from empty PendingQueue")
        return self.items[0], PendingQueue(self.items[1:])

    def remove(self, index: int) -> tuple[str, PendingQueue]:
        if not 0 <= index < len(self.items):
            raise IndexError(f"no queued message at position {index}")
        text = self.items[index]
        return text, PendingQueue(self.items[:index] + self.items[index + 1:])


@dataclass(frozen=True)
class DispatchState:
    busy: bool = False
    pending: PendingQueue = field(default_factory=PendingQueue)

    @property
    def phase(self) -> Phase:
        return Phase.DISPATCHING if self.busy else Phase.IDLE


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Submitted:
    text: str


@dataclass(frozen=True)
class DispatchCompleted:
    pass


@dataclass(frozen=True)
class CancelRequested:
    index: int


Event = Union[Submitted, DispatchCompleted, CancelRequested]


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AppendUserMessage:
    text: str


@dataclass(frozen=True)
class BeginDispatch:
    text: str
    cooldown: bool = False  # wait the inter-turn delay first


@dataclass(frozen=True)
class Enqueued:
    text: str
    position: int


@dataclass(frozen=True)
class Cancelled:
    text: str


Effect = Union[AppendUserMessage, BeginDispatch, Enqueued, Cancelled]


def transition(state: DispatchState, event: Event) -> tuple[DispatchState, list[Effect]]:
    """Apply one event. Returns the new state and the effects to carry out."""
    if isinstance(event, Submitted):
        text = event.text.strip()
        if not text:
            return state, []
        if not state.busy:
            return (
                DispatchState(busy=True, pending=state.pending),
                [AppendUserMessage(text), BeginDispatch(text)],
            )
        pending = state.pending.push(text)
        return (
            DispatchState(busy=True, pending=pending),
            [AppendUserMessage(text), Enqueued(text, position=len(pending) - 1)],
        )

    if isinstance(event, DispatchCompleted):
        if not state.pending:
            return DispatchState(busy=False, pending=state.pending), []
        # Busy holds through the cooldown; later submissions queue behind this one.
        text, pending = state.pending.pop()
        return (
            DispatchState(busy=True, pending=pending),
            [BeginDispatch(text, cooldown=True)],
        )

    if isinstance(event, CancelRequested):
        try:
            text, pending = state.pending.remove(event.index)
        except IndexError:
            return state, []
        return DispatchState(busy=state.busy, pending=pending), [Cancelled(text)]

    raise TypeError(f"Unknown dispatch event: {event!r}")
