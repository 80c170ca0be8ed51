"""Aggregate ink usage from the stream of state changes.

Two aggregators scan the ``StateChangedEvent`` stream and keep a running
total of the distance moved:

*  ``InkUsedProcessor`` keeps ``(previous_total, current_total)`` and only
   emits when the total changes.  This is the one to use.
*  ``NaiveInkUsedProcessor`` emits the running total on every state
   change, so turns, pen and color changes and zero-length moves repeat
   the previous total.  It is kept to show the duplicate-notification
   problem and is tested separately.

Totals cover every turtle the processor observes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from event_turtle.core.ids import TurtleId
from event_turtle.domain.events import Moved, StateChangedEvent, TurtleEvent
from event_turtle.processors.base import EventProcessor
from event_turtle.processors.filters import state_changed_filter

logger = logging.getLogger(__name__)

TotalCallback = Callable[[float], None]


def accumulate(distance_so_far: float, event: StateChangedEvent) -> float:
    """Add the distance of a ``Moved`` event; anything else leaves it as is."""
    if isinstance(event, Moved):
        return distance_so_far + event.distance
    return distance_so_far


class _InkProcessor(EventProcessor):
    def __init__(self, on_total: TotalCallback | None = None) -> None:
        super().__init__()
        self.totals: list[float] = []
        self._on_total = on_total

    def select(self, event: TurtleEvent) -> StateChangedEvent | None:
        return state_changed_filter(event)

    def _emit(self, total: float) -> None:
        logger.info("[ink used]: %0.2f", total)
        self.totals.append(total)
        if self._on_total is not None:
            self._on_total(total)


class NaiveInkUsedProcessor(_InkProcessor):
    """Emits on every state change, duplicates included."""

    name = "ink_used_naive"

    def __init__(self, on_total: TotalCallback | None = None) -> None:
        super().__init__(on_total)
        self._total = 0.0

    @property
    def total(self) -> float:
        return self._total

    async def process(self, turtle_id: TurtleId, event: StateChangedEvent) -> None:
        self._total = accumulate(self._total, event)
        self._emit(self._total)


class InkUsedProcessor(_InkProcessor):
    """Emits only when the running total changes."""

    name = "ink_used"

    def __init__(self, on_total: TotalCallback | None = None) -> None:
        super().__init__(on_total)
        self._scan: tuple[float, float] = (0.0, 0.0)

    @property
    def total(self) -> float:
        return self._scan[1]

    async def process(self, turtle_id: TurtleId, event: StateChangedEvent) -> None:
        _, current = self._scan
        self._scan = (current, accumulate(current, event))
        previous, current = self._scan
        if current != previous:
            self._emit(current)
