"""Base class for read-side event processors.

Lifecycle
---------
``start(store)`` subscribes the processor (``SUBSCRIBED``).  The first
event that passes its filter moves it to ``ACTIVE``.  ``stop()``
unsubscribes it (``UNSUBSCRIBED``), which is terminal: a stopped
processor cannot be started again.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from event_turtle.core.enums import ProcessorState
from event_turtle.core.errors import ProcessorStateError
from event_turtle.core.ids import TurtleId
from event_turtle.domain.events import TurtleEvent
from event_turtle.infrastructure.event_store import IEventStore, Subscription
from event_turtle.processors.filters import turtle_filter

logger = logging.getLogger(__name__)


class EventProcessor:
    """Subscribe to a store, filter, and process matching events.

    Subclasses set ``name`` and implement ``select`` (the second filter
    stage, after ``turtle_filter``) and ``process``.
    """

    name = "event_processor"

    def __init__(self) -> None:
        self._state: ProcessorState | None = None
        self._subscription: Subscription | None = None
        self.events_processed: int = 0

    @property
    def state(self) -> ProcessorState | None:
        """``None`` until started."""
        # The store may have dropped a failing processor on its own.
        if self._subscription is not None and not self._subscription.active:
            self._state = ProcessorState.UNSUBSCRIBED
        return self._state

    # -- Lifecycle ---------------------------------------------------------

    def start(self, store: IEventStore) -> Subscription:
        if self._state is not None:
            raise ProcessorStateError(
                f"{self.name} cannot start from state {self._state.value}"
            )
        self._subscription = store.subscribe(self._receive, name=self.name)
        self._state = ProcessorState.SUBSCRIBED
        logger.debug("%s subscribed", self.name)
        return self._subscription

    def stop(self) -> None:
        if self._state is None:
            raise ProcessorStateError(f"{self.name} was never started")
        if self._state is ProcessorState.UNSUBSCRIBED:
            return
        assert self._subscription is not None
        self._subscription.unsubscribe()
        self._state = ProcessorState.UNSUBSCRIBED
        logger.debug("%s unsubscribed", self.name)

    @contextmanager
    def attached(self, store: IEventStore) -> Iterator["EventProcessor"]:
        """Run the processor for the duration of a ``with`` block."""
        self.start(store)
        try:
            yield self
        finally:
            self.stop()

    # -- Event flow --------------------------------------------------------

    async def _receive(self, turtle_id: TurtleId, event: object) -> None:
        turtle_event = turtle_filter(event)
        if turtle_event is None:
            return
        selected = self.select(turtle_event)
        if selected is None:
            return
        if self._state is ProcessorState.SUBSCRIBED:
            self._state = ProcessorState.ACTIVE
        await self.process(turtle_id, selected)
        self.events_processed += 1

    def select(self, event: TurtleEvent) -> Any | None:
        raise NotImplementedError

    async def process(self, turtle_id: TurtleId, event: Any) -> None:
        raise NotImplementedError
