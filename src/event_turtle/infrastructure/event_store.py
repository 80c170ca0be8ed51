"""Append-only, per-turtle event store with publish-on-append.

Design invariants
-----------------
1.  Each turtle id owns an independent log.  ``append()`` adds to the
    logical end and ``get()`` returns events **oldest first**.
2.  The store is **append-only**: events are never modified or
    reordered.  ``clear()`` empties one log atomically and exists for
    test isolation and for starting a drawing over.
3.  ``append()`` awaits every registered subscriber, in registration
    order, before it returns.  Appends (and their fan-out) for one id
    are serialized by a per-id ``asyncio.Lock``; different ids may
    interleave.  ``append_all()`` holds the lock across a whole batch, so
    ``clear()`` and other writers never land between its events.
4.  A subscriber that raises never breaks the writer.  The failure is
    logged, counted and dead-lettered, and the subscriber is optionally
    unsubscribed.

A subscriber must not ``append()`` to the id it is being notified about:
the per-id lock is held for the whole fan-out and is not re-entrant.

One lock is kept per id ever written to; they are not reclaimed.

This module provides:

*  ``IEventStore``: the protocol.
*  ``InMemoryEventStore``: dict-of-lists implementation.  No
   persistence across restarts.
*  ``Subscription``: handle returned by ``subscribe()``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar, runtime_checkable

from event_turtle.core.ids import TurtleId
from event_turtle.domain.events import TurtleEvent
from event_turtle.observability.metrics import record_append, record_subscriber_error

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=TurtleEvent)

# Type alias for async subscriber callbacks.
SubscriberHandler = Callable[[TurtleId, TurtleEvent], Awaitable[None]]


@dataclass
class DeadLetter:
    """Record of a subscriber failure."""

    subscriber: str
    turtle_id: TurtleId
    event_type: str
    error: str
    timestamp: float = field(default_factory=time.monotonic)


class Subscription:
    """Registration handle for one subscriber.

    ``unsubscribe()`` takes effect for every append that starts
    afterwards.  A delivery already running is allowed to finish.
    """

    def __init__(
        self,
        store: InMemoryEventStore,
        handler: SubscriberHandler,
        name: str,
    ) -> None:
        self._store = store
        self.handler = handler
        self.name = name
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        """Deregister.  Idempotent."""
        if not self._active:
            return
        self._active = False
        self._store._remove(self)

    def __repr__(self) -> str:
        state = "active" if self._active else "unsubscribed"
        return f"Subscription({self.name!r}, {state})"


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

@runtime_checkable
class IEventStore(Protocol):
    """Per-id append-only event log with synchronous notification."""

    async def append(self, turtle_id: TurtleId, event: TurtleEvent) -> None:
        """Store *event* and notify every subscriber before returning."""
        ...

    async def append_all(
        self, turtle_id: TurtleId, events: Sequence[TurtleEvent]
    ) -> None:
        """Append *events* in order as one uninterrupted batch."""
        ...

    async def get(
        self,
        turtle_id: TurtleId,
        event_type: type[E] = TurtleEvent,  # type: ignore[assignment]
    ) -> list[E]:
        """Return the id's events of *event_type*, oldest first."""
        ...

    async def clear(self, turtle_id: TurtleId) -> None:
        """Reset the id's log to empty."""
        ...

    def subscribe(
        self,
        handler: SubscriberHandler,
        name: str | None = None,
    ) -> Subscription:
        """Register *handler* for every future ``(id, event)`` pair."""
        ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

class InMemoryEventStore:
    """Dict-of-lists event store.

    Parameters
    ----------
    unsubscribe_on_error
        When ``True``, a subscriber that raises is unsubscribed after its
        failure has been recorded.
    """

    def __init__(self, *, unsubscribe_on_error: bool = False) -> None:
        self._logs: dict[TurtleId, list[TurtleEvent]] = {}
        self._locks: dict[TurtleId, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._subscriptions: list[Subscription] = []
        self._unsubscribe_on_error = unsubscribe_on_error

        # Observability
        self._error_counts: dict[str, int] = defaultdict(int)
        self._dead_letters: list[DeadLetter] = []
        self._notifications_delivered: int = 0

    # -- Core API ----------------------------------------------------------

    async def append(self, turtle_id: TurtleId, event: TurtleEvent) -> None:
        """Append *event* to *turtle_id*'s log, then notify subscribers."""
        await self.append_all(turtle_id, (event,))

    async def append_all(
        self, turtle_id: TurtleId, events: Sequence[TurtleEvent]
    ) -> None:
        """Append and publish *events* one by one under a single lock hold.

        Each event is fanned out before the next is stored.
        """
        async with self._locks[turtle_id]:
            for event in events:
                self._logs.setdefault(turtle_id, []).append(event)
                record_append(type(event).__name__)
                logger.debug(
                    "Appended %s to turtle=%s", type(event).__name__, turtle_id,
                )
                await self._notify(turtle_id, event)

    async def get(
        self,
        turtle_id: TurtleId,
        event_type: type[E] = TurtleEvent,  # type: ignore[assignment]
    ) -> list[E]:
        """Return stored events of *event_type* for *turtle_id*, oldest first.

        Narrowing uses ``isinstance`` so ``StateChangedEvent`` selects all
        of its cases.  An unknown id yields an empty list.
        """
        return [
            e for e in self._logs.get(turtle_id, ())
            if isinstance(e, event_type)
        ]

    async def clear(self, turtle_id: TurtleId) -> None:
        """Empty *turtle_id*'s log.  Already-delivered events are untouched."""
        # A writer holding the lock has already created the log.
        if turtle_id not in self._logs:
            return
        async with self._locks[turtle_id]:
            dropped = len(self._logs.get(turtle_id, ()))
            self._logs[turtle_id] = []
        logger.info("Cleared %d events for turtle=%s", dropped, turtle_id)

    def subscribe(
        self,
        handler: SubscriberHandler,
        name: str | None = None,
    ) -> Subscription:
        """Register *handler*.  Subscribers are notified in this order."""
        sub = Subscription(
            self,
            handler,
            name or getattr(handler, "__qualname__", repr(handler)),
        )
        self._subscriptions.append(sub)
        logger.debug("Subscribed %s", sub.name)
        return sub

    # -- Internals ---------------------------------------------------------

    def _remove(self, sub: Subscription) -> None:
        try:
            self._subscriptions.remove(sub)
        except ValueError:
            return
        logger.debug("Unsubscribed %s", sub.name)

    async def _notify(self, turtle_id: TurtleId, event: TurtleEvent) -> None:
        for sub in list(self._subscriptions):
            # Unsubscribed by an earlier subscriber during this fan-out.
            if not sub.active:
                continue
            try:
                await sub.handler(turtle_id, event)
                self._notifications_delivered += 1
            except Exception as exc:
                self._error_counts[sub.name] += 1
                self._dead_letters.append(
                    DeadLetter(
                        subscriber=sub.name,
                        turtle_id=turtle_id,
                        event_type=type(event).__name__,
                        error=str(exc),
                    )
                )
                record_subscriber_error(sub.name)
                logger.exception(
                    "Subscriber error: subscriber=%s turtle=%s event=%s",
                    sub.name,
                    turtle_id,
                    type(event).__name__,
                )
                if self._unsubscribe_on_error:
                    logger.warning("Unsubscribing failing subscriber %s", sub.name)
                    sub.unsubscribe()

    # -- Observability -----------------------------------------------------

    def turtle_ids(self) -> list[TurtleId]:
        """Ids that have (or had) a log, in first-append order."""
        return list(self._logs)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def get_error_counts(self) -> dict[str, int]:
        """Return ``{subscriber_name: error_count}``."""
        return dict(self._error_counts)

    @property
    def dead_letters(self) -> list[DeadLetter]:
        """Read-only snapshot of subscriber failures."""
        return list(self._dead_letters)

    def clear_dead_letters(self) -> list[DeadLetter]:
        """Drain and return dead letters."""
        drained = self._dead_letters[:]
        self._dead_letters.clear()
        return drained

    @property
    def notifications_delivered(self) -> int:
        """Total successful subscriber deliveries."""
        return self._notifications_delivered

    def __len__(self) -> int:
        return sum(len(log) for log in self._logs.values())
