"""Write side: turn a command into events by replaying history.

The handler keeps no state of its own.  For every command it loads the
turtle's ``StateChangedEvent`` history, folds it from ``INITIAL_STATE``
to get the state before the command, derives the new events and
appends them.  The ``StateChangedEvent`` is always appended first, then
a ``MovedEvent`` if the position changed.

Every command replays the full history (no snapshots), so handling is
O(history length).  That is a known scalability limit of this design, as
is the per-id lock map, which keeps one entry for every id ever handled.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable

from event_turtle.core.enums import PenState
from event_turtle.core.errors import ReplayError
from event_turtle.core.ids import TurtleId
from event_turtle.domain import turtle
from event_turtle.domain.commands import (
    Move,
    PenDown,
    PenUp,
    SetColor,
    Turn,
    TurtleCommand,
    TurtleCommandAction,
)
from event_turtle.domain.events import (
    ColorChanged,
    Moved,
    MovedEvent,
    PenWentDown,
    PenWentUp,
    StateChangedEvent,
    Turned,
    TurtleEvent,
)
from event_turtle.domain.turtle import INITIAL_STATE, Log, TurtleState, no_log
from event_turtle.infrastructure.event_store import IEventStore
from event_turtle.observability.logger import bind_turtle_id, get_logger
from event_turtle.observability.metrics import record_command

logger = logging.getLogger(__name__)

GetStateChangedEvents = Callable[[TurtleId], Awaitable[list[StateChangedEvent]]]
AppendTurtleEvents = Callable[[TurtleId, list[TurtleEvent]], Awaitable[None]]


def apply_event(log: Log, state: TurtleState, event: object) -> TurtleState:
    """Apply one state change.  Raises ``ReplayError`` for anything else."""
    if isinstance(event, Moved):
        return turtle.move(log, event.distance, state)
    if isinstance(event, Turned):
        return turtle.turn(log, event.angle, state)
    if isinstance(event, PenWentUp):
        return turtle.pen_up(log, state)
    if isinstance(event, PenWentDown):
        return turtle.pen_down(log, state)
    if isinstance(event, ColorChanged):
        return turtle.set_color(log, event.color, state)
    raise ReplayError(event)


def replay(
    events: Iterable[StateChangedEvent],
    initial: TurtleState = INITIAL_STATE,
) -> TurtleState:
    """Rebuild state by folding *events* over *initial*, without logging."""
    state = initial
    for event in events:
        state = apply_event(no_log, state, event)
    return state


def event_from_action(action: TurtleCommandAction) -> StateChangedEvent:
    """Map an action to its one corresponding state change."""
    match action:
        case Move(distance=distance):
            return Moved(distance)
        case Turn(angle=angle):
            return Turned(angle)
        case PenUp():
            return PenWentUp()
        case PenDown():
            return PenWentDown()
        case SetColor(color=color):
            return ColorChanged(color)
    raise TypeError(f"Unknown action: {action!r}")


def events_from_command(
    log: Log,
    command: TurtleCommand,
    state_before: TurtleState,
) -> list[TurtleEvent]:
    """Derive the events for *command* given the state before it."""
    state_changed = event_from_action(command.action)
    state_after = apply_event(log, state_before, state_changed)

    events: list[TurtleEvent] = [state_changed]
    if state_before.position != state_after.position:
        pen_color = (
            state_before.color
            if state_before.pen_state is PenState.DOWN
            else None
        )
        events.append(
            MovedEvent(
                start_pos=state_before.position,
                end_pos=state_after.position,
                pen_color=pen_color,
            )
        )
    return events


async def handle_command(
    log: Log,
    get_events: GetStateChangedEvents,
    append_events: AppendTurtleEvents,
    command: TurtleCommand,
) -> None:
    """Process one command.

    1. Load the turtle's state changes, oldest first.
    2. Replay them silently to get the state before the command.
    3. Derive new events using *log* for side-effect messages.
    4. Append them in order as one batch.
    """
    history = await get_events(command.turtle_id)
    state_before = replay(history)
    events = events_from_command(log, command, state_before)
    await append_events(command.turtle_id, events)


class CommandHandler:
    """Binds ``handle_command`` to an event store.

    Commands for the same turtle are handled one at a time, so the
    read-replay-append sequence always sees the previous command's
    events.  ``clear`` waits for a running command on the same turtle.
    Different turtles are handled concurrently.
    """

    def __init__(self, store: IEventStore, log: Log | None = None) -> None:
        self._store = store
        self._log = log if log is not None else get_logger("event_turtle.turtle").info
        self._locks: dict[TurtleId, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def _state_changed_events(self, turtle_id: TurtleId) -> list[StateChangedEvent]:
        return await self._store.get(turtle_id, StateChangedEvent)

    async def handle(self, command: TurtleCommand) -> None:
        async with self._locks[command.turtle_id]:
            with bind_turtle_id(command.turtle_id):
                logger.debug("Handling %s", command.action)
                await handle_command(
                    self._log,
                    self._state_changed_events,
                    self._store.append_all,
                    command,
                )
        record_command(command.action.name)

    async def clear(self, turtle_id: TurtleId) -> None:
        """Drop *turtle_id*'s history once no command for it is running."""
        async with self._locks[turtle_id]:
            await self._store.clear(turtle_id)

    async def state_of(self, turtle_id: TurtleId) -> TurtleState:
        """Current state of *turtle_id*, rebuilt from its history."""
        return replay(await self._state_changed_events(turtle_id))
