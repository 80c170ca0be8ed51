"""Tests for the write side (``command_handler.py``).

Covers:
- action -> event mapping.
- replay (pure fold, ReplayError on foreign objects).
- derived MovedEvent rules.
- handle_command with injected get/append functions.
- clear serialized with handle.
- CommandHandler bound to a store.
"""

from __future__ import annotations

import asyncio

import pytest

from event_turtle.command_handler import (
    CommandHandler,
    apply_event,
    event_from_action,
    events_from_command,
    handle_command,
    replay,
)
from event_turtle.core.enums import PenColor, PenState
from event_turtle.core.errors import ReplayError
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
    ALL_STATE_CHANGED_EVENTS,
    ColorChanged,
    Moved,
    MovedEvent,
    PenWentDown,
    PenWentUp,
    StateChangedEvent,
    Turned,
)
from event_turtle.domain.turtle import INITIAL_STATE, Position, TurtleState, no_log


class TestEventFromAction:
    @pytest.mark.parametrize(
        "action, expected",
        [
            (Move(10.0), Moved(10.0)),
            (Turn(45.0), Turned(45.0)),
            (PenUp(), PenWentUp()),
            (PenDown(), PenWentDown()),
            (SetColor(PenColor.BLUE), ColorChanged(PenColor.BLUE)),
        ],
    )
    def test_one_to_one(self, action, expected):
        assert event_from_action(action) == expected

    def test_unknown_action(self):
        with pytest.raises(TypeError):
            event_from_action(TurtleCommandAction())


class TestReplay:
    def test_empty_history_is_initial_state(self):
        assert replay([]) == INITIAL_STATE

    def test_fold(self):
        state = replay([
            Moved(10.0),
            Turned(90.0),
            PenWentUp(),
            ColorChanged(PenColor.RED),
            Moved(5.0),
        ])
        assert state == TurtleState(
            position=Position(10.0, 5.0),
            angle=90.0,
            color=PenColor.RED,
            pen_state=PenState.UP,
        )

    def test_custom_initial_state(self):
        start = TurtleState(angle=90.0)
        assert replay([Moved(10.0)], initial=start).position == Position(0.0, 10.0)

    def test_same_events_same_state(self):
        events = [Moved(3.0), Turned(33.0), Moved(7.0), PenWentUp(), Moved(1.0)]
        assert replay(events) == replay(list(events))

    def test_moved_event_is_rejected(self):
        moved = MovedEvent(start_pos=Position(), end_pos=Position(1.0, 0.0))
        with pytest.raises(ReplayError) as exc_info:
            replay([Moved(1.0), moved])
        assert exc_info.value.event is moved

    def test_every_state_change_case_applies(self):
        samples = {
            Moved: Moved(1.0),
            Turned: Turned(1.0),
            PenWentUp: PenWentUp(),
            PenWentDown: PenWentDown(),
            ColorChanged: ColorChanged(PenColor.RED),
        }
        assert set(ALL_STATE_CHANGED_EVENTS) == set(StateChangedEvent.__subclasses__())
        assert set(samples) == set(ALL_STATE_CHANGED_EVENTS)
        for case in ALL_STATE_CHANGED_EVENTS:
            assert isinstance(apply_event(no_log, INITIAL_STATE, samples[case]), TurtleState)

    def test_unknown_object_is_rejected(self):
        with pytest.raises(ReplayError, match="str"):
            apply_event(no_log, INITIAL_STATE, "Moved 10")


class TestEventsFromCommand:
    def test_non_move_yields_single_event(self, log):
        cmd = TurtleCommand("t", Turn(90.0))
        assert events_from_command(log, cmd, INITIAL_STATE) == [Turned(90.0)]

    def test_move_with_pen_down(self, log):
        cmd = TurtleCommand("t", Move(100.0))
        before = TurtleState(color=PenColor.RED)
        events = events_from_command(log, cmd, before)
        assert events == [
            Moved(100.0),
            MovedEvent(
                start_pos=Position(0.0, 0.0),
                end_pos=Position(100.0, 0.0),
                pen_color=PenColor.RED,
            ),
        ]

    def test_move_with_pen_up(self, log):
        cmd = TurtleCommand("t", Move(100.0))
        before = TurtleState(pen_state=PenState.UP)
        _, moved = events_from_command(log, cmd, before)
        assert moved.pen_color is None

    def test_zero_move_has_no_moved_event(self, log):
        cmd = TurtleCommand("t", Move(0.0))
        assert events_from_command(log, cmd, INITIAL_STATE) == [Moved(0.0)]

    def test_tiny_move_rounded_away_has_no_moved_event(self, log):
        cmd = TurtleCommand("t", Move(0.001))
        assert events_from_command(log, cmd, INITIAL_STATE) == [Moved(0.001)]

    def test_uses_callers_log(self, log):
        cmd = TurtleCommand("t", Move(10.0))
        events_from_command(log, cmd, INITIAL_STATE)
        assert log.messages[0] == "Move 10.0"


class TestHandleCommand:
    @pytest.mark.asyncio
    async def test_injected_functions(self, log):
        history = [Moved(10.0), PenWentUp()]
        appended: list[tuple[str, object]] = []
        requested: list[str] = []

        async def get_events(turtle_id):
            requested.append(turtle_id)
            return history

        async def append_events(turtle_id, events):
            appended.append((turtle_id, events))

        await handle_command(log, get_events, append_events, TurtleCommand("t9", Move(5.0)))

        assert requested == ["t9"]
        assert appended == [
            ("t9", [
                Moved(5.0),
                MovedEvent(
                    start_pos=Position(10.0, 0.0),
                    end_pos=Position(15.0, 0.0),
                    pen_color=None,
                ),
            ]),
        ]

    @pytest.mark.asyncio
    async def test_history_replay_not_logged(self, log):
        async def get_events(turtle_id):
            return [Moved(10.0), Turned(90.0)]

        async def append_events(turtle_id, events):
            pass

        await handle_command(log, get_events, append_events, TurtleCommand("t", PenUp()))
        assert log.messages == ["Pen up"]


class TestCommandHandler:
    @pytest.mark.asyncio
    async def test_state_changed_first_then_moved(self, handler, store, command, turtle_id):
        await handler.handle(command(Move(50.0)))
        events = await store.get(turtle_id)
        assert [type(e) for e in events] == [Moved, MovedEvent]

    @pytest.mark.asyncio
    async def test_moved_event_only_when_position_changes(
        self, handler, store, command, turtle_id,
    ):
        for action in (Move(10.0), Turn(90.0), PenUp(), Move(10.0), SetColor(PenColor.RED), Move(0.0)):
            await handler.handle(command(action))

        moved = await store.get(turtle_id, MovedEvent)
        changes = await store.get(turtle_id, StateChangedEvent)
        assert len(changes) == 6
        assert moved == [
            MovedEvent(Position(0.0, 0.0), Position(10.0, 0.0), PenColor.BLACK),
            MovedEvent(Position(10.0, 0.0), Position(10.0, 10.0), None),
        ]

    @pytest.mark.asyncio
    async def test_state_of(self, handler, command, turtle_id):
        await handler.handle(command(Turn(90.0)))
        await handler.handle(command(Move(20.0)))
        state = await handler.state_of(turtle_id)
        assert state.position == Position(0.0, 20.0)
        assert state.angle == 90.0

    @pytest.mark.asyncio
    async def test_unknown_turtle_behaves_as_new(self, handler):
        assert await handler.state_of("never-seen") == INITIAL_STATE

    @pytest.mark.asyncio
    async def test_turtles_are_independent(self, handler, store):
        await handler.handle(TurtleCommand("a", Move(10.0)))
        await handler.handle(TurtleCommand("b", Turn(10.0)))
        assert (await handler.state_of("a")).position == Position(10.0, 0.0)
        assert (await handler.state_of("b")).position == Position(0.0, 0.0)

    @pytest.mark.asyncio
    async def test_default_log_sink(self, store):
        handler = CommandHandler(store)
        await handler.handle(TurtleCommand("t", Move(1.0)))
        assert len(await store.get("t")) == 2

    @pytest.mark.asyncio
    async def test_concurrent_commands_same_turtle(self, handler, store, command, turtle_id):
        await asyncio.gather(*(handler.handle(command(Move(1.0))) for _ in range(10)))
        state = await handler.state_of(turtle_id)
        assert state.position == Position(10.0, 0.0)
        moved = await store.get(turtle_id, MovedEvent)
        assert [m.end_pos.x for m in moved] == [float(i) for i in range(1, 11)]

    @pytest.mark.asyncio
    async def test_clear_waits_for_running_command(self, handler, store, command, turtle_id):
        seen: list[type] = []

        async def slow_device(turtle_id, event):
            await asyncio.sleep(0)
            seen.append(type(event))

        store.subscribe(slow_device, name="slow_device")
        await asyncio.gather(handler.handle(command(Move(10.0))), handler.clear(turtle_id))

        assert seen == [Moved, MovedEvent]
        assert await store.get(turtle_id) == []

    @pytest.mark.asyncio
    async def test_command_after_clear_starts_fresh(self, handler, store, command, turtle_id):
        await handler.handle(command(Move(5.0)))
        await asyncio.gather(handler.clear(turtle_id), handler.handle(command(Move(10.0))))

        assert await store.get(turtle_id) == [
            Moved(10.0),
            MovedEvent(Position(0.0, 0.0), Position(10.0, 0.0), PenColor.BLACK),
        ]

    @pytest.mark.asyncio
    async def test_subscriber_failure_not_surfaced(self, handler, store, command, turtle_id):
        async def bad(turtle_id, event):
            raise RuntimeError("processor down")

        store.subscribe(bad, name="bad")
        await handler.handle(command(Move(10.0)))
        assert len(await store.get(turtle_id)) == 2
        assert store.get_error_counts() == {"bad": 2}
