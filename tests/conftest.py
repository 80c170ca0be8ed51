"""Shared fixtures for the event-turtle test suite."""

from __future__ import annotations

import pytest

from event_turtle.command_handler import CommandHandler
from event_turtle.core.ids import new_turtle_id
from event_turtle.domain.commands import TurtleCommand, TurtleCommandAction
from event_turtle.infrastructure.event_store import InMemoryEventStore


class RecordingLog:
    """Log sink that keeps every message."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture
def store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def log() -> RecordingLog:
    return RecordingLog()


@pytest.fixture
def handler(store: InMemoryEventStore, log: RecordingLog) -> CommandHandler:
    return CommandHandler(store, log=log)


@pytest.fixture
def turtle_id() -> str:
    return new_turtle_id()


@pytest.fixture
def command(turtle_id: str):
    """Factory: ``command(Move(10))`` addressed to the fixture turtle."""

    def _make(action: TurtleCommandAction) -> TurtleCommand:
        return TurtleCommand(turtle_id=turtle_id, action=action)

    return _make
