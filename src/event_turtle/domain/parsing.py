"""Turn instruction text into validated ``TurtleCommand`` objects.

Accepted forms (tokens separated by whitespace)::

    Move <number>
    Turn <number>
    Pen Up
    Pen Down
    SetColor <Black|Red|Blue>

Anything else raises a subclass of ``InvalidCommandError``.  The command
handler never sees unparsed text.
"""

from __future__ import annotations

import math

from event_turtle.core.enums import PenColor
from event_turtle.core.errors import (
    InvalidAngleError,
    InvalidColorError,
    InvalidCommandError,
    InvalidDistanceError,
)
from event_turtle.core.ids import TurtleId
from event_turtle.domain.commands import (
    Move,
    PenDown,
    PenUp,
    SetColor,
    Turn,
    TurtleCommand,
    TurtleCommandAction,
)


def _parse_float(text: str) -> float | None:
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def validate_distance(text: str) -> float:
    value = _parse_float(text)
    if value is None:
        raise InvalidDistanceError(text)
    return value


def validate_angle(text: str) -> float:
    value = _parse_float(text)
    if value is None:
        raise InvalidAngleError(text)
    return value


def validate_color(text: str) -> PenColor:
    try:
        return PenColor(text)
    except ValueError:
        raise InvalidColorError(text) from None


def parse_action(text: str) -> TurtleCommandAction:
    """Parse one instruction into an action."""
    tokens = text.split()
    match tokens:
        case ["Move", distance]:
            return Move(validate_distance(distance))
        case ["Turn", angle]:
            return Turn(validate_angle(angle))
        case ["Pen", "Up"]:
            return PenUp()
        case ["Pen", "Down"]:
            return PenDown()
        case ["SetColor", color]:
            return SetColor(validate_color(color))
        case _:
            raise InvalidCommandError(text)


def parse_command(turtle_id: TurtleId, text: str) -> TurtleCommand:
    """Parse *text* into a command addressed to *turtle_id*."""
    return TurtleCommand(turtle_id=turtle_id, action=parse_action(text))
