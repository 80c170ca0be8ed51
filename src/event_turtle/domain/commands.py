"""Commands addressed to a turtle.

``TurtleCommandAction`` is a closed set: ``Move``, ``Turn``, ``PenUp``,
``PenDown`` and ``SetColor``.  Each action maps to exactly one
``StateChangedEvent`` (see ``command_handler.event_from_action``).
"""

from __future__ import annotations

from dataclasses import dataclass

from event_turtle.core.enums import PenColor
from event_turtle.core.ids import TurtleId


@dataclass(frozen=True)
class TurtleCommandAction:
    """Base of the closed action hierarchy."""

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class Move(TurtleCommandAction):
    distance: float


@dataclass(frozen=True)
class Turn(TurtleCommandAction):
    angle: float  # degrees


@dataclass(frozen=True)
class PenUp(TurtleCommandAction):
    pass


@dataclass(frozen=True)
class PenDown(TurtleCommandAction):
    pass


@dataclass(frozen=True)
class SetColor(TurtleCommandAction):
    color: PenColor


@dataclass(frozen=True)
class TurtleCommand:
    """A desired action addressed to one turtle."""

    turtle_id: TurtleId
    action: TurtleCommandAction
