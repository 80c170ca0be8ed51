"""Pure turtle state machine.

Every transition takes a ``log`` sink first and the state last, and
returns a new ``TurtleState``.  Nothing here mutates its input, so
folding these functions over an event history is deterministic as long
as the log sink has no effect on the result (see ``no_log``).
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, replace

from event_turtle.core.enums import PenColor, PenState

# Sink for human-readable side-effect messages.
Log = Callable[[str], None]


def no_log(message: str) -> None:
    """Discard *message*.  Used while replaying history."""


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0

    def __str__(self) -> str:
        return f"({self.x:0.2f},{self.y:0.2f})"


@dataclass(frozen=True)
class TurtleState:
    """Snapshot of a turtle.  Always computed, never persisted."""

    position: Position = Position()
    angle: float = 0.0           # degrees, in [0, 360)
    color: PenColor = PenColor.BLACK
    pen_state: PenState = PenState.DOWN


INITIAL_STATE = TurtleState()


def round2(value: float) -> float:
    """Round to two places so positions compare and print stably."""
    return round(value, 2)


def calc_new_position(distance: float, angle: float, current: Position) -> Position:
    """Project *distance* along *angle* (degrees) from *current*."""
    angle_in_rads = angle * (math.pi / 180.0)
    x1 = current.x + distance * math.cos(angle_in_rads)
    y1 = current.y + distance * math.sin(angle_in_rads)
    return Position(x=round2(x1), y=round2(y1))


def draw_line(log: Log, old_pos: Position, new_pos: Position, color: PenColor) -> None:
    # Only logged; rendering belongs to the read side.
    log(
        f"...Draw line from ({old_pos.x:0.1f},{old_pos.y:0.1f}) "
        f"to ({new_pos.x:0.1f},{new_pos.y:0.1f}) using {color.value}"
    )


def move(log: Log, distance: float, state: TurtleState) -> TurtleState:
    log(f"Move {distance:0.1f}")
    new_position = calc_new_position(distance, state.angle, state.position)
    if state.pen_state is PenState.DOWN:
        draw_line(log, state.position, new_position, state.color)
    return replace(state, position=new_position)


def turn(log: Log, angle: float, state: TurtleState) -> TurtleState:
    log(f"Turn {angle:0.1f}")
    # Python's float modulo takes the sign of the divisor, so this stays in [0, 360).
    new_angle = (state.angle + angle) % 360.0
    if new_angle == 360.0:
        new_angle = 0.0
    return replace(state, angle=new_angle)


def pen_up(log: Log, state: TurtleState) -> TurtleState:
    log("Pen up")
    return replace(state, pen_state=PenState.UP)


def pen_down(log: Log, state: TurtleState) -> TurtleState:
    log("Pen down")
    return replace(state, pen_state=PenState.DOWN)


def set_color(log: Log, color: PenColor, state: TurtleState) -> TurtleState:
    log(f"SetColor {color.value}")
    return replace(state, color=color)
