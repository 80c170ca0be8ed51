"""Turtle events.

Design invariants
-----------------
1.  Every event is **immutable** (``frozen=True``).
2.  ``StateChangedEvent`` cases mirror ``TurtleCommandAction`` one-to-one
    and are the only events folded into state during replay.
3.  ``MovedEvent`` is a derived, read-side fact.  It is stored alongside
    the state change that produced it but never replayed.
4.  ``event_id`` and ``timestamp`` are metadata: they are excluded from
    equality, so two events with the same payload compare equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from event_turtle.core.enums import PenColor
from event_turtle.core.ids import new_id as _uuid
from event_turtle.core.ids import utc_now as _now
from event_turtle.domain.turtle import Position

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TurtleEvent:
    """Immutable base for everything stored in a turtle's log.

    event_id    Unique identity (UUID4).
    timestamp   UTC creation time.
    """

    event_id: str = field(default_factory=_uuid, compare=False, kw_only=True)
    timestamp: datetime = field(default_factory=_now, compare=False, kw_only=True)


# =========================================================================
# Write side
# =========================================================================

@dataclass(frozen=True)
class StateChangedEvent(TurtleEvent):
    """Minimal, replayable record of what changed."""


@dataclass(frozen=True)
class Moved(StateChangedEvent):
    distance: float


@dataclass(frozen=True)
class Turned(StateChangedEvent):
    angle: float


@dataclass(frozen=True)
class PenWentUp(StateChangedEvent):
    pass


@dataclass(frozen=True)
class PenWentDown(StateChangedEvent):
    pass


@dataclass(frozen=True)
class ColorChanged(StateChangedEvent):
    color: PenColor


# =========================================================================
# Read side
# =========================================================================

@dataclass(frozen=True)
class MovedEvent(TurtleEvent):
    """A position change, with the color of the line drawn (if any).

    ``pen_color`` is ``None`` when the pen was up before the move.
    """

    start_pos: Position
    end_pos: Position
    pen_color: PenColor | None = None


ALL_STATE_CHANGED_EVENTS: tuple[type[StateChangedEvent], ...] = (
    Moved,
    Turned,
    PenWentUp,
    PenWentDown,
    ColorChanged,
)
