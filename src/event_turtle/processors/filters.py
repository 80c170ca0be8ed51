"""Filter stage shared by every processor.

Each filter returns the narrowed event, or ``None`` to drop it.
"""

from __future__ import annotations

from event_turtle.domain.events import MovedEvent, StateChangedEvent, TurtleEvent


def turtle_filter(event: object) -> TurtleEvent | None:
    """Keep only turtle events."""
    return event if isinstance(event, TurtleEvent) else None


def moved_filter(event: TurtleEvent) -> MovedEvent | None:
    return event if isinstance(event, MovedEvent) else None


def state_changed_filter(event: TurtleEvent) -> StateChangedEvent | None:
    return event if isinstance(event, StateChangedEvent) else None
