"""Simulate the physical turtle moving, one segment per ``MovedEvent``."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from event_turtle.core.enums import PenColor
from event_turtle.core.ids import TurtleId
from event_turtle.domain.events import MovedEvent, TurtleEvent
from event_turtle.domain.turtle import Position
from event_turtle.processors.base import EventProcessor
from event_turtle.processors.filters import moved_filter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Segment:
    turtle_id: TurtleId
    start: Position
    end: Position
    pen_color: PenColor | None


class PhysicalTurtleProcessor(EventProcessor):
    """Moves the (simulated) device.  Records every segment in ``moves``."""

    name = "physical_turtle"

    def __init__(self) -> None:
        super().__init__()
        self.moves: list[Segment] = []

    def select(self, event: TurtleEvent) -> MovedEvent | None:
        return moved_filter(event)

    async def process(self, turtle_id: TurtleId, event: MovedEvent) -> None:
        if event.pen_color is not None:
            color_text = f"line of color {event.pen_color.value}"
        else:
            color_text = "no line"
        logger.info(
            "[turtle  ]: Moved from %s to %s with %s",
            event.start_pos, event.end_pos, color_text,
        )
        self.moves.append(
            Segment(turtle_id, event.start_pos, event.end_pos, event.pen_color)
        )
