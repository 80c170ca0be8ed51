"""Draw lines on a graphics device for moves made with the pen down."""

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
class Line:
    turtle_id: TurtleId
    start: Position
    end: Position
    color: PenColor


class GraphicsProcessor(EventProcessor):
    """Renders into ``lines``.  Pen-up moves draw nothing."""

    name = "graphics"

    def __init__(self) -> None:
        super().__init__()
        self.lines: list[Line] = []

    def select(self, event: TurtleEvent) -> MovedEvent | None:
        return moved_filter(event)

    async def process(self, turtle_id: TurtleId, event: MovedEvent) -> None:
        if event.pen_color is None:
            return
        logger.info(
            "[graphics]: Draw line from %s to %s with color %s",
            event.start_pos, event.end_pos, event.pen_color.value,
        )
        self.lines.append(
            Line(turtle_id, event.start_pos, event.end_pos, event.pen_color)
        )
