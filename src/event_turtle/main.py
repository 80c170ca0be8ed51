"""Application bootstrap.

Wires the event store, the command handler and the configured read-side
processors, and provides the canned drawings the CLI runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .command_handler import CommandHandler
from .core.config import Settings, load_settings
from .core.enums import PenColor
from .core.ids import TurtleId, new_turtle_id
from .domain.commands import Move, PenDown, PenUp, SetColor, Turn, TurtleCommand
from .domain.events import MovedEvent, StateChangedEvent, TurtleEvent
from .domain.parsing import parse_command
from .domain.turtle import Log, TurtleState
from .infrastructure.event_store import InMemoryEventStore
from .observability.logger import setup_logging
from .observability.metrics import start_metrics_server
from .processors import (
    EventProcessor,
    GraphicsProcessor,
    InkUsedProcessor,
    NaiveInkUsedProcessor,
    PhysicalTurtleProcessor,
)

logger = logging.getLogger(__name__)


@dataclass
class TurtleApp:
    """A store, a handler writing to it, and processors reading from it."""

    store: InMemoryEventStore
    handler: CommandHandler
    processors: list[EventProcessor] = field(default_factory=list)

    def new_turtle(self) -> TurtleId:
        return new_turtle_id()

    async def handle(self, command: TurtleCommand) -> None:
        await self.handler.handle(command)

    async def execute(self, turtle_id: TurtleId, text: str) -> None:
        """Parse *text* and handle it.  Raises ``InvalidCommandError``."""
        await self.handle(parse_command(turtle_id, text))

    async def state_of(self, turtle_id: TurtleId) -> TurtleState:
        return await self.handler.state_of(turtle_id)

    async def history(self, turtle_id: TurtleId) -> list[TurtleEvent]:
        return await self.store.get(turtle_id)

    async def reset(self, turtle_id: TurtleId) -> None:
        await self.handler.clear(turtle_id)

    def processor(self, kind: type[EventProcessor]) -> EventProcessor | None:
        """First attached processor of *kind*, if any."""
        for p in self.processors:
            if isinstance(p, kind):
                return p
        return None

    def close(self) -> None:
        for p in self.processors:
            p.stop()


def build_app(settings: Settings | None = None, log: Log | None = None) -> TurtleApp:
    """Create a ``TurtleApp`` with the processors enabled in *settings*."""
    settings = settings or Settings()
    store = InMemoryEventStore(
        unsubscribe_on_error=settings.store.unsubscribe_on_error,
    )
    handler = CommandHandler(store, log=log)

    processors: list[EventProcessor] = []
    if settings.processors.physical:
        processors.append(PhysicalTurtleProcessor())
    if settings.processors.graphics:
        processors.append(GraphicsProcessor())
    if settings.processors.ink_used:
        if settings.processors.dedupe_ink:
            processors.append(InkUsedProcessor())
        else:
            processors.append(NaiveInkUsedProcessor())

    for p in processors:
        p.start(store)

    logger.info(
        "Turtle app ready with processors: %s",
        ", ".join(p.name for p in processors) or "none",
    )
    return TurtleApp(store=store, handler=handler, processors=processors)


# ---------------------------------------------------------------------------
# Drawings
# ---------------------------------------------------------------------------

async def draw_polygon(
    app: TurtleApp,
    turtle_id: TurtleId,
    n: int,
    side_length: float = 100.0,
) -> None:
    """Draw an *n*-sided shape, turning by the exterior angle."""
    if n < 3:
        raise ValueError(f"A polygon needs at least 3 sides, got {n}")
    await app.reset(turtle_id)
    angle = 360.0 / n
    for _ in range(n):
        await app.handle(TurtleCommand(turtle_id, Move(side_length)))
        await app.handle(TurtleCommand(turtle_id, Turn(angle)))


async def draw_triangle(
    app: TurtleApp,
    turtle_id: TurtleId,
    side_length: float = 100.0,
) -> None:
    await draw_polygon(app, turtle_id, 3, side_length)


async def draw_three_lines(
    app: TurtleApp,
    turtle_id: TurtleId,
    side_length: float = 100.0,
) -> None:
    """Black line, red line, blue diagonal; moves between them pen-up."""
    await app.reset(turtle_id)
    script = [
        # draw black line
        PenDown(), SetColor(PenColor.BLACK), Move(side_length),
        # move without drawing
        PenUp(), Turn(90.0), Move(side_length), Turn(90.0),
        # draw red line
        PenDown(), SetColor(PenColor.RED), Move(side_length),
        # move without drawing
        PenUp(), Turn(90.0), Move(side_length), Turn(90.0),
        # back home at (0,0) with angle 0; draw diagonal blue line
        PenDown(), SetColor(PenColor.BLUE), Turn(45.0), Move(side_length),
    ]
    for action in script:
        await app.handle(TurtleCommand(turtle_id, action))


async def run(
    drawing: str,
    config_path: str | None = None,
    overrides: dict[str, Any] | None = None,
    commands: list[str] | None = None,
) -> tuple[TurtleApp, TurtleId]:
    """Load config, wire the app, run one drawing and return the app.

    *drawing* is ``"triangle"``, ``"polygon"``, ``"three-lines"`` or
    ``"exec"`` (run *commands* as instruction text).
    """
    settings = load_settings(config_path=config_path, overrides=overrides)
    setup_logging(
        level=settings.observability.log_level,
        format=settings.observability.log_format.value,
    )
    start_metrics_server(settings.observability.metrics_port)

    app = build_app(settings)
    turtle_id = app.new_turtle()
    side = settings.drawing.side_length
    try:
        if drawing == "triangle":
            await draw_triangle(app, turtle_id, side)
        elif drawing == "polygon":
            await draw_polygon(app, turtle_id, settings.drawing.polygon_sides, side)
        elif drawing == "three-lines":
            await draw_three_lines(app, turtle_id, side)
        elif drawing == "exec":
            for text in commands or []:
                await app.execute(turtle_id, text)
        else:
            raise ValueError(f"Unknown drawing: {drawing!r}")
    finally:
        app.close()

    moved = await app.store.get(turtle_id, MovedEvent)
    changes = await app.store.get(turtle_id, StateChangedEvent)
    logger.info(
        "Drawing %s finished: %d state changes, %d moves",
        drawing, len(changes), len(moved),
    )
    return app, turtle_id
