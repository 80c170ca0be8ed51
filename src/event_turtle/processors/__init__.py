"""Read side: processors that react to events committed to the store.

Each processor subscribes independently, narrows the stream to the
events it cares about and performs its own projection.  None of them
writes back to the store.
"""

from event_turtle.processors.base import EventProcessor
from event_turtle.processors.graphics import GraphicsProcessor, Line
from event_turtle.processors.ink import InkUsedProcessor, NaiveInkUsedProcessor
from event_turtle.processors.physical import PhysicalTurtleProcessor, Segment

__all__ = [
    "EventProcessor",
    "GraphicsProcessor",
    "InkUsedProcessor",
    "Line",
    "NaiveInkUsedProcessor",
    "PhysicalTurtleProcessor",
    "Segment",
]
