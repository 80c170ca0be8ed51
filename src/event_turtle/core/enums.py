"""Enumerations used across the turtle pipeline."""

from enum import Enum


class PenState(str, Enum):
    UP = "Up"
    DOWN = "Down"


class PenColor(str, Enum):
    BLACK = "Black"
    RED = "Red"
    BLUE = "Blue"


class LogFormat(str, Enum):
    JSON = "json"
    CONSOLE = "console"


class ProcessorState(str, Enum):
    SUBSCRIBED = "subscribed"      # registered, nothing handled yet
    ACTIVE = "active"              # has handled at least one event
    UNSUBSCRIBED = "unsubscribed"  # terminal
