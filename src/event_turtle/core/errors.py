"""Custom exception hierarchy for the turtle pipeline."""


class TurtleError(Exception):
    """Base exception for all turtle pipeline errors."""


# --- Configuration ---
class ConfigError(TurtleError):
    """Invalid or missing configuration."""


# --- Command input ---
class InvalidCommandError(TurtleError):
    """Command text could not be turned into a ``TurtleCommand``."""

    def __init__(self, text: str, reason: str = "unrecognized command"):
        self.text = text
        self.reason = reason
        super().__init__(f"{reason}: {text!r}")


class InvalidDistanceError(InvalidCommandError):
    """Distance argument is not a number."""

    def __init__(self, text: str):
        super().__init__(text, "invalid distance")


class InvalidAngleError(InvalidCommandError):
    """Angle argument is not a number."""

    def __init__(self, text: str):
        super().__init__(text, "invalid angle")


class InvalidColorError(InvalidCommandError):
    """Color argument is not one of the known pen colors."""

    def __init__(self, text: str):
        super().__init__(text, "invalid color")


# --- Event sourcing ---
class ReplayError(TurtleError):
    """A stored event could not be applied while rebuilding state."""

    def __init__(self, event: object):
        self.event = event
        super().__init__(
            f"Cannot replay {type(event).__name__}: not a StateChangedEvent"
        )


# --- Read side ---
class ProcessorStateError(TurtleError):
    """Illegal event processor lifecycle transition."""
