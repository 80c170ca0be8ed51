"""Domain layer: turtle state, commands, events and their transitions.

Everything here is immutable.  The transition functions in
``domain.turtle`` are pure apart from the log sink they are handed.
"""
