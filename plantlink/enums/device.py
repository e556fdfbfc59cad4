"""
Device-related Enumerations
============================

Valve actions and poll-loop lifecycle states.
"""

from enum import Enum


class ValveAction(str, Enum):
    """Imperative valve commands understood by the device firmware."""

    ON = "on"
    OFF = "off"

    @classmethod
    def from_bool(cls, on: bool) -> "ValveAction":
        return cls.ON if on else cls.OFF


class PollState(str, Enum):
    """
    Lifecycle of a polling session.

    IDLE -> RUNNING -> STOPPING -> IDLE
    """

    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
