"""
Enums Module
============

Enumeration types shared by the PlantLink client.
"""

from plantlink.enums.device import PollState, ValveAction
from plantlink.enums.events import ClientEvent

__all__ = [
    "ClientEvent",
    "PollState",
    "ValveAction",
]
