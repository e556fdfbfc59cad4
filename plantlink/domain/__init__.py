"""
Domain Value Objects Package
=============================
Immutable value objects and the exception hierarchy of the PlantLink client.
"""

from .address import DeviceAddress
from .exceptions import (
    ConfigurationError,
    DeviceConnectionError,
    DeviceError,
    HttpStatusError,
    InvalidAddressError,
    MalformedPayloadError,
    PlantLinkError,
    RequestTimeoutError,
    RetriesExhaustedError,
    TransportError,
    ValidationError,
)
from .status import CommandResult, PollFailure, StatusReading, ValveCommand

__all__ = [
    # Value objects
    "CommandResult",
    "DeviceAddress",
    "PollFailure",
    "StatusReading",
    "ValveCommand",
    # Errors
    "ConfigurationError",
    "DeviceConnectionError",
    "DeviceError",
    "HttpStatusError",
    "InvalidAddressError",
    "MalformedPayloadError",
    "PlantLinkError",
    "RequestTimeoutError",
    "RetriesExhaustedError",
    "TransportError",
    "ValidationError",
]
