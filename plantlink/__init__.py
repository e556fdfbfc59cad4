"""
PlantLink
=========

Polling and control client for an ESP32 irrigation controller.

Typical use from a presentation layer::

    from plantlink import ClientEvent, IrrigationDeviceClient

    client = IrrigationDeviceClient({"defaultAddress": "http://192.168.43.230"})
    client.event_bus.subscribe(ClientEvent.STATUS_UPDATED, render)
    if client.test_connection():
        client.start_polling()
    ...
    client.close()
"""

from plantlink.config import ClientConfig, setup_logging
from plantlink.controllers.irrigation_panel import IrrigationPanel, PanelState
from plantlink.domain import (
    CommandResult,
    DeviceAddress,
    PollFailure,
    StatusReading,
    ValveCommand,
)
from plantlink.enums import ClientEvent, PollState, ValveAction
from plantlink.hardware.device_client import IrrigationDeviceClient
from plantlink.services.notification_service import MoistureNotifier

__version__ = "1.0.0"

__all__ = [
    "ClientConfig",
    "ClientEvent",
    "CommandResult",
    "DeviceAddress",
    "IrrigationDeviceClient",
    "IrrigationPanel",
    "MoistureNotifier",
    "PanelState",
    "PollFailure",
    "PollState",
    "StatusReading",
    "ValveAction",
    "ValveCommand",
    "setup_logging",
]
