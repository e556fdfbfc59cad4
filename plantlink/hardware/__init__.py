"""
Device-facing layer: HTTP transport, status decoding and the device client.
"""

from plantlink.hardware.device_client import IrrigationDeviceClient
from plantlink.hardware.status_decoder import StatusDecoder
from plantlink.hardware.transport import HttpTransport

__all__ = ["HttpTransport", "IrrigationDeviceClient", "StatusDecoder"]
