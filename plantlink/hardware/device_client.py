"""
Irrigation Device Client
========================

HTTP client for the ESP32 irrigation controller.

The device exposes a tiny HTTP API:

    GET /status                 -> {"moisture": [...], "pumpRunning": ..., "valvesRunning": [...]}
    GET /valve{1,2,3}{on,off}   -> any 2xx body

Every request goes through the RetryPolicy. The client is the only component
that performs network I/O; it also owns the single poll loop for its device.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping

from plantlink.config import ClientConfig
from plantlink.constants import STATUS_PATH
from plantlink.domain.address import DeviceAddress
from plantlink.domain.exceptions import RetriesExhaustedError
from plantlink.domain.status import CommandResult, StatusReading, ValveCommand
from plantlink.enums.events import ClientEvent
from plantlink.hardware.status_decoder import StatusDecoder
from plantlink.hardware.transport import HttpTransport
from plantlink.services.status_polling_service import StatusPollingService
from plantlink.utils.concurrency import synchronized
from plantlink.utils.event_bus import EventBus
from plantlink.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


class IrrigationDeviceClient:
    """
    Monitors and controls one irrigation device.

    Attributes:
        config (ClientConfig): Settings the client was built with.
        event_bus (EventBus): Where readings and poll failures are published.
        poller (StatusPollingService): The client's poll loop.
    """

    def __init__(
        self,
        config: ClientConfig | Mapping[str, Any] | None = None,
        *,
        transport: HttpTransport | None = None,
        retry_policy: RetryPolicy | None = None,
        decoder: StatusDecoder | None = None,
        event_bus: EventBus | None = None,
    ):
        """
        Args:
            config: ClientConfig or a plain mapping of settings
            transport: Transport override (tests inject fakes here)
            retry_policy: Retry override
            decoder: Status decoder override
            event_bus: Shared bus; a private one is created when omitted
        """
        if config is None or isinstance(config, Mapping):
            config = ClientConfig.from_mapping(config)
        else:
            config.validate()
        self.config = config

        self._lock = threading.Lock()
        self._address = DeviceAddress.parse(config.default_address)

        self.transport = transport or HttpTransport(timeout=config.timeout_seconds)
        self.retry_policy = retry_policy or RetryPolicy(
            max_retries=config.max_retries,
            delay_seconds=config.retry_delay_seconds,
        )
        self.decoder = decoder or StatusDecoder()
        self.event_bus = event_bus or EventBus(
            queue_size=config.event_queue_size,
            worker_count=config.event_worker_count,
        )
        self.poller = StatusPollingService(
            self,
            self.event_bus,
            poll_interval_s=config.poll_interval_seconds,
            stop_timeout_s=config.stop_timeout_seconds,
        )

        logger.info("Irrigation device client initialized for %s", self._address)

    # -------------------------------------------------------------------------
    # Address
    # -------------------------------------------------------------------------

    @property
    def address(self) -> DeviceAddress:
        """Current device address (immutable snapshot)."""
        return self._address

    @property
    def status_url(self) -> str:
        return self._address.url_for(STATUS_PATH)

    def update_address(self, address_text: str) -> DeviceAddress:
        """
        Replace the device address.

        Input is trimmed and ``http://`` is prepended when no scheme is given.
        On failure the stored address is left untouched.

        Raises:
            InvalidAddressError: If the input is empty or not a usable URL
        """
        new_address = DeviceAddress.parse(address_text)
        previous = self._swap_address(new_address)
        if previous != new_address:
            logger.info("Device address updated: %s -> %s", previous, new_address)
            self.event_bus.publish(ClientEvent.ADDRESS_CHANGED, new_address)
        return new_address

    @synchronized
    def _swap_address(self, new_address: DeviceAddress) -> DeviceAddress:
        previous = self._address
        self._address = new_address
        return previous

    # -------------------------------------------------------------------------
    # Device operations
    # -------------------------------------------------------------------------

    def test_connection(self) -> CommandResult:
        """Check that ``/status`` answers with 2xx. The body is not decoded."""
        return self._send_command(self.status_url, "Testing network connection...")

    def fetch_status(self) -> StatusReading:
        """
        Fetch and decode the device status.

        Raises:
            RetriesExhaustedError: If every attempt failed
            MalformedPayloadError: If the body could not be decoded
        """
        url = self.status_url
        body = self.retry_policy.call(lambda: self.transport.send(url), url=url, context="Status poll")
        return self.decoder.decode(body)

    def set_valve(self, plant_index: int, on: bool) -> CommandResult:
        """
        Open or close the valve of one plant.

        Args:
            plant_index: 0-based plant index (0..2)
            on: True to open (water), False to close

        Raises:
            ValidationError: If plant_index is out of range
        """
        return self.send_command(ValveCommand.for_plant(plant_index, on))

    def send_command(self, command: ValveCommand) -> CommandResult:
        """Send one ValveCommand to the device."""
        result = self._send_command(self._address.url_for(command.path), command.label)
        if result.ok:
            logger.info("%s acknowledged by device", command.label)
            self.event_bus.publish(ClientEvent.VALVE_CHANGED, command)
        return result

    def _send_command(self, url: str, context: str) -> CommandResult:
        """GET ``url`` through the retry policy; success iff a 2xx arrives."""
        try:
            self.retry_policy.call(lambda: self.transport.send(url), url=url, context=context)
        except RetriesExhaustedError as exc:
            return CommandResult(ok=False, url=url, error=f"{context} Error: {exc.cause} (URL: {url})")
        return CommandResult(ok=True, url=url)

    # -------------------------------------------------------------------------
    # Polling
    # -------------------------------------------------------------------------

    def start_polling(self) -> bool:
        return self.poller.start()

    def stop_polling(self, timeout: float | None = None) -> None:
        self.poller.stop(timeout=timeout)

    @property
    def is_polling(self) -> bool:
        return self.poller.is_running

    def close(self) -> None:
        """Stop polling and shut the event bus down."""
        self.poller.stop()
        self.event_bus.close()
        logger.info("Irrigation device client for %s closed", self._address)
