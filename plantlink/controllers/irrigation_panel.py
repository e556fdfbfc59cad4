"""
Irrigation Panel Controller
===========================

Presenter-agnostic state behind the irrigation screen: moisture labels, the
pump/valve status line, a message line and the three hold-to-water buttons.

A view layer renders PanelState snapshots passed to ``on_change`` and forwards
user intents (address entry, network test, button press/release) to the
methods here. Callbacks from the poll loop arrive on the EventBus worker
thread; views must marshal to their UI thread themselves.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Callable

from plantlink.constants import PLANT_COUNT
from plantlink.domain.exceptions import InvalidAddressError
from plantlink.domain.status import CommandResult, PollFailure, StatusReading
from plantlink.enums.events import ClientEvent
from plantlink.hardware.device_client import IrrigationDeviceClient

logger = logging.getLogger(__name__)


def _idle_button(index: int) -> str:
    return f"Hold to Water Plant {index + 1}"


def _watering_button(index: int) -> str:
    return f"Watering Plant {index + 1}"


@dataclass(frozen=True)
class PanelState:
    """Immutable snapshot of everything the screen shows."""

    moisture_labels: tuple[str, ...]
    status_line: str
    message: str
    valve_buttons: tuple[str, ...]

    @classmethod
    def initial(cls) -> "PanelState":
        return cls(
            moisture_labels=tuple(f"Plant {i + 1} Moisture: Waiting for data..." for i in range(PLANT_COUNT)),
            status_line="Status: Waiting...",
            message="",
            valve_buttons=tuple(_idle_button(i) for i in range(PLANT_COUNT)),
        )


class IrrigationPanel:
    """Wires one IrrigationDeviceClient to a view."""

    def __init__(self, client: IrrigationDeviceClient, on_change: Callable[[PanelState], None] | None = None):
        self.client = client
        self._on_change = on_change
        self._lock = threading.Lock()
        self._state = PanelState.initial()

        bus = client.event_bus
        self._unsubscribers = [
            bus.subscribe(ClientEvent.STATUS_UPDATED, self._handle_reading),
            bus.subscribe(ClientEvent.POLL_FAILED, self._handle_poll_failure),
        ]

    @property
    def state(self) -> PanelState:
        return self._state

    def _update(self, **changes) -> PanelState:
        with self._lock:
            self._state = replace(self._state, **changes)
            state = self._state
        self._notify(state)
        return state

    def _set_button(self, index: int, label: str) -> None:
        with self._lock:
            buttons = list(self._state.valve_buttons)
            buttons[index] = label
            self._state = replace(self._state, valve_buttons=tuple(buttons))
            state = self._state
        self._notify(state)

    def _notify(self, state: PanelState) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(state)
        except Exception as exc:
            logger.error("Panel render callback failed: %s", exc)

    # -------------------------------------------------------------------------
    # User intents
    # -------------------------------------------------------------------------

    def update_address(self, text: str) -> bool:
        """Apply an address typed by the user. Returns False if it was rejected."""
        try:
            address = self.client.update_address(text)
        except InvalidAddressError as exc:
            logger.info("Rejected device address %r: %s", text, exc)
            self._update(message="Error: Enter a valid IP address")
            return False
        self._update(message=f"IP updated to {address}. Test network to start.")
        return True

    def test_network(self) -> CommandResult:
        """Probe the device; start polling on success if it is not running yet."""
        result = self.client.test_connection()
        if result.ok:
            polling = self.client.start_polling() or self.client.is_polling
            if polling:
                self._update(message="Network test successful! Polling started.")
            else:
                self._update(message="Network test successful, but polling could not be started")
        else:
            logger.warning(result.error)
            self._update(message="Network test failed: Check ESP32 connection")
        return result

    def press_valve(self, plant_index: int) -> CommandResult:
        """Button pressed: open the plant's valve."""
        return self._valve(plant_index, on=True)

    def release_valve(self, plant_index: int) -> CommandResult:
        """Button released: close the plant's valve."""
        return self._valve(plant_index, on=False)

    def _valve(self, plant_index: int, on: bool) -> CommandResult:
        result = self.client.set_valve(plant_index, on)
        if result.ok:
            self._set_button(plant_index, _watering_button(plant_index) if on else _idle_button(plant_index))
        else:
            # Button label stays as it was
            self._update(message=result.error or "")
        return result

    def close(self) -> None:
        """Screen is going away: stop polling and detach from the bus."""
        self.client.stop_polling()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    # -------------------------------------------------------------------------
    # Poll loop observers
    # -------------------------------------------------------------------------

    def _handle_reading(self, reading: StatusReading) -> None:
        valves = " | ".join(str(v) for v in reading.valves_running)
        self._update(
            moisture_labels=tuple(f"Plant {i + 1} Moisture: {m}%" for i, m in enumerate(reading.moisture)),
            status_line=f"Valves: {valves} , Pump: {reading.pump_running}",
        )

    def _handle_poll_failure(self, failure: PollFailure) -> None:
        self._update(message=failure.message)
