import threading
import time

import pytest

from conftest import STATUS_BODY, FakeTransport, refused
from plantlink.controllers.irrigation_panel import IrrigationPanel, PanelState
from plantlink.domain.status import PollFailure, StatusReading
from plantlink.enums.device import PollState
from plantlink.enums.events import ClientEvent


@pytest.fixture()
def rendered():
    return []


@pytest.fixture()
def panel_for(client_factory, rendered):
    panels = []

    def _make(transport):
        panel = IrrigationPanel(client_factory(transport), on_change=rendered.append)
        panels.append(panel)
        return panel

    yield _make
    for panel in panels:
        panel.close()


def test_initial_state():
    state = PanelState.initial()
    assert state.moisture_labels == (
        "Plant 1 Moisture: Waiting for data...",
        "Plant 2 Moisture: Waiting for data...",
        "Plant 3 Moisture: Waiting for data...",
    )
    assert state.status_line == "Status: Waiting..."
    assert state.valve_buttons == ("Hold to Water Plant 1", "Hold to Water Plant 2", "Hold to Water Plant 3")


def test_update_address_messages(panel_for, rendered):
    panel = panel_for(FakeTransport(default=STATUS_BODY))

    assert panel.update_address("10.0.0.5") is True
    assert panel.state.message == "IP updated to http://10.0.0.5. Test network to start."
    assert panel.client.address.base_url == "http://10.0.0.5"

    assert panel.update_address("   ") is False
    assert panel.state.message == "Error: Enter a valid IP address"
    assert panel.client.address.base_url == "http://10.0.0.5"
    assert [s.message for s in rendered][-2:] == [
        "IP updated to http://10.0.0.5. Test network to start.",
        "Error: Enter a valid IP address",
    ]


def test_successful_network_test_starts_polling_once(panel_for):
    panel = panel_for(FakeTransport(default=STATUS_BODY))

    assert panel.test_network().ok is True
    assert panel.state.message == "Network test successful! Polling started."
    assert panel.client.is_polling
    first_session = panel.client.poller.session

    panel.test_network()
    assert panel.client.poller.session is first_session


def test_failed_network_test_does_not_start_polling(panel_for):
    panel = panel_for(FakeTransport(default=refused()))

    assert panel.test_network().ok is False
    assert panel.state.message == "Network test failed: Check ESP32 connection"
    assert not panel.client.is_polling


def test_press_and_release_toggle_button_label(panel_for):
    transport = FakeTransport(default="")
    panel = panel_for(transport)

    panel.press_valve(1)
    assert panel.state.valve_buttons[1] == "Watering Plant 2"
    panel.release_valve(1)
    assert panel.state.valve_buttons[1] == "Hold to Water Plant 2"
    assert transport.urls == ["http://device/valve2on", "http://device/valve2off"]


def test_failed_press_leaves_label_unchanged(panel_for):
    panel = panel_for(FakeTransport(default=refused("http://device/valve3on")))

    result = panel.press_valve(2)

    assert result.ok is False
    assert panel.state.valve_buttons[2] == "Hold to Water Plant 3"
    assert panel.state.message == result.error


def test_readings_and_failures_are_rendered(panel_for, event_bus):
    panel = panel_for(FakeTransport(default=STATUS_BODY))

    event_bus.publish(ClientEvent.STATUS_UPDATED, StatusReading((40, 55, 60), False, (False, True, False)))
    event_bus.publish(
        ClientEvent.POLL_FAILED,
        PollFailure(message="Polling error: boom (URL: http://device/status)", url=None, error_type="X"),
    )
    event_bus.flush()

    state = panel.state
    assert state.moisture_labels == ("Plant 1 Moisture: 40%", "Plant 2 Moisture: 55%", "Plant 3 Moisture: 60%")
    assert state.status_line == "Valves: False | True | False , Pump: False"
    assert state.message == "Polling error: boom (URL: http://device/status)"


def test_polling_feeds_the_panel_end_to_end(panel_for):
    panel = panel_for(FakeTransport(default=STATUS_BODY))
    panel.test_network()

    deadline = time.monotonic() + 2
    while panel.state.moisture_labels[0] != "Plant 1 Moisture: 40%" and time.monotonic() < deadline:
        time.sleep(0.01)
    assert panel.state.moisture_labels[0] == "Plant 1 Moisture: 40%"


def test_close_stops_polling(panel_for):
    panel = panel_for(FakeTransport(default=STATUS_BODY))
    panel.test_network()
    panel.close()
    assert not panel.client.is_polling


def test_render_callback_errors_are_contained(client_factory):
    def broken(_state):
        raise RuntimeError("view gone")

    panel = IrrigationPanel(client_factory(FakeTransport(default="")), on_change=broken)
    assert panel.update_address("10.0.0.5") is True
    panel.close()


class HeldPollTransport(FakeTransport):
    """Blocks requests issued from the poll thread until released."""

    def __init__(self):
        super().__init__(default=STATUS_BODY)
        self.entered = threading.Event()
        self.release = threading.Event()

    def send(self, url, method="GET", timeout=None):
        if threading.current_thread().name == "DevicePoller":
            self.entered.set()
            self.release.wait(2)
        return super().send(url, method, timeout)


def test_network_test_restarts_polling_while_last_tick_is_in_flight(panel_for):
    transport = HeldPollTransport()
    panel = panel_for(transport)

    panel.test_network()
    assert transport.entered.wait(2)
    panel.client.stop_polling(timeout=0.05)
    assert panel.client.poller.state == PollState.STOPPING

    try:
        assert panel.test_network().ok is True
        assert panel.state.message == "Network test successful! Polling started."
        assert panel.client.is_polling
    finally:
        transport.release.set()
