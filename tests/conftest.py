"""
Shared test fixtures for the PlantLink test suite.

Provides:
- FakeTransport: scripted stand-in for HttpTransport (no network)
- Recorded sleep for retry timing assertions
- Client / event bus factories that are torn down after each test

Usage:
    def test_example(client, fake_transport):
        fake_transport.queue(STATUS_BODY)
        assert client.fetch_status().pump_running is False
"""

from __future__ import annotations

import json
import logging
from typing import Any

import pytest

from plantlink.config import ClientConfig
from plantlink.domain.exceptions import DeviceConnectionError
from plantlink.hardware.device_client import IrrigationDeviceClient
from plantlink.utils.event_bus import EventBus
from plantlink.utils.retry import RetryPolicy

# ---------------------------------------------------------------------------
# Logging — keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("plantlink").setLevel(logging.WARNING)


STATUS_PAYLOAD = {"moisture": [40, 55, 60], "pumpRunning": False, "valvesRunning": [False, True, False]}
STATUS_BODY = json.dumps(STATUS_PAYLOAD)


class FakeTransport:
    """Replays queued outcomes; an Exception instance is raised, anything else returned."""

    def __init__(self, default: Any = "") -> None:
        self.default = default
        self.outcomes: list[Any] = []
        self.calls: list[tuple[str, str]] = []

    def queue(self, *outcomes: Any) -> "FakeTransport":
        self.outcomes.extend(outcomes)
        return self

    def send(self, url: str, method: str = "GET", timeout: float | None = None) -> str:
        self.calls.append((method, url))
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def urls(self) -> list[str]:
        return [url for _method, url in self.calls]


def refused(url: str = "http://device/status") -> DeviceConnectionError:
    return DeviceConnectionError(f"Could not connect to {url}: [Errno 111] Connection refused", url=url)


# ========================== Fixtures =======================================


@pytest.fixture()
def sleeps() -> list[float]:
    """Delays requested by the retry policy, in order."""
    return []


@pytest.fixture()
def retry_policy(sleeps) -> RetryPolicy:
    return RetryPolicy(max_retries=3, delay_seconds=1.0, sleep=sleeps.append)


@pytest.fixture()
def fake_transport() -> FakeTransport:
    return FakeTransport(default=STATUS_BODY)


@pytest.fixture()
def event_bus():
    bus = EventBus(queue_size=64, worker_count=1)
    yield bus
    bus.close()


@pytest.fixture()
def client_factory(retry_policy, event_bus):
    """Build clients wired to fakes; every client is closed after the test."""
    created: list[IrrigationDeviceClient] = []

    def _make(transport: Any, **config: Any) -> IrrigationDeviceClient:
        settings = {"default_address": "http://device", "poll_interval_ms": 10, "stop_timeout_seconds": 2.0}
        settings.update(config)
        client = IrrigationDeviceClient(
            ClientConfig.from_mapping(settings),
            transport=transport,
            retry_policy=retry_policy,
            event_bus=event_bus,
        )
        created.append(client)
        return client

    yield _make
    for client in created:
        client.close()


@pytest.fixture()
def client(client_factory, fake_transport) -> IrrigationDeviceClient:
    return client_factory(fake_transport)
