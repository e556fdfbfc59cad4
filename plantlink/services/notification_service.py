"""
Moisture Notification Service
=============================
Turns every status reading into one local notification per plant.

The platform notification API is an external sink (a callable taking a
PlantNotification). Sink failures are logged per plant and never reach the
poll loop.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from plantlink.constants import NOTIFICATION_ID_BASE, PLANT_COUNT
from plantlink.domain.status import StatusReading
from plantlink.enums.events import ClientEvent
from plantlink.schemas.events import PlantNotification
from plantlink.utils.event_bus import EventBus

logger = logging.getLogger(__name__)

NotificationSink = Callable[[PlantNotification], Any]


class MoistureNotifier:
    """Publishes per-plant moisture notifications with unique, increasing ids."""

    def __init__(self, event_bus: EventBus, sink: NotificationSink, *, subscribe: bool = True):
        self.event_bus = event_bus
        self.sink = sink

        self._lock = threading.Lock()
        self._sequence = 0
        self._unsubscribe: Callable[[], None] | None = None
        if subscribe:
            self._unsubscribe = event_bus.subscribe(ClientEvent.STATUS_UPDATED, self.handle_reading)

    @property
    def sequence(self) -> int:
        return self._sequence

    def _next_sequence(self) -> tuple[int, int]:
        """Return (notification_id, badge_number) for the next notification."""
        with self._lock:
            notification_id = NOTIFICATION_ID_BASE + self._sequence
            self._sequence += 1
            return notification_id, self._sequence

    def build(self, title: str, description: str, *, category: str = "status", plant_index: int | None = None):
        notification_id, badge = self._next_sequence()
        return PlantNotification(
            notification_id=notification_id,
            title=title,
            description=description,
            badge_number=badge,
            category=category,
            plant_index=plant_index,
        )

    def handle_reading(self, reading: StatusReading) -> list[PlantNotification]:
        """
        Send one notification per plant for ``reading``.

        Returns:
            The notifications the sink accepted.
        """
        delivered = []
        for index in range(PLANT_COUNT):
            notification = self.build(
                f"Plant {index + 1} Moisture Update",
                f"Moisture: {reading.moisture[index]}%",
                plant_index=index,
            )
            try:
                self.sink(notification)
            except Exception as exc:
                logger.error("Notification error for Plant %d: %s", index + 1, exc)
                continue
            delivered.append(notification)
        return delivered

    def send_test_notification(self) -> PlantNotification:
        """
        Send a test notification through the sink.

        Sink errors propagate so the caller can show them to the user.
        """
        notification = self.build("Test Notification", "This is a test notification", category="test")
        try:
            self.sink(notification)
        except Exception as exc:
            logger.error("Test notification error: %s", exc)
            raise
        return notification

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
