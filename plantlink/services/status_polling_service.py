# plantlink/services/status_polling_service.py
"""
Status Polling Service
======================
Periodically polls the irrigation device for its status.

Features:
- One background thread per device client, started and stopped explicitly
- Fixed cadence between ticks (device firmware samples every 20s)
- Every tick outcome published on the EventBus (reading or failure notice)
- A failed tick never terminates the loop; only stop() does
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from plantlink.domain.status import PollFailure, StatusReading
from plantlink.enums.device import PollState
from plantlink.enums.events import ClientEvent
from plantlink.utils.event_bus import EventBus
from plantlink.utils.time import utc_now

if TYPE_CHECKING:
    from plantlink.hardware.device_client import IrrigationDeviceClient

logger = logging.getLogger(__name__)


@dataclass
class PollSession:
    """Lifecycle and counters of one start()..stop() run of the poll loop."""

    state: PollState = PollState.IDLE
    started_at: datetime | None = None
    stopped_at: datetime | None = None
    tick_count: int = 0
    failure_count: int = 0
    last_error: str | None = None
    last_success_at: datetime | None = None
    thread: threading.Thread | None = field(default=None, repr=False)
    stop_event: threading.Event = field(default_factory=threading.Event, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "stopped_at": self.stopped_at.isoformat() if self.stopped_at else None,
            "tick_count": self.tick_count,
            "failure_count": self.failure_count,
            "last_error": self.last_error,
            "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
        }


class StatusPollingService:
    """
    Drives the poll loop for a single device client.

    At most one session is RUNNING at a time; start() while running is a
    no-op. stop() is safe from any thread, including an EventBus callback or
    the poll thread itself.
    """

    def __init__(
        self,
        client: "IrrigationDeviceClient",
        event_bus: EventBus,
        poll_interval_s: float = 20.0,
        stop_timeout_s: float = 5.0,
    ):
        self.client = client
        self.event_bus = event_bus
        self.poll_interval_s = max(0.0, float(poll_interval_s))
        self.stop_timeout_s = stop_timeout_s

        # Guards session transitions and the tick-start check
        self._lock = threading.Lock()
        self._session = PollSession()

        logger.info("StatusPollingService initialized (interval=%ss)", self.poll_interval_s)

    # -------------------------------------------------------------------------
    # Lifecycle Management
    # -------------------------------------------------------------------------

    @property
    def session(self) -> PollSession:
        return self._session

    @property
    def state(self) -> PollState:
        return self._session.state

    @property
    def is_running(self) -> bool:
        return self._session.state == PollState.RUNNING

    def start(self) -> bool:
        """
        Start the poll loop.

        A session that is still STOPPING (its last tick outlived stop()) is
        resumed on its own thread instead of spawning a second poller.

        Returns:
            True if polling was started or resumed, False if already running.
        """
        with self._lock:
            current = self._session
            if current.state == PollState.RUNNING:
                logger.debug("Polling already running; start() ignored")
                return False
            if current.state == PollState.STOPPING:
                # The loop has not yet taken its exit decision, which happens under this lock
                current.stop_event.clear()
                current.state = PollState.RUNNING
                current.stopped_at = None
                logger.info("Resuming polling session that was still finishing its last tick")
            else:
                session = PollSession(state=PollState.RUNNING, started_at=utc_now())
                session.thread = threading.Thread(
                    target=self._polling_loop, args=(session,), name="DevicePoller", daemon=True
                )
                self._session = session
                session.thread.start()

        logger.info("🚀 Started status polling for %s", self.client.address)
        self.event_bus.publish(ClientEvent.POLLING_STARTED, self.client.address)
        return True

    def stop(self, timeout: float | None = None) -> None:
        """
        Stop the poll loop.

        No tick begins after this returns. A tick already in flight is left
        to finish; when called from another thread this waits up to
        ``timeout`` seconds for it.
        """
        with self._lock:
            session = self._session
            if session.state != PollState.RUNNING:
                return
            session.state = PollState.STOPPING
            session.stop_event.set()

        logger.info("🛑 Stopping status polling...")
        worker = session.thread
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout=self.stop_timeout_s if timeout is None else timeout)
            if worker.is_alive():
                logger.warning("Poll thread still finishing an in-flight tick; it will exit afterwards")

    # -------------------------------------------------------------------------
    # Core Logic
    # -------------------------------------------------------------------------

    def _polling_loop(self, session: PollSession) -> None:
        """Tick, wait, repeat until the session's stop event is set."""
        try:
            while True:
                with self._lock:
                    if session.stop_event.is_set():
                        self._mark_stopped(session)
                        break
                    session.tick_count += 1

                try:
                    self.tick(session)
                except Exception as exc:
                    # tick() converts device errors itself; anything here is a bug
                    logger.exception("Status poll tick raised unexpectedly: %s", exc)

                session.stop_event.wait(self.poll_interval_s)
        finally:
            with self._lock:
                if session.state != PollState.IDLE:
                    self._mark_stopped(session)
            logger.info("Status polling stopped after %d tick(s)", session.tick_count)
            self.event_bus.publish(ClientEvent.POLLING_STOPPED, session.to_dict())

    @staticmethod
    def _mark_stopped(session: PollSession) -> None:
        # Caller holds self._lock
        session.state = PollState.IDLE
        session.stopped_at = utc_now()

    def tick(self, session: PollSession | None = None) -> StatusReading | None:
        """
        Run one fetch + publish cycle.

        Returns:
            The published reading, or None if the tick failed.
        """
        session = session or self._session
        url = self.client.status_url
        try:
            reading = self.client.fetch_status()
        except Exception as exc:
            # The address may have changed mid-tick; report the URL that failed
            url = getattr(exc, "url", None) or url
            failure = PollFailure(
                message=f"Polling error: {exc} (URL: {url})",
                url=url,
                error_type=type(exc).__name__,
            )
            session.failure_count += 1
            session.last_error = failure.message
            logger.error(failure.message)
            self.event_bus.publish(ClientEvent.POLL_FAILED, failure)
            return None

        session.last_success_at = reading.received_at
        session.last_error = None
        logger.debug("Status reading: %s", reading)
        self.event_bus.publish(ClientEvent.STATUS_UPDATED, reading)
        return reading
