import threading
import time
from types import SimpleNamespace

from plantlink.domain.exceptions import MalformedPayloadError, RetriesExhaustedError, RequestTimeoutError
from plantlink.domain.status import PollFailure, StatusReading
from plantlink.enums.device import PollState
from plantlink.enums.events import ClientEvent
from plantlink.services.status_polling_service import StatusPollingService

READING = StatusReading((40, 55, 60), False, (False, True, False))


class StubClient:
    """Counts fetch_status calls and replays scripted outcomes."""

    status_url = "http://device/status"
    address = "http://device"

    def __init__(self, outcomes=None, default=READING, on_fetch=None):
        self.outcomes = list(outcomes or [])
        self.default = default
        self.on_fetch = on_fetch
        self.fetch_calls = 0
        self._lock = threading.Lock()

    def fetch_status(self):
        with self._lock:
            self.fetch_calls += 1
            outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if self.on_fetch is not None:
            self.on_fetch()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


def make_service(client, event_bus, interval=0.01):
    return StatusPollingService(client, event_bus, poll_interval_s=interval, stop_timeout_s=2.0)


def test_tick_publishes_reading(event_bus):
    readings = []
    event_bus.subscribe(ClientEvent.STATUS_UPDATED, readings.append)
    service = make_service(StubClient(), event_bus)

    assert service.tick() == READING
    event_bus.flush()
    assert readings == [READING]
    assert service.session.last_success_at is not None


def test_failed_tick_publishes_failure_notice(event_bus):
    failures = []
    event_bus.subscribe(ClientEvent.POLL_FAILED, failures.append)
    cause = RequestTimeoutError("Request to http://device/status timed out after 15s")
    error = RetriesExhaustedError(str(cause), url="http://device/status", attempts=4, cause=cause)
    service = make_service(StubClient(outcomes=[error]), event_bus)

    assert service.tick() is None
    event_bus.flush()

    assert len(failures) == 1
    failure = failures[0]
    assert isinstance(failure, PollFailure)
    assert failure.error_type == "RetriesExhaustedError"
    assert failure.url == "http://device/status"
    assert failure.message == (
        "Polling error: Request to http://device/status timed out after 15s (URL: http://device/status)"
    )
    assert service.session.failure_count == 1
    assert service.session.last_error == failure.message


def test_start_is_idempotent(event_bus):
    client = StubClient()
    service = make_service(client, event_bus, interval=0.05)
    try:
        assert service.start() is True
        first_thread = service.session.thread
        assert service.start() is False
        assert service.session.thread is first_thread
        assert service.state == PollState.RUNNING
    finally:
        service.stop()


def test_no_tick_begins_after_stop_returns(event_bus):
    client = StubClient()
    service = make_service(client, event_bus, interval=0.001)
    service.start()
    assert wait_until(lambda: client.fetch_calls >= 3)

    service.stop()
    calls_at_stop = client.fetch_calls
    time.sleep(0.05)

    assert client.fetch_calls == calls_at_stop
    assert service.state == PollState.IDLE
    assert not service.session.thread.is_alive()


def test_failing_tick_does_not_stop_the_loop(event_bus):
    readings = []
    failures = []
    event_bus.subscribe(ClientEvent.STATUS_UPDATED, readings.append)
    event_bus.subscribe(ClientEvent.POLL_FAILED, failures.append)
    client = StubClient(outcomes=[MalformedPayloadError("bad body"), ValueError("unexpected")])
    service = make_service(client, event_bus, interval=0.001)

    service.start()
    try:
        assert wait_until(lambda: client.fetch_calls >= 4)
        assert service.is_running
    finally:
        service.stop()
    event_bus.flush()

    assert [f.error_type for f in failures] == ["MalformedPayloadError", "ValueError"]
    assert len(readings) >= 2
    assert service.session.failure_count == 2


def test_in_flight_tick_completes_after_stop(event_bus):
    entered = threading.Event()
    release = threading.Event()

    def block_first_fetch():
        if not entered.is_set():
            entered.set()
            release.wait(2)

    readings = []
    event_bus.subscribe(ClientEvent.STATUS_UPDATED, readings.append)
    client = StubClient(on_fetch=block_first_fetch)
    service = make_service(client, event_bus, interval=0.001)

    service.start()
    assert entered.wait(2)
    service.stop(timeout=0.05)
    assert service.state == PollState.STOPPING
    assert not service.is_running

    release.set()
    assert wait_until(lambda: service.state == PollState.IDLE)
    event_bus.flush()
    assert client.fetch_calls == 1
    assert readings == [READING]


def test_start_while_stopping_resumes_the_session(event_bus):
    entered = threading.Event()
    release = threading.Event()

    def block_first_fetch():
        if not entered.is_set():
            entered.set()
            release.wait(2)

    client = StubClient(on_fetch=block_first_fetch)
    service = make_service(client, event_bus, interval=0.001)

    service.start()
    assert entered.wait(2)
    session = service.session
    service.stop(timeout=0.05)
    assert service.state == PollState.STOPPING

    assert service.start() is True
    try:
        assert service.is_running
        assert service.session is session

        release.set()
        assert wait_until(lambda: client.fetch_calls >= 3)
        assert service.state == PollState.RUNNING
        assert session.thread.is_alive()
    finally:
        release.set()
        service.stop()
    assert service.state == PollState.IDLE


def test_failure_notice_names_the_url_that_failed(event_bus):
    failures = []
    event_bus.subscribe(ClientEvent.POLL_FAILED, failures.append)
    cause = RequestTimeoutError("Request to http://old/status timed out after 15s")
    error = RetriesExhaustedError(str(cause), url="http://old/status", attempts=4, cause=cause)
    client = StubClient(outcomes=[error])
    client.status_url = "http://new/status"
    service = make_service(client, event_bus)

    service.tick()
    event_bus.flush()

    assert failures[0].url == "http://old/status"
    assert failures[0].message.endswith("(URL: http://old/status)")


def test_stop_from_an_observer_callback(event_bus):
    client = StubClient()
    service = make_service(client, event_bus, interval=0.05)
    event_bus.subscribe(ClientEvent.STATUS_UPDATED, lambda _reading: service.stop())

    service.start()
    assert wait_until(lambda: service.state == PollState.IDLE)
    assert client.fetch_calls <= 3


def test_restart_after_stop_creates_new_session(event_bus):
    service = make_service(StubClient(), event_bus, interval=0.01)
    service.start()
    first = service.session
    service.stop()

    assert service.start() is True
    try:
        assert service.session is not first
        assert first.state == PollState.IDLE
        assert first.to_dict()["stopped_at"] is not None
    finally:
        service.stop()


def test_stop_when_idle_is_a_no_op(event_bus):
    service = make_service(SimpleNamespace(status_url="http://device/status", address="http://device"), event_bus)
    service.stop()
    assert service.state == PollState.IDLE


def test_lifecycle_events_are_published(event_bus):
    events = []
    event_bus.subscribe(ClientEvent.POLLING_STARTED, lambda data: events.append(("started", data)))
    event_bus.subscribe(ClientEvent.POLLING_STOPPED, lambda data: events.append(("stopped", data["state"])))
    service = make_service(StubClient(), event_bus)

    service.start()
    service.stop()
    event_bus.flush()

    assert events == [("started", "http://device"), ("stopped", "idle")]
