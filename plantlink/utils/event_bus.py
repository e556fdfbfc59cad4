"""
Lightweight EventBus used between the poll loop and its observers.

Key invariants (enforced by call sites + tests):
  - Event topics come from plantlink.enums.events (ClientEvent).
  - Callbacks run on the bus's worker thread(s), never on the publisher's
    thread, so a slow or failing observer cannot stall polling.
  - Pydantic payloads are delivered as plain dicts; everything else
    (StatusReading, PollFailure, ...) is delivered as-is.
  - With a single worker, events are delivered in publish order.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from enum import Enum
from queue import Empty, Full, Queue
from typing import Any, Callable, Dict, Hashable, Iterable

from pydantic import BaseModel

from plantlink.enums.events import ClientEvent

logger = logging.getLogger(__name__)

# Drop warning configuration
_DROP_WARNING_THRESHOLD = 10  # Log summary every N drops
_DROP_WARNING_INTERVAL_SECONDS = 60  # Minimum seconds between drop summaries

_STOP = object()


class EventBus:
    """
    Handles event-driven communication between client components.

    One bus belongs to one device client; publishers and subscribers of that
    client share its routing table.
    """

    def __init__(self, queue_size: int = 256, worker_count: int = 1) -> None:
        self.subscribers: Dict[Hashable, list[Callable[[Any], None]]] = defaultdict(list)
        self.lock = threading.Lock()

        self._queue_size = max(1, int(queue_size))
        self._queue: Queue = Queue(maxsize=self._queue_size)
        self._worker_pool_size = max(1, int(worker_count))
        self._workers: list[threading.Thread] = []
        self._workers_started = False
        self._closed = False

        self._dropped_events = 0
        self._drops_by_event: Dict[str, int] = defaultdict(int)
        self._drops_since_last_warning = 0
        self._last_drop_warning_time = 0.0

    def _start_workers(self) -> None:
        """Spin up the worker pool on first publish."""
        with self.lock:
            if self._workers_started or self._closed:
                return
            for index in range(self._worker_pool_size):
                worker = threading.Thread(target=self._worker_loop, name=f"EventBusWorker-{index}", daemon=True)
                worker.start()
                self._workers.append(worker)
            self._workers_started = True
            logger.debug(
                "EventBus workers started (pool=%s queue=%s)",
                self._worker_pool_size,
                self._queue_size,
            )

    def subscribe(self, event_name: ClientEvent | str, callback: Callable[[Any], None]) -> Callable[[], None]:
        """
        Subscribes a callback function to an event.

        Args:
            event_name: The enum topic (preferred) or raw string.
            callback: Function to call when the event occurs.

        Returns:
            A zero-argument function that removes the subscription.
        """
        name = event_name.value if isinstance(event_name, Enum) else event_name
        with self.lock:
            self.subscribers[name].append(callback)

        def unsubscribe() -> None:
            with self.lock:
                callbacks = self.subscribers.get(name, [])
                try:
                    callbacks.remove(callback)
                except ValueError:
                    return

        return unsubscribe

    def _worker_loop(self) -> None:
        """Worker thread loop to process events from the queue."""
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                event_name, callback, payload = item
                try:
                    callback(payload)
                except Exception as exc:
                    logger.error("Error in callback for event %s: %s", event_name, exc, exc_info=True)
            finally:
                self._queue.task_done()

    def publish(self, event_name: ClientEvent | str, data: Any | None = None) -> None:
        """
        Publishes an event, queueing every subscribed callback.

        Args:
            event_name: The enum topic (preferred) or raw string.
            data: Payload object (domain value object, Pydantic model, or dict/primitive).
        """
        name = event_name.value if isinstance(event_name, Enum) else event_name
        if self._closed:
            logger.debug("EventBus closed; dropping %s", name)
            return

        payload: Any = data.model_dump() if isinstance(data, BaseModel) else data

        with self.lock:
            callbacks: Iterable[Callable[[Any], None]] = list(self.subscribers.get(name, []))
        if not callbacks:
            return

        self._start_workers()
        for callback in callbacks:
            try:
                self._queue.put_nowait((name, callback, payload))
            except Full:
                self._record_drop(name)
                break

    def _record_drop(self, event_name: str) -> None:
        """Record a dropped event and log periodic warnings."""
        self._dropped_events += 1
        self._drops_by_event[event_name] += 1
        self._drops_since_last_warning += 1

        now = time.time()
        should_warn = (
            self._drops_since_last_warning >= _DROP_WARNING_THRESHOLD
            and (now - self._last_drop_warning_time) >= _DROP_WARNING_INTERVAL_SECONDS
        ) or self._dropped_events == 1

        if should_warn:
            top_drops = sorted(self._drops_by_event.items(), key=lambda x: x[1], reverse=True)[:5]
            top_drops_str = ", ".join(f"{k}:{v}" for k, v in top_drops)

            logger.warning(
                "EventBus dropping events! queue_size=%d, total_dropped=%d, "
                "recent_drops=%d, top_dropped_events=[%s]. "
                "An observer is too slow or event_queue_size is too small.",
                self._queue_size,
                self._dropped_events,
                self._drops_since_last_warning,
                top_drops_str,
            )
            self._drops_since_last_warning = 0
            self._last_drop_warning_time = now

    def flush(self, timeout: float = 5.0) -> bool:
        """
        Wait until every queued callback has run.

        Returns:
            True if the queue drained within ``timeout`` seconds.
        """
        deadline = time.monotonic() + timeout
        while self._queue.unfinished_tasks:
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.01)
        return True

    def close(self, timeout: float = 2.0) -> None:
        """Stop accepting events and shut the worker pool down."""
        with self.lock:
            if self._closed:
                return
            self._closed = True
            workers = list(self._workers)

        for _ in workers:
            try:
                self._queue.put(_STOP, timeout=timeout)
            except Full:
                logger.warning("EventBus queue full while closing; a worker may linger")

        # Closed from inside a callback: the worker exits once it reaches _STOP
        if threading.current_thread() in workers:
            return

        for worker in workers:
            worker.join(timeout=timeout)

        # Anything still queued will never be delivered
        while True:
            try:
                self._queue.get_nowait()
            except Empty:
                break
            self._queue.task_done()

    def get_metrics(self) -> Dict[str, Any]:
        """Return lightweight metrics for diagnostics/logging."""
        with self.lock:
            subscriber_count = sum(len(values) for values in self.subscribers.values())
        top_dropped = dict(sorted(self._drops_by_event.items(), key=lambda x: x[1], reverse=True)[:5])

        return {
            "queue_depth": self._queue.qsize(),
            "queue_size": self._queue_size,
            "dropped_events": self._dropped_events,
            "drops_by_event_top5": top_dropped,
            "subscribers": subscriber_count,
            "is_dropping": self._drops_since_last_warning > 0,
            "closed": self._closed,
        }
