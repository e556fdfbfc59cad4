from enum import Enum


class ClientEvent(str, Enum):
    """Topics published on the client's EventBus."""

    # Poll loop
    STATUS_UPDATED = "status_updated"
    POLL_FAILED = "poll_failed"
    POLLING_STARTED = "polling_started"
    POLLING_STOPPED = "polling_stopped"

    # Control path
    ADDRESS_CHANGED = "address_changed"
    VALVE_CHANGED = "valve_changed"
