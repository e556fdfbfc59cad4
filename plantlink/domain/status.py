"""
Device Status Value Objects
===========================
Immutable value objects exchanged between the device client, the poll loop
and its observers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from plantlink.constants import PLANT_COUNT, VALVE_PATH_TEMPLATE
from plantlink.domain.exceptions import ValidationError
from plantlink.enums.device import ValveAction
from plantlink.utils.time import utc_now


@dataclass(frozen=True)
class StatusReading:
    """
    Decoded snapshot of device status at one point in time.

    ``received_at`` is informational and does not take part in equality.
    """

    moisture: tuple[int, int, int]
    pump_running: bool
    valves_running: tuple[bool, bool, bool]
    received_at: datetime = field(default_factory=utc_now, compare=False)

    def moisture_for(self, plant_index: int) -> int:
        return self.moisture[plant_index]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            "moisture": list(self.moisture),
            "pump_running": self.pump_running,
            "valves_running": list(self.valves_running),
            "received_at": self.received_at.isoformat(),
        }


@dataclass(frozen=True)
class ValveCommand:
    """One control intent for a single plant valve."""

    plant_index: int
    action: ValveAction

    def __post_init__(self) -> None:
        if isinstance(self.plant_index, bool) or not isinstance(self.plant_index, int):
            raise ValidationError(f"plant_index must be an integer, got {self.plant_index!r}")
        if not 0 <= self.plant_index < PLANT_COUNT:
            raise ValidationError(
                f"plant_index must be between 0 and {PLANT_COUNT - 1}, got {self.plant_index}",
                detail={"plant_index": self.plant_index},
            )

    @classmethod
    def for_plant(cls, plant_index: int, on: bool) -> "ValveCommand":
        return cls(plant_index, ValveAction.from_bool(on))

    @property
    def path(self) -> str:
        """Device path, e.g. ``/valve1on`` for plant index 0."""
        return VALVE_PATH_TEMPLATE.format(number=self.plant_index + 1, action=self.action.value)

    @property
    def label(self) -> str:
        return f"Plant {self.plant_index + 1} {self.action.value.upper()}"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a connection test or valve command. Truthy iff ``ok``."""

    ok: bool
    url: str
    error: str | None = None

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class PollFailure:
    """Failure notice published when a poll tick could not produce a reading."""

    message: str
    url: str | None
    error_type: str
    occurred_at: datetime = field(default_factory=utc_now)
