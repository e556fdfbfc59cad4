"""
Configuration for the PlantLink client
======================================
Runtime settings handed in by the presentation layer, plus the logging setup.

The client is a library-style core: configuration arrives as a mapping or a
ClientConfig instance, never from files or environment variables.
"""

import logging
import os
import sys
from contextlib import suppress
from dataclasses import dataclass, fields
from logging.handlers import RotatingFileHandler
from typing import Any, Mapping

from plantlink.domain.exceptions import ConfigurationError

DEFAULT_DEVICE_ADDRESS = "http://192.168.43.230"

# camelCase names used by the presentation layer -> dataclass field names
_MAPPING_ALIASES = {
    "defaultAddress": "default_address",
    "timeoutSeconds": "timeout_seconds",
    "maxRetries": "max_retries",
    "retryDelayMs": "retry_delay_ms",
    "pollIntervalMs": "poll_interval_ms",
    "eventQueueSize": "event_queue_size",
    "eventWorkerCount": "event_worker_count",
    "stopTimeoutSeconds": "stop_timeout_seconds",
}


@dataclass
class ClientConfig:
    """Settings for one device client instance."""

    default_address: str = DEFAULT_DEVICE_ADDRESS
    timeout_seconds: int = 15
    max_retries: int = 3
    retry_delay_ms: int = 1000
    # Matches the device firmware's 20s sampling interval
    poll_interval_ms: int = 20000

    # EventBus sizing
    event_queue_size: int = 256
    event_worker_count: int = 1

    # Upper bound for stop() waiting on an in-flight tick
    stop_timeout_seconds: float = 5.0

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> "ClientConfig":
        """
        Build a config from a plain mapping.

        Accepts snake_case field names and their camelCase aliases; unknown
        keys are ignored.

        Raises:
            ConfigurationError: If a value has the wrong type or range
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in (mapping or {}).items():
            name = _MAPPING_ALIASES.get(key, key)
            if name in known:
                values[name] = value

        config = cls(**values)
        config.validate()
        return config

    def validate(self) -> None:
        """Raise ConfigurationError listing every invalid setting."""
        problems = []

        if not isinstance(self.default_address, str) or not self.default_address.strip():
            problems.append("default_address must be a non-empty string")

        for name in ("timeout_seconds", "event_queue_size", "event_worker_count"):
            value = getattr(self, name)
            if not _is_integer(value) or value <= 0:
                problems.append(f"{name} must be a positive integer (got {value!r})")

        if not _is_number(self.poll_interval_ms) or self.poll_interval_ms <= 0:
            problems.append(f"poll_interval_ms must be a positive number (got {self.poll_interval_ms!r})")

        if not _is_integer(self.max_retries) or self.max_retries < 0:
            problems.append(f"max_retries must be zero or a positive integer (got {self.max_retries!r})")

        if not _is_number(self.retry_delay_ms) or self.retry_delay_ms < 0:
            problems.append(f"retry_delay_ms must be zero or positive (got {self.retry_delay_ms!r})")

        if not _is_number(self.stop_timeout_seconds) or self.stop_timeout_seconds < 0:
            problems.append(f"stop_timeout_seconds must be zero or positive (got {self.stop_timeout_seconds!r})")

        if problems:
            raise ConfigurationError("Invalid client configuration: " + "; ".join(problems), detail={"problems": problems})

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000.0

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def setup_logging(debug: bool = False, log_file: str | None = None) -> None:
    """Setup logging configuration."""
    log_level = logging.DEBUG if debug else logging.INFO

    # Root logger
    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid adding duplicate handlers when called more than once
    has_console = any(getattr(h, "name", "") == "plantlink_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "plantlink_file" for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "plantlink_console"
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if log_file and not has_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "plantlink_file"
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    # Ensure handler levels follow the desired log level
    for handler in root.handlers:
        if getattr(handler, "name", "") in {"plantlink_console", "plantlink_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info("Logging initialized at level: %s", logging.getLevelName(log_level))

    # urllib3 logs every connection attempt at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
