"""Centralized exception hierarchy for PlantLink.

All client errors inherit from :class:`PlantLinkError` so that callers can
catch a single base class when they need a broad safety net, yet still match
on specific subclasses where narrower handling is appropriate.

Hierarchy
---------
::

    PlantLinkError (base)
    ├── ValidationError              (bad input from caller)
    │   └── InvalidAddressError      (device address cannot be used)
    ├── ConfigurationError           (missing / invalid config)
    └── DeviceError                  (device communication)
        ├── TransportError           (single HTTP attempt failed)
        │   ├── RequestTimeoutError
        │   ├── DeviceConnectionError
        │   └── HttpStatusError      (non-2xx response)
        ├── MalformedPayloadError    (status body has the wrong shape)
        └── RetriesExhaustedError    (guarded call gave up)
"""

from __future__ import annotations


class PlantLinkError(Exception):
    """Base exception for all PlantLink errors.

    Parameters
    ----------
    message:
        Human-readable description.
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Caller errors ────────────────────────────────────────────────────


class ValidationError(PlantLinkError):
    """Caller supplied invalid or incomplete input."""


class InvalidAddressError(ValidationError):
    """Device address is empty or not a usable http(s) URL."""


class ConfigurationError(PlantLinkError):
    """Missing or invalid client configuration."""


# ── Device errors ────────────────────────────────────────────────────


class DeviceError(PlantLinkError):
    """Hardware communication or device-protocol failure."""


class TransportError(DeviceError):
    """A single HTTP request to the device failed."""

    def __init__(self, message: str = "", *, url: str | None = None, detail: dict | None = None) -> None:
        super().__init__(message, detail=detail)
        self.url = url


class RequestTimeoutError(TransportError):
    """The device did not answer within the transport timeout."""


class DeviceConnectionError(TransportError):
    """The connection was refused or the device is unreachable."""


class HttpStatusError(TransportError):
    """The device answered with a non-2xx status code."""

    def __init__(self, status_code: int, *, url: str | None = None, reason: str | None = None) -> None:
        message = f"HTTP {status_code}" + (f" {reason}" if reason else "")
        super().__init__(message, url=url, detail={"status_code": status_code})
        self.status_code = status_code


class MalformedPayloadError(DeviceError):
    """Status payload is not valid JSON or is missing / mistyping a field."""


class RetriesExhaustedError(DeviceError):
    """A guarded call failed on every attempt.

    The last underlying error is available both as ``cause`` and as the
    chained ``__cause__``.
    """

    def __init__(self, message: str, *, url: str | None, attempts: int, cause: BaseException) -> None:
        super().__init__(message, detail={"url": url, "attempts": attempts, "cause": type(cause).__name__})
        self.url = url
        self.attempts = attempts
        self.cause = cause
