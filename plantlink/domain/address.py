"""
Device Address Value Object
===========================
Immutable base URL of the irrigation device.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from plantlink.constants import DEFAULT_SCHEME, SUPPORTED_SCHEMES
from plantlink.domain.exceptions import InvalidAddressError


@dataclass(frozen=True)
class DeviceAddress:
    """
    Validated base URL (scheme + host[:port]) of the device.

    Always carries an explicit scheme and never a trailing slash, so paths
    can be appended directly.
    """

    base_url: str

    @classmethod
    def parse(cls, text: str | None) -> "DeviceAddress":
        """
        Build an address from operator input.

        Args:
            text: Raw input such as ``"10.0.0.5"`` or ``"http://esp32.local:8080"``

        Returns:
            DeviceAddress with a scheme prepended when none was given

        Raises:
            InvalidAddressError: If input is empty or not an http(s) URL with a host
        """
        candidate = (text or "").strip()
        if not candidate:
            raise InvalidAddressError("Device address must not be empty")

        if "://" not in candidate:
            candidate = f"{DEFAULT_SCHEME}://{candidate}"

        try:
            parts = urlsplit(candidate)
            # Accessing .port validates the port range
            parts.port
        except ValueError as exc:
            raise InvalidAddressError(f"Invalid device address {text!r}: {exc}", detail={"input": text}) from exc

        if parts.scheme.lower() not in SUPPORTED_SCHEMES:
            raise InvalidAddressError(
                f"Unsupported scheme {parts.scheme!r} in device address {text!r}", detail={"input": text}
            )
        if not parts.hostname:
            raise InvalidAddressError(f"Device address {text!r} has no host", detail={"input": text})

        return cls(candidate.rstrip("/"))

    def url_for(self, path: str) -> str:
        """Join a device path (``/status``) onto the base URL."""
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    def __str__(self) -> str:
        return self.base_url
