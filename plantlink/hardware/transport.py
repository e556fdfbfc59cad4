"""
HTTP Transport
==============

Single-attempt HTTP requests against the irrigation device.

The transport performs exactly one round trip per call and maps every failure
of the `requests` library onto the PlantLink TransportError family. Retrying
is the caller's job (see plantlink.utils.retry).
"""

import logging

import requests

from plantlink.domain.exceptions import (
    DeviceConnectionError,
    HttpStatusError,
    RequestTimeoutError,
    TransportError,
)

logger = logging.getLogger(__name__)


class HttpTransport:
    """
    Sends one HTTP request to the device and returns the response body.

    Attributes:
        timeout (float): Default timeout in seconds for every request.
    """

    DEFAULT_TIMEOUT = 15  # seconds

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        """
        Args:
            timeout: Default request timeout in seconds
            session: Optional session for connection reuse; a fresh
                connection is used per request when omitted
        """
        self.timeout = timeout
        self._session = session

    def send(self, url: str, method: str = "GET", timeout: float | None = None) -> str:
        """
        Perform a single HTTP request.

        Args:
            url: Absolute URL on the device
            method: HTTP method (the device only speaks GET)
            timeout: Per-call override of the default timeout

        Returns:
            Response body as text

        Raises:
            RequestTimeoutError: If the device did not answer in time
            DeviceConnectionError: If the connection was refused or failed
            HttpStatusError: If the status code is not 2xx
            TransportError: For any other request failure
        """
        effective_timeout = self.timeout if timeout is None else timeout
        requester = self._session.request if self._session is not None else requests.request

        logger.debug("%s %s (timeout=%ss)", method, url, effective_timeout)
        try:
            response = requester(method, url, timeout=effective_timeout)
        except requests.exceptions.Timeout as e:
            # ConnectTimeout is also a ConnectionError; report it as a timeout
            raise RequestTimeoutError(f"Request to {url} timed out after {effective_timeout}s", url=url) from e
        except requests.exceptions.ConnectionError as e:
            raise DeviceConnectionError(f"Could not connect to {url}: {e}", url=url) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request to {url} failed: {e}", url=url) from e

        try:
            status_code = response.status_code
            if not 200 <= status_code < 300:
                raise HttpStatusError(status_code, url=url, reason=response.reason)
            return response.text
        finally:
            response.close()
