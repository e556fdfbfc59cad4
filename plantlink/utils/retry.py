"""
Retry utilities.

Bounded, strictly sequential retry with a flat (non-exponential) delay
between attempts.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from plantlink.domain.exceptions import RetriesExhaustedError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryContext:
    """State of one guarded call; discarded when the call returns."""

    attempt: int
    max_attempts: int
    base_delay: float

    @property
    def total_attempts(self) -> int:
        return self.attempt + 1

    @property
    def can_retry(self) -> bool:
        return self.attempt < self.max_attempts


class RetryPolicy:
    """
    Wraps an operation with bounded fixed-delay retry.

    ``max_retries`` counts retries, not tries: the default of 3 allows one
    initial attempt plus three retries.
    """

    def __init__(
        self,
        max_retries: int = 3,
        delay_seconds: float = 1.0,
        *,
        retry_on: tuple[type[BaseException], ...] = (TransportError,),
        sleep: Callable[[float], None] = time.sleep,
        on_retry: Callable[[RetryContext, BaseException], None] | None = None,
    ):
        self.max_retries = max(0, int(max_retries))
        self.delay_seconds = max(0.0, float(delay_seconds))
        self.retry_on = retry_on
        self._sleep = sleep
        self._on_retry = on_retry

    def call(self, operation: Callable[[], T], *, url: str | None = None, context: str = "") -> T:
        """
        Run ``operation`` until it succeeds or the retry budget is spent.

        Args:
            operation: Zero-argument callable performing one attempt
            url: URL being requested, attached to the final error
            context: Short label for log lines (e.g. "Plant 1 ON")

        Returns:
            Whatever ``operation`` returns on its first successful attempt

        Raises:
            RetriesExhaustedError: If every attempt failed with a retryable error
        """
        ctx = RetryContext(attempt=0, max_attempts=self.max_retries, base_delay=self.delay_seconds)
        label = context or url or "operation"

        while True:
            try:
                return operation()
            except self.retry_on as exc:
                if not ctx.can_retry:
                    logger.error(
                        "%s failed after %d attempt(s): %s (URL: %s)",
                        label,
                        ctx.total_attempts,
                        exc,
                        url,
                    )
                    raise RetriesExhaustedError(
                        f"{exc}", url=url, attempts=ctx.total_attempts, cause=exc
                    ) from exc

                logger.warning(
                    "%s attempt %d/%d failed: %s; retrying in %.1fs",
                    label,
                    ctx.total_attempts,
                    ctx.max_attempts + 1,
                    exc,
                    ctx.base_delay,
                )
                if self._on_retry is not None:
                    self._on_retry(ctx, exc)
                self._sleep(ctx.base_delay)
                ctx.attempt += 1
