"""
Rate-limit policies.

A policy is called by the client with ``(request, error, resend)`` whenever a
request is answered with 429. ``resend`` performs the request once more and
raises MatrixRateLimitedError again if still limited; it never re-enters the
policy. The default fails without a second request.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, TypeVar

from .errors import MatrixRateLimitedError
from .urls import redact_url

if TYPE_CHECKING:
    from .client import PreparedRequest

T = TypeVar("T")

RateLimitPolicy = Callable[
    ["PreparedRequest", MatrixRateLimitedError, Callable[[], T]], T
]

log = logging.getLogger("matrix_client.ratelimit")


def fail_on_rate_limit(
    request: "PreparedRequest",
    error: MatrixRateLimitedError,
    resend: Callable[[], T],
) -> T:
    raise error


@dataclass(frozen=True)
class RetryAfterPolicy:
    """Sleep for the server's ``retry_after_ms`` hint and resubmit."""

    max_retries: int = 3
    default_delay_ms: int = 1000
    max_delay_ms: int = 30_000
    sleep: Callable[[float], None] = time.sleep

    def __call__(
        self,
        request: "PreparedRequest",
        error: MatrixRateLimitedError,
        resend: Callable[[], T],
    ) -> T:
        attempt = 0
        while True:
            if attempt >= self.max_retries:
                raise error

            delay_ms = error.retry_after_ms
            if delay_ms is None or delay_ms < 0:
                delay_ms = self.default_delay_ms
            delay_ms = min(delay_ms, self.max_delay_ms)

            log.info(
                "matrix.rate_limited",
                extra={
                    "method": request.method,
                    "url": redact_url(request.url),
                    "attempt": attempt + 1,
                    "retry_after_ms": delay_ms,
                },
            )
            self.sleep(delay_ms / 1000.0)
            attempt += 1
            try:
                return resend()
            except MatrixRateLimitedError as exc:
                error = exc


__all__ = ["RateLimitPolicy", "fail_on_rate_limit", "RetryAfterPolicy"]
