"""Bounded fixed-backoff retries for idempotent requests.

Wraps :class:`~FleetHTTP.network.executor.RequestExecutor` in a Tenacity
retry loop:

- **Retryable responses**: 500, 502, 503, 504
- **Retryable exceptions**: transport failures (connection reset, malformed
  response, timeout, DNS failure); never TLS failures
- **Backoff**: fixed interval between attempts, no jitter, no growth
- **Resolution**: the last response received is returned even when it is a 5xx;
  only a budget that ends in a transport error with no response at all raises

The coordinator does not check idempotency itself; callers decide which
requests are safe to repeat.

Example:
    >>> coordinator = RetryCoordinator(2, executor, site)
    >>> response = coordinator.execute_with_retries(transport, request)
"""

import functools
import logging
import time
from typing import Any, Callable, List

import httpx
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from FleetHTTP.errors import RetryLimitExceeded
from FleetHTTP.network.executor import RequestExecutor
from FleetHTTP.network.policy import RETRY_BACKOFF_SECONDS, RETRYABLE_STATUS_CODES
from FleetHTTP.network.request import Request
from FleetHTTP.network.site import Site
from FleetHTTP.network.tls import find_ssl_error

logger = logging.getLogger(__name__)


# ============================================================================
# Retry Predicates
# ============================================================================


def is_transient_error(exc: BaseException) -> bool:
    """Return True for transport failures worth another attempt.

    TLS failures are excluded even though ``ssl.SSLError`` is an ``OSError``:
    a bad certificate will not get better by asking again.
    """
    if find_ssl_error(exc) is not None:
        return False
    return isinstance(exc, (httpx.TransportError, OSError))


def is_retryable_response(response: Any) -> bool:
    """Return True for transient server failures (500/502/503/504)."""
    return getattr(response, "status_code", None) in RETRYABLE_STATUS_CODES


# ============================================================================
# Coordinator
# ============================================================================


class RetryCoordinator:
    """Attempt a request up to ``retry_limit + 1`` times."""

    def __init__(
        self,
        retry_limit: int,
        executor: RequestExecutor,
        site: Site,
        backoff_seconds: float = RETRY_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if retry_limit < 0:
            raise ValueError(f"retry_limit must be >= 0, got {retry_limit}")
        self.retry_limit = retry_limit
        self.backoff_seconds = backoff_seconds
        self._executor = executor
        self._site = site
        self._sleep = sleep

    def execute_with_retries(self, transport: Any, request: Request) -> httpx.Response:
        """Send ``request`` with retries and return the last response received.

        Raises:
            RetryLimitExceeded: If the final attempt raised a transport error
                and no earlier attempt produced a response
            Exception: Any non-transient error, on its first occurrence
        """
        received: List[httpx.Response] = []

        def attempt() -> httpx.Response:
            response = self._executor.execute(transport, request)
            received.append(response)
            return response

        retrying = Retrying(
            stop=stop_after_attempt(self.retry_limit + 1),
            wait=wait_fixed(self.backoff_seconds),
            retry=retry_if_exception(is_transient_error) | retry_if_result(is_retryable_response),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            retry_error_callback=functools.partial(self._resolve_exhausted, received=received),
        )
        return retrying(attempt)

    def _resolve_exhausted(
        self, retry_state: RetryCallState, received: List[httpx.Response]
    ) -> httpx.Response:
        """Pick the result once attempts run out.

        The last response received wins over a final transport error; with no
        response at all the error becomes :class:`RetryLimitExceeded`.
        """
        outcome = retry_state.outcome
        if outcome is None:
            raise RuntimeError("retry loop ended without an attempt")
        if not outcome.failed:
            return outcome.result()
        if received:
            logger.warning(
                "Final attempt failed; returning the last response received",
                extra={
                    "site": self._site.addr,
                    "status": received[-1].status_code,
                    "error": type(outcome.exception()).__name__,
                },
            )
            return received[-1]
        raise RetryLimitExceeded(
            self._site.host, self._site.port, retry_state.attempt_number
        ) from outcome.exception()

    def _log_retry(self, retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        if outcome is None:
            return
        if outcome.failed:
            reason = type(outcome.exception()).__name__
        else:
            reason = f"HTTP {outcome.result().status_code}"
        logger.warning(
            "Retrying HTTP request after %s (attempt %d of %d)",
            reason,
            retry_state.attempt_number,
            self.retry_limit + 1,
            extra={
                "site": self._site.addr,
                "attempt": retry_state.attempt_number,
                "sleep_seconds": self.backoff_seconds,
            },
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(retry_limit={self.retry_limit})"


__all__ = [
    "RETRYABLE_STATUS_CODES",
    "RetryCoordinator",
    "is_retryable_response",
    "is_transient_error",
]
