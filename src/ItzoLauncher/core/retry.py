"""Network retry policy: Tenacity-based backoff for metadata fetches.

Metadata services are reachable but flaky during early boot: connections are
refused while the link-local route settles, and the endpoints answer 5xx
while the hypervisor finishes provisioning.  The policy here is wrapped
around HTTPX calls made *after* a datasource was selected:

- Connection errors and timeouts are retried with backoff
- 429 and 5xx responses are retried with backoff
- The final outcome is handed back unchanged (exception re-raised, or the
  last response returned so the caller can ``raise_for_status()``)

Example:
    >>> from ItzoLauncher.core.retry import create_http_retry_policy
    >>> policy = create_http_retry_policy(max_attempts=3, max_delay_seconds=10)
    >>> response = policy(client.get, "http://169.254.169.254/2009-04-04/user-data")
"""

from __future__ import annotations

import logging

import httpx
from tenacity import (
    RetryCallState,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_random_exponential,
)

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})
RETRYABLE_EXCEPTIONS = (httpx.ConnectError, httpx.ConnectTimeout, httpx.ReadTimeout)


def _retry_on_status(response: object) -> bool:
    """Retry on 429 (rate-limit) or 5xx (server error)."""
    return getattr(response, "status_code", None) in RETRYABLE_STATUSES


def _last_outcome(retry_state: RetryCallState) -> object:
    # Re-raises the last exception, or returns the last (retryable) response.
    assert retry_state.outcome is not None
    return retry_state.outcome.result()


def create_http_retry_policy(
    max_attempts: int = 3,
    max_delay_seconds: float = 30,
) -> Retrying:
    """Create Tenacity retry policy for metadata HTTP requests.

    Args:
        max_attempts: Maximum number of attempts (default 3)
        max_delay_seconds: Overall deadline measured from the first attempt

    Returns:
        Configured Tenacity ``Retrying`` object; call it with the request
        function and its arguments.
    """
    return Retrying(
        stop=stop_after_attempt(max_attempts) | stop_after_delay(max_delay_seconds),
        wait=wait_random_exponential(multiplier=0.5, max=min(10, max_delay_seconds)),
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS) | retry_if_result(_retry_on_status),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        retry_error_callback=_last_outcome,
    )


__all__ = ["RETRYABLE_STATUSES", "create_http_retry_policy"]
