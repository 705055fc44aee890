"""
HTTP Retry Policy Tests

Covers:
- Retry on connection errors and retryable status codes
- No retry on success or non-retryable status codes
- Final outcome handed back unchanged once attempts are exhausted
"""

from __future__ import annotations

from typing import List

import httpx
import pytest
from tenacity import wait_none

from ItzoLauncher.core.retry import RETRYABLE_STATUSES, create_http_retry_policy

URL = "http://169.254.169.254/2009-04-04/user-data"


def _client(responses: List[object]) -> httpx.Client:
    calls = iter(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        outcome = next(calls)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    return httpx.Client(transport=httpx.MockTransport(handler))


def _policy(max_attempts: int = 3):
    return create_http_retry_policy(max_attempts=max_attempts).copy(wait=wait_none())


def test_success_is_not_retried() -> None:
    client = _client([httpx.Response(200, content=b"ok")])

    response = _policy()(client.get, URL)

    assert response.content == b"ok"


@pytest.mark.parametrize("status", sorted(RETRYABLE_STATUSES))
def test_retryable_status_then_success(status: int) -> None:
    client = _client([httpx.Response(status), httpx.Response(200, content=b"ok")])

    response = _policy()(client.get, URL)

    assert response.status_code == 200


def test_connection_error_then_success() -> None:
    client = _client([httpx.ConnectError("refused"), httpx.Response(200, content=b"ok")])

    assert _policy()(client.get, URL).status_code == 200


def test_exhausted_status_returns_last_response() -> None:
    client = _client([httpx.Response(503)] * 3)

    response = _policy(max_attempts=3)(client.get, URL)

    assert response.status_code == 503


def test_exhausted_exception_is_reraised() -> None:
    client = _client([httpx.ConnectError("refused")] * 2)

    with pytest.raises(httpx.ConnectError):
        _policy(max_attempts=2)(client.get, URL)


def test_not_found_is_not_retried() -> None:
    client = _client([httpx.Response(404)])

    assert _policy()(client.get, URL).status_code == 404
