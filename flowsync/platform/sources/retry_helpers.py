"""Retry predicates and wait strategy shared by the store clients and the image fetcher.

Throttling (a real 429 or a synthetic one from RateLimitedHttpClient) honours
Retry-After; gateway errors and connection problems back off exponentially.
"""

from typing import Optional

import httpx
from tenacity import retry_if_exception, wait_exponential

RETRYABLE_GATEWAY_STATUSES = frozenset({502, 503, 504})
TRANSIENT_TRANSPORT_ERRORS = (httpx.ConnectTimeout, httpx.ReadTimeout, httpx.ConnectError)
UNSENT_TRANSPORT_ERRORS = (httpx.ConnectTimeout, httpx.ConnectError)

MIN_RETRY_AFTER_SECONDS = 1.0
MAX_RETRY_AFTER_SECONDS = 120.0

_throttle_backoff = wait_exponential(multiplier=1, min=2, max=30)
_transient_backoff = wait_exponential(multiplier=1, min=2, max=10)


def _status_of(exception: BaseException) -> Optional[int]:
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code
    return None


def is_throttled(exception: BaseException) -> bool:
    """True for 429 responses."""
    return _status_of(exception) == 429


def is_transient_failure(exception: BaseException) -> bool:
    """True for gateway errors, timeouts and refused connections."""
    status = _status_of(exception)
    if status is not None:
        return status in RETRYABLE_GATEWAY_STATUSES
    return isinstance(exception, TRANSIENT_TRANSPORT_ERRORS)


def is_retryable(exception: BaseException) -> bool:
    return is_throttled(exception) or is_transient_failure(exception)


def is_resendable(exception: BaseException) -> bool:
    """True when resending cannot apply a write twice: 429s and failed connections.

    A read timeout or gateway error may hide a request the server already applied.
    """
    return is_throttled(exception) or isinstance(exception, UNSENT_TRANSPORT_ERRORS)


def retry_after_seconds(response: httpx.Response) -> Optional[float]:
    """Parse a numeric Retry-After header, clamped to [1s, 120s]."""
    raw = response.headers.get("Retry-After")
    if not raw:
        return None
    try:
        seconds = float(raw)
    except ValueError:
        return None
    return min(max(seconds, MIN_RETRY_AFTER_SECONDS), MAX_RETRY_AFTER_SECONDS)


def wait_retry_after_or_backoff(retry_state) -> float:
    """Tenacity wait: Retry-After on 429, exponential backoff otherwise."""
    exception = retry_state.outcome.exception()
    if is_throttled(exception):
        delay = retry_after_seconds(exception.response)
        if delay is not None:
            return delay
        return _throttle_backoff(retry_state)
    return _transient_backoff(retry_state)


retry_if_retryable = retry_if_exception(is_retryable)
retry_if_resendable = retry_if_exception(is_resendable)
