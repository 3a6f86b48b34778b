"""Tests for RateLimitedHttpClient and the sliding-window limiters.

Tests the HTTP client wrapper that adds rate limiting to store API calls.
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from flowsync.core.logging import logger
from flowsync.platform.http_client import RateLimitedHttpClient
from flowsync.platform.rate_limiters import AirtableRateLimiter, WebflowRateLimiter
from flowsync.platform.rate_limiters._base import BaseRateLimiter


class TinyRateLimiter(BaseRateLimiter):
    """Two requests per window, gives up almost immediately."""

    MAX_REQUESTS_PER_WINDOW = 2
    RATE_LIMIT_WINDOW_SECONDS = 60.0
    MAX_WAIT_FOR_SLOT_SECONDS = 0.05
    POLL_INTERVAL_SECONDS = 0.01

    _instance = None


@pytest.fixture
def tiny_limiter():
    """Fresh tiny limiter."""
    limiter = TinyRateLimiter()
    limiter.reset()
    return limiter


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx.AsyncClient."""
    mock = MagicMock()
    mock.request = AsyncMock(return_value=MagicMock(status_code=200))
    mock.aclose = AsyncMock()
    return mock


@pytest.mark.asyncio
async def test_client_allows_request_under_limit(tiny_limiter, mock_httpx_client):
    """Requests under the limit are delegated to the wrapped client."""
    client = RateLimitedHttpClient(mock_httpx_client, tiny_limiter, logger=logger)

    await client.request("GET", "https://api.webflow.com/v2/collections/c1")

    mock_httpx_client.request.assert_called_once_with(
        "GET", "https://api.webflow.com/v2/collections/c1"
    )


@pytest.mark.asyncio
async def test_client_converts_timeout_to_429(tiny_limiter, mock_httpx_client):
    """No free slot within the max wait surfaces as an HTTP 429."""
    client = RateLimitedHttpClient(mock_httpx_client, tiny_limiter, logger=logger)

    await client.request("GET", "https://api.example.com/a")
    await client.request("GET", "https://api.example.com/b")
    with pytest.raises(httpx.HTTPStatusError) as exc_info:
        await client.request("GET", "https://api.example.com/c")

    assert exc_info.value.response.status_code == 429
    assert exc_info.value.response.headers["Retry-After"] == "60"
    assert mock_httpx_client.request.call_count == 2


@pytest.mark.asyncio
async def test_client_passes_request_arguments_through(mock_httpx_client):
    """Method, URL and keyword arguments reach the wrapped client unchanged."""
    limiter = WebflowRateLimiter()
    limiter.reset()
    client = RateLimitedHttpClient(mock_httpx_client, limiter, logger=logger)

    await client.request("PATCH", "/collections/c1/items/i1", json={"key": "value"})

    mock_httpx_client.request.assert_called_once_with(
        "PATCH", "/collections/c1/items/i1", json={"key": "value"}
    )
    limiter.reset()


@pytest.mark.asyncio
async def test_client_aclose_closes_wrapped_client(tiny_limiter, mock_httpx_client):
    """Closing the wrapper closes the wrapped httpx client."""
    client = RateLimitedHttpClient(mock_httpx_client, tiny_limiter)

    await client.aclose()

    mock_httpx_client.aclose.assert_awaited_once()


def test_limiters_are_per_class_singletons():
    """One instance per limiter type and process."""
    assert WebflowRateLimiter() is WebflowRateLimiter()
    assert AirtableRateLimiter() is AirtableRateLimiter()
    assert WebflowRateLimiter() is not AirtableRateLimiter()
    assert WebflowRateLimiter.RATE_LIMIT_WINDOW_SECONDS == 60.0
    assert AirtableRateLimiter.RATE_LIMIT_WINDOW_SECONDS == 1.0
