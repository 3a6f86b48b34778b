"""httpx wrapper that takes a limiter slot before every request."""

from typing import Optional

import httpx

from flowsync.core.logging import ContextualLogger
from flowsync.platform.rate_limiters._base import BaseRateLimiter


class RateLimitedHttpClient:
    """Delegates to an ``httpx.AsyncClient`` once the store's limiter grants a slot.

    A limiter timeout is reported as an ``httpx.HTTPStatusError`` carrying a 429
    and a Retry-After of one window, so store clients handle local and remote
    throttling through the same retry path.
    """

    def __init__(
        self,
        wrapped_client: httpx.AsyncClient,
        rate_limiter: BaseRateLimiter,
        logger: Optional[ContextualLogger] = None,
    ):
        self._client = wrapped_client
        self._limiter = rate_limiter
        self._logger = logger

    def _throttled(self, method: str, url: str, reason: str) -> httpx.HTTPStatusError:
        window = int(self._limiter.RATE_LIMIT_WINDOW_SECONDS)
        request = httpx.Request(method, url)
        response = httpx.Response(429, headers={"Retry-After": str(window)}, request=request)
        return httpx.HTTPStatusError(
            f"{type(self._limiter).__name__} throttled {method} {url}: {reason}",
            request=request,
            response=response,
        )

    async def _slot(self, method: str, url: str) -> None:
        try:
            await self._limiter.acquire()
        except TimeoutError as e:
            if self._logger:
                self._logger.warning(f"⏳ Local throttle on {method} {url}: {e}")
            raise self._throttled(method, url, str(e)) from e

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send a request once a slot is granted.

        Raises:
            httpx.HTTPStatusError: 429 when the limiter gave up waiting
        """
        await self._slot(method, url)
        return await self._client.request(method, url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()
