"""Webflow CMS destination (Data API v2)."""

from typing import Any, Dict, List, Optional

import httpx
from tenacity import AsyncRetrying, stop_after_attempt

from flowsync.core.exceptions import StaleReferenceError, TargetStoreError, TransientRemoteError
from flowsync.core.logging import ContextualLogger
from flowsync.platform.destinations._base import BaseDestination
from flowsync.platform.entities.webflow import CollectionSchema, TargetItem
from flowsync.platform.http_client import RateLimitedHttpClient
from flowsync.platform.rate_limiters import WebflowRateLimiter
from flowsync.platform.sources.retry_helpers import (
    is_retryable,
    retry_after_seconds,
    retry_if_resendable,
    retry_if_retryable,
    wait_retry_after_or_backoff,
)

RESOURCE_NOT_FOUND = "resource_not_found"


def _error_payload(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {"message": response.text}
    return data if isinstance(data, dict) else {"message": str(data)}


class WebflowDestination(BaseDestination):
    """Client for Webflow collections, fields and items.

    Error mapping:
    - 429 / timeouts / gateway errors are retried, then raised as TransientRemoteError;
      item creation and field patches are only retried on 429 or a refused connection
    - 404 or ``code == "resource_not_found"`` on an item raises StaleReferenceError
    - any other error status raises TargetStoreError with Webflow's code and details
    """

    def __init__(
        self,
        http_client: RateLimitedHttpClient,
        max_retries: int = 5,
        retry_wait=wait_retry_after_or_backoff,
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the destination around an already configured client.

        Args:
            http_client: Client whose base URL points at the Data API root
            max_retries: Attempts for rate-limited or timed out requests
            retry_wait: tenacity wait strategy between attempts
            logger: Contextual logger
        """
        super().__init__()
        self._client = http_client
        self._max_retries = max_retries
        self._retry_wait = retry_wait
        if logger is not None:
            self.set_logger(logger)

    @classmethod
    def create(
        cls,
        api_token: str,
        api_url: str = "https://api.webflow.com/v2",
        timeout: float = 30.0,
        max_retries: int = 5,
        logger: Optional[ContextualLogger] = None,
    ) -> "WebflowDestination":
        """Create a destination with its own rate-limited httpx client."""
        client = httpx.AsyncClient(
            base_url=api_url,
            headers={
                "Authorization": f"Bearer {api_token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )
        return cls(
            RateLimitedHttpClient(client, WebflowRateLimiter(), logger=logger),
            max_retries=max_retries,
            logger=logger,
        )

    async def _request(
        self, method: str, path: str, idempotent: bool = True, **kwargs
    ) -> Dict[str, Any]:
        """Send a request and translate failures into flowsync exceptions.

        Non-idempotent requests are only resent after a 429 or a failed connection;
        a read timeout may mean the write already happened.
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_retries),
                retry=retry_if_retryable if idempotent else retry_if_resendable,
                wait=self._retry_wait,
                reraise=True,
            ):
                with attempt:
                    response = await self._client.request(method, path, **kwargs)
                    if response.status_code == 429:
                        retry_after = response.headers.get("Retry-After", "unknown")
                        self.logger.warning(
                            f"Webflow rate limit hit (429) on {method} {path} "
                            f"(will retry after {retry_after}s)"
                        )
                    response.raise_for_status()
                    if not response.content:
                        return {}
                    return response.json()
        except httpx.TransportError as e:
            raise TransientRemoteError(f"Webflow {method} {path} transport error: {e}") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if is_retryable(e):
                raise TransientRemoteError(
                    f"Webflow {method} {path} still failing after retries ({status})",
                    status_code=status,
                    retry_after=retry_after_seconds(e.response),
                ) from e
            payload = _error_payload(e.response)
            error_cls = TargetStoreError
            if status == 404 or payload.get("code") == RESOURCE_NOT_FOUND:
                error_cls = StaleReferenceError
            raise error_cls(
                f"Webflow API Error {status}: {payload.get('message', e.response.text)}",
                status_code=status,
                code=payload.get("code"),
                details=payload.get("details"),
            ) from e

    async def get_collection_schema(self, collection_id: str) -> CollectionSchema:
        """GET /collections/{collection_id}."""
        data = await self._request("GET", f"/collections/{collection_id}")
        return CollectionSchema.model_validate(data)

    async def patch_field(
        self, collection_id: str, field_id: str, attributes: Dict[str, Any]
    ) -> None:
        """PATCH /collections/{collection_id}/fields/{field_id}."""
        await self._request(
            "PATCH",
            f"/collections/{collection_id}/fields/{field_id}",
            idempotent=False,
            json=attributes,
        )

    async def list_items(self, collection_id: str, limit: int) -> List[TargetItem]:
        """GET the first page of items (Webflow caps ``limit`` at 100)."""
        data = await self._request(
            "GET", f"/collections/{collection_id}/items", params={"limit": limit}
        )
        return [TargetItem.model_validate(i) for i in data.get("items") or []]

    async def create_item(self, collection_id: str, field_data: Dict[str, Any]) -> TargetItem:
        """POST a new published item."""
        body = {"isArchived": False, "isDraft": False, "fieldData": field_data}
        data = await self._request(
            "POST", f"/collections/{collection_id}/items", idempotent=False, json=body
        )
        return TargetItem.model_validate(data)

    async def update_item(
        self, collection_id: str, item_id: str, field_data: Dict[str, Any]
    ) -> None:
        """PATCH an existing item.

        Raises:
            StaleReferenceError: If the item was deleted out of band
        """
        body = {"isArchived": False, "isDraft": False, "fieldData": field_data}
        await self._request("PATCH", f"/collections/{collection_id}/items/{item_id}", json=body)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
