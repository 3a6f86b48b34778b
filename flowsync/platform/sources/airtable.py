"""Airtable source implementation."""

from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import httpx
from tenacity import AsyncRetrying, stop_after_attempt

from flowsync.core.exceptions import NotFoundException, TransientRemoteError
from flowsync.core.logging import ContextualLogger
from flowsync.platform.entities.airtable import SourceRecord
from flowsync.platform.http_client import RateLimitedHttpClient
from flowsync.platform.rate_limiters import AirtableRateLimiter
from flowsync.platform.sources._base import BaseSource
from flowsync.platform.sources.retry_helpers import (
    is_retryable,
    retry_if_retryable,
    wait_retry_after_or_backoff,
)


def formula_any_of(field_name: str, values: Iterable[str]) -> str:
    """Build an Airtable ``filterByFormula`` matching any of ``values``.

    >>> formula_any_of("Status SYNC", ["A Publier", "Erreur"])
    "OR({Status SYNC} = 'A Publier', {Status SYNC} = 'Erreur')"
    """
    clauses = []
    for value in values:
        escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
        clauses.append(f"{{{field_name}}} = '{escaped}'")
    return f"OR({', '.join(clauses)})"


class AirtableSource(BaseSource):
    """Client for the Airtable Web API, scoped to one base.

    Only the first page of a selection is ever read: batches are kept small on
    purpose and anything left over is picked up by the next run.
    """

    def __init__(
        self,
        http_client: RateLimitedHttpClient,
        max_retries: int = 5,
        retry_wait=wait_retry_after_or_backoff,
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the source around an already configured client.

        Args:
            http_client: Client whose base URL points at ``{api_url}/{base_id}``
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
        api_key: str,
        base_id: str,
        api_url: str = "https://api.airtable.com/v0",
        timeout: float = 30.0,
        max_retries: int = 5,
        logger: Optional[ContextualLogger] = None,
    ) -> "AirtableSource":
        """Create a source with its own rate-limited httpx client."""
        client = httpx.AsyncClient(
            base_url=f"{api_url}/{base_id}",
            headers={"Authorization": f"Bearer {api_key}", "Accept": "application/json"},
            timeout=timeout,
        )
        return cls(
            RateLimitedHttpClient(client, AirtableRateLimiter(), logger=logger),
            max_retries=max_retries,
            logger=logger,
        )

    @staticmethod
    def _table_path(table: str, record_id: Optional[str] = None) -> str:
        path = f"/{quote(table, safe='')}"
        if record_id:
            path += f"/{quote(record_id, safe='')}"
        return path

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """Send a request, retrying rate limits and timeouts.

        Raises:
            httpx.HTTPStatusError: For non-retryable error statuses
            TransientRemoteError: When retries are exhausted
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_retries),
                retry=retry_if_retryable,
                wait=self._retry_wait,
                reraise=True,
            ):
                with attempt:
                    response = await self._client.request(method, path, **kwargs)
                    if response.status_code == 429:
                        self.logger.warning(
                            f"Airtable rate limit hit (429) on {method} {path}, will retry"
                        )
                    response.raise_for_status()
                    return response.json()
        except (httpx.HTTPStatusError, httpx.TransportError) as e:
            if is_retryable(e) or isinstance(e, httpx.TransportError):
                status = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
                raise TransientRemoteError(
                    f"Airtable {method} {path} failed after retries: {e}", status_code=status
                ) from e
            raise

    async def select(self, table: str, formula: str, max_records: int) -> List[SourceRecord]:
        """Return the first page of records matching ``formula``."""
        params = {"filterByFormula": formula, "maxRecords": max_records, "pageSize": max_records}
        data = await self._request("GET", self._table_path(table), params=params)
        return [SourceRecord.model_validate(r) for r in data.get("records", [])]

    async def update(self, table: str, record_id: str, fields: Dict[str, Any]) -> None:
        """PATCH the given cells of a record."""
        await self._request("PATCH", self._table_path(table, record_id), json={"fields": fields})

    async def find(self, table: str, record_id: str) -> SourceRecord:
        """Fetch one record.

        Raises:
            NotFoundException: If Airtable answers 404
        """
        try:
            data = await self._request("GET", self._table_path(table, record_id))
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise NotFoundException(f"Record {record_id} not found in {table}") from e
            raise
        return SourceRecord.model_validate(data)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
