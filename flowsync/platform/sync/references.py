"""Dedup-or-create resolution of linked collection references."""

from typing import Any, Optional

import httpx

from flowsync.core.exceptions import FlowsyncException
from flowsync.core.logging import ContextualLogger
from flowsync.core.logging import logger as default_logger
from flowsync.platform.destinations._base import BaseDestination
from flowsync.platform.sync.field_mapper import slugify
from flowsync.platform.sync.types import Resolution


class ReferenceResolver:
    """Find a linked item by display name, creating it when absent.

    Only the first page of the linked collection is scanned. Past that page a
    name that already exists is not seen and a duplicate gets created; the
    resolver logs a warning whenever the page came back full without a match.
    """

    def __init__(
        self,
        destination: BaseDestination,
        lookup_limit: int = 100,
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the resolver.

        Args:
            destination: Target store client
            lookup_limit: Page size of the name lookup (Webflow max is 100)
            logger: Contextual logger
        """
        self.destination = destination
        self.lookup_limit = lookup_limit
        self.logger = logger or default_logger

    async def resolve(self, collection_id: str, display_name: Any) -> Resolution:
        """Return the id of the item named ``display_name``, creating it if needed.

        Errors never propagate: a reference that cannot be resolved is reported
        as FAILED and the caller leaves the field out of its payload.
        """
        name = str(display_name).strip() if display_name is not None else ""
        if not name:
            return Resolution.omitted("empty name")

        try:
            items = await self.destination.list_items(collection_id, self.lookup_limit)
            wanted = name.lower()
            match = next(
                (i for i in items if i.name and str(i.name).lower() == wanted),
                None,
            )
            if match:
                return Resolution.resolved(match.id)

            if len(items) >= self.lookup_limit:
                self.logger.warning(
                    f"Lookup page of collection {collection_id} is full ({len(items)} items); "
                    f"'{name}' may already exist beyond it"
                )

            created = await self.destination.create_item(
                collection_id, {"name": name, "slug": slugify(name)}
            )
            self.logger.info(
                f"   ➕ Created '{name}' in collection {collection_id} ({created.id})"
            )
            return Resolution.resolved(created.id)
        except (FlowsyncException, httpx.HTTPError, ValueError) as e:
            return Resolution.failed(f"{name}: {e}")
