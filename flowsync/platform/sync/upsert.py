"""Create-or-update of target items with self-healing of stale ids."""

from typing import Any, Dict, Optional

from flowsync.core.exceptions import StaleReferenceError
from flowsync.core.logging import ContextualLogger
from flowsync.core.logging import logger as default_logger
from flowsync.core.shared_models import UpsertOutcome
from flowsync.platform.destinations._base import BaseDestination
from flowsync.platform.sync.types import UpsertResult


class UpsertReconciler:
    """Persist a payload as a target item.

    - no cached id: create
    - cached id: update; if the item is gone (StaleReferenceError), create a new
      one and return its id so the caller overwrites the cached id
    - any other failure propagates and the record ends in error

    At most one write succeeds per call.
    """

    def __init__(self, destination: BaseDestination, logger: Optional[ContextualLogger] = None):
        """Initialize the reconciler with the target store client."""
        self.destination = destination
        self.logger = logger or default_logger

    async def upsert(
        self, collection_id: str, cached_id: Optional[str], payload: Dict[str, Any]
    ) -> UpsertResult:
        """Create or update the item for one record."""
        if not cached_id:
            self.logger.info("   🚀 Creating...")
            item = await self.destination.create_item(collection_id, payload)
            self.logger.info(f"   ✅ Created (ID: {item.id})")
            return UpsertResult(item.id, UpsertOutcome.CREATED)

        self.logger.info("   🚀 Updating...")
        try:
            await self.destination.update_item(collection_id, cached_id, payload)
        except StaleReferenceError:
            self.logger.warning(f"   ⚠️ Item {cached_id} not found (404), recreating it...")
            item = await self.destination.create_item(collection_id, payload)
            self.logger.info(f"   ✅ Recreated (new ID: {item.id})")
            return UpsertResult(item.id, UpsertOutcome.RECREATED)

        self.logger.info("   ✅ Updated.")
        return UpsertResult(cached_id, UpsertOutcome.UPDATED)
