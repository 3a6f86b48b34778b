"""Base destination class."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from flowsync.core.logging import ContextualLogger
from flowsync.core.logging import logger as default_logger
from flowsync.platform.entities.webflow import CollectionSchema, TargetItem


class BaseDestination(ABC):
    """Interface of the schema-typed target collection store."""

    def __init__(self):
        """Initialize the base destination."""
        self._logger: Optional[ContextualLogger] = None

    @property
    def logger(self):
        """Get the logger for this destination, falling back to default if not set."""
        if self._logger is not None:
            return self._logger
        return default_logger

    def set_logger(self, logger: ContextualLogger) -> None:
        """Set a contextual logger for this destination."""
        self._logger = logger

    @abstractmethod
    async def get_collection_schema(self, collection_id: str) -> CollectionSchema:
        """Read a collection and its field definitions."""
        pass

    @abstractmethod
    async def patch_field(
        self, collection_id: str, field_id: str, attributes: Dict[str, Any]
    ) -> None:
        """Update a field definition.

        The call replaces the attributes it is given; callers must round-trip
        ``isRequired`` and ``displayName`` or they are cleared.
        """
        pass

    @abstractmethod
    async def list_items(self, collection_id: str, limit: int) -> List[TargetItem]:
        """Return the first ``limit`` items of a collection."""
        pass

    @abstractmethod
    async def create_item(self, collection_id: str, field_data: Dict[str, Any]) -> TargetItem:
        """Create a live item and return it."""
        pass

    @abstractmethod
    async def update_item(
        self, collection_id: str, item_id: str, field_data: Dict[str, Any]
    ) -> None:
        """Update an item.

        Raises:
            StaleReferenceError: If ``item_id`` no longer exists
        """
        pass

    async def close(self) -> None:
        """Release network resources held by the destination."""
        pass
