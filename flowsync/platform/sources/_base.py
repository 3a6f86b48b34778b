"""Base source class."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from flowsync.core.logging import ContextualLogger
from flowsync.core.logging import logger as default_logger
from flowsync.platform.entities.airtable import SourceRecord


class BaseSource(ABC):
    """Interface of the tabular source-of-truth store."""

    def __init__(self):
        """Initialize the base source."""
        self._logger: Optional[ContextualLogger] = None

    @property
    def logger(self):
        """Get the logger for this source, falling back to default if not set."""
        if self._logger is not None:
            return self._logger
        return default_logger

    def set_logger(self, logger: ContextualLogger) -> None:
        """Set a contextual logger for this source."""
        self._logger = logger

    @abstractmethod
    async def select(self, table: str, formula: str, max_records: int) -> List[SourceRecord]:
        """Return up to ``max_records`` records of ``table`` matching ``formula``."""
        pass

    @abstractmethod
    async def update(self, table: str, record_id: str, fields: Dict[str, Any]) -> None:
        """Write ``fields`` onto a record, leaving other cells untouched."""
        pass

    @abstractmethod
    async def find(self, table: str, record_id: str) -> SourceRecord:
        """Fetch one record by id.

        Raises:
            NotFoundException: If the record does not exist
        """
        pass

    async def close(self) -> None:
        """Release network resources held by the source."""
        pass
