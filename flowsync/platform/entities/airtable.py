"""Airtable record model."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SourceRecord(BaseModel):
    """One row of the source table.

    ``fields`` holds Airtable's cell values keyed by column name: strings,
    numbers, lists of strings, attachment lists (``[{"url": ...}]``) and linked
    record ids. Airtable omits empty cells entirely.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    fields: Dict[str, Any] = Field(default_factory=dict)
    created_time: Optional[str] = Field(None, alias="createdTime")

    def get(self, name: str, default: Any = None) -> Any:
        """Return a cell value, or ``default`` if the cell is empty."""
        return self.fields.get(name, default)

    def first_link(self, name: str) -> Optional[str]:
        """Return the first linked record id of a link column."""
        value = self.fields.get(name)
        if isinstance(value, list) and value:
            return value[0]
        return None

    def attachment_urls(self, name: str) -> List[str]:
        """Return the URLs of an attachment column, in order."""
        attachments = self.fields.get(name) or []
        return [a["url"] for a in attachments if isinstance(a, dict) and a.get("url")]
