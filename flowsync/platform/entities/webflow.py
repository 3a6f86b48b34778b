"""Webflow CMS v2 models (collections, fields, items)."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FieldOption(BaseModel):
    """One choice of an Option field."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: str


class SchemaField(BaseModel):
    """A field of a collection schema."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    slug: str
    display_name: Optional[str] = Field(None, alias="displayName")
    is_required: bool = Field(False, alias="isRequired")
    type: Optional[str] = None
    validations: Optional[Dict[str, Any]] = None
    options: Optional[List[FieldOption]] = None

    @property
    def option_list(self) -> List[FieldOption]:
        """Options as exposed by the API (``validations.options`` first)."""
        raw = (self.validations or {}).get("options")
        if raw:
            return [FieldOption.model_validate(o) for o in raw]
        return list(self.options or [])

    def find_option(self, name: str) -> Optional[FieldOption]:
        """Case-insensitive lookup of an option by name; first match wins."""
        wanted = name.lower()
        for option in self.option_list:
            if option.name.lower() == wanted:
                return option
        return None


class CollectionSchema(BaseModel):
    """A collection and its fields."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    display_name: Optional[str] = Field(None, alias="displayName")
    slug: Optional[str] = None
    fields: List[SchemaField] = Field(default_factory=list)

    def field_by_slug(self, slug: str) -> Optional[SchemaField]:
        """Return the field with ``slug``, if the collection has one."""
        return next((f for f in self.fields if f.slug == slug), None)


class TargetItem(BaseModel):
    """A collection item."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    field_data: Dict[str, Any] = Field(default_factory=dict, alias="fieldData")
    is_archived: bool = Field(False, alias="isArchived")
    is_draft: bool = Field(False, alias="isDraft")

    @property
    def name(self) -> Optional[str]:
        """Display name of the item."""
        return self.field_data.get("name")
