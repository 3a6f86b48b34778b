"""Wire-format models for the source and target stores."""

from .airtable import SourceRecord
from .webflow import CollectionSchema, FieldOption, SchemaField, TargetItem

__all__ = ["CollectionSchema", "FieldOption", "SchemaField", "SourceRecord", "TargetItem"]
