"""In-memory Airtable and Webflow stand-ins for sync component tests."""

import asyncio
import copy
import itertools
from typing import Any, Dict, List, Optional

import pytest

from flowsync.core.exceptions import NotFoundException, StaleReferenceError
from flowsync.core.logging import LoggerConfigurator
from flowsync.platform.destinations._base import BaseDestination
from flowsync.platform.entities.airtable import SourceRecord
from flowsync.platform.entities.webflow import CollectionSchema, TargetItem
from flowsync.platform.sources._base import BaseSource
from flowsync.platform.sync.config import SyncExecutionConfig


class FakeSource(BaseSource):
    """Tables of records held in memory; ``select`` honours the sync state only."""

    def __init__(self, tables: Optional[Dict[str, List[SourceRecord]]] = None):
        super().__init__()
        self.tables: Dict[str, Dict[str, SourceRecord]] = {
            name: {r.id: r for r in records} for name, records in (tables or {}).items()
        }
        self.selects: List[Dict[str, Any]] = []
        self.updates: List[Dict[str, Any]] = []
        self.fail_select: Optional[Exception] = None
        self.fail_update: Optional[Exception] = None

    def add_record(self, table: str, record_id: str, fields: Dict[str, Any]) -> SourceRecord:
        record = SourceRecord(id=record_id, fields=fields)
        self.tables.setdefault(table, {})[record_id] = record
        return record

    async def select(self, table: str, formula: str, max_records: int) -> List[SourceRecord]:
        self.selects.append({"table": table, "formula": formula, "max_records": max_records})
        if self.fail_select:
            raise self.fail_select
        eligible = ("A Publier", "Mise à jour demandée")
        records = [
            r for r in self.tables.get(table, {}).values() if r.get("Status SYNC") in eligible
        ]
        return records[:max_records]

    async def update(self, table: str, record_id: str, fields: Dict[str, Any]) -> None:
        self.updates.append({"table": table, "record_id": record_id, "fields": dict(fields)})
        if self.fail_update:
            raise self.fail_update
        self.tables[table][record_id].fields.update(fields)

    async def find(self, table: str, record_id: str) -> SourceRecord:
        try:
            return self.tables[table][record_id]
        except KeyError:
            raise NotFoundException(f"Record {record_id} not found in {table}")


class FakeDestination(BaseDestination):
    """Collections, items and schemas held in memory.

    ``apply_patches`` controls whether a field patch becomes visible to later
    schema reads, which lets tests reproduce Webflow's eventual consistency.
    """

    def __init__(self):
        super().__init__()
        self.items: Dict[str, Dict[str, TargetItem]] = {}
        self.schemas: Dict[str, CollectionSchema] = {}
        self.apply_patches = True
        self.calls: List[tuple] = []
        self._ids = itertools.count(1)

    def add_item(self, collection_id: str, item_id: str, name: str) -> TargetItem:
        item = TargetItem(id=item_id, field_data={"name": name})
        self.items.setdefault(collection_id, {})[item_id] = item
        return item

    def add_schema(self, schema: Dict[str, Any]) -> None:
        model = CollectionSchema.model_validate(schema)
        self.schemas[model.id] = model

    def calls_to(self, method: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == method]

    async def get_collection_schema(self, collection_id: str) -> CollectionSchema:
        self.calls.append(("get_collection_schema", collection_id))
        return copy.deepcopy(self.schemas[collection_id])

    async def patch_field(
        self, collection_id: str, field_id: str, attributes: Dict[str, Any]
    ) -> None:
        self.calls.append(("patch_field", collection_id, field_id, attributes))
        if not self.apply_patches:
            return
        schema = self.schemas[collection_id]
        for field in schema.fields:
            if field.id == field_id:
                options = []
                for i, option in enumerate(attributes["validations"]["options"]):
                    options.append({"id": option.get("id") or f"opt-new-{i}", **option})
                field.validations = {"options": options}

    async def list_items(self, collection_id: str, limit: int) -> List[TargetItem]:
        self.calls.append(("list_items", collection_id, limit))
        return list(self.items.get(collection_id, {}).values())[:limit]

    async def create_item(self, collection_id: str, field_data: Dict[str, Any]) -> TargetItem:
        self.calls.append(("create_item", collection_id, field_data))
        item = TargetItem(id=f"item-{next(self._ids)}", field_data=dict(field_data))
        self.items.setdefault(collection_id, {})[item.id] = item
        return item

    async def update_item(
        self, collection_id: str, item_id: str, field_data: Dict[str, Any]
    ) -> None:
        self.calls.append(("update_item", collection_id, item_id, field_data))
        if item_id not in self.items.get(collection_id, {}):
            raise StaleReferenceError(
                "Webflow API Error 404: Requested resource not found",
                status_code=404,
                code="resource_not_found",
            )
        self.items[collection_id][item_id].field_data.update(field_data)


def option_schema(options: List[Dict[str, Any]], collection_id: str = "col-products"):
    """Products collection schema with a single Option field ``statut-vente-2``."""
    return {
        "id": collection_id,
        "displayName": "Produits",
        "fields": [
            {"id": "fld-name", "slug": "name", "displayName": "Name", "isRequired": True},
            {
                "id": "fld-statut",
                "slug": "statut-vente-2",
                "displayName": "Statut vente",
                "isRequired": False,
                "type": "Option",
                "validations": {"options": options},
            },
        ],
    }


@pytest.fixture
def fake_source():
    """Empty in-memory source."""
    return FakeSource()


@pytest.fixture
def fake_destination():
    """Empty in-memory destination."""
    return FakeDestination()


@pytest.fixture
def make_option_schema():
    """Factory for a products schema with the given option list."""
    return option_schema


@pytest.fixture
def sync_logger():
    """Logger used by the components under test."""
    return LoggerConfigurator.configure_logger("flowsync.tests")


@pytest.fixture
def sync_config():
    """Run configuration with instant option settling."""
    return SyncExecutionConfig(
        products_collection_id="col-products",
        categories_collection_id="col-categories",
        partners_collection_id="col-partners",
        option_settle_delay=0,
        option_max_attempts=1,
    )


class SlowDestination(FakeDestination):
    """Destination whose item writes yield to the event loop."""

    async def create_item(self, collection_id: str, field_data: Dict[str, Any]) -> TargetItem:
        await asyncio.sleep(0)
        return await super().create_item(collection_id, field_data)


@pytest.fixture
def make_stores():
    """Factory for an independent (source, slow destination) pair."""

    def _make():
        return FakeSource(), SlowDestination()

    return _make
