"""Tests for UpsertReconciler create/update/self-heal paths."""

from unittest.mock import AsyncMock

import pytest

from flowsync.core.exceptions import TargetStoreError
from flowsync.core.shared_models import UpsertOutcome
from flowsync.platform.sync.upsert import UpsertReconciler


@pytest.mark.asyncio
async def test_no_cached_id_creates(fake_destination, sync_logger):
    """Without a cached id exactly one create happens and no update."""
    reconciler = UpsertReconciler(fake_destination, logger=sync_logger)

    result = await reconciler.upsert("col-products", None, {"name": "Chaise"})

    assert result.outcome == UpsertOutcome.CREATED
    assert [c[0] for c in fake_destination.calls] == ["create_item"]
    assert fake_destination.items["col-products"][result.item_id].name == "Chaise"


@pytest.mark.asyncio
async def test_cached_id_updates(fake_destination, sync_logger):
    """A live cached id is updated in place and returned unchanged."""
    fake_destination.add_item("col-products", "item-live", "Ancienne chaise")
    reconciler = UpsertReconciler(fake_destination, logger=sync_logger)

    result = await reconciler.upsert("col-products", "item-live", {"name": "Chaise"})

    assert result.item_id == "item-live"
    assert result.outcome == UpsertOutcome.UPDATED
    assert fake_destination.calls_to("create_item") == []
    assert fake_destination.items["col-products"]["item-live"].name == "Chaise"


@pytest.mark.asyncio
async def test_stale_cached_id_recreates_once(fake_destination, sync_logger):
    """A 404 on update triggers exactly one create and returns the new id."""
    reconciler = UpsertReconciler(fake_destination, logger=sync_logger)

    result = await reconciler.upsert("col-products", "item-deleted", {"name": "Chaise"})

    assert result.outcome == UpsertOutcome.RECREATED
    assert result.item_id != "item-deleted"
    assert [c[0] for c in fake_destination.calls] == ["update_item", "create_item"]


@pytest.mark.asyncio
async def test_validation_error_propagates_without_create(sync_logger):
    """Non-404 errors on update are not healed by creating a duplicate."""
    destination = AsyncMock()
    destination.update_item = AsyncMock(
        side_effect=TargetStoreError(
            "Webflow API Error 400: Validation Error",
            status_code=400,
            code="validation_error",
            details=[{"param": "prix-de-vente", "description": "must be a number"}],
        )
    )
    reconciler = UpsertReconciler(destination, logger=sync_logger)

    with pytest.raises(TargetStoreError) as exc_info:
        await reconciler.upsert("col-products", "item-1", {"prix-de-vente": "abc"})

    assert exc_info.value.code == "validation_error"
    destination.create_item.assert_not_called()
