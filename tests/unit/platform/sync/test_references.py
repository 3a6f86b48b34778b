"""Tests for ReferenceResolver dedup-or-create behaviour."""

from unittest.mock import AsyncMock

import httpx
import pytest

from flowsync.core.exceptions import TargetStoreError
from flowsync.core.shared_models import ResolutionStatus
from flowsync.platform.sync.references import ReferenceResolver


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   ", None])
async def test_resolve_empty_name_makes_no_call(fake_destination, sync_logger, name):
    """An empty name is OMITTED without touching the store."""
    resolver = ReferenceResolver(fake_destination, logger=sync_logger)

    resolution = await resolver.resolve("col-categories", name)

    assert resolution.status == ResolutionStatus.OMITTED
    assert resolution.value is None
    assert fake_destination.calls == []


@pytest.mark.asyncio
async def test_resolve_existing_is_case_insensitive(fake_destination, sync_logger):
    """An item whose name matches ignoring case is reused, nothing is created."""
    fake_destination.add_item("col-categories", "cat-1", "Mobilier")
    fake_destination.add_item("col-categories", "cat-2", "mobilier")
    resolver = ReferenceResolver(fake_destination, logger=sync_logger)

    resolution = await resolver.resolve("col-categories", "  MOBILIER ")

    assert resolution.ok
    assert resolution.value == "cat-1"
    assert fake_destination.calls_to("create_item") == []


@pytest.mark.asyncio
async def test_resolve_creates_missing(fake_destination, sync_logger):
    """A missing name is created with a derived slug; the new id is returned."""
    fake_destination.add_item("col-categories", "cat-1", "Mobilier")
    resolver = ReferenceResolver(fake_destination, lookup_limit=50, logger=sync_logger)

    resolution = await resolver.resolve("col-categories", "Luminaires & Lampes")

    assert resolution.status == ResolutionStatus.RESOLVED
    creates = fake_destination.calls_to("create_item")
    assert len(creates) == 1
    assert creates[0][2] == {"name": "Luminaires & Lampes", "slug": "luminaires-et-lampes"}
    assert resolution.value == fake_destination.items["col-categories"][resolution.value].id
    assert fake_destination.calls_to("list_items") == [("list_items", "col-categories", 50)]


@pytest.mark.asyncio
async def test_resolve_twice_is_idempotent(fake_destination, sync_logger):
    """A second resolve finds the item created by the first."""
    resolver = ReferenceResolver(fake_destination, logger=sync_logger)

    first = await resolver.resolve("col-partners", "Atelier Dupont")
    second = await resolver.resolve("col-partners", "atelier dupont")

    assert first.value == second.value
    assert len(fake_destination.calls_to("create_item")) == 1


@pytest.mark.asyncio
async def test_resolve_full_page_warns(fake_destination, sync_logger, caplog):
    """A full lookup page without a match is logged as a possible duplicate."""
    for i in range(3):
        fake_destination.add_item("col-categories", f"cat-{i}", f"Cat {i}")
    resolver = ReferenceResolver(fake_destination, lookup_limit=3, logger=sync_logger)

    with caplog.at_level("WARNING"):
        resolution = await resolver.resolve("col-categories", "Nouvelle")

    assert resolution.ok
    assert "may already exist" in caplog.text


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        TargetStoreError("Webflow API Error 400: Validation Error", status_code=400),
        httpx.ConnectError("connection refused"),
    ],
)
async def test_resolve_failure_is_reported_not_raised(sync_logger, error):
    """Store errors become a FAILED resolution."""
    destination = AsyncMock()
    destination.list_items = AsyncMock(return_value=[])
    destination.create_item = AsyncMock(side_effect=error)
    resolver = ReferenceResolver(destination, logger=sync_logger)

    resolution = await resolver.resolve("col-categories", "Mobilier")

    assert resolution.status == ResolutionStatus.FAILED
    assert resolution.degraded
    assert "Mobilier" in resolution.reason
