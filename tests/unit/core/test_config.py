"""Tests for Settings and SyncExecutionConfig."""

import pytest
from pydantic import ValidationError

from flowsync.core.config import Settings
from flowsync.core.exceptions import ConfigurationError
from flowsync.platform.sync.config import SyncExecutionConfig
from flowsync.platform.sync.factory import SyncFactory


def test_settings_defaults():
    """Unset knobs fall back to the documented defaults."""
    settings = Settings(_env_file=None)

    assert settings.AIRTABLE_PRODUCTS_TABLE == "Gisement"
    assert settings.AIRTABLE_PARTNERS_TABLE == "Partenaires"
    assert settings.SYNC_BATCH_SIZE == 5
    assert settings.REFERENCE_LOOKUP_LIMIT == 100
    assert settings.IMAGE_PROXY_MODE == "buffered"
    assert settings.IMAGE_MAX_WIDTH == 1600


def test_request_quotas_are_whole_request_counts(monkeypatch):
    """Limiter quotas are integer request counts."""
    monkeypatch.setenv("AIRTABLE_REQUESTS_PER_SECOND", "4")
    settings = Settings(_env_file=None)

    assert settings.AIRTABLE_REQUESTS_PER_SECOND == 4
    assert isinstance(settings.AIRTABLE_REQUESTS_PER_SECOND, int)
    assert isinstance(settings.WEBFLOW_REQUESTS_PER_MINUTE, int)

    monkeypatch.setenv("AIRTABLE_REQUESTS_PER_SECOND", "2.5")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_settings_normalization(monkeypatch):
    """Log levels are upper-cased and base URLs lose their trailing slash."""
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("WEBFLOW_API_URL", "https://api.webflow.com/v2/")

    settings = Settings(_env_file=None)

    assert settings.LOG_LEVEL == "DEBUG"
    assert settings.WEBFLOW_API_URL == "https://api.webflow.com/v2"


def test_settings_rejects_out_of_range(monkeypatch):
    """Webflow pages are capped at 100 items."""
    monkeypatch.setenv("REFERENCE_LOOKUP_LIMIT", "500")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_execution_config_from_settings():
    """Run configuration mirrors the settings."""
    settings = Settings(_env_file=None, SYNC_BATCH_SIZE=3, OPTION_MAX_ATTEMPTS=4)

    config = SyncExecutionConfig.from_settings(settings, asset_base_url="https://sync.test")

    assert config.products_collection_id == "col-products"
    assert config.batch_size == 3
    assert config.option_max_attempts == 4
    assert config.asset_base_url == "https://sync.test"
    assert config.columns.sync_state == "Status SYNC"
    assert config.slugs.sale_status == "statut-vente-2"


def test_execution_config_requires_collections():
    """All three collection ids must be set."""
    with pytest.raises(ValidationError, match="categories_collection_id"):
        SyncExecutionConfig(
            products_collection_id="col-products",
            categories_collection_id="",
            partners_collection_id="col-partners",
        )


def test_factory_reports_missing_credentials():
    """Missing credentials are a configuration error, not a crash."""
    settings = Settings(_env_file=None, WEBFLOW_API_TOKEN="")

    with pytest.raises(ConfigurationError, match="WEBFLOW_API_TOKEN"):
        SyncFactory.build_config(settings)


def test_factory_reports_missing_collection():
    """A missing collection id is reported as a configuration error."""
    settings = Settings(_env_file=None, WF_COLLECTION_ID_PARTENAIRES="")

    with pytest.raises(ConfigurationError, match="partners_collection_id"):
        SyncFactory.build_config(settings)
