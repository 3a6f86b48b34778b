"""Module for the sync factory that wires clients and the orchestrator."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
from pydantic import ValidationError

from flowsync.core.config import Settings
from flowsync.core.exceptions import ConfigurationError
from flowsync.core.logging import ContextualLogger, LoggerConfigurator
from flowsync.platform.destinations.webflow import WebflowDestination
from flowsync.platform.images.normalizer import ImageNormalizer
from flowsync.platform.sources.airtable import AirtableSource
from flowsync.platform.sync.config import SyncExecutionConfig
from flowsync.platform.sync.orchestrator import SyncOrchestrator, new_run_id

_REQUIRED_CREDENTIALS = ("AIRTABLE_API_KEY", "AIRTABLE_BASE_ID", "WEBFLOW_API_TOKEN")


class SyncFactory:
    """Factory for sync orchestrators and image normalizers."""

    @classmethod
    def build_config(
        cls, settings: Settings, asset_base_url: Optional[str] = None
    ) -> SyncExecutionConfig:
        """Validate settings and derive the run configuration.

        Raises:
            ConfigurationError: If a credential or collection id is missing
        """
        missing = [name for name in _REQUIRED_CREDENTIALS if not getattr(settings, name)]
        if missing:
            raise ConfigurationError(f"Missing settings: {', '.join(missing)}")
        try:
            return SyncExecutionConfig.from_settings(settings, asset_base_url=asset_base_url)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e

    @classmethod
    @asynccontextmanager
    async def create_orchestrator(
        cls,
        settings: Settings,
        asset_base_url: Optional[str] = None,
        logger: Optional[ContextualLogger] = None,
    ) -> AsyncIterator[SyncOrchestrator]:
        """Create an orchestrator for one batch run and close its clients afterwards.

        Args:
            settings: Application settings
            asset_base_url: Public base URL used to build image proxy URLs
            logger: Logger for the run; by default a ``flowsync.sync`` logger tagged
                with a new run id

        Yields:
            A SyncOrchestrator bound to freshly created Airtable and Webflow clients
        """
        config = cls.build_config(settings, asset_base_url)
        logger = logger or LoggerConfigurator.configure_logger(
            "flowsync.sync", dimensions={"run_id": new_run_id()}
        )

        source = AirtableSource.create(
            api_key=settings.AIRTABLE_API_KEY,
            base_id=settings.AIRTABLE_BASE_ID,
            api_url=settings.AIRTABLE_API_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            max_retries=settings.HTTP_MAX_RETRIES,
            logger=logger,
        )
        destination = WebflowDestination.create(
            api_token=settings.WEBFLOW_API_TOKEN,
            api_url=settings.WEBFLOW_API_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            max_retries=settings.HTTP_MAX_RETRIES,
            logger=logger,
        )
        try:
            yield SyncOrchestrator(source, destination, config, logger=logger)
        finally:
            await source.close()
            await destination.close()

    @classmethod
    @asynccontextmanager
    async def create_image_normalizer(
        cls, settings: Settings, logger: Optional[ContextualLogger] = None
    ) -> AsyncIterator[ImageNormalizer]:
        """Create an image normalizer with its own download client."""
        client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
        try:
            yield ImageNormalizer.from_settings(
                client, settings, logger=logger or LoggerConfigurator.configure_logger("images")
            )
        finally:
            await client.aclose()
