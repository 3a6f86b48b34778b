"""Provisioning of Option field choices on a Webflow collection schema.

The option list is remote state written by anyone editing the collection, and
schema writes are not immediately visible: the PATCH does not return the id of
the new choice and an immediate re-read can still return the old list. The
provisioner therefore patches once, waits a settle delay, and re-reads with
exponential backoff until the choice shows up or the attempts run out.
"""

import asyncio
from typing import Dict, Optional, Tuple

import httpx
from tenacity import AsyncRetrying, retry_if_result, stop_after_attempt, wait_exponential

from flowsync.core.exceptions import ConfigurationError, FlowsyncException
from flowsync.core.logging import ContextualLogger
from flowsync.core.logging import logger as default_logger
from flowsync.platform.destinations._base import BaseDestination
from flowsync.platform.entities.webflow import CollectionSchema, FieldOption
from flowsync.platform.sync.types import OptionResolution


class OptionProvisioner:
    """Ensure an Option field accepts a given value and return its id.

    Calls for the same (collection, field) are serialized within the process so
    two records needing the same new choice cannot both append it. Writers in
    other processes can still race; see DESIGN.md.
    """

    def __init__(
        self,
        destination: BaseDestination,
        settle_delay: float = 2.0,
        max_attempts: int = 3,
        max_backoff: float = 10.0,
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the provisioner.

        Args:
            destination: Target store client
            settle_delay: Seconds to wait after the patch before the first re-read;
                also the base of the exponential backoff between re-reads
            max_attempts: Maximum number of re-reads after the patch
            max_backoff: Upper bound for a single backoff wait
            logger: Contextual logger
        """
        self.destination = destination
        self.settle_delay = settle_delay
        self.max_attempts = max_attempts
        self.max_backoff = max_backoff
        self.logger = logger or default_logger
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}

    def _lock_for(self, collection_id: str, field_slug: str) -> asyncio.Lock:
        key = (collection_id, field_slug)
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    async def ensure_option(
        self, collection_id: str, field_slug: str, option_name: Optional[str]
    ) -> OptionResolution:
        """Return the id of ``option_name`` on ``field_slug``, adding the choice if absent.

        Never raises for remote failures: the outcome is FAILED (missing field,
        API error) or TIMED_OUT (choice still invisible after the last re-read),
        and the caller writes the item without that field.
        """
        name = option_name.strip() if isinstance(option_name, str) else option_name
        if not name:
            return OptionResolution.omitted("empty option name")

        async with self._lock_for(collection_id, field_slug):
            try:
                return await self._ensure_option(collection_id, field_slug, str(name))
            except ConfigurationError as e:
                self.logger.error(f"❌ {e}")
                return OptionResolution.failed(str(e))
            except (FlowsyncException, httpx.HTTPError, ValueError) as e:
                self.logger.error(f"❌ Option '{name}' on '{field_slug}' failed: {e}")
                return OptionResolution.failed(str(e))

    async def _ensure_option(
        self, collection_id: str, field_slug: str, name: str
    ) -> OptionResolution:
        schema = await self.destination.get_collection_schema(collection_id)
        field = schema.field_by_slug(field_slug)
        if field is None:
            raise ConfigurationError(
                f"Field '{field_slug}' does not exist on collection {collection_id}"
            )

        existing = field.find_option(name)
        if existing:
            return OptionResolution.resolved(existing.id, schema=schema)

        self.logger.info(f"   ✨ Unknown option '{name}' on '{field_slug}', creating it...")
        options = [o.model_dump(exclude_none=True) for o in field.option_list]
        options.append({"name": name})
        await self.destination.patch_field(
            collection_id,
            field.id,
            {
                "isRequired": field.is_required,
                "displayName": field.display_name,
                "validations": {"options": options},
            },
        )

        await asyncio.sleep(self.settle_delay)
        latest: Dict[str, CollectionSchema] = {"schema": schema}

        async def _reread() -> Optional[FieldOption]:
            latest["schema"] = await self.destination.get_collection_schema(collection_id)
            updated_field = latest["schema"].field_by_slug(field_slug)
            if updated_field is None:
                raise ConfigurationError(
                    f"Field '{field_slug}' disappeared from collection {collection_id} "
                    "after update"
                )
            return updated_field.find_option(name)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                multiplier=self.settle_delay, min=self.settle_delay, max=self.max_backoff
            ),
            retry=retry_if_result(lambda option: option is None),
            retry_error_callback=lambda retry_state: None,
        )
        created = await retrying(_reread)

        if created is None:
            reason = (
                f"option '{name}' not visible on '{field_slug}' after "
                f"{self.max_attempts} re-read(s)"
            )
            self.logger.warning(f"      -> ❌ {reason}")
            return OptionResolution.timed_out(reason, schema=latest["schema"])

        self.logger.info(f"      -> ✅ Option created (ID: {created.id})")
        return OptionResolution.resolved(created.id, schema=latest["schema"], created=True)
