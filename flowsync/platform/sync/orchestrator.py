"""Batch orchestration of the Airtable → Webflow product sync."""

import asyncio
import json
import random
import uuid
from typing import Any, Dict, List, Optional, Tuple

import httpx

from flowsync.core.exceptions import FlowsyncException, NotFoundException, TargetStoreError
from flowsync.core.logging import ContextualLogger, LoggerConfigurator, capture_run_logs
from flowsync.core.shared_models import SyncState
from flowsync.platform.destinations._base import BaseDestination
from flowsync.platform.entities.airtable import SourceRecord
from flowsync.platform.sources._base import BaseSource
from flowsync.platform.sources.airtable import formula_any_of
from flowsync.platform.sync.config import SyncExecutionConfig
from flowsync.platform.sync.exceptions import RecordProcessingError, SyncFailureError
from flowsync.platform.sync.field_mapper import (
    FieldMapper,
    build_slug,
    flatten_list,
    make_proxy_url,
)
from flowsync.platform.sync.options import OptionProvisioner
from flowsync.platform.sync.references import ReferenceResolver
from flowsync.platform.sync.types import BatchReport, RecordResult, Resolution
from flowsync.platform.sync.upsert import UpsertReconciler


def new_run_id() -> str:
    """Short id tagging every log line of one batch run."""
    return uuid.uuid4().hex[:8]


def describe_error(error: BaseException) -> str:
    """Render an error for the run log, including the API's details if any."""
    if isinstance(error, TargetStoreError) and error.details:
        return f"{error} {json.dumps(error.details, ensure_ascii=False, default=str)}"
    return str(error) or error.__class__.__name__


class SyncOrchestrator:
    """Runs one bounded batch of pending records through the sync pipeline.

    Records are processed strictly one after another: Webflow's rate limit is
    global to the site and option provisioning is not safe against concurrent
    schema patches. A failure inside one record marks only that record as
    Erreur; a failure to query the batch fails the whole run.
    """

    def __init__(
        self,
        source: BaseSource,
        destination: BaseDestination,
        config: SyncExecutionConfig,
        field_mapper: Optional[FieldMapper] = None,
        reference_resolver: Optional[ReferenceResolver] = None,
        option_provisioner: Optional[OptionProvisioner] = None,
        upsert_reconciler: Optional[UpsertReconciler] = None,
        logger: Optional[ContextualLogger] = None,
        rng: Optional[random.Random] = None,
    ):
        """Wire the pipeline; components default to ones built on ``destination``."""
        self.source = source
        self.destination = destination
        self.config = config
        base_logger = logger or LoggerConfigurator.configure_logger("flowsync.sync")
        if "run_id" not in base_logger.dimensions:
            base_logger = base_logger.with_context(run_id=new_run_id())
        self.logger = base_logger
        self.field_mapper = field_mapper or FieldMapper()
        self.reference_resolver = reference_resolver or ReferenceResolver(
            destination, lookup_limit=config.reference_lookup_limit, logger=self.logger
        )
        self.option_provisioner = option_provisioner or OptionProvisioner(
            destination,
            settle_delay=config.option_settle_delay,
            max_attempts=config.option_max_attempts,
            max_backoff=config.option_backoff_max,
            logger=self.logger,
        )
        self.upsert_reconciler = upsert_reconciler or UpsertReconciler(
            destination, logger=self.logger
        )
        self._rng = rng or random.Random()

    async def run_batch(self, max_records: Optional[int] = None) -> BatchReport:
        """Process up to ``max_records`` pending records.

        Returns:
            BatchReport with one RecordResult per record and the run's log lines.
            ``report.error`` is set when the run itself failed.
        """
        report = BatchReport()
        with capture_run_logs(self.logger) as messages:
            try:
                records = await self._fetch_pending(max_records or self.config.batch_size)
                if records:
                    self.logger.info(f"{len(records)} products to process.")
                for record in records:
                    report.records.append(await self.process_record(record))
                if records:
                    self.logger.info(f"🏁 Done: {report.summary()}")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                report.error = describe_error(e)
                self.logger.error(f"💥 Sync failed: {report.error}", exc_info=True)
        report.logs = list(messages)
        return report

    async def _fetch_pending(self, max_records: int) -> List[SourceRecord]:
        formula = formula_any_of(
            self.config.columns.sync_state, [s.value for s in SyncState.eligible()]
        )
        try:
            return await self.source.select(self.config.products_table, formula, max_records)
        except Exception as e:
            raise SyncFailureError(f"Could not query pending records: {describe_error(e)}") from e

    async def process_record(self, record: SourceRecord) -> RecordResult:
        """Run the full pipeline for one record and write the outcome back."""
        columns = self.config.columns
        name = record.get(columns.name)
        log = self.logger.with_context(record_id=record.id)
        result = RecordResult(record_id=record.id, name=name, state=SyncState.ERROR)

        log.info(f"🔎 PROCESSING: {name}")
        try:
            slug = build_slug(record.get(columns.slug), name, self._rng)
            payload = await self._build_payload(record, name, slug, result, log)
            log.info(f"   📝 Fields included in payload: [{', '.join(payload)}]")

            upserted = await self.upsert_reconciler.upsert(
                self.config.products_collection_id, record.get(columns.foreign_id), payload
            )
            try:
                await self.source.update(
                    self.config.products_table,
                    record.id,
                    {
                        columns.sync_state: SyncState.PUBLISHED.value,
                        columns.foreign_id: upserted.item_id,
                        columns.slug: slug,
                    },
                )
            except (FlowsyncException, httpx.HTTPError) as e:
                # The item exists remotely; without its id the next run creates a duplicate
                result.item_id = upserted.item_id
                raise RecordProcessingError(
                    f"Item {upserted.item_id} written but write-back failed: {describe_error(e)}"
                ) from e
        except asyncio.CancelledError:
            raise
        except Exception as e:
            result.error = describe_error(e)
            log.error(f"   ❌ FAILED: {result.error}")
            await self._mark_error(record, log)
            return result

        result.state = SyncState.PUBLISHED
        result.item_id = upserted.item_id
        result.outcome = upserted.outcome
        result.slug = slug
        return result

    async def _mark_error(self, record: SourceRecord, log: ContextualLogger) -> None:
        try:
            await self.source.update(
                self.config.products_table,
                record.id,
                {self.config.columns.sync_state: SyncState.ERROR.value},
            )
        except Exception as e:
            log.error(f"   ❌ Could not write error state back: {describe_error(e)}")

    async def _build_payload(
        self,
        record: SourceRecord,
        name: Optional[str],
        slug: str,
        result: RecordResult,
        log: ContextualLogger,
    ) -> Dict[str, Any]:
        slugs = self.config.slugs

        partner = await self._resolve_partner(record)
        categories, categories_degraded = await self._resolve_categories(record, log)
        sale_status = await self._resolve_sale_status(record, log)

        for field_slug, resolution in (
            (slugs.partner, partner),
            (slugs.sale_status, sale_status),
        ):
            if resolution.degraded:
                result.degraded_fields.append(field_slug)
                log.warning(f"   ⚠️ '{field_slug}' omitted: {resolution.reason}")
        if categories_degraded:
            result.degraded_fields.append(slugs.categories)

        main_images = self._asset_urls(record, self.config.columns.main_image)
        gallery = self._asset_urls(record, self.config.columns.gallery)

        extra = {
            slugs.name: name,
            slugs.slug: slug,
            slugs.partner: partner.value,
            slugs.categories: categories or None,
            slugs.main_image: main_images[0] if main_images else None,
            slugs.gallery: gallery or None,
            slugs.sale_status: sale_status.value,
        }
        return self.field_mapper.map(record, extra=extra)

    async def _resolve_partner(self, record: SourceRecord) -> Resolution:
        columns = self.config.columns
        link = record.first_link(columns.partner)
        if not link:
            return Resolution.omitted("no partner linked")

        try:
            partner = await self.source.find(self.config.partners_table, link)
        except NotFoundException as e:
            return Resolution.failed(str(e))
        except (FlowsyncException, httpx.HTTPError) as e:
            return Resolution.failed(f"partner lookup failed: {describe_error(e)}")

        partner_name = partner.get(columns.partner_company_name) or partner.get(
            columns.partner_name
        )
        return await self.reference_resolver.resolve(
            self.config.partners_collection_id, partner_name
        )

    async def _resolve_categories(
        self, record: SourceRecord, log: ContextualLogger
    ) -> Tuple[List[str], bool]:
        """Resolve every category name; failed ones are dropped from the list.

        Returns the resolved ids and whether any category failed to resolve.
        """
        names = flatten_list(record.get(self.config.columns.categories)) or []
        ids: List[str] = []
        failed = False
        for category in names:
            resolution = await self.reference_resolver.resolve(
                self.config.categories_collection_id, category
            )
            if resolution.ok:
                ids.append(resolution.value)
            elif resolution.degraded:
                failed = True
                log.warning(f"   ⚠️ Category omitted: {resolution.reason}")
        return ids, failed

    async def _resolve_sale_status(
        self, record: SourceRecord, log: ContextualLogger
    ) -> Resolution:
        status = record.get(self.config.columns.sale_status)
        if not status:
            return Resolution.omitted("no sale status")
        log.info(f'   🔹 Airtable status: "{status}"')
        return await self.option_provisioner.ensure_option(
            self.config.products_collection_id, self.config.slugs.sale_status, status
        )

    def _asset_urls(self, record: SourceRecord, column: str) -> List[str]:
        urls = record.attachment_urls(column)
        if self.config.asset_base_url:
            return [make_proxy_url(u, self.config.asset_base_url) for u in urls]
        return urls
