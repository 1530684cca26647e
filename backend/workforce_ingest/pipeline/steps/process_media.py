"""
ProcessMediaStep — moves embedded images to blob storage.

Rows are processed concurrently up to options.media_max_workers; image
decoding and resizing run in worker threads.  The step returns only when
every row is done, so no record is committed with pending media.
"""

from __future__ import annotations

import asyncio
from typing import Any

from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.context import ImportContext, NormalizedRecord, StepResult
from workforce_ingest.pipeline.step import PipelineStep
from workforce_ingest.processing.media import MediaProcessor

logger = get_logger(__name__)


class ProcessMediaStep(PipelineStep):
    """Decode, shrink and upload inline images."""

    name = "process_media"
    description = "Compress and upload embedded images"

    async def should_skip(self, ctx: ImportContext) -> bool:
        return not ctx.schema.media_fields

    async def execute(self, ctx: ImportContext) -> StepResult:
        started_at = self._now()

        processor = MediaProcessor(ctx.services.blob_store, jpeg_quality=ctx.options.jpeg_quality)
        semaphore = asyncio.Semaphore(max(1, ctx.options.media_max_workers))
        raw_values = {row.row_index: row.values for row in ctx.raw_rows}
        counts = {"uploaded": 0, "fallback": 0, "warnings": 0}

        async def _process_record(record: NormalizedRecord) -> None:
            values: dict[str, Any] = raw_values.get(record.row_index, {})
            async with semaphore:
                for spec in ctx.schema.media_fields:
                    asset = await processor.process(spec, values, owner=record.data.get("phoneNumber") or None)
                    record.data[spec.target] = asset.url
                    if asset.storage_url:
                        counts["uploaded"] += 1
                    elif asset.external_url:
                        counts["fallback"] += 1
                    if asset.warning:
                        counts["warnings"] += 1
                        ctx.add_warning(record.row_index, asset.warning)

        await asyncio.gather(*(_process_record(r) for r in ctx.surviving_records()))

        logger.info("Media processed", **counts)
        return self._success(started_at, metadata=counts)
