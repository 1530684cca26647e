"""
CommitRecordsStep — writes the surviving records in bounded batches.

Records are split, in row order, into chunks of at most
options.max_batch_size.  Each chunk is one atomic batched write and the
chunks run strictly one after another, so on failure the committed
records are always a prefix of the job.  A failed chunk stops the job;
later chunks are never attempted.
"""

from __future__ import annotations

from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.context import ImportContext, NormalizedRecord, StepResult
from workforce_ingest.pipeline.errors import CommitError, ConfigurationError, EmptyInputError, StorageError
from workforce_ingest.pipeline.step import PipelineStep
from workforce_ingest.storage.base import DocumentWrite

logger = get_logger(__name__)


def chunked(records: list[NormalizedRecord], size: int) -> list[list[NormalizedRecord]]:
    return [records[i:i + size] for i in range(0, len(records), size)]


class CommitRecordsStep(PipelineStep):
    """Commit records chunk by chunk."""

    name = "commit_records"
    description = "Commit records to the document store in bounded batches"

    async def execute(self, ctx: ImportContext) -> StepResult:
        started_at = self._now()
        store = ctx.services.document_store
        collection = ctx.schema.collection
        batch_size = ctx.options.max_batch_size

        if not 1 <= batch_size <= store.max_batch_operations:
            raise ConfigurationError(
                f"max_batch_size must be between 1 and {store.max_batch_operations}, got {batch_size}",
                job_id=ctx.job_id,
                step_name=self.name,
            )

        records = ctx.surviving_records()
        if not records:
            raise EmptyInputError(
                f"No valid {ctx.schema.label} records could be processed from the file.",
                job_id=ctx.job_id,
                step_name=self.name,
            )

        chunks = chunked(records, batch_size)
        for number, chunk in enumerate(chunks, start=1):
            writes = []
            for record in chunk:
                if record.document_id is None:
                    record.document_id = store.new_document_id(collection)
                writes.append(DocumentWrite(collection, record.document_id, record.data))

            try:
                await store.commit_batch(writes)
            except StorageError as exc:
                logger.error(
                    "Chunk commit failed",
                    chunk=number,
                    chunks=len(chunks),
                    chunk_size=len(chunk),
                    committed=ctx.records_committed,
                    error=str(exc),
                )
                raise CommitError(
                    f"Error saving data to database: {exc}",
                    records_committed=ctx.records_committed,
                    job_id=ctx.job_id,
                    step_name=self.name,
                    details={"failed_chunk": number, "chunks": len(chunks)},
                ) from exc

            ctx.mark_committed(chunk)
            logger.info(
                "Chunk committed",
                chunk=number,
                chunks=len(chunks),
                chunk_size=len(chunk),
                committed=ctx.records_committed,
            )

        return self._success(started_at, metadata={
            "chunks": len(chunks),
            "records_committed": ctx.records_committed,
        })
