"""
DetectDuplicatesStep — natural-key duplicate detection.

Keys are compared against the documents already in the entity's
collection (one upfront read, when the schema asks for it) and against
earlier rows of the same upload.  The first occurrence wins; later ones
become DUPLICATE outcomes.
"""

from __future__ import annotations

from typing import Any

from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.context import ImportContext, NormalizedRecord, StepResult
from workforce_ingest.pipeline.errors import DuplicateRecordError, StepExecutionError, StorageError
from workforce_ingest.pipeline.step import PipelineStep
from workforce_ingest.schemas.fields import NaturalKey

logger = get_logger(__name__)


class DuplicateDetector:
    """Tracks seen natural keys for one job."""

    def __init__(self, natural_key: NaturalKey, existing_keys: set[str] | None = None) -> None:
        self.natural_key = natural_key
        self.existing_keys = existing_keys or set()
        self.seen: set[str] = set()

    @classmethod
    def from_documents(cls, natural_key: NaturalKey, documents: list[dict[str, Any]]) -> DuplicateDetector:
        return cls(natural_key, {natural_key(doc) for doc in documents})

    def check(self, record: NormalizedRecord) -> str:
        """
        Register the record's key and return it.

        Raises:
            DuplicateRecordError: key exists in the store or earlier in the job.
        """
        key = self.natural_key(record.data)
        if key in self.existing_keys:
            raise DuplicateRecordError(
                f"Row {record.row_index} matches an existing record",
                row_index=record.row_index,
                key=key,
                details={"source": "existing"},
            )
        if key in self.seen:
            raise DuplicateRecordError(
                f"Row {record.row_index} repeats an earlier row",
                row_index=record.row_index,
                key=key,
                details={"source": "in_file"},
            )
        self.seen.add(key)
        return key


class DetectDuplicatesStep(PipelineStep):
    """Drop rows whose natural key was already seen."""

    name = "detect_duplicates"
    description = "Detect duplicates within the file and against existing records"
    retryable = True
    max_retries = 3

    async def should_skip(self, ctx: ImportContext) -> bool:
        return ctx.schema.natural_key is None

    async def execute(self, ctx: ImportContext) -> StepResult:
        started_at = self._now()
        schema = ctx.schema

        documents: list[dict[str, Any]] = []
        if schema.check_existing_keys:
            try:
                documents = await ctx.services.document_store.fetch_documents(schema.collection)
            except StorageError as exc:
                raise StepExecutionError(
                    f"Could not load existing {schema.collection}: {exc}",
                    job_id=ctx.job_id,
                    step_name=self.name,
                ) from exc

        detector = DuplicateDetector.from_documents(schema.natural_key, documents)
        existing = in_file = 0

        for record in ctx.surviving_records():
            try:
                detector.check(record)
            except DuplicateRecordError as exc:
                ctx.mark_duplicate(exc.row_index, exc.key)
                if exc.details.get("source") == "existing":
                    existing += 1
                else:
                    in_file += 1
                logger.warning("Duplicate row", row_index=exc.row_index, key=exc.key)

        logger.info(
            "Duplicate detection complete",
            existing_keys=len(detector.existing_keys),
            duplicates_existing=existing,
            duplicates_in_file=in_file,
        )

        return self._success(started_at, metadata={
            "existing_keys": len(detector.existing_keys),
            "duplicates_existing": existing,
            "duplicates_in_file": in_file,
        })
