"""
ValidateSchemaStep — validates and normalizes each raw row.

Rows with any error become VALIDATION_ERROR outcomes and leave every
later stage; the rest become NormalizedRecords.
"""

from __future__ import annotations

from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.context import ImportContext, StepResult
from workforce_ingest.pipeline.errors import SchemaValidationError
from workforce_ingest.pipeline.step import PipelineStep

logger = get_logger(__name__)


class ValidateSchemaStep(PipelineStep):
    """Validate every row against the entity schema."""

    name = "validate_schema"
    description = "Validate and normalize rows against the entity schema"

    async def execute(self, ctx: ImportContext) -> StepResult:
        started_at = self._now()
        valid = 0

        for row in ctx.raw_rows:
            try:
                ctx.records[row.row_index] = ctx.schema.normalize(row)
                valid += 1
            except SchemaValidationError as exc:
                ctx.reject_row(exc.row_index, exc.messages)
                logger.warning(
                    "Row rejected",
                    row_index=exc.row_index,
                    errors=exc.messages,
                )

        invalid = len(ctx.raw_rows) - valid
        logger.info("Schema validation complete", valid=valid, invalid=invalid)

        return self._success(started_at, metadata={
            "valid": valid,
            "invalid": invalid,
        })
