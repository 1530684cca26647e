"""
ParseRowsStep — reads the header and data rows of the upload.

Headers are mapped onto the schema's canonical field names; every
required field must be reachable from some header or the job stops.
"""

from __future__ import annotations

from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.context import ImportContext, StepResult
from workforce_ingest.pipeline.errors import ConfigurationError
from workforce_ingest.pipeline.step import PipelineStep
from workforce_ingest.processing.parsers import parse_table

logger = get_logger(__name__)


class ParseRowsStep(PipelineStep):
    """Parse the upload into raw rows."""

    name = "parse_rows"
    description = "Parse header and data rows"

    async def execute(self, ctx: ImportContext) -> StepResult:
        started_at = self._now()

        table = parse_table(ctx.content, ctx.detected_format, ctx.schema.resolve_header)
        ctx.headers = table.headers
        ctx.header_mapping = table.header_mapping
        ctx.raw_rows = table.rows

        mapped = set(table.header_mapping.values())
        missing = [spec.display_name for spec in ctx.schema.required_fields if spec.name not in mapped]
        if missing:
            raise ConfigurationError(
                f"Missing required column(s): {', '.join(missing)}",
                job_id=ctx.job_id,
                step_name=self.name,
                details={"missing_columns": missing, "headers": table.headers},
            )

        unmapped = [h for h in table.headers if h and h not in table.header_mapping]
        logger.info(
            "Rows parsed",
            rows=len(table.rows),
            mapped_columns=len(table.header_mapping),
            unmapped_columns=unmapped,
        )

        return self._success(started_at, metadata={
            "rows": len(table.rows),
            "headers": table.headers,
            "unmapped_headers": unmapped,
        })
