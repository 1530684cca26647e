"""
DetectFormatStep — decides how the upload will be read.

Sets ctx.detected_format from the caller's hint, the file extension or
the file's magic bytes (in that order).
"""

from __future__ import annotations

from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.context import ImportContext, StepResult
from workforce_ingest.pipeline.errors import EmptyInputError
from workforce_ingest.pipeline.step import PipelineStep
from workforce_ingest.processing.parsers import detect_format

logger = get_logger(__name__)


class DetectFormatStep(PipelineStep):
    """Detect the upload format."""

    name = "detect_format"
    description = "Detect upload format (delimited text or spreadsheet)"

    async def execute(self, ctx: ImportContext) -> StepResult:
        started_at = self._now()

        if not ctx.content:
            raise EmptyInputError(
                "The uploaded file is empty.",
                job_id=ctx.job_id,
                step_name=self.name,
            )

        ctx.detected_format = detect_format(ctx.filename, ctx.content, ctx.format_hint)
        source = "hint" if ctx.format_hint else "filename/content"

        logger.info(
            "Format detected",
            filename=ctx.filename,
            detected_format=ctx.detected_format,
            source=source,
        )

        return self._success(started_at, metadata={
            "format": ctx.detected_format,
            "source": source,
            "size_bytes": len(ctx.content),
        })
