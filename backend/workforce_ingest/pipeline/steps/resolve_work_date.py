"""
ResolveWorkDateStep — reads the work date from the header row.

Work-order sheets carry the date they apply to as a column label such as
"03-Aug-25".  Every line of the sheet is for that date.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.context import ImportContext, StepResult
from workforce_ingest.pipeline.errors import ConfigurationError
from workforce_ingest.pipeline.step import PipelineStep

logger = get_logger(__name__)

DATE_HEADER_RE = re.compile(r"^\d{2}-[A-Za-z]{3}-\d{2}$")


class ResolveWorkDateStep(PipelineStep):
    """Find and parse the DD-Mon-YY date column label."""

    name = "resolve_work_date"
    description = "Resolve the work date from the header row"

    async def execute(self, ctx: ImportContext) -> StepResult:
        started_at = self._now()

        label = next((h for h in ctx.headers if DATE_HEADER_RE.match(h)), None)
        if label is None:
            raise ConfigurationError(
                "A date column (e.g., 03-Aug-25) was not found in the header.",
                job_id=ctx.job_id,
                step_name=self.name,
            )

        try:
            work_date = datetime.strptime(label, "%d-%b-%y").replace(tzinfo=timezone.utc)
        except ValueError:
            raise ConfigurationError(
                f"Invalid date in header: {label}",
                job_id=ctx.job_id,
                step_name=self.name,
            ) from None

        ctx.job_params["work_date"] = work_date
        ctx.job_params["work_date_label"] = label

        logger.info("Work date resolved", label=label, work_date=work_date.date().isoformat())
        return self._success(started_at, metadata={"work_date": work_date.date().isoformat()})
