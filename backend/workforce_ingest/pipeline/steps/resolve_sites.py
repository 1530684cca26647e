"""
ResolveSitesStep — links work-order lines to registered sites.

One read of the sites collection; each line's site code must match a
registered site's siteId.  Matched lines take the site's name, client and
district, get their total manpower and a deterministic document id, so a
re-imported sheet overwrites the same documents.
"""

from __future__ import annotations

from typing import Any

from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.context import ImportContext, StepResult
from workforce_ingest.pipeline.errors import StepExecutionError, StorageError
from workforce_ingest.pipeline.step import PipelineStep
from workforce_ingest.schemas.validators import as_text

logger = get_logger(__name__)

SITES_COLLECTION = "sites"


class ResolveSitesStep(PipelineStep):
    """Attach site data to every work-order line."""

    name = "resolve_sites"
    description = "Resolve work-order lines against registered sites"
    retryable = True
    max_retries = 3

    async def execute(self, ctx: ImportContext) -> StepResult:
        started_at = self._now()

        try:
            sites = await ctx.services.document_store.fetch_documents(SITES_COLLECTION)
        except StorageError as exc:
            raise StepExecutionError(
                f"Could not load sites: {exc}",
                job_id=ctx.job_id,
                step_name=self.name,
            ) from exc

        sites_by_code: dict[str, dict[str, Any]] = {}
        for site in sites:
            if site.get("siteId") not in (None, ""):
                sites_by_code[as_text(site["siteId"])] = site

        work_date = ctx.job_params["work_date"]
        date_suffix = ctx.job_params["work_date_label"].replace("-", "")
        matched = unmatched = 0

        for record in ctx.surviving_records():
            code = as_text(record.data["siteId"])
            site = sites_by_code.get(code)
            if site is None:
                ctx.reject_row(record.row_index, [f'Site not found for TC CODE "{code}".'])
                logger.warning("Unknown site code", row_index=record.row_index, site_code=code)
                unmatched += 1
                continue

            male = record.data["maleGuardsRequired"]
            female = record.data["femaleGuardsRequired"]
            record.data.update({
                "siteId": site["id"],
                "siteCode": code,
                "siteName": site.get("siteName"),
                "clientName": site.get("clientName"),
                "district": site.get("district") or record.data.get("district") or "",
                "date": work_date,
                "totalManpower": male + female,
                "assignedGuards": {},
            })
            record.document_id = f"{site['id']}_{date_suffix}"
            matched += 1

        logger.info(
            "Sites resolved",
            registered_sites=len(sites_by_code),
            matched=matched,
            unmatched=unmatched,
        )
        return self._success(started_at, metadata={"matched": matched, "unmatched": unmatched})
