"""
DeriveFieldsStep — adds synthetic fields to the surviving records.

All records get createdAt/updatedAt.  Employees additionally get
fullName, a sequential employeeId, a QR code and the upper-cased
searchableFields used by the directory search.
"""

from __future__ import annotations

import asyncio

from qrcode.exceptions import DataOverflowError

from workforce_ingest.core.constants import EntityKind
from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.context import ImportContext, NormalizedRecord, StepResult
from workforce_ingest.pipeline.step import PipelineStep
from workforce_ingest.processing.identifiers import IdentifierGenerator
from workforce_ingest.processing.qr import build_qr_payload, render_qr_data_url

logger = get_logger(__name__)


def searchable_fields(first_name: str, last_name: str, employee_id: str, phone_number: str) -> list[str]:
    """Upper-cased name parts, the employee id and the phone number, without repeats."""
    terms = [part.upper() for part in f"{first_name} {last_name}".split()]
    terms.extend([employee_id.upper(), phone_number])
    return list(dict.fromkeys(term for term in terms if term))


class DeriveFieldsStep(PipelineStep):
    """Generate identifiers, QR codes, search terms and timestamps."""

    name = "derive_fields"
    description = "Derive identifiers, QR codes and timestamps"

    async def execute(self, ctx: ImportContext) -> StepResult:
        started_at = self._now()
        records = ctx.surviving_records()
        qr_degraded = 0

        if ctx.entity_kind == EntityKind.EMPLOYEE and records:
            generator = IdentifierGenerator(
                ctx.services.document_store,
                org_prefix=ctx.options.id_org_prefix,
                today=ctx.options.today,
            )
            await generator.reserve([r.data["clientName"] for r in records])
            for record in records:
                if not await self._derive_employee(ctx, record, generator):
                    qr_degraded += 1

        for record in records:
            record.data["createdAt"] = started_at
            record.data["updatedAt"] = started_at

        logger.info("Fields derived", records=len(records), qr_degraded=qr_degraded)
        return self._success(started_at, metadata={
            "records": len(records),
            "qr_degraded": qr_degraded,
        })

    async def _derive_employee(
        self,
        ctx: ImportContext,
        record: NormalizedRecord,
        generator: IdentifierGenerator,
    ) -> bool:
        """Fill the employee extras.  Returns False when the QR image fell back to text."""
        data = record.data
        data["fullName"] = f"{data['firstName']} {data['lastName']}".strip()
        data["employeeId"] = generator.next_id(data["clientName"])
        data["searchableFields"] = searchable_fields(
            data["firstName"], data["lastName"], data["employeeId"], data["phoneNumber"],
        )

        payload = build_qr_payload(data["employeeId"], data["fullName"], data["phoneNumber"])
        data["qrCodeUrl"] = payload
        if not ctx.options.render_qr_images:
            return True

        try:
            data["qrCodeUrl"] = await asyncio.to_thread(render_qr_data_url, payload)
        except (DataOverflowError, ValueError, OSError) as exc:
            ctx.add_warning(record.row_index, "QR code image could not be generated; stored the QR text instead.")
            logger.warning("QR rendering failed", row_index=record.row_index, error=str(exc))
            return False
        return True
