"""
Result reporter — turns a finished ImportContext into a JobReport.

Every parsed row gets exactly one RowOutcome, in original row order:

    SUCCESS           committed
    VALIDATION_ERROR  failed schema validation or reference resolution
    DUPLICATE         natural key already seen
    NOT_COMMITTED     valid, but its chunk failed or was never attempted
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from workforce_ingest.core.constants import JobStatus, RowStatus
from workforce_ingest.pipeline.context import ImportContext, NormalizedRecord
from workforce_ingest.pipeline.errors import CommitError

# Status strings of the per-row response
RESPONSE_STATUS: dict[RowStatus, str] = {
    RowStatus.SUCCESS: "success",
    RowStatus.VALIDATION_ERROR: "error",
    RowStatus.DUPLICATE: "duplicate",
    RowStatus.NOT_COMMITTED: "error",
}


@dataclass
class RowOutcome:
    """Final outcome of one input row."""

    row_index: int
    status: RowStatus
    record: NormalizedRecord | None = None
    messages: list[str] = field(default_factory=list)
    key: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.status == RowStatus.SUCCESS:
            if self.record is None:
                return "Imported"
            return f"Imported as {self.record.data.get('employeeId') or self.record.document_id}"
        if self.status == RowStatus.DUPLICATE:
            return f"Duplicate record ({self.key})"
        return "; ".join(self.messages)

    def to_response(self) -> dict[str, Any]:
        item: dict[str, Any] = {
            "rowIndex": self.row_index,
            "status": RESPONSE_STATUS[self.status],
            "message": self.message,
        }
        if self.warnings:
            item["warnings"] = list(self.warnings)
        return item


@dataclass
class JobReport:
    """Aggregated result of one import job."""

    job_id: str
    entity_kind: str
    status: JobStatus
    message: str
    total_rows: int = 0
    successes: int = 0
    validation_errors: int = 0
    duplicates: int = 0
    not_committed: int = 0
    records_committed: int = 0
    warnings: int = 0
    outcomes: list[RowOutcome] = field(default_factory=list)
    error: str | None = None
    error_type: str | None = None
    step_results: list[dict[str, Any]] = field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def success(self) -> bool:
        return self.status == JobStatus.COMPLETED

    @property
    def duration_ms(self) -> int:
        if self.started_at and self.completed_at:
            return int((self.completed_at - self.started_at).total_seconds() * 1000)
        return 0

    def to_response(self) -> dict[str, Any]:
        """Public job response."""
        return {
            "success": self.success,
            "message": self.message,
            "recordsProcessed": self.records_committed,
            "perRowResults": [outcome.to_response() for outcome in self.outcomes],
            "summary": {
                "totalRows": self.total_rows,
                "successes": self.successes,
                "validationErrors": self.validation_errors,
                "duplicates": self.duplicates,
                "notCommitted": self.not_committed,
                "warnings": self.warnings,
            },
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialise for job storage (response plus execution trace)."""
        return {
            **self.to_response(),
            "jobId": self.job_id,
            "entityKind": self.entity_kind,
            "status": str(self.status),
            "error": self.error,
            "errorType": self.error_type,
            "durationMs": self.duration_ms,
            "steps": self.step_results,
        }


def _job_status(ctx: ImportContext) -> JobStatus:
    if ctx.failure is None:
        return JobStatus.COMPLETED
    if isinstance(ctx.failure, CommitError) and ctx.records_committed > 0:
        return JobStatus.PARTIALLY_COMMITTED
    return JobStatus.FAILED


def _job_message(ctx: ImportContext, status: JobStatus) -> str:
    if status == JobStatus.COMPLETED:
        return (
            f"{ctx.schema.label.capitalize()} data imported successfully. "
            f"{ctx.records_committed} records processed."
        )
    if status == JobStatus.PARTIALLY_COMMITTED:
        return f"{ctx.failure} ({ctx.records_committed} records were committed before the failure.)"
    return str(ctx.failure)


def build_report(
    ctx: ImportContext,
    *,
    started_at: datetime | None = None,
    completed_at: datetime | None = None,
) -> JobReport:
    """Aggregate the context into a JobReport."""
    status = _job_status(ctx)
    failure_text = str(ctx.failure) if ctx.failure else "the job stopped"

    outcomes: list[RowOutcome] = []
    for row in ctx.raw_rows:
        index = row.row_index
        warnings = list(ctx.warnings.get(index, []))
        if index in ctx.row_errors:
            outcome = RowOutcome(index, RowStatus.VALIDATION_ERROR, messages=list(ctx.row_errors[index]))
        elif index in ctx.duplicates:
            outcome = RowOutcome(index, RowStatus.DUPLICATE, key=ctx.duplicates[index])
        elif index in ctx.committed_rows:
            outcome = RowOutcome(index, RowStatus.SUCCESS, record=ctx.records.get(index))
        elif index in ctx.records:
            outcome = RowOutcome(
                index, RowStatus.NOT_COMMITTED,
                record=ctx.records[index],
                messages=[f"Not committed: {failure_text}"],
            )
        else:
            outcome = RowOutcome(index, RowStatus.NOT_COMMITTED, messages=[f"Not processed: {failure_text}"])
        outcome.warnings = warnings
        outcomes.append(outcome)

    def _count(row_status: RowStatus) -> int:
        return sum(1 for o in outcomes if o.status == row_status)

    return JobReport(
        job_id=ctx.job_id,
        entity_kind=str(ctx.entity_kind),
        status=status,
        message=_job_message(ctx, status),
        total_rows=len(outcomes),
        successes=_count(RowStatus.SUCCESS),
        validation_errors=_count(RowStatus.VALIDATION_ERROR),
        duplicates=_count(RowStatus.DUPLICATE),
        not_committed=_count(RowStatus.NOT_COMMITTED),
        records_committed=ctx.records_committed,
        warnings=sum(len(o.warnings) for o in outcomes),
        outcomes=outcomes,
        error=str(ctx.failure) if ctx.failure else None,
        error_type=type(ctx.failure).__name__ if ctx.failure else None,
        step_results=[sr.to_dict() for sr in ctx.step_results],
        started_at=started_at,
        completed_at=completed_at,
    )
