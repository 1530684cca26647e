"""
ImportJob repository containing all data-access operations for the import_jobs table.

Repository rules:
- Pure data-access logic only
- Every function receives AsyncSession explicitly
- Functions flush, but never commit
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_ingest.core.constants import JobStatus
from workforce_ingest.db.models.base import utcnow
from workforce_ingest.db.models.import_job import ImportJob
from workforce_ingest.pipeline.report import JobReport


async def create_job(
    db: AsyncSession,
    *,
    job_id: str,
    entity_kind: str,
    filename: str,
    storage_path: str,
    format_hint: str | None = None,
) -> ImportJob:
    """Create a PENDING job for an upload already in blob storage."""
    job = ImportJob(
        id=job_id,
        entity_kind=entity_kind,
        filename=filename,
        storage_path=storage_path,
        format_hint=format_hint,
        status=JobStatus.PENDING.value,
    )
    db.add(job)
    await db.flush()
    return job


async def get_job(db: AsyncSession, job_id: str) -> ImportJob | None:
    """Fetch a job by primary key."""
    return await db.get(ImportJob, job_id)


async def list_jobs(
    db: AsyncSession,
    *,
    entity_kind: str | None = None,
    status: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[ImportJob]:
    """List jobs, newest first, with optional filters."""
    stmt = select(ImportJob).order_by(ImportJob.created_at.desc())
    if entity_kind:
        stmt = stmt.where(ImportJob.entity_kind == entity_kind)
    if status:
        stmt = stmt.where(ImportJob.status == status.upper())
    result = await db.execute(stmt.offset(offset).limit(limit))
    return list(result.scalars().all())


async def count_jobs(
    db: AsyncSession,
    *,
    entity_kind: str | None = None,
    status: str | None = None,
) -> int:
    """Number of jobs matching the list_jobs filters, ignoring paging."""
    stmt = select(func.count()).select_from(ImportJob)
    if entity_kind:
        stmt = stmt.where(ImportJob.entity_kind == entity_kind)
    if status:
        stmt = stmt.where(ImportJob.status == status.upper())
    return (await db.execute(stmt)).scalar_one()


async def mark_running(db: AsyncSession, job: ImportJob) -> ImportJob:
    job.status = JobStatus.RUNNING.value
    job.started_at = utcnow()
    await db.flush()
    return job


async def mark_finished(db: AsyncSession, job: ImportJob, report: JobReport) -> ImportJob:
    """Store the final report and status of a job."""
    job.status = str(report.status)
    job.total_rows = report.total_rows
    job.records_processed = report.records_committed
    job.message = report.message
    job.error_message = report.error
    job.report = report.to_dict()
    job.completed_at = utcnow()
    await db.flush()
    return job


async def mark_failed(db: AsyncSession, job: ImportJob, error: str) -> ImportJob:
    """Fail a job that never produced a report (e.g. upload missing)."""
    job.status = JobStatus.FAILED.value
    job.message = error
    job.error_message = error
    job.completed_at = utcnow()
    await db.flush()
    return job
