"""
Celery tasks — background imports.

Wires the PipelineEngine into the Celery task system.  The upload is
already in blob storage and an ImportJob row exists (PENDING); the task
moves it through RUNNING to its final status and stores the report.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from workforce_ingest.core.config import settings
from workforce_ingest.db.session import make_engine, make_session_factory
from workforce_ingest.pipeline.context import ImportOptions, ImportServices
from workforce_ingest.pipeline.engine import PipelineEngine
from workforce_ingest.pipeline.errors import StorageError
from workforce_ingest.repositories import import_jobs as job_repository
from workforce_ingest.storage import build_blob_store, build_document_store
from workforce_ingest.tasks import celery_app

logger = structlog.get_logger("tasks.imports")


async def run_import_job(
    job_id: str,
    session_factory: Any,
    services: ImportServices,
    options: ImportOptions | None = None,
) -> dict[str, Any]:
    """
    Load the stored upload of `job_id`, run it, and persist the outcome.

    Any error escaping after the job went RUNNING marks it FAILED before
    being re-raised, so a crashed run never stays RUNNING.

    Returns a compact summary for the Celery result backend.
    """
    log = logger.bind(job_id=job_id)

    async with session_factory() as session:
        async with session.begin():
            job = await job_repository.get_job(session, job_id)
            if job is None:
                raise LookupError(f"Import job {job_id} not found")
            await job_repository.mark_running(session, job)
            entity_kind, filename = job.entity_kind, job.filename
            storage_path, format_hint = job.storage_path, job.format_hint

    try:
        try:
            content = await services.blob_store.download(storage_path)
        except StorageError as exc:
            log.error("Stored upload could not be read", path=storage_path, error=str(exc))
            await _mark_failed(session_factory, job_id, f"Upload could not be read: {exc}")
            return {"job_id": job_id, "status": "FAILED"}

        report = await PipelineEngine().run(
            entity_kind=entity_kind,
            filename=filename,
            content=content,
            services=services,
            options=options,
            format_hint=format_hint,
            job_id=job_id,
        )

        async with session_factory() as session:
            async with session.begin():
                job = await job_repository.get_job(session, job_id)
                await job_repository.mark_finished(session, job, report)

    except Exception as exc:
        # Mark as FAILED if the run itself crashes
        log.exception("Import job crashed", error=str(exc))
        try:
            await _mark_failed(session_factory, job_id, f"Import crashed: {exc}")
        except Exception as mark_exc:
            log.error("Could not mark crashed job as failed", error=str(mark_exc))
        raise

    log.info(
        "Import job stored",
        status=str(report.status),
        records_committed=report.records_committed,
    )
    return {
        "job_id": job_id,
        "status": str(report.status),
        "records_processed": report.records_committed,
        "total_rows": report.total_rows,
    }


async def _mark_failed(session_factory: Any, job_id: str, error: str) -> None:
    async with session_factory() as session:
        async with session.begin():
            job = await job_repository.get_job(session, job_id)
            if job is not None:
                await job_repository.mark_failed(session, job, error)


async def _run_with_fresh_engine(job_id: str) -> dict[str, Any]:
    """Fresh DB engine per task run (avoids event loop conflicts in Celery)."""
    engine = make_engine()
    try:
        session_factory = make_session_factory(engine)
        services = ImportServices(
            document_store=build_document_store(settings, session_factory),
            blob_store=build_blob_store(settings),
        )
        return await run_import_job(job_id, session_factory, services)
    finally:
        await engine.dispose()


@celery_app.task(bind=True, name="workforce_ingest.tasks.import_tasks.process_import")
def process_import(self, job_id: str) -> dict[str, Any]:
    """
    Run one stored import job.

    Status: PENDING → RUNNING → COMPLETED / PARTIALLY_COMMITTED / FAILED.
    """
    task_log = logger.bind(task_id=self.request.id, job_id=job_id)
    task_log.info("Import task started")

    try:
        return asyncio.run(_run_with_fresh_engine(job_id))
    except Exception as exc:
        task_log.exception("Import task crashed", error=str(exc))
        raise
