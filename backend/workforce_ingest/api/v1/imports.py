"""
Import endpoints — synchronous upload, queued jobs, job views and templates.
"""

from __future__ import annotations

import csv
import io
import uuid

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_ingest.api.deps import (
    TaskDispatcher,
    get_blob_store,
    get_db,
    get_engine,
    get_import_options,
    get_import_services,
    get_task_dispatcher,
)
from workforce_ingest.api.schemas import ImportJobDetail, ImportJobList, ImportJobOut, ImportJobQueued
from workforce_ingest.core.constants import JobStatus
from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.context import ImportOptions, ImportServices
from workforce_ingest.pipeline.engine import PipelineEngine
from workforce_ingest.pipeline.errors import ConfigurationError, StorageError
from workforce_ingest.pipeline.report import JobReport
from workforce_ingest.repositories import import_jobs as job_repository
from workforce_ingest.schemas import EntitySchema, get_schema
from workforce_ingest.storage import BlobStore

logger = get_logger(__name__)

router = APIRouter(prefix="/imports", tags=["Imports"])

# Job-level failures caused by the upload itself rather than the backend
CLIENT_ERROR_TYPES = {"EmptyInputError", "ConfigurationError"}


def _schema_or_400(entity_kind: str) -> EntitySchema:
    try:
        return get_schema(entity_kind)
    except ConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from None


def response_status(report: JobReport) -> int:
    """HTTP status of a finished synchronous import."""
    if report.status == JobStatus.COMPLETED:
        return status.HTTP_200_OK
    if report.status == JobStatus.FAILED and report.error_type in CLIENT_ERROR_TYPES:
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


# ─── Jobs ─────────────────────────────────────────────────
# Registered before /{entity_kind} so "jobs" is never read as a kind.

@router.get("/jobs", response_model=ImportJobList)
async def list_import_jobs(
    entity_kind: str | None = None,
    job_status: str | None = Query(None, alias="status"),
    limit: int = 50,
    offset: int = 0,
    db: AsyncSession = Depends(get_db),
):
    """List import jobs with optional filters."""
    jobs = await job_repository.list_jobs(
        db, entity_kind=entity_kind, status=job_status, limit=limit, offset=offset,
    )
    total = await job_repository.count_jobs(db, entity_kind=entity_kind, status=job_status)
    return ImportJobList(
        data=[ImportJobOut.model_validate(job) for job in jobs],
        total=total,
    )


@router.get("/jobs/{job_id}", response_model=ImportJobDetail)
async def get_import_job(job_id: str, db: AsyncSession = Depends(get_db)):
    """Job detail including the stored report."""
    job = await job_repository.get_job(db, job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Import job not found")
    return ImportJobDetail.model_validate(job)


# ─── Synchronous import ───────────────────────────────────
@router.post("/{entity_kind}")
async def import_file(
    entity_kind: str,
    file: UploadFile = File(...),
    format: str | None = Form(None),
    services: ImportServices = Depends(get_import_services),
    options: ImportOptions = Depends(get_import_options),
    engine: PipelineEngine = Depends(get_engine),
):
    """
    Run the whole import inside the request.

    200 when every valid row was committed, 400 when the upload itself is
    unusable (or no row was valid), 500 when a commit failed; the body
    always carries the per-row results and partial counters.
    """
    schema = _schema_or_400(entity_kind)
    content = await file.read()

    report = await engine.run(
        entity_kind=schema.kind,
        filename=file.filename or "",
        content=content,
        services=services,
        options=options,
        format_hint=format,
    )
    return JSONResponse(status_code=response_status(report), content=report.to_response())


# ─── Queued import ────────────────────────────────────────
@router.post("/{entity_kind}/jobs", status_code=status.HTTP_202_ACCEPTED, response_model=ImportJobQueued)
async def queue_import(
    entity_kind: str,
    file: UploadFile = File(...),
    format: str | None = Form(None),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    dispatch: TaskDispatcher = Depends(get_task_dispatcher),
):
    """
    Store the upload and hand it to a background worker.

    1. Uploads the file to blob storage
    2. Creates an ImportJob row with status=PENDING (visible immediately)
    3. Dispatches the Celery task, which moves it to RUNNING and beyond
    """
    schema = _schema_or_400(entity_kind)
    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file data received.")

    job_id = str(uuid.uuid4())
    filename = file.filename or "upload"
    storage_path = f"imports/{schema.kind}/{job_id}/{filename}"

    try:
        await blob_store.upload(storage_path, content, file.content_type or "application/octet-stream")
    except StorageError as exc:
        logger.error("Upload could not be stored", job_id=job_id, error=str(exc))
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    await job_repository.create_job(
        db,
        job_id=job_id,
        entity_kind=str(schema.kind),
        filename=filename,
        storage_path=storage_path,
        format_hint=format,
    )
    # The worker must see the row, so commit before dispatching
    await db.commit()

    task_id = dispatch(job_id)
    logger.info("Import queued", job_id=job_id, entity_kind=str(schema.kind), task_id=task_id)
    return ImportJobQueued(job_id=job_id, task_id=task_id)


# ─── Template ─────────────────────────────────────────────
@router.get("/{entity_kind}/template")
async def download_template(entity_kind: str):
    """CSV with the accepted headers and one example row."""
    schema = _schema_or_400(entity_kind)
    headers = schema.template_headers

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    writer.writerow([schema.template_example.get(header, "") for header in headers])

    filename = f"{schema.kind}_template.csv"
    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
