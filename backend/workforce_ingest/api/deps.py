"""Shared dependencies for API routes."""

from __future__ import annotations

from functools import lru_cache
from typing import AsyncGenerator, Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_ingest.core.config import settings
from workforce_ingest.db.session import get_db as _get_db
from workforce_ingest.pipeline.context import ImportOptions, ImportServices
from workforce_ingest.pipeline.engine import PipelineEngine
from workforce_ingest.storage import BlobStore, DocumentStore, build_blob_store, build_document_store

# Hands a stored job id to the background worker, returns the task id
TaskDispatcher = Callable[[str], "str | None"]


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session."""
    async for session in _get_db():
        yield session


@lru_cache
def get_document_store() -> DocumentStore:
    return build_document_store(settings)


@lru_cache
def get_blob_store() -> BlobStore:
    return build_blob_store(settings)


def get_import_services(
    document_store: DocumentStore = Depends(get_document_store),
    blob_store: BlobStore = Depends(get_blob_store),
) -> ImportServices:
    return ImportServices(document_store=document_store, blob_store=blob_store)


def get_import_options() -> ImportOptions:
    return ImportOptions.from_settings(settings)


def get_engine() -> PipelineEngine:
    return PipelineEngine()


def _dispatch_celery(job_id: str) -> str | None:
    from workforce_ingest.tasks.import_tasks import process_import

    task = process_import.delay(job_id)
    return task.id


def get_task_dispatcher() -> TaskDispatcher:
    """How queued jobs reach the worker (overridden in tests)."""
    return _dispatch_celery
