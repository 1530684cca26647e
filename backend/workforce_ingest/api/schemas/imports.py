"""Import job request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ImportJobQueued(BaseModel):
    """Returned when an upload is accepted for background processing."""

    message: str = "Import queued"
    job_id: str
    task_id: str | None = None
    status: str = "PENDING"


class ImportJobOut(BaseModel):
    """One stored import job (list view)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    entity_kind: str
    filename: str
    status: str
    total_rows: int | None = None
    records_processed: int | None = 0
    message: str | None = None
    error_message: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime


class ImportJobDetail(ImportJobOut):
    """One stored import job with its full report."""

    format_hint: str | None = None
    report: dict[str, Any] | None = None
    updated_at: datetime | None = None


class ImportJobList(BaseModel):
    data: list[ImportJobOut] = Field(default_factory=list)
    total: int = 0
