"""
ImportContext — mutable state object carried through every step.

This is the single source of truth for one import job.  Each step reads
from and writes to the context; the reporter turns the final context
into a JobReport.

Row bookkeeping is keyed by row_index (1-based position among data
rows).  A row is in at most one of row_errors / duplicates / records,
and records keeps row order because steps insert in row order.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from workforce_ingest.core.constants import DEFAULT_MAX_BATCH_SIZE, EntityKind
from workforce_ingest.storage.base import BlobStore, DocumentStore

if TYPE_CHECKING:
    from workforce_ingest.schemas.fields import EntitySchema


# ═══════════════════════════════════════════════════════════
#  Options and collaborators
# ═══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ImportOptions:
    """Immutable knobs for one import job."""

    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    media_max_workers: int = 4
    jpeg_quality: int = 75
    id_org_prefix: str = "CISS"
    render_qr_images: bool = True
    retry_backoff_seconds: float = 2.0
    # Fixes the financial year for identifier generation; None means today.
    today: date | None = None

    @classmethod
    def from_settings(cls, settings: Any = None, **overrides: Any) -> ImportOptions:
        if settings is None:
            from workforce_ingest.core.config import settings
        values = {
            "max_batch_size": settings.IMPORT_MAX_BATCH_SIZE,
            "media_max_workers": settings.MEDIA_MAX_WORKERS,
            "jpeg_quality": settings.MEDIA_JPEG_QUALITY,
            "id_org_prefix": settings.ID_ORG_PREFIX,
            "render_qr_images": settings.QR_RENDER_IMAGES,
            "retry_backoff_seconds": settings.STEP_RETRY_BACKOFF_SECONDS,
        }
        values.update(overrides)
        return cls(**values)


@dataclass
class ImportServices:
    """Storage clients handed to the pipeline by its caller."""

    document_store: DocumentStore
    blob_store: BlobStore


# ═══════════════════════════════════════════════════════════
#  Rows and records
# ═══════════════════════════════════════════════════════════

@dataclass
class RawRow:
    """
    One data row as parsed from the upload.

    Args:
        row_index: 1-based position among data rows (header excluded).
        values: Trimmed cell values keyed by canonical field name where the
                header is mapped, by the trimmed source header otherwise.
    """

    row_index: int
    values: dict[str, Any] = field(default_factory=dict)


@dataclass
class NormalizedRecord:
    """Canonical typed values of a valid row, plus derived fields."""

    row_index: int
    data: dict[str, Any] = field(default_factory=dict)
    document_id: str | None = None


# ═══════════════════════════════════════════════════════════
#  StepResult
# ═══════════════════════════════════════════════════════════

@dataclass
class StepResult:
    """Outcome of a single pipeline step execution."""

    step_name: str
    status: str                     # StepStatus value
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialise for JSON storage."""
        return {
            "step_name": self.step_name,
            "status": self.status,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "metadata": self.metadata,
        }


# ═══════════════════════════════════════════════════════════
#  ImportContext
# ═══════════════════════════════════════════════════════════

@dataclass
class ImportContext:
    """
    Carries all state between pipeline steps.

    Populated progressively: early steps fill in the parsed rows, later
    steps move rows into row_errors / duplicates or enrich the surviving
    records, and the commit step advances records_committed.
    """

    # ─── Identity (set at init) ────────────────────────
    entity_kind: EntityKind
    schema: EntitySchema
    filename: str
    content: bytes
    services: ImportServices
    options: ImportOptions = field(default_factory=ImportOptions)
    format_hint: str | None = None
    job_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    # ─── Parsing ───────────────────────────────────────
    detected_format: str | None = None
    headers: list[str] = field(default_factory=list)
    header_mapping: dict[str, str] = field(default_factory=dict)
    raw_rows: list[RawRow] = field(default_factory=list)

    # Job-wide values resolved from the upload itself (e.g. work date).
    job_params: dict[str, Any] = field(default_factory=dict)

    # ─── Row bookkeeping ───────────────────────────────
    records: dict[int, NormalizedRecord] = field(default_factory=dict)
    row_errors: dict[int, list[str]] = field(default_factory=dict)
    duplicates: dict[int, str] = field(default_factory=dict)
    warnings: dict[int, list[str]] = field(default_factory=dict)
    committed_rows: set[int] = field(default_factory=set)
    records_committed: int = 0

    # ─── Execution tracking ────────────────────────────
    step_results: list[StepResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    failure: Exception | None = None

    # ─── Row helpers ───────────────────────────────────

    def reject_row(self, row_index: int, messages: list[str]) -> None:
        """Move a row to VALIDATION_ERROR; it leaves every later stage."""
        self.records.pop(row_index, None)
        self.row_errors.setdefault(row_index, []).extend(messages)

    def mark_duplicate(self, row_index: int, key: str) -> None:
        self.records.pop(row_index, None)
        self.duplicates[row_index] = key

    def add_warning(self, row_index: int, warning: str) -> None:
        self.warnings.setdefault(row_index, []).append(warning)

    def surviving_records(self) -> list[NormalizedRecord]:
        """Records still eligible for commit, in row order."""
        return sorted(self.records.values(), key=lambda r: r.row_index)

    def mark_committed(self, records: list[NormalizedRecord]) -> None:
        self.committed_rows.update(r.row_index for r in records)
        self.records_committed += len(records)

    # ─── General helpers ───────────────────────────────

    def add_error(self, error: str) -> None:
        """Record a job-level error message."""
        self.errors.append(error)

    def to_summary_dict(self) -> dict[str, Any]:
        """Compact summary for logging / job storage."""
        return {
            "job_id": self.job_id,
            "entity_kind": str(self.entity_kind),
            "filename": self.filename,
            "detected_format": self.detected_format,
            "total_rows": len(self.raw_rows),
            "valid_records": len(self.records),
            "validation_errors": len(self.row_errors),
            "duplicates": len(self.duplicates),
            "records_committed": self.records_committed,
            "steps_completed": len(self.step_results),
            "errors": self.errors,
        }
