"""
ImportJob — one row per background import.

Created as PENDING by the jobs endpoint, moved to RUNNING by the Celery
task and finally to COMPLETED / PARTIALLY_COMMITTED / FAILED together
with the full job report.
"""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, Text

from workforce_ingest.db.models.base import Base, JSONType, generate_uuid, utcnow


class ImportJob(Base):
    """Background import job."""

    __tablename__ = "import_jobs"

    id = Column(String(36), primary_key=True, default=generate_uuid)

    # ── Upload ────────────────────────────────
    entity_kind = Column(String(50), nullable=False, index=True)
    filename = Column(String(500), nullable=False)
    storage_path = Column(String(1000), nullable=False)
    format_hint = Column(String(50), nullable=True)

    # ── Status / Progress ────────────────────
    status = Column(String(50), nullable=False, default="PENDING", index=True)
    total_rows = Column(Integer, nullable=True)
    records_processed = Column(Integer, default=0)
    message = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)

    # ── Final report (JobReport.to_dict) ─────
    report = Column(JSONType, nullable=True)

    # ── Timing (UTC) ─────────────────────────
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # ── Audit timestamps ─────────────────────
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<ImportJob {self.id} kind={self.entity_kind} status={self.status}>"
