"""
StoredDocument / StoreCounter — tables behind SqlDocumentStore.

Documents are keyed by (collection, document_id) and keep their body as
JSON.  Counters hold the monotonic sequences used for identifiers.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Column, DateTime, String

from workforce_ingest.db.models.base import Base, JSONType, utcnow


class StoredDocument(Base):
    """One document of a collection."""

    __tablename__ = "documents"

    collection = Column(String(100), primary_key=True)
    document_id = Column(String(255), primary_key=True)
    data = Column(JSONType, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<StoredDocument {self.collection}/{self.document_id}>"


class StoreCounter(Base):
    """Named monotonic counter."""

    __tablename__ = "counters"

    name = Column(String(255), primary_key=True)
    value = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<StoreCounter {self.name}={self.value}>"
