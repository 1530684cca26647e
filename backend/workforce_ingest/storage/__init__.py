"""
Storage backends and the factory that picks them from settings.

    DOCUMENT_STORE_BACKEND = "sql" | "memory"
    BLOB_STORE_BACKEND     = "s3"  | "memory"
"""

from __future__ import annotations

from typing import Any

from workforce_ingest.pipeline.errors import ConfigurationError
from workforce_ingest.storage.base import BlobStore, DocumentStore, DocumentWrite
from workforce_ingest.storage.memory import InMemoryBlobStore, InMemoryDocumentStore


def build_document_store(settings: Any, session_factory: Any = None) -> DocumentStore:
    backend = settings.DOCUMENT_STORE_BACKEND.lower()
    if backend == "memory":
        return InMemoryDocumentStore()
    if backend == "sql":
        from workforce_ingest.storage.sql_store import SqlDocumentStore

        if session_factory is None:
            from workforce_ingest.db.session import async_session as session_factory
        return SqlDocumentStore(session_factory)
    raise ConfigurationError(f"Unknown DOCUMENT_STORE_BACKEND: {settings.DOCUMENT_STORE_BACKEND}")


def build_blob_store(settings: Any) -> BlobStore:
    backend = settings.BLOB_STORE_BACKEND.lower()
    if backend == "memory":
        return InMemoryBlobStore()
    if backend == "s3":
        from workforce_ingest.storage.s3_blob import S3BlobStore

        return S3BlobStore.from_settings(settings)
    raise ConfigurationError(f"Unknown BLOB_STORE_BACKEND: {settings.BLOB_STORE_BACKEND}")


__all__ = [
    "BlobStore",
    "DocumentStore",
    "DocumentWrite",
    "InMemoryBlobStore",
    "InMemoryDocumentStore",
    "build_blob_store",
    "build_document_store",
]
