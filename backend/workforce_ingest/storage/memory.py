"""In-process store implementations for local runs, demos and tests."""

from __future__ import annotations

import asyncio
import copy
import uuid
from typing import Any, Sequence

from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.errors import StorageError
from workforce_ingest.storage.base import BlobStore, DocumentStore, DocumentWrite

logger = get_logger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed document store.  commit_batch is all-or-nothing."""

    def __init__(self, collections: dict[str, dict[str, dict[str, Any]]] | None = None) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = collections or {}
        self.counters: dict[str, int] = {}
        self.commit_calls: list[int] = []
        self.fetch_calls: list[str] = []
        self._lock = asyncio.Lock()

    async def fetch_documents(self, collection: str) -> list[dict[str, Any]]:
        self.fetch_calls.append(collection)
        docs = self.collections.get(collection, {})
        return [{"id": doc_id, **copy.deepcopy(data)} for doc_id, data in docs.items()]

    def new_document_id(self, collection: str) -> str:
        return uuid.uuid4().hex

    async def commit_batch(self, writes: Sequence[DocumentWrite]) -> None:
        if len(writes) > self.max_batch_operations:
            raise StorageError(
                f"Batch of {len(writes)} writes exceeds the limit of {self.max_batch_operations}"
            )
        async with self._lock:
            staged = {name: dict(docs) for name, docs in self.collections.items()}
            for write in writes:
                staged.setdefault(write.collection, {})[write.document_id] = dict(write.data)
            self.collections = staged
            self.commit_calls.append(len(writes))

    async def reserve_counter_block(self, name: str, count: int) -> int:
        async with self._lock:
            value = self.counters.get(name, 0) + count
            self.counters[name] = value
            return value

    def documents(self, collection: str) -> dict[str, dict[str, Any]]:
        """Direct view of a collection (test/demo helper)."""
        return self.collections.get(collection, {})


class InMemoryBlobStore(BlobStore):
    """Keeps uploaded objects in a dict and returns memory:// URLs."""

    def __init__(self, base_url: str = "memory://blobs") -> None:
        self.base_url = base_url.rstrip("/")
        self.objects: dict[str, tuple[bytes, str]] = {}

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        self.objects[path] = (bytes(data), content_type)
        logger.debug("Blob stored in memory", path=path, size=len(data))
        return f"{self.base_url}/{path}"

    async def download(self, path: str) -> bytes:
        try:
            return self.objects[path][0]
        except KeyError:
            raise StorageError(f"Object not found: {path}") from None
