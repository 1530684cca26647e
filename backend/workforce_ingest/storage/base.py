"""
Abstract storage interfaces used by the import pipeline.

The pipeline never talks to a concrete client directly.  Callers build a
DocumentStore and a BlobStore and hand them to the engine through
ImportServices, so every step can be exercised against in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Sequence

from workforce_ingest.core.constants import STORE_BATCH_OPERATION_LIMIT


@dataclass
class DocumentWrite:
    """
    One set-operation inside a batched write.

    Args:
        collection: Target collection name, e.g. "employees".
        document_id: Document key.  Existing documents with the same key
                     are replaced.
        data: Document body (typed values: str, int, datetime, GeoPoint ...).
    """

    collection: str
    document_id: str
    data: dict[str, Any] = field(default_factory=dict)


class DocumentStore(ABC):
    """Keyed document store with an atomic batched-write primitive."""

    max_batch_operations: int = STORE_BATCH_OPERATION_LIMIT

    @abstractmethod
    async def fetch_documents(self, collection: str) -> list[dict[str, Any]]:
        """Return every document of a collection.  Each dict includes "id"."""
        ...

    @abstractmethod
    def new_document_id(self, collection: str) -> str:
        """Allocate a fresh, unused document key."""
        ...

    @abstractmethod
    async def commit_batch(self, writes: Sequence[DocumentWrite]) -> None:
        """
        Apply all writes atomically: either every write lands or none does.

        Raises:
            StorageError: on any failure, or when the batch exceeds
                          max_batch_operations.
        """
        ...

    @abstractmethod
    async def reserve_counter_block(self, name: str, count: int) -> int:
        """
        Atomically advance counter `name` by `count` and return the new value.

        The caller owns the numbers (new_value - count, new_value].
        """
        ...


class BlobStore(ABC):
    """Object store that accepts bytes at a path and returns a retrievable URL."""

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store `data` at `path`; return a long-lived URL."""
        ...

    @abstractmethod
    async def download(self, path: str) -> bytes:
        """Return the bytes stored at `path`."""
        ...
