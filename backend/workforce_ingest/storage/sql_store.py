"""
SqlDocumentStore — DocumentStore backed by SQLAlchemy (PostgreSQL / SQLite).

Document bodies are stored as JSON.  Typed values the JSON column cannot
hold natively (datetimes, GeoPoints) are wrapped in tagged objects and
restored on read.  Each commit_batch call runs in one transaction.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from workforce_ingest.core.logging import get_logger
from workforce_ingest.db.models.base import utcnow
from workforce_ingest.db.models.stored_document import StoreCounter, StoredDocument
from workforce_ingest.pipeline.errors import StorageError
from workforce_ingest.processing.geo import GeoPoint
from workforce_ingest.storage.base import DocumentStore, DocumentWrite

logger = get_logger(__name__)

TYPE_TAG = "__type__"


# ─── JSON encoding of typed values ────────────────────

def encode_value(value: Any) -> Any:
    if isinstance(value, GeoPoint):
        return {TYPE_TAG: "geopoint", "latitude": value.latitude, "longitude": value.longitude}
    if isinstance(value, datetime):
        return {TYPE_TAG: "datetime", "value": value.isoformat()}
    if isinstance(value, dict):
        return {key: encode_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    return value


def decode_value(value: Any) -> Any:
    if isinstance(value, dict):
        tag = value.get(TYPE_TAG)
        if tag == "geopoint":
            return GeoPoint(value["latitude"], value["longitude"])
        if tag == "datetime":
            return datetime.fromisoformat(value["value"])
        return {key: decode_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [decode_value(item) for item in value]
    return value


class SqlDocumentStore(DocumentStore):
    """DocumentStore over the `documents` and `counters` tables."""

    counter_attempts = 3

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def fetch_documents(self, collection: str) -> list[dict[str, Any]]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(StoredDocument).where(StoredDocument.collection == collection)
                )
                return [
                    {"id": doc.document_id, **decode_value(doc.data)}
                    for doc in result.scalars().all()
                ]
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not read collection '{collection}': {exc}") from exc

    def new_document_id(self, collection: str) -> str:
        return uuid.uuid4().hex

    async def commit_batch(self, writes: Sequence[DocumentWrite]) -> None:
        if len(writes) > self.max_batch_operations:
            raise StorageError(
                f"Batch of {len(writes)} writes exceeds the limit of {self.max_batch_operations}"
            )
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    for write in writes:
                        await session.merge(StoredDocument(
                            collection=write.collection,
                            document_id=write.document_id,
                            data=encode_value(write.data),
                            updated_at=utcnow(),
                        ))
        except SQLAlchemyError as exc:
            raise StorageError(f"Batch write failed: {exc}") from exc

    async def reserve_counter_block(self, name: str, count: int) -> int:
        for attempt in range(1, self.counter_attempts + 1):
            try:
                async with self.session_factory() as session:
                    async with session.begin():
                        result = await session.execute(
                            select(StoreCounter).where(StoreCounter.name == name).with_for_update()
                        )
                        counter = result.scalar_one_or_none()
                        if counter is None:
                            counter = StoreCounter(name=name, value=0)
                            session.add(counter)
                        counter.value += count
                        value = counter.value
                return value
            except IntegrityError:
                # Another worker created the counter row first
                if attempt == self.counter_attempts:
                    raise StorageError(f"Could not reserve counter block for '{name}'") from None
                logger.debug("Counter insert raced, retrying", counter=name, attempt=attempt)
            except SQLAlchemyError as exc:
                raise StorageError(f"Counter update failed for '{name}': {exc}") from exc
        raise StorageError(f"Could not reserve counter block for '{name}'")
