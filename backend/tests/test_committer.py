import asyncio

import pytest

from workforce_ingest.core.constants import JobStatus, RowStatus
from workforce_ingest.pipeline.context import ImportContext, ImportOptions, ImportServices, NormalizedRecord, RawRow
from workforce_ingest.pipeline.engine import PipelineEngine
from workforce_ingest.pipeline.errors import StorageError
from workforce_ingest.pipeline.steps.commit_records import CommitRecordsStep, chunked
from workforce_ingest.schemas.site import SITE_SCHEMA
from workforce_ingest.storage import InMemoryBlobStore, InMemoryDocumentStore


class FlakyDocumentStore(InMemoryDocumentStore):
    """Fails the Nth commit_batch call."""

    def __init__(self, fail_on_call: int) -> None:
        super().__init__()
        self.fail_on_call = fail_on_call
        self.attempts = 0

    async def commit_batch(self, writes):
        self.attempts += 1
        if self.attempts == self.fail_on_call:
            raise StorageError("deadline exceeded")
        await super().commit_batch(writes)


def _context(store, record_count: int, batch_size: int = 400) -> ImportContext:
    ctx = ImportContext(
        entity_kind=SITE_SCHEMA.kind,
        schema=SITE_SCHEMA,
        filename="sites.csv",
        content=b"",
        services=ImportServices(store, InMemoryBlobStore()),
        options=ImportOptions(max_batch_size=batch_size, retry_backoff_seconds=0),
    )
    for index in range(1, record_count + 1):
        ctx.raw_rows.append(RawRow(index, {}))
        ctx.records[index] = NormalizedRecord(index, {"siteName": f"Site {index}"})
    return ctx


def _commit(ctx):
    return asyncio.run(PipelineEngine().run_steps(ctx, [CommitRecordsStep()]))


def test_chunked():
    assert [len(c) for c in chunked(list(range(1000)), 400)] == [400, 400, 200]
    assert chunked([], 400) == []


def test_commits_in_bounded_chunks():
    store = InMemoryDocumentStore()

    report = _commit(_context(store, 1000))

    assert store.commit_calls == [400, 400, 200]
    assert report.status == JobStatus.COMPLETED
    assert report.records_committed == 1000
    assert len(store.documents("sites")) == 1000
    assert report.message == "Site data imported successfully. 1000 records processed."


def test_failed_chunk_stops_the_job_with_partial_counters():
    store = FlakyDocumentStore(fail_on_call=2)

    report = _commit(_context(store, 1000))

    assert store.attempts == 2
    assert store.commit_calls == [400]
    assert len(store.documents("sites")) == 400
    assert report.status == JobStatus.PARTIALLY_COMMITTED
    assert report.error_type == "CommitError"
    assert report.records_committed == 400

    response = report.to_response()
    assert response["success"] is False
    assert response["recordsProcessed"] == 400
    assert "Error saving data to database: deadline exceeded" in response["message"]

    statuses = [outcome.status for outcome in report.outcomes]
    assert statuses[:400] == [RowStatus.SUCCESS] * 400
    assert statuses[400:] == [RowStatus.NOT_COMMITTED] * 600
    assert response["perRowResults"][400]["status"] == "error"
    assert response["perRowResults"][400]["message"].startswith("Not committed:")


def test_first_chunk_failure_is_a_plain_failure():
    store = FlakyDocumentStore(fail_on_call=1)

    report = _commit(_context(store, 10))

    assert report.status == JobStatus.FAILED
    assert report.records_committed == 0
    assert report.error_type == "CommitError"


@pytest.mark.parametrize("batch_size", [0, 501])
def test_batch_size_outside_store_limit(batch_size):
    store = InMemoryDocumentStore()

    report = _commit(_context(store, 5, batch_size=batch_size))

    assert report.status == JobStatus.FAILED
    assert report.error_type == "ConfigurationError"
    assert store.commit_calls == []


def test_no_surviving_records():
    ctx = _context(InMemoryDocumentStore(), 2)
    ctx.reject_row(1, ["Site Name is required"])
    ctx.mark_duplicate(2, "acme_gate")

    report = _commit(ctx)

    assert report.status == JobStatus.FAILED
    assert report.error_type == "EmptyInputError"
    assert report.message == "No valid site records could be processed from the file."
    assert [o.status for o in report.outcomes] == [RowStatus.VALIDATION_ERROR, RowStatus.DUPLICATE]


def test_preassigned_document_ids_are_kept():
    store = InMemoryDocumentStore()
    ctx = _context(store, 2)
    ctx.records[1].document_id = "site-a_03Aug25"

    _commit(ctx)

    assert "site-a_03Aug25" in store.documents("sites")
    assert len(store.documents("sites")) == 2
