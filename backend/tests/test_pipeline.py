"""End-to-end imports through PipelineEngine with in-memory stores."""

import asyncio
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from conftest import (
    EMPLOYEE_HEADER,
    SITE_HEADER,
    WORK_ORDER_HEADER,
    csv_bytes,
    data_uri,
    employee_row,
    image_bytes,
    site_row,
    xlsx_bytes,
)
from workforce_ingest.core.constants import JobStatus, RowStatus, StepStatus
from workforce_ingest.pipeline.context import ImportServices
from workforce_ingest.pipeline.errors import ConfigurationError, StorageError
from workforce_ingest.pipeline.flow_resolver import FlowResolver
from workforce_ingest.pipeline.steps import derive_fields
from workforce_ingest.processing.geo import GeoPoint
from workforce_ingest.storage import InMemoryBlobStore, InMemoryDocumentStore


def _statuses(report):
    return [outcome.to_response()["status"] for outcome in report.outcomes]


# ─── Sites ────────────────────────────────────────────

def test_site_import(run_import, store):
    content = csv_bytes([
        SITE_HEADER,
        site_row("Acme Corp", "Main Gate", site_id="SITE-001"),
        site_row("Acme Corp", "Harbour"),
        site_row("ACME CORP", "main gate"),
        site_row("Acme Corp", "North", geo="95,76.5"),
    ])

    report = run_import("site", "sites.csv", content)

    assert report.status == JobStatus.COMPLETED
    assert report.total_rows == 4
    assert _statuses(report) == ["success", "success", "duplicate", "error"]
    assert report.outcomes[2].message == "Duplicate record (acme corp_main gate)"
    assert report.outcomes[3].messages == ["Invalid Geolocation values."]
    assert report.message == "Site data imported successfully. 2 records processed."

    sites = list(store.documents("sites").values())
    assert len(sites) == 2
    first = next(s for s in sites if s["siteName"] == "Main Gate")
    assert first["geolocation"] == GeoPoint(10.1234, 76.5432)
    assert first["siteId"] == "SITE-001"
    assert isinstance(first["createdAt"], datetime)


def test_site_already_registered_is_a_duplicate(run_import, store):
    store.collections["sites"] = {"old": {"clientName": "Acme Corp", "siteName": "Main Gate"}}
    content = csv_bytes([SITE_HEADER, site_row("acme corp", "MAIN GATE"), site_row("Acme Corp", "Harbour")])

    report = run_import("site", "sites.csv", content)

    assert _statuses(report) == ["duplicate", "success"]
    assert len(store.documents("sites")) == 2


def test_every_row_gets_one_outcome_in_order(run_import):
    rows = [SITE_HEADER]
    for i in range(1, 26):
        rows.append(site_row("Acme", f"Site {i}", geo="bad" if i % 5 == 0 else "1,2"))

    report = run_import("site", "sites.csv", csv_bytes(rows))

    assert [o.row_index for o in report.outcomes] == list(range(1, 26))
    assert report.successes == 20
    assert report.validation_errors == 5


def test_missing_required_column_stops_the_job(run_import, store):
    content = csv_bytes([
        ["Client Name", "Site Name", "Site Address"],
        ["Acme", "Gate", "Road 1"],
    ])

    report = run_import("site", "sites.csv", content)

    assert report.status == JobStatus.FAILED
    assert report.error_type == "ConfigurationError"
    assert report.message == "Missing required column(s): Geolocation"
    assert _statuses(report) == ["error"]
    assert report.outcomes[0].message.startswith("Not processed:")
    assert store.commit_calls == []


def test_all_rows_invalid(run_import):
    content = csv_bytes([SITE_HEADER, site_row("Acme", "Gate", geo="abc,def")])

    report = run_import("site", "sites.csv", content)

    assert report.status == JobStatus.FAILED
    assert report.error_type == "EmptyInputError"
    assert report.validation_errors == 1


def test_empty_upload(run_import):
    report = run_import("site", "sites.csv", b"")

    assert report.status == JobStatus.FAILED
    assert report.error_type == "EmptyInputError"
    assert report.total_rows == 0
    assert report.step_results[0]["status"] == StepStatus.FAILED


def test_unknown_entity_kind(run_import):
    with pytest.raises(ConfigurationError):
        run_import("vehicle", "vehicles.csv", b"a\n1\n")


def test_format_hint_overrides_extension(run_import, store):
    content = xlsx_bytes([SITE_HEADER, site_row("Acme", "Gate")])

    report = run_import("site", "sites.csv", content, format_hint="xlsx")

    assert report.status == JobStatus.COMPLETED
    assert len(store.documents("sites")) == 1


# ─── Employees ────────────────────────────────────────

def test_employee_import(run_import, store, blobs):
    photo = data_uri(image_bytes((1200, 1600)))
    content = csv_bytes([
        EMPLOYEE_HEADER,
        employee_row("Anil", "Kumar", "9876543210", "TCS",
                     IDProofType="Aadhar Card", IDProofNumber="1234 5678 9012", ResourceIDNumber="R-1",
                     PhotoBlob=photo),
        employee_row("Meera", "Nair", "98765", "Global Ventures"),
        employee_row("Ravi", "Menon", "9123456780", "Acme", JoiningDate="45000"),
        employee_row("Sara", "Thomas", "9000000001", "TCS", ResourceIDNumber="R-2"),
    ])

    report = run_import("employee", "employees.csv", content)

    assert report.status == JobStatus.COMPLETED
    assert _statuses(report) == ["success", "error", "success", "success"]
    assert report.outcomes[1].messages == ["Phone number must be 10 digits."]
    assert report.outcomes[0].message == "Imported as CISS/TCS/2025-26/001"

    employees = {e["phoneNumber"]: e for e in store.documents("employees").values()}
    anil, ravi, sara = employees["9876543210"], employees["9123456780"], employees["9000000001"]

    assert anil["employeeId"] == "CISS/TCS/2025-26/001"
    assert sara["employeeId"] == "CISS/TCS/2025-26/002"
    assert ravi["employeeId"] == "CISS/ACME/2025-26/001"
    assert anil["fullName"] == "Anil Kumar"
    assert anil["searchableFields"] == ["ANIL", "KUMAR", "CISS/TCS/2025-26/001", "9876543210"]
    assert anil["qrCodeUrl"].startswith("data:image/png;base64,")
    assert ravi["joiningDate"] == datetime(2023, 3, 15, tzinfo=timezone.utc)

    assert anil["profilePictureUrl"].startswith("memory://blobs/employee_photos/9876543210/")
    assert ravi["profilePictureUrl"] is None
    assert len(blobs.objects) == 1


def test_employee_without_qr_rendering(run_import, store, options):
    content = csv_bytes([EMPLOYEE_HEADER, employee_row("Anil", "Kumar", "9876543210")])

    report = run_import("employee", "employees.csv", content, options=replace(options, render_qr_images=False))

    (employee,) = store.documents("employees").values()
    assert employee["qrCodeUrl"] == "Employee ID: CISS/ACME/2025-26/001\nName: Anil Kumar\nPhone: 9876543210"
    assert report.warnings == 0


def test_qr_failure_keeps_text_and_warns(run_import, store, monkeypatch):
    def _broken(payload):
        raise ValueError("encoder exploded")

    monkeypatch.setattr(derive_fields, "render_qr_data_url", _broken)
    content = csv_bytes([EMPLOYEE_HEADER, employee_row("Anil", "Kumar", "9876543210")])

    report = run_import("employee", "employees.csv", content)

    assert report.status == JobStatus.COMPLETED
    (employee,) = store.documents("employees").values()
    assert employee["qrCodeUrl"].startswith("Employee ID: CISS/ACME/2025-26/001")
    assert report.outcomes[0].to_response()["warnings"] == [
        "QR code image could not be generated; stored the QR text instead."
    ]


def test_bad_photo_degrades_to_warning(run_import, store):
    content = csv_bytes([
        EMPLOYEE_HEADER,
        employee_row("Anil", "Kumar", "9876543210",
                     PhotoBlob="data:image/bmp;base64,Qk0=",
                     ProfilePictureURL="https://cdn.example.com/anil.jpg"),
    ])

    report = run_import("employee", "employees.csv", content)

    assert report.status == JobStatus.COMPLETED
    (employee,) = store.documents("employees").values()
    assert employee["profilePictureUrl"] == "https://cdn.example.com/anil.jpg"
    assert report.warnings == 1


def test_blank_alias_column_does_not_hide_phone_number(run_import, store):
    content = csv_bytes([
        EMPLOYEE_HEADER + ["Mobile"],
        employee_row("Anil", "Kumar", "9876543210") + [""],
    ])

    report = run_import("employee", "employees.csv", content)

    assert report.status == JobStatus.COMPLETED
    assert _statuses(report) == ["success"]
    (employee,) = store.documents("employees").values()
    assert employee["phoneNumber"] == "9876543210"


class PeakTrackingBlobStore(InMemoryBlobStore):
    """Records the highest number of uploads in flight at once."""

    def __init__(self) -> None:
        super().__init__()
        self.in_flight = 0
        self.peak = 0

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            return await super().upload(path, data, content_type)
        finally:
            self.in_flight -= 1


def test_media_uploads_respect_worker_limit(run_import, store, options):
    blobs = PeakTrackingBlobStore()
    photo = data_uri(image_bytes((64, 64)))
    content = csv_bytes([EMPLOYEE_HEADER] + [
        employee_row(f"Guard{i}", "Kumar", f"98765432{i:02d}", PhotoBlob=photo)
        for i in range(8)
    ])

    report = run_import(
        "employee", "employees.csv", content,
        services=ImportServices(document_store=store, blob_store=blobs),
        options=replace(options, media_max_workers=2),
    )

    assert report.status == JobStatus.COMPLETED
    assert len(blobs.objects) == 8
    assert 1 <= blobs.peak <= 2


# ─── Work orders ──────────────────────────────────────

@pytest.fixture
def registered_sites(store):
    store.collections["sites"] = {
        "site-doc-1": {"siteId": "SITE-001", "siteName": "Main Gate", "clientName": "Acme", "district": "Kochi"},
        "site-doc-2": {"siteId": "SITE-002", "siteName": "Harbour", "clientName": "Acme", "district": ""},
    }
    return store


def test_work_order_import(run_import, registered_sites):
    store = registered_sites
    content = csv_bytes([
        WORK_ORDER_HEADER,
        ["Kochi", "SITE-001", "Main Gate", "4", "2", ""],
        ["Kochi", "SITE-999", "Nowhere", "1", "1", ""],
        ["Kochi", "SITE-002", "Harbour", "0", "0", ""],
        ["Kochi", "site-001", "Main Gate", "1", "1", ""],
        ["Aluva", "SITE-002", "Harbour", "3", "0", ""],
    ])

    report = run_import("work_order", "work_orders.csv", content)

    assert report.status == JobStatus.COMPLETED
    assert _statuses(report) == ["success", "error", "error", "error", "success"]
    assert report.outcomes[1].messages == ['Site not found for TC CODE "SITE-999".']
    assert report.outcomes[2].messages == ["Total manpower must be greater than zero."]
    assert report.message == "Work order data imported successfully. 2 records processed."

    orders = store.documents("workOrders")
    assert set(orders) == {"site-doc-1_03Aug25", "site-doc-2_03Aug25"}
    order = orders["site-doc-1_03Aug25"]
    assert order["siteId"] == "site-doc-1"
    assert order["siteCode"] == "SITE-001"
    assert order["totalManpower"] == 6
    assert order["district"] == "Kochi"
    assert order["assignedGuards"] == {}
    assert order["date"] == datetime(2025, 8, 3, tzinfo=timezone.utc)
    assert orders["site-doc-2_03Aug25"]["district"] == "Aluva"


def test_work_order_repeated_site_is_a_duplicate(run_import, registered_sites):
    content = csv_bytes([
        WORK_ORDER_HEADER,
        ["Kochi", "SITE-001", "Main Gate", "4", "2", ""],
        ["Kochi", "SITE-001", "Main Gate", "1", "1", ""],
    ])

    report = run_import("work_order", "work_orders.csv", content)

    assert _statuses(report) == ["success", "duplicate"]


def test_work_order_date_header_from_spreadsheet(run_import, registered_sites):
    content = xlsx_bytes([
        ["CITY", "TC CODE", "CENTER", "MALE", "FEMALE", datetime(2025, 8, 3)],
        ["Kochi", "SITE-001", "Main Gate", 4, 2, None],
    ])

    report = run_import("work_order", "work_orders.xlsx", content)

    assert report.status == JobStatus.COMPLETED
    assert "site-doc-1_03Aug25" in registered_sites.documents("workOrders")


def test_work_order_without_date_column(run_import, registered_sites):
    content = csv_bytes([["CITY", "TC CODE", "CENTER", "MALE", "FEMALE"], ["Kochi", "SITE-001", "Gate", "1", "1"]])

    report = run_import("work_order", "work_orders.csv", content)

    assert report.status == JobStatus.FAILED
    assert report.message == "A date column (e.g., 03-Aug-25) was not found in the header."


def test_work_order_invalid_date_header(run_import, registered_sites):
    content = csv_bytes([WORK_ORDER_HEADER[:5] + ["31-Feb-25"], ["Kochi", "SITE-001", "Gate", "1", "1", ""]])

    report = run_import("work_order", "work_orders.csv", content)

    assert report.status == JobStatus.FAILED
    assert report.message == "Invalid date in header: 31-Feb-25"


# ─── Retries ──────────────────────────────────────────

class FlakySitesStore(InMemoryDocumentStore):
    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures

    async def fetch_documents(self, collection):
        if self.failures:
            self.failures -= 1
            raise StorageError("sites temporarily unavailable")
        return await super().fetch_documents(collection)


def test_transient_read_failure_is_retried(run_import, services):
    store = FlakySitesStore(failures=2)
    store.collections["sites"] = {"s1": {"siteId": "SITE-001", "siteName": "Gate"}}
    services.document_store = store
    content = csv_bytes([WORK_ORDER_HEADER, ["Kochi", "SITE-001", "Gate", "1", "1", ""]])

    report = run_import("work_order", "work_orders.csv", content)

    assert report.status == JobStatus.COMPLETED
    assert store.failures == 0


def test_persistent_read_failure_fails_the_job(run_import, services):
    services.document_store = FlakySitesStore(failures=10)
    content = csv_bytes([WORK_ORDER_HEADER, ["Kochi", "SITE-001", "Gate", "1", "1", ""]])

    report = run_import("work_order", "work_orders.csv", content)

    assert report.status == JobStatus.FAILED
    assert report.error_type == "StepExecutionError"
    failed = next(s for s in report.step_results if s["status"] == StepStatus.FAILED)
    assert failed["step_name"] == "resolve_sites"
    assert failed["metadata"]["attempts"] == 3


# ─── Flow resolution ──────────────────────────────────

def test_flows():
    resolver = FlowResolver()
    assert resolver.list_available_flows() == ["employee", "site", "work_order"]
    assert [s.name for s in resolver.resolve("work_order")][:4] == [
        "detect_format", "parse_rows", "resolve_work_date", "validate_schema",
    ]
    with pytest.raises(ConfigurationError):
        resolver.resolve("vehicle")


def test_employee_flow_skips_duplicate_detection(run_import):
    content = csv_bytes([EMPLOYEE_HEADER, employee_row("Anil", "Kumar", "9876543210")])

    report = run_import("employee", "employees.csv", content)

    skipped = [s["step_name"] for s in report.step_results if s["status"] == StepStatus.SKIPPED]
    assert skipped == ["detect_duplicates"]
