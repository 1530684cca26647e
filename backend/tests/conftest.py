"""Shared fixtures: in-memory stores, upload builders and an import runner."""

from __future__ import annotations

import asyncio
import base64
import csv
import io
from datetime import date, datetime
from typing import Any

import pytest
from openpyxl import Workbook
import xlwt
from PIL import Image

from workforce_ingest.pipeline.context import ImportOptions, ImportServices
from workforce_ingest.pipeline.engine import PipelineEngine
from workforce_ingest.pipeline.report import JobReport
from workforce_ingest.storage import InMemoryBlobStore, InMemoryDocumentStore

TODAY = date(2025, 4, 10)

SITE_HEADER = ["Client Name", "Site Name", "Site ID", "Site Address", "Geolocation", "District"]
EMPLOYEE_HEADER = [
    "FirstName", "LastName", "PhoneNumber", "ClientName", "JoiningDate",
    "Gender", "IDProofType", "IDProofNumber", "ResourceIDNumber", "PhotoBlob", "ProfilePictureURL",
]
WORK_ORDER_HEADER = ["CITY", "TC CODE", "CENTER", "MALE", "FEMALE", "03-Aug-25"]


def csv_bytes(rows: list[list[Any]]) -> bytes:
    buffer = io.StringIO()
    csv.writer(buffer).writerows(rows)
    return buffer.getvalue().encode("utf-8")


def xlsx_bytes(rows: list[list[Any]]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def xls_bytes(rows: list[list[Any]]) -> bytes:
    """Legacy .xls workbook; datetime cells are written as date-formatted serials."""
    workbook = xlwt.Workbook()
    sheet = workbook.add_sheet("Sheet1")
    date_style = xlwt.easyxf(num_format_str="DD-MM-YYYY")
    for r, row in enumerate(rows):
        for c, value in enumerate(row):
            if value is None:
                continue
            if isinstance(value, datetime):
                sheet.write(r, c, value, date_style)
            else:
                sheet.write(r, c, value)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def image_bytes(size: tuple[int, int] = (1600, 1200), fmt: str = "PNG", mode: str = "RGB") -> bytes:
    color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
    image = Image.new(mode, size, color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def data_uri(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def site_row(client: str, name: str, geo: str = "10.1234,76.5432", site_id: str = "") -> list[str]:
    return [client, name, site_id, f"{name} Road", geo, "Ernakulam"]


def employee_row(first: str, last: str, phone: str, client: str = "Acme", **extra: str) -> list[str]:
    values = {
        "JoiningDate": "2025-04-01",
        "Gender": "Male",
        "IDProofType": "",
        "IDProofNumber": "",
        "ResourceIDNumber": "",
        "PhotoBlob": "",
        "ProfilePictureURL": "",
        **extra,
    }
    return [first, last, phone, client] + [values[h] for h in EMPLOYEE_HEADER[4:]]


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def blobs() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def services(store, blobs) -> ImportServices:
    return ImportServices(document_store=store, blob_store=blobs)


@pytest.fixture
def options() -> ImportOptions:
    return ImportOptions(retry_backoff_seconds=0, today=TODAY)


@pytest.fixture
def run_import(services, options):
    """Run one import synchronously and return its JobReport."""

    def _run(entity_kind: str, filename: str, content: bytes, **kwargs: Any) -> JobReport:
        return asyncio.run(PipelineEngine().run(
            entity_kind=entity_kind,
            filename=filename,
            content=content,
            services=kwargs.pop("services", services),
            options=kwargs.pop("options", options),
            **kwargs,
        ))

    return _run
