from datetime import datetime, timezone

import pytest

from conftest import csv_bytes, xls_bytes, xlsx_bytes
from workforce_ingest.core.constants import FileFormat
from workforce_ingest.pipeline.errors import ConfigurationError, EmptyInputError
from workforce_ingest.processing.dates import to_datetime
from workforce_ingest.processing.parsers import OLE2_MAGIC, XlrdSheetAdapter, detect_format, parse_table
from workforce_ingest.schemas.employee import EMPLOYEE_SCHEMA
from workforce_ingest.schemas.site import SITE_SCHEMA


# ─── Format detection ─────────────────────────────────

@pytest.mark.parametrize(
    "filename, content, hint, expected",
    [
        ("sites.csv", b"a,b", None, FileFormat.DELIMITED),
        ("sites.XLSX", b"", None, FileFormat.SPREADSHEET),
        ("sites.xls", b"", None, FileFormat.LEGACY_SPREADSHEET),
        ("upload", b"PK\x03\x04rest", None, FileFormat.SPREADSHEET),
        ("upload", OLE2_MAGIC + b"rest", None, FileFormat.LEGACY_SPREADSHEET),
        ("upload", b"a,b\n1,2", None, FileFormat.DELIMITED),
        ("sites.csv", b"", "xlsx", FileFormat.SPREADSHEET),
        ("sites.csv", b"", "LEGACY_SPREADSHEET", FileFormat.LEGACY_SPREADSHEET),
    ],
)
def test_detect_format(filename, content, hint, expected):
    assert detect_format(filename, content, hint) == expected


def test_unknown_format_hint():
    with pytest.raises(ConfigurationError):
        detect_format("sites.csv", b"", "pdf")


# ─── Delimited ────────────────────────────────────────

def test_parse_csv_maps_headers_and_keeps_row_positions():
    content = "\ufeffClient Name, site name ,Notes\nAcme, Gate 1 ,x\n,,\nAcme,Gate 2,\n"
    table = parse_table(content.encode("utf-8"), FileFormat.DELIMITED, SITE_SCHEMA.resolve_header)

    assert table.headers == ["Client Name", "site name", "Notes"]
    assert table.header_mapping == {"Client Name": "clientName", "site name": "siteName"}
    assert [row.row_index for row in table.rows] == [1, 3]
    assert table.rows[0].values == {"clientName": "Acme", "siteName": "Gate 1", "Notes": "x"}


def test_parse_csv_header_only():
    with pytest.raises(EmptyInputError):
        parse_table(b"Client Name,Site Name\n", FileFormat.DELIMITED)


def test_parse_csv_blank_file():
    with pytest.raises(EmptyInputError):
        parse_table(b"\n\n", FileFormat.DELIMITED)


def test_parse_csv_not_utf8():
    with pytest.raises(ConfigurationError):
        parse_table(b"\xff\xfe\x00bad", FileFormat.DELIMITED)


# ─── Spreadsheets ─────────────────────────────────────

def test_parse_xlsx_keeps_cell_types_and_renders_date_headers():
    content = xlsx_bytes([
        ["CITY", "TC CODE", "MALE", datetime(2025, 8, 3)],
        ["Kochi", "SITE-1", 4, None],
        [None, None, None, None],
        ["Kochi", "SITE-2", 2, None],
    ])
    table = parse_table(content, FileFormat.SPREADSHEET)

    assert table.headers == ["CITY", "TC CODE", "MALE", "03-Aug-25"]
    assert [row.row_index for row in table.rows] == [1, 3]
    assert table.rows[0].values["MALE"] == 4
    assert table.rows[1].values["TC CODE"] == "SITE-2"


def test_parse_corrupt_xlsx():
    with pytest.raises(ConfigurationError):
        parse_table(b"PK\x03\x04 not really a zip", FileFormat.SPREADSHEET)


def test_corrupt_legacy_spreadsheet():
    with pytest.raises(ConfigurationError):
        XlrdSheetAdapter(b"Client Name,Site Name\nAcme,Gate 1\n")


def test_csv_and_xlsx_parse_alike():
    rows = [["Client Name", "Site Name"], ["Acme", "Gate 1"]]
    from_csv = parse_table(csv_bytes(rows), FileFormat.DELIMITED, SITE_SCHEMA.resolve_header)
    from_xlsx = parse_table(xlsx_bytes(rows), FileFormat.SPREADSHEET, SITE_SCHEMA.resolve_header)
    assert [r.values for r in from_csv.rows] == [r.values for r in from_xlsx.rows]


def test_first_non_blank_aliased_column_wins():
    content = csv_bytes([
        ["FirstName", "PhoneNumber", "Mobile", "Mobile Number"],
        ["Anil", "9876543210", "", "9000000001"],
        ["Meera", "", "9123456780", ""],
    ])

    table = parse_table(content, FileFormat.DELIMITED, EMPLOYEE_SCHEMA.resolve_header)

    assert table.header_mapping["Mobile"] == "phoneNumber"
    assert [row.values["phoneNumber"] for row in table.rows] == ["9876543210", "9123456780"]


def test_parse_xls_reads_numbers_and_date_serials():
    content = xls_bytes([
        ["Client Name", "Site Name", "MALE", "Joined"],
        ["Acme", "Gate 1", 4, datetime(2025, 4, 1)],
        [None, None, None, None],
        ["Acme", "Gate 2", None, None],
    ])

    table = parse_table(content, FileFormat.LEGACY_SPREADSHEET, SITE_SCHEMA.resolve_header)

    assert table.headers == ["Client Name", "Site Name", "MALE", "Joined"]
    assert [row.row_index for row in table.rows] == [1, 3]
    first, second = (row.values for row in table.rows)
    assert first["clientName"] == "Acme"
    assert first["MALE"] == 4.0
    assert first["Joined"] == 45748.0
    assert to_datetime(first["Joined"]) == datetime(2025, 4, 1, tzinfo=timezone.utc)
    assert second["MALE"] is None
