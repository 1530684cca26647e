"""
Tabular parser — turns an uploaded file into header-keyed raw rows.

Supports delimited text (csv), .xlsx (via openpyxl) and .xls (via xlrd).
The first row is the header; every later non-blank row becomes a RawRow
whose row_index is its 1-based position among data rows.
"""

from __future__ import annotations

import csv
import io
import os
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Iterator

import xlrd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from workforce_ingest.core.constants import FileFormat
from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.context import RawRow
from workforce_ingest.pipeline.errors import ConfigurationError, EmptyInputError

logger = get_logger(__name__)

HeaderResolver = Callable[[str], "str | None"]

# Extension → format mapping
EXTENSION_MAP: dict[str, FileFormat] = {
    ".csv": FileFormat.DELIMITED,
    ".txt": FileFormat.DELIMITED,
    ".xlsx": FileFormat.SPREADSHEET,
    ".xlsm": FileFormat.SPREADSHEET,
    ".xls": FileFormat.LEGACY_SPREADSHEET,
}

# Short names accepted as a format hint
HINT_ALIASES: dict[str, FileFormat] = {
    "csv": FileFormat.DELIMITED,
    "xlsx": FileFormat.SPREADSHEET,
    "xls": FileFormat.LEGACY_SPREADSHEET,
}

ZIP_MAGIC = b"PK\x03\x04"
OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


# ═══════════════════════════════════════════════════════════
#  Format detection
# ═══════════════════════════════════════════════════════════

def detect_format(filename: str | None, content: bytes, hint: str | None = None) -> FileFormat:
    """
    Decide how to read an upload.

    Priority: explicit hint, then file extension, then magic bytes.

    Raises:
        ConfigurationError: the hint names no known format.
    """
    if hint:
        normalized = hint.strip()
        if normalized.upper() in FileFormat.__members__:
            return FileFormat[normalized.upper()]
        if normalized.lower() in HINT_ALIASES:
            return HINT_ALIASES[normalized.lower()]
        raise ConfigurationError(f"Unknown file format: {hint}")

    ext = os.path.splitext(filename or "")[1].lower()
    if ext in EXTENSION_MAP:
        return EXTENSION_MAP[ext]

    if content.startswith(ZIP_MAGIC):
        return FileFormat.SPREADSHEET
    if content.startswith(OLE2_MAGIC):
        return FileFormat.LEGACY_SPREADSHEET
    return FileFormat.DELIMITED


# ═══════════════════════════════════════════════════════════
#  Sheet Adapters — uniform row iteration over csv / xlrd / openpyxl
# ═══════════════════════════════════════════════════════════

class DelimitedSheetAdapter:
    """Adapter for UTF-8 delimited text (BOM tolerated)."""

    def __init__(self, content: bytes) -> None:
        try:
            self._text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ConfigurationError(f"File is not valid UTF-8 text: {exc}") from exc

    def rows(self) -> Iterator[list[Any]]:
        try:
            yield from csv.reader(io.StringIO(self._text, newline=""), strict=True)
        except csv.Error as exc:
            raise ConfigurationError(f"Malformed delimited file: {exc}") from exc


class OpenpyxlSheetAdapter:
    """Adapter for the first worksheet of an .xlsx workbook."""

    def __init__(self, content: bytes) -> None:
        try:
            workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as exc:
            raise ConfigurationError(f"Could not read spreadsheet: {exc}") from exc
        self._workbook = workbook
        self._ws = workbook.worksheets[0]

    def rows(self) -> Iterator[list[Any]]:
        try:
            for row in self._ws.iter_rows(values_only=True):
                yield list(row)
        finally:
            self._workbook.close()


class XlrdSheetAdapter:
    """Adapter for the first sheet of a legacy .xls workbook."""

    def __init__(self, content: bytes) -> None:
        try:
            workbook = xlrd.open_workbook(file_contents=content)
        except (xlrd.XLRDError, ValueError, OSError) as exc:
            raise ConfigurationError(f"Could not read legacy spreadsheet: {exc}") from exc
        self._s = workbook.sheet_by_index(0)

    def rows(self) -> Iterator[list[Any]]:
        for r in range(self._s.nrows):
            yield [value if value != "" else None for value in self._s.row_values(r)]


ADAPTERS = {
    FileFormat.DELIMITED: DelimitedSheetAdapter,
    FileFormat.SPREADSHEET: OpenpyxlSheetAdapter,
    FileFormat.LEGACY_SPREADSHEET: XlrdSheetAdapter,
}


# ═══════════════════════════════════════════════════════════
#  Table parsing
# ═══════════════════════════════════════════════════════════

@dataclass
class ParsedTable:
    """Header row and data rows of one upload."""

    headers: list[str] = field(default_factory=list)
    header_mapping: dict[str, str] = field(default_factory=dict)
    rows: list[RawRow] = field(default_factory=list)


def header_text(value: Any) -> str:
    """Header cell as trimmed text.  Date-typed header cells render as DD-Mon-YY."""
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.strftime("%d-%b-%y")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _clean_cell(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


def _is_blank_cell(cell: Any) -> bool:
    return cell is None or (isinstance(cell, str) and not cell.strip())


def _is_blank_row(cells: list[Any]) -> bool:
    return all(_is_blank_cell(cell) for cell in cells)


def parse_table(
    content: bytes,
    file_format: FileFormat,
    resolve_header: HeaderResolver | None = None,
) -> ParsedTable:
    """
    Parse an upload into headers and raw rows.

    Args:
        content: Raw file bytes.
        file_format: Result of detect_format().
        resolve_header: Maps a trimmed source header to a canonical field
                        name, or None to keep the header as-is.

    Raises:
        EmptyInputError: header only, or no rows at all.
        ConfigurationError: unreadable or malformed file.
    """
    adapter = ADAPTERS[file_format](content)
    rows = adapter.rows()

    header_cells = next(rows, None)
    if header_cells is None or _is_blank_row(header_cells):
        raise EmptyInputError("The file is empty or does not contain a header row.")

    headers = [header_text(cell) for cell in header_cells]
    keys: list[str | None] = []
    mapping: dict[str, str] = {}
    for header in headers:
        if not header:
            keys.append(None)
            continue
        canonical = resolve_header(header) if resolve_header else None
        if canonical:
            mapping[header] = canonical
        keys.append(canonical or header)

    table = ParsedTable(headers=headers, header_mapping=mapping)
    for position, cells in enumerate(rows, start=1):
        if _is_blank_row(cells):
            continue
        values: dict[str, Any] = {}
        for key, cell in zip(keys, cells):
            if key is None:
                continue
            # Several headers may map to one field: first non-blank wins
            if key in values and not _is_blank_cell(values[key]):
                continue
            values[key] = _clean_cell(cell)
        table.rows.append(RawRow(row_index=position, values=values))

    if not table.rows:
        raise EmptyInputError("The file is empty or has only a header.")

    logger.debug(
        "Table parsed",
        file_format=str(file_format),
        headers=len(headers),
        mapped=len(mapping),
        rows=len(table.rows),
    )
    return table
