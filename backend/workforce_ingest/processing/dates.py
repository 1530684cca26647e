"""
Date cell conversion.

Spreadsheet cells arrive as datetime/date objects (openpyxl), as Excel
serial numbers (xlrd, or numbers typed into a text column) or as
free text.  Everything is converted to a timezone-aware UTC datetime.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from workforce_ingest.core.constants import EXCEL_UNIX_EPOCH_OFFSET_DAYS, SECONDS_PER_DAY

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Day-first formats, tried in order.
DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%d.%m.%Y",
    "%d-%m-%y",
    "%d/%m/%y",
    "%d-%b-%Y",
    "%d-%b-%y",
    "%d %b %Y",
    "%d %B %Y",
)


def excel_serial_to_datetime(serial: float) -> datetime:
    """
    Convert an Excel serial day number to a UTC datetime.

    The whole part counts days (1900 date system), the fractional part is
    the time of day.

    Raises:
        ValueError: serial is not a finite number >= 1 or the result is out
                    of the supported calendar range.
    """
    if isinstance(serial, bool) or not math.isfinite(serial) or serial < 1:
        raise ValueError(f"Not a valid date serial: {serial!r}")

    whole_days = math.floor(serial)
    days = whole_days - EXCEL_UNIX_EPOCH_OFFSET_DAYS
    seconds_of_day = round((serial - whole_days) * SECONDS_PER_DAY)

    try:
        return UNIX_EPOCH + timedelta(seconds=days * SECONDS_PER_DAY + seconds_of_day)
    except OverflowError:
        raise ValueError(f"Date serial out of range: {serial!r}") from None


def _as_number(text: str) -> float | None:
    try:
        return float(text)
    except ValueError:
        return None


def to_datetime(value: Any) -> datetime:
    """
    Convert a cell value to a UTC datetime.

    Raises:
        ValueError: the value does not describe a real calendar date.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return excel_serial_to_datetime(float(value))

    text = str(value).strip()
    if not text:
        raise ValueError("Empty date")

    number = _as_number(text)
    if number is not None:
        return excel_serial_to_datetime(number)

    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed.replace(tzinfo=timezone.utc)

    raise ValueError(f"Unrecognised date: {text!r}")
