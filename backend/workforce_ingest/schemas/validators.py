"""
Field validators and transforms used by the entity schemas.

A validator takes the raw (trimmed) cell value and returns None when the
value is acceptable, or a message template.  Templates may contain
"{field}", which the schema replaces with the field's label.

A transform takes a value that passed validation and returns the
canonical typed value stored in the document.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable

from workforce_ingest.processing.dates import to_datetime
from workforce_ingest.processing.geo import parse_geolocation

Validator = Callable[[Any], "str | None"]
Transform = Callable[[Any], Any]

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
NON_DIGIT_RE = re.compile(r"\D")


# ─── Transforms ───────────────────────────────────────

def as_text(value: Any) -> str:
    """Cell value as a trimmed string.  Integral floats lose their ".0"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def as_upper_text(value: Any) -> str:
    return as_text(value).upper()


def only_digits(value: Any) -> str:
    return NON_DIGIT_RE.sub("", as_text(value))


def as_int(value: Any) -> int:
    return int(float(as_text(value)))


def as_datetime(value: Any):
    return to_datetime(value)


def as_geopoint(value: Any):
    return parse_geolocation(as_text(value))


# ─── Validators ───────────────────────────────────────

def matches(pattern: str, message: str, *, upper: bool = False) -> Validator:
    """Full-match `pattern` against the text value."""
    compiled = re.compile(pattern)

    def _check(value: Any) -> str | None:
        text = as_text(value)
        if upper:
            text = text.upper()
        return None if compiled.fullmatch(text) else message

    return _check


def digits(count: int, message: str | None = None) -> Validator:
    """Exactly `count` digits once separators (spaces, dashes ...) are removed."""
    message = message or f"{{field}} must be {count} digits."

    def _check(value: Any) -> str | None:
        number = only_digits(value)
        return None if len(number) == count else message

    return _check


def exact_length(length: int, message: str | None = None) -> Validator:
    message = message or f"{{field}} must be {length} characters."

    def _check(value: Any) -> str | None:
        return None if len(as_text(value)) == length else message

    return _check


def one_of(choices: Iterable[str]) -> Validator:
    """Case-sensitive enumeration check."""
    allowed = tuple(choices)
    message = "{field} must be one of: " + ", ".join(allowed) + "."

    def _check(value: Any) -> str | None:
        return None if as_text(value) in allowed else message

    return _check


def email(value: Any) -> str | None:
    return None if EMAIL_RE.match(as_text(value)) else "Invalid email address."


def date_value(value: Any) -> str | None:
    try:
        to_datetime(value)
    except ValueError:
        return "{field} has an invalid date format"
    return None


def geolocation(value: Any) -> str | None:
    try:
        parse_geolocation(as_text(value))
    except ValueError as exc:
        return str(exc)
    return None


def non_negative_int(value: Any) -> str | None:
    try:
        number = float(as_text(value))
    except ValueError:
        return "{field} must be a whole number."
    if not number.is_integer():
        return "{field} must be a whole number."
    if number < 0:
        return "{field} must not be negative."
    return None

