"""
Declarative entity schemas.

An EntitySchema lists the fields of one importable entity kind, how each
spreadsheet header maps onto them, how each value is checked and
converted, and how records of that kind are keyed for duplicate
detection.  Schemas are built once at import time and never mutated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable

from workforce_ingest.core.constants import EntityKind
from workforce_ingest.pipeline.context import NormalizedRecord, RawRow
from workforce_ingest.pipeline.errors import SchemaValidationError
from workforce_ingest.schemas.validators import Transform, Validator, as_text

_NON_ALNUM_RE = re.compile(r"[^0-9a-z]")


def normalize_header(header: Any) -> str:
    """Case/space/punctuation-insensitive header key: "Phone Number" -> "phonenumber"."""
    return _NON_ALNUM_RE.sub("", str(header).lower())


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(frozen=True)
class FieldSpec:
    """
    One canonical field of an entity.

    Args:
        name: Canonical (document) field name, e.g. "phoneNumber".
        label: Human label used in messages and templates.
        required: Absent/empty value is a validation error.
        validate: Returns a message template or None.
        transform: Produces the stored value from the raw cell value.
        headers: Extra source headers accepted for this field.
        default: Stored when an optional field is absent.
    """

    name: str
    label: str = ""
    required: bool = False
    validate: Validator | None = None
    transform: Transform = as_text
    headers: tuple[str, ...] = ()
    default: Any = None

    @property
    def display_name(self) -> str:
        return self.label or self.name

    def check(self, value: Any) -> str | None:
        if self.validate is None:
            return None
        message = self.validate(value)
        return message.format(field=self.display_name) if message else None


@dataclass(frozen=True)
class MediaFieldSpec:
    """
    A column that may carry an inline base64 image.

    Args:
        source: Canonical name of the raw column holding the data URI.
        target: Field that receives the uploaded URL.
        folder: Blob-store folder (first path segment).
        max_size: Bounding box (width, height) for the resized image.
        fallback_source: Raw column whose value is used when the source
                         holds no usable image.
        headers: Extra source headers accepted for the source column.
    """

    source: str
    target: str
    folder: str
    max_size: tuple[int, int] = (800, 800)
    fallback_source: str | None = None
    headers: tuple[str, ...] = ()


RowCheck = Callable[[dict[str, Any]], list[str]]
NaturalKey = Callable[[dict[str, Any]], str]


@dataclass(frozen=True)
class EntitySchema:
    """Field layout and keying rules of one entity kind."""

    kind: EntityKind
    collection: str
    label: str
    fields: tuple[FieldSpec, ...]
    media_fields: tuple[MediaFieldSpec, ...] = ()
    row_checks: tuple[RowCheck, ...] = ()
    natural_key: NaturalKey | None = None
    check_existing_keys: bool = False
    extra_template_headers: tuple[str, ...] = ()
    template_example: dict[str, str] = field(default_factory=dict)

    # ─── Header mapping ───────────────────────────────

    @property
    def header_lookup(self) -> dict[str, str]:
        """normalized header -> canonical name, for fields and media columns."""
        lookup: dict[str, str] = {}
        for spec in self.fields:
            for header in (spec.name, spec.label, *spec.headers):
                if header:
                    lookup[normalize_header(header)] = spec.name
        for media in self.media_fields:
            for header in (media.source, *media.headers):
                lookup[normalize_header(header)] = media.source
            if media.fallback_source:
                lookup.setdefault(normalize_header(media.fallback_source), media.fallback_source)
        return lookup

    def resolve_header(self, header: str) -> str | None:
        return self.header_lookup.get(normalize_header(header))

    @property
    def required_fields(self) -> list[FieldSpec]:
        return [spec for spec in self.fields if spec.required]

    @property
    def template_headers(self) -> list[str]:
        headers = [spec.display_name for spec in self.fields]
        headers.extend(media.headers[0] if media.headers else media.source for media in self.media_fields)
        headers.extend(self.extra_template_headers)
        return headers

    # ─── Validation / normalization ───────────────────

    def collect_errors(self, values: dict[str, Any]) -> list[str]:
        """Every field-level and cross-field message for one row."""
        messages: list[str] = []
        for spec in self.fields:
            value = values.get(spec.name)
            if is_blank(value):
                if spec.required:
                    messages.append(f"{spec.display_name} is required")
                continue
            message = spec.check(value)
            if message:
                messages.append(message)
        for row_check in self.row_checks:
            messages.extend(row_check(values))
        return messages

    def normalize(self, row: RawRow) -> NormalizedRecord:
        """
        Validate a raw row and build its canonical record.

        Raises:
            SchemaValidationError: carrying every message for the row.
        """
        messages = self.collect_errors(row.values)
        if messages:
            raise SchemaValidationError(
                f"Row {row.row_index} failed validation",
                row_index=row.row_index,
                messages=messages,
            )

        data: dict[str, Any] = {}
        for spec in self.fields:
            value = row.values.get(spec.name)
            data[spec.name] = spec.default if is_blank(value) else spec.transform(value)
        return NormalizedRecord(row_index=row.row_index, data=data)
