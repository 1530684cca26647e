"""Shared constants and enums used across the application."""

from enum import StrEnum


class EntityKind(StrEnum):
    """Entity kinds that can be bulk-imported from a spreadsheet."""

    EMPLOYEE = "employee"
    SITE = "site"
    WORK_ORDER = "work_order"


class FileFormat(StrEnum):
    """Detected upload format."""

    DELIMITED = "DELIMITED"
    SPREADSHEET = "SPREADSHEET"
    LEGACY_SPREADSHEET = "LEGACY_SPREADSHEET"


class JobStatus(StrEnum):
    """Overall status of an import job."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    PARTIALLY_COMMITTED = "PARTIALLY_COMMITTED"
    FAILED = "FAILED"


class StepStatus(StrEnum):
    """Status of an individual pipeline step."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"
    RETRYING = "RETRYING"


class RowStatus(StrEnum):
    """Outcome of a single input row."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    DUPLICATE = "duplicate"
    NOT_COMMITTED = "not_committed"


# Hard limit of the document store for one atomic batched write.
STORE_BATCH_OPERATION_LIMIT = 500

# Default chunk size, leaving headroom below the store limit.
DEFAULT_MAX_BATCH_SIZE = 400

# Days between the Excel epoch (1899-12-30) and the Unix epoch.
EXCEL_UNIX_EPOCH_OFFSET_DAYS = 25569

SECONDS_PER_DAY = 86400
