"""
Domain-specific exception hierarchy for the import pipeline.

All pipeline exceptions inherit from PipelineError so callers can
catch broadly or narrowly as needed.  Each exception carries structured
context (job ID, step name, etc.) for logging/debugging.

Severity:
    - Job-level (abort the job):    EmptyInputError, ConfigurationError
    - Chunk-level (abort the rest): CommitError
    - Row-level (collected):        SchemaValidationError, DuplicateRecordError
    - Field-level (degrade):        MediaProcessingError
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(
        self,
        message: str,
        *,
        job_id: str | None = None,
        step_name: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.job_id = job_id
        self.step_name = step_name
        self.details = details or {}
        super().__init__(message)


class StepExecutionError(PipelineError):
    """A step failed during execution (retryable steps may retry it)."""
    pass


class EmptyInputError(PipelineError):
    """The upload has no data rows (header only or empty)."""
    pass


class ConfigurationError(PipelineError):
    """The upload or the pipeline options cannot be processed as configured."""
    pass


class SchemaValidationError(PipelineError):
    """A row failed schema validation.  Never escapes its row."""

    def __init__(self, message: str, *, row_index: int, messages: list[str], **kwargs) -> None:
        self.row_index = row_index
        self.messages = list(messages)
        super().__init__(message, **kwargs)


class DuplicateRecordError(PipelineError):
    """A row's natural key was already seen.  Never escapes its row."""

    def __init__(self, message: str, *, row_index: int, key: str, **kwargs) -> None:
        self.row_index = row_index
        self.key = key
        super().__init__(message, **kwargs)


class MediaProcessingError(PipelineError):
    """Decoding, resizing or uploading an embedded image failed."""
    pass


class CommitError(PipelineError):
    """A batched write failed.  Chunks committed before it stay committed."""

    def __init__(self, message: str, *, records_committed: int = 0, **kwargs) -> None:
        self.records_committed = records_committed
        super().__init__(message, **kwargs)


class StorageError(PipelineError):
    """Document-store or object-storage operation failed."""
    pass
