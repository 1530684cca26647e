"""API schema package."""

from workforce_ingest.api.schemas.imports import ImportJobDetail, ImportJobList, ImportJobOut, ImportJobQueued

__all__ = ["ImportJobQueued", "ImportJobOut", "ImportJobDetail", "ImportJobList"]
